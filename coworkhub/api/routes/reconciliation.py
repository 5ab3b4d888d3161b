"""Reconciliation endpoints.

Create reconciliations (JSON body or CSV statement upload), list and fetch
them, correct individual matches, record adjustments and move them through
review to approval or rejection.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from fastapi.responses import JSONResponse

from coworkhub.api.deps import get_reconciliation_service, get_tenant_id, get_user_id
from coworkhub.core.exceptions import ValidationError
from coworkhub.core.logging import get_logger
from coworkhub.models.enums import ReconciliationStatus, ReconciliationType, ReportPeriod
from coworkhub.schemas.common import ApiResponse, ErrorResponse
from coworkhub.schemas.reconciliation import (
    AdjustmentRequest,
    ApproveRequest,
    CreateReconciliationRequest,
    ManualMatchRequest,
    ReconciliationItemResponse,
    ReconciliationPage,
    ReconciliationResponse,
    RejectRequest,
    UnmatchRequest,
)
from coworkhub.services.bank_feed.csv_statement import CsvStatementParser
from coworkhub.services.reconciliation.engine import ReconciliationService

logger = get_logger(__name__)

router = APIRouter()


def _envelope(reconciliation) -> ApiResponse[ReconciliationResponse]:
    return ApiResponse(data=ReconciliationResponse.model_validate(reconciliation))


@router.post("", response_model=ApiResponse[ReconciliationResponse])
def create_reconciliation(
    body: CreateReconciliationRequest,
    tenant_id: str = Depends(get_tenant_id),
    user_id: str = Depends(get_user_id),
    service: ReconciliationService = Depends(get_reconciliation_service),
):
    """Open a reconciliation for a period and auto-match its statement lines."""
    logger.info(
        "Reconciliation requested: tenant=%s %s to %s lines=%s",
        tenant_id,
        body.start_date,
        body.end_date,
        len(body.bank_transactions) if body.bank_transactions is not None else "feed",
    )
    reconciliation = service.create_reconciliation(tenant_id, user_id, body)
    return _envelope(reconciliation)


@router.post("/upload", response_model=ApiResponse[ReconciliationResponse])
async def upload_statement(
    file: UploadFile = File(..., description="CSV bank statement"),
    start_date: datetime = Form(...),
    end_date: datetime = Form(...),
    reconciliation_type: ReconciliationType = Form(ReconciliationType.BANK_STATEMENT),
    period: ReportPeriod = Form(ReportPeriod.CUSTOM),
    auto_match: bool = Form(True),
    tenant_id: str = Depends(get_tenant_id),
    user_id: str = Depends(get_user_id),
    service: ReconciliationService = Depends(get_reconciliation_service),
):
    """Create a reconciliation from an uploaded CSV bank statement.

    Malformed rows are skipped; the upload fails only when the file is
    empty or yields no usable lines.
    """
    content = await file.read()
    if not content:
        raise ValidationError("Uploaded file is empty")

    filename = file.filename or "statement.csv"
    transactions = CsvStatementParser().parse(content, filename)
    if not transactions:
        raise ValidationError(f"No valid statement lines found in {filename}")

    request = CreateReconciliationRequest(
        reconciliation_type=reconciliation_type,
        period=period,
        start_date=start_date,
        end_date=end_date,
        auto_match=auto_match,
        bank_transactions=transactions,
    )
    reconciliation = service.create_reconciliation(tenant_id, user_id, request)
    return _envelope(reconciliation)


@router.get("", response_model=ApiResponse[ReconciliationPage])
def list_reconciliations(
    reconciliation_type: Optional[ReconciliationType] = Query(None),
    status: Optional[ReconciliationStatus] = Query(None),
    start_date: Optional[datetime] = Query(None, description="Period start >="),
    end_date: Optional[datetime] = Query(None, description="Period end <="),
    skip: int = Query(0, ge=0),
    take: int = Query(50, ge=1, le=500),
    tenant_id: str = Depends(get_tenant_id),
    service: ReconciliationService = Depends(get_reconciliation_service),
):
    page, total, has_more = service.list_reconciliations(
        tenant_id,
        reconciliation_type=reconciliation_type,
        status=status,
        start_date=start_date,
        end_date=end_date,
        skip=skip,
        take=take,
    )
    return ApiResponse(
        data=ReconciliationPage(
            reconciliations=[ReconciliationResponse.model_validate(r) for r in page],
            total=total,
            has_more=has_more,
        )
    )


@router.get("/{reconciliation_id}", response_model=ApiResponse[ReconciliationResponse])
def get_reconciliation(
    reconciliation_id: UUID,
    tenant_id: str = Depends(get_tenant_id),
    service: ReconciliationService = Depends(get_reconciliation_service),
):
    reconciliation = service.get_reconciliation(tenant_id, reconciliation_id)
    if reconciliation is None:
        return JSONResponse(
            status_code=404,
            content=ErrorResponse(error="Reconciliation not found").model_dump(),
        )
    return _envelope(reconciliation)


@router.post(
    "/{reconciliation_id}/auto-match",
    response_model=ApiResponse[ReconciliationResponse],
)
def rerun_auto_match(
    reconciliation_id: UUID,
    tenant_id: str = Depends(get_tenant_id),
    service: ReconciliationService = Depends(get_reconciliation_service),
):
    """Re-run automatic matching over the still-unmatched lines."""
    return _envelope(service.auto_match(tenant_id, reconciliation_id))


# ── Item corrections ─────────────────────────────────────────────────


@router.post(
    "/items/{item_id}/match",
    response_model=ApiResponse[ReconciliationItemResponse],
)
def manual_match(
    item_id: UUID,
    body: ManualMatchRequest,
    tenant_id: str = Depends(get_tenant_id),
    user_id: str = Depends(get_user_id),
    service: ReconciliationService = Depends(get_reconciliation_service),
):
    item = service.manual_match(
        tenant_id,
        item_id,
        body.payment_id,
        user_id,
        notes=body.notes,
        expected_version=body.expected_version,
    )
    return ApiResponse(data=ReconciliationItemResponse.model_validate(item))


@router.post(
    "/items/{item_id}/unmatch",
    response_model=ApiResponse[ReconciliationItemResponse],
)
def unmatch(
    item_id: UUID,
    body: Optional[UnmatchRequest] = None,
    tenant_id: str = Depends(get_tenant_id),
    user_id: str = Depends(get_user_id),
    service: ReconciliationService = Depends(get_reconciliation_service),
):
    reason = body.reason if body is not None else None
    item = service.unmatch_transaction(tenant_id, item_id, user_id, reason)
    return ApiResponse(data=ReconciliationItemResponse.model_validate(item))


# ── Review ───────────────────────────────────────────────────────────


@router.post(
    "/{reconciliation_id}/adjustments",
    response_model=ApiResponse[ReconciliationResponse],
)
def add_adjustment(
    reconciliation_id: UUID,
    body: AdjustmentRequest,
    tenant_id: str = Depends(get_tenant_id),
    user_id: str = Depends(get_user_id),
    service: ReconciliationService = Depends(get_reconciliation_service),
):
    return _envelope(service.add_adjustment(tenant_id, reconciliation_id, body, user_id))


@router.post(
    "/{reconciliation_id}/approve",
    response_model=ApiResponse[ReconciliationResponse],
)
def approve(
    reconciliation_id: UUID,
    body: Optional[ApproveRequest] = None,
    tenant_id: str = Depends(get_tenant_id),
    user_id: str = Depends(get_user_id),
    service: ReconciliationService = Depends(get_reconciliation_service),
):
    notes = body.notes if body is not None else None
    return _envelope(
        service.approve_reconciliation(tenant_id, reconciliation_id, user_id, notes)
    )


@router.post(
    "/{reconciliation_id}/reject",
    response_model=ApiResponse[ReconciliationResponse],
)
def reject(
    reconciliation_id: UUID,
    body: RejectRequest,
    tenant_id: str = Depends(get_tenant_id),
    user_id: str = Depends(get_user_id),
    service: ReconciliationService = Depends(get_reconciliation_service),
):
    return _envelope(
        service.reject_reconciliation(tenant_id, reconciliation_id, user_id, body.reason)
    )
