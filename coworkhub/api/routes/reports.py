"""Reconciliation report endpoint."""

from uuid import UUID

from fastapi import APIRouter, Depends

from coworkhub.api.deps import get_reconciliation_service, get_tenant_id
from coworkhub.schemas.common import ApiResponse
from coworkhub.schemas.report import ReconciliationReport
from coworkhub.services.reconciliation.engine import ReconciliationService

router = APIRouter()


@router.get(
    "/reconciliations/{reconciliation_id}/report",
    response_model=ApiResponse[ReconciliationReport],
)
def get_report(
    reconciliation_id: UUID,
    tenant_id: str = Depends(get_tenant_id),
    service: ReconciliationService = Depends(get_reconciliation_service),
):
    """Matched/unmatched breakdown, discrepancy groups and recommendations."""
    return ApiResponse(data=service.generate_report(tenant_id, reconciliation_id))
