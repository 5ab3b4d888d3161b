"""Recorded payment endpoints.

Payments are loaded from the billing side in bulk and are the candidates
every reconciliation matches bank lines against.
"""

from typing import Any, List, Optional

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.orm import Session

from coworkhub.api.deps import get_tenant_id
from coworkhub.core.clock import utcnow
from coworkhub.core.database import get_db
from coworkhub.core.logging import get_logger
from coworkhub.models.enums import PaymentStatus
from coworkhub.models.payment import RecordedPayment
from coworkhub.schemas.common import ApiResponse
from coworkhub.schemas.payment import PaymentCreate, PaymentLoadResult, PaymentResponse
from coworkhub.services.bank_feed.normalizer import normalize_currency

logger = get_logger(__name__)

router = APIRouter()


@router.post("/load", response_model=ApiResponse[PaymentLoadResult])
def load_payments(
    payload: List[Any] = Body(..., description="JSON array of recorded payments"),
    tenant_id: str = Depends(get_tenant_id),
    db: Session = Depends(get_db),
) -> ApiResponse[PaymentLoadResult]:
    """Bulk-insert recorded payments for the calling tenant.

    Each element is validated and saved on its own; invalid elements are
    reported in ``errors`` and do not abort the load.
    """
    saved = 0
    skipped = 0
    errors: list[str] = []
    seen_ids: set = set()

    for idx, raw in enumerate(payload):
        try:
            if not isinstance(raw, dict):
                raise ValueError("expected a JSON object")
            schema = PaymentCreate(**raw)
            if schema.id is not None:
                if schema.id in seen_ids or db.get(RecordedPayment, schema.id) is not None:
                    raise ValueError(f"payment {schema.id} already exists")
                seen_ids.add(schema.id)

            data = schema.model_dump(exclude_none=True)
            data["currency"] = normalize_currency(schema.currency)
            data.setdefault("processed_at", utcnow())
            db.add(RecordedPayment(tenant_id=tenant_id, **data))
            saved += 1
        except Exception as exc:
            skipped += 1
            errors.append(f"Item {idx}: {exc}")
            logger.warning("Failed to save payment item %d: %s", idx, exc)

    try:
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("Failed to commit payment load: tenant=%s", tenant_id)
        raise
    logger.info(
        "Load payments: tenant=%s saved=%d skipped=%d", tenant_id, saved, skipped
    )

    if saved == 0 and skipped > 0:
        status = "failed"
    elif skipped > 0:
        status = "partial"
    else:
        status = "success"

    return ApiResponse(
        data=PaymentLoadResult(status=status, saved=saved, skipped=skipped, errors=errors)
    )


@router.get("", response_model=ApiResponse[List[PaymentResponse]])
def list_payments(
    status: Optional[PaymentStatus] = Query(None, description="Filter by payment status"),
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(50, ge=1, le=500, description="Items per page"),
    tenant_id: str = Depends(get_tenant_id),
    db: Session = Depends(get_db),
) -> ApiResponse[List[PaymentResponse]]:
    """List the tenant's recorded payments, newest first."""
    query = db.query(RecordedPayment).filter(RecordedPayment.tenant_id == tenant_id)
    if status is not None:
        query = query.filter(RecordedPayment.status == status)

    payments = (
        query.order_by(RecordedPayment.processed_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return ApiResponse(data=[PaymentResponse.model_validate(p) for p in payments])
