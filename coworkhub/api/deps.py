"""Request-scoped dependencies shared by the API routes."""

from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from coworkhub.core.config import settings
from coworkhub.core.database import get_db
from coworkhub.core.exceptions import ValidationError
from coworkhub.services.reconciliation.engine import ReconciliationService
from coworkhub.services.threat.service import ThreatDetectionService


def get_tenant_id(x_tenant_id: Optional[str] = Header(None)) -> str:
    if not x_tenant_id or not x_tenant_id.strip():
        raise ValidationError("X-Tenant-ID header is required")
    return x_tenant_id.strip()


def get_user_id(x_user_id: Optional[str] = Header(None)) -> str:
    if not x_user_id or not x_user_id.strip():
        raise ValidationError("X-User-ID header is required")
    return x_user_id.strip()


def get_reconciliation_service(db: Session = Depends(get_db)) -> ReconciliationService:
    return ReconciliationService(db, settings)


def get_threat_service(db: Session = Depends(get_db)) -> ThreatDetectionService:
    return ThreatDetectionService(db, settings)
