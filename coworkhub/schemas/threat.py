"""Pydantic schemas for behavioral threat detection."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class UserActivity(BaseModel):
    """One observed user activity sample; every signal is optional."""

    user_id: str = Field(..., min_length=1, max_length=64)
    timestamp: Optional[datetime] = None
    session_duration: Optional[float] = Field(None, ge=0, description="Seconds")
    ip_address: Optional[str] = None
    resources: Optional[list[str]] = None
    device_fingerprint: Optional[str] = None
    data_volume: Optional[float] = Field(None, ge=0, description="Bytes")
    is_admin_action: bool = False
    failed_attempts: int = Field(0, ge=0)
    privilege_escalation: bool = False


class ThreatScore(BaseModel):
    overall: float
    behavioral: float
    temporal: float
    geographical: float
    volumetric: float
    contextual: float


class ThreatAnalysis(BaseModel):
    user_id: str
    score: ThreatScore
    is_alert: bool
    training_samples: int


class BehaviorProfileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    tenant_id: str
    user_id: str
    baseline_metrics: dict[str, Any]
    anomaly_score: float
    training_samples: int
    last_updated: datetime
