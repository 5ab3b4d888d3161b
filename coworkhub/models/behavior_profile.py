"""Persisted behavior baseline used by threat detection."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Float, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from coworkhub.core.database import Base


class UserBehaviorProfile(Base):
    """Rolling baseline of one user's activity within one tenant.

    ``baseline_metrics`` holds::

        {
            "avg_session_duration": float,
            "typical_login_times": [int, ...],          # UTC hours, max 8
            "common_ip_addresses": [str, ...],          # max 10
            "frequently_accessed_resources": [str, ...],
            "normal_data_volume_range": {"min": float, "max": float},
            "typical_device_fingerprints": [str, ...],  # max 5
        }
    """

    __tablename__ = "user_behavior_profiles"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )
    tenant_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        index=True,
    )
    user_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
    )
    baseline_metrics: Mapped[dict[str, Any]] = mapped_column(
        JSON,
        nullable=False,
    )
    anomaly_score: Mapped[float] = mapped_column(
        Float,
        default=0.0,
    )
    training_samples: Mapped[int] = mapped_column(
        Integer,
        default=0,
    )
    last_updated: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("tenant_id", "user_id", name="uq_behavior_tenant_user"),
    )

    def __repr__(self) -> str:
        return (
            f"<UserBehaviorProfile(tenant_id={self.tenant_id!r}, "
            f"user_id={self.user_id!r}, samples={self.training_samples})>"
        )
