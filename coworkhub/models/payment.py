"""Recorded payment model: the system of record the bank is compared to."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import DateTime, Enum, Index, Numeric, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from coworkhub.core.database import Base
from coworkhub.models.enums import PaymentStatus


class RecordedPayment(Base):
    """A payment already processed by the billing side of the platform.

    The reconciliation engine only reads these rows; bank statement lines
    are matched against them.
    """

    __tablename__ = "recorded_payments"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )
    tenant_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        index=True,
    )
    amount: Mapped[Decimal] = mapped_column(
        Numeric(15, 2),
        nullable=False,
    )
    currency: Mapped[str] = mapped_column(
        String(3),
        nullable=False,
        default="USD",
    )
    reference: Mapped[Optional[str]] = mapped_column(
        String(100),
    )
    description: Mapped[Optional[str]] = mapped_column(
        Text,
    )
    status: Mapped[PaymentStatus] = mapped_column(
        Enum(PaymentStatus, native_enum=False, length=20),
        nullable=False,
        default=PaymentStatus.COMPLETED,
    )
    processed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        server_default=func.now(),
    )

    __table_args__ = (
        Index("ix_payment_tenant_processed", "tenant_id", "processed_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<RecordedPayment(reference={self.reference!r}, "
            f"amount={self.amount}, status={self.status!r})>"
        )
