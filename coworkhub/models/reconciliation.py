"""Reconciliation session and per-bank-line item models."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from coworkhub.core.database import Base
from coworkhub.models.enums import (
    DiscrepancyType,
    MatchStatus,
    ReconciliationStatus,
    ReconciliationType,
    ReportPeriod,
)


class Reconciliation(Base):
    """One bounded-period matching session for a tenant.

    Holds the bank and recorded totals, the matching rules snapshot used
    for the session, manual adjustments and the review/approval status.
    """

    __tablename__ = "reconciliations"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )
    tenant_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        index=True,
    )
    reconciliation_type: Mapped[ReconciliationType] = mapped_column(
        Enum(ReconciliationType, native_enum=False, length=20),
        nullable=False,
    )
    period: Mapped[ReportPeriod] = mapped_column(
        Enum(ReportPeriod, native_enum=False, length=20),
        nullable=False,
    )
    start_date: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
    )
    end_date: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
    )
    bank_statement_total: Mapped[Decimal] = mapped_column(
        Numeric(15, 2),
        default=0,
    )
    recorded_payments_total: Mapped[Decimal] = mapped_column(
        Numeric(15, 2),
        default=0,
    )
    variance: Mapped[Decimal] = mapped_column(
        Numeric(15, 2),
        default=0,
        comment="bank_statement_total - recorded_payments_total",
    )
    status: Mapped[ReconciliationStatus] = mapped_column(
        Enum(ReconciliationStatus, native_enum=False, length=20),
        nullable=False,
        default=ReconciliationStatus.IN_PROGRESS,
    )
    matched_transactions: Mapped[int] = mapped_column(
        Integer,
        default=0,
    )
    unmatched_transactions: Mapped[int] = mapped_column(
        Integer,
        default=0,
    )
    duplicate_transactions: Mapped[int] = mapped_column(
        Integer,
        default=0,
    )
    missing_transactions: Mapped[int] = mapped_column(
        Integer,
        default=0,
    )
    auto_match_percentage: Mapped[Decimal] = mapped_column(
        Numeric(5, 2),
        default=0,
    )
    manual_review: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
    )
    adjustments: Mapped[list[dict[str, Any]]] = mapped_column(
        JSON,
        default=list,
    )
    reconciliation_rules: Mapped[dict[str, Any]] = mapped_column(
        JSON,
        nullable=False,
    )
    notes: Mapped[Optional[str]] = mapped_column(
        Text,
    )
    reconciled_by: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
    )
    reconciled_at: Mapped[datetime] = mapped_column(
        DateTime,
        server_default=func.now(),
    )
    approved_by: Mapped[Optional[str]] = mapped_column(
        String(64),
    )
    approved_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        server_default=func.now(),
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime,
        onupdate=func.now(),
    )

    # -- Relationships --
    transactions: Mapped[list[ReconciliationItem]] = relationship(
        "ReconciliationItem",
        back_populates="reconciliation",
        order_by="ReconciliationItem.position",
        lazy="select",
    )

    __table_args__ = (
        Index("ix_reconciliation_tenant_status", "tenant_id", "status"),
    )

    def __repr__(self) -> str:
        return (
            f"<Reconciliation(id={self.id!r}, status={self.status!r}, "
            f"variance={self.variance})>"
        )


class ReconciliationItem(Base):
    """One imported bank-statement line plus its match state.

    Rows are never deleted: unmatching resets the match fields and flags
    the item for action. ``version`` guards against lost updates when two
    operators act on the same item.
    """

    __tablename__ = "reconciliation_items"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )
    reconciliation_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("reconciliations.id"),
        nullable=False,
        index=True,
    )
    position: Mapped[int] = mapped_column(
        Integer,
        default=0,
        comment="Order of the line in the imported statement",
    )
    payment_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("recorded_payments.id"),
        nullable=True,
        index=True,
    )
    transaction_reference: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    bank_reference: Mapped[Optional[str]] = mapped_column(
        String(100),
    )
    amount: Mapped[Decimal] = mapped_column(
        Numeric(15, 2),
        nullable=False,
    )
    currency: Mapped[str] = mapped_column(
        String(3),
        nullable=False,
    )
    transaction_date: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
    )
    description: Mapped[Optional[str]] = mapped_column(
        Text,
    )
    match_status: Mapped[MatchStatus] = mapped_column(
        Enum(MatchStatus, native_enum=False, length=20),
        nullable=False,
        default=MatchStatus.UNMATCHED,
    )
    match_confidence: Mapped[Decimal] = mapped_column(
        Numeric(5, 2),
        default=0,
    )
    matched_by: Mapped[Optional[str]] = mapped_column(
        String(64),
    )
    matched_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime,
    )
    discrepancy_type: Mapped[Optional[DiscrepancyType]] = mapped_column(
        Enum(DiscrepancyType, native_enum=False, length=30),
        nullable=True,
    )
    discrepancy_amount: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(15, 2),
        nullable=True,
    )
    notes: Mapped[Optional[str]] = mapped_column(
        Text,
    )
    requires_action: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
    )
    metadata_json: Mapped[Optional[dict[str, Any]]] = mapped_column(
        "metadata",
        JSON,
        nullable=True,
    )
    version: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=1,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        server_default=func.now(),
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime,
        onupdate=func.now(),
    )

    # -- Relationships --
    reconciliation: Mapped[Reconciliation] = relationship(
        "Reconciliation",
        back_populates="transactions",
        lazy="joined",
    )

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return (
            f"<ReconciliationItem(reference={self.transaction_reference!r}, "
            f"amount={self.amount}, match_status={self.match_status!r})>"
        )
