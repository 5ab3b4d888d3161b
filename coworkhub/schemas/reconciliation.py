"""Pydantic schemas for reconciliation requests, rules and responses."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from coworkhub.core.config import Settings
from coworkhub.models.enums import (
    AdjustmentType,
    DiscrepancyType,
    MatchStatus,
    ReconciliationStatus,
    ReconciliationType,
    ReportPeriod,
)


# ── Matching rules ───────────────────────────────────────────────────


class DescriptionMatching(BaseModel):
    enabled: bool = True
    minimum_similarity: float = Field(0.7, ge=0, le=1)
    keyword_matching: bool = True


class ReferenceMatching(BaseModel):
    enabled: bool = True
    strict_matching: bool = False


class DuplicateDetection(BaseModel):
    enabled: bool = True
    time_window: int = Field(24, ge=0, description="Hours")


class AutoApproval(BaseModel):
    enabled: bool = True
    confidence_threshold: float = Field(95.0, ge=0, le=100)
    amount_limit: float = Field(10000.0, ge=0)


class MatchingRules(BaseModel):
    """Tolerances and toggles used to score bank lines against payments.

    A snapshot of the rules is stored on each reconciliation so later
    re-runs use the same configuration.
    """

    amount_tolerance: float = Field(1.0, ge=0, description="Currency units")
    amount_tolerance_percent: float = Field(0.1, ge=0, description="Percent")
    date_tolerance: int = Field(3, ge=0, description="Days")
    description_matching: DescriptionMatching = Field(
        default_factory=DescriptionMatching
    )
    reference_matching: ReferenceMatching = Field(default_factory=ReferenceMatching)
    duplicate_detection: DuplicateDetection = Field(
        default_factory=DuplicateDetection
    )
    auto_approval: AutoApproval = Field(default_factory=AutoApproval)

    @classmethod
    def from_settings(cls, config: Settings) -> MatchingRules:
        """Build the default rules from application settings."""
        return cls(
            amount_tolerance=config.amount_tolerance,
            amount_tolerance_percent=config.amount_tolerance_percent,
            date_tolerance=config.date_tolerance_days,
            description_matching=DescriptionMatching(
                minimum_similarity=config.description_min_similarity,
            ),
            reference_matching=ReferenceMatching(
                strict_matching=config.reference_strict_matching,
            ),
            duplicate_detection=DuplicateDetection(
                time_window=config.duplicate_window_hours,
            ),
            auto_approval=AutoApproval(
                confidence_threshold=config.auto_approval_confidence_threshold,
                amount_limit=config.auto_approval_amount_limit,
            ),
        )


# ── Bank statement lines ─────────────────────────────────────────────


class BankTransaction(BaseModel):
    """One line of an external bank statement."""

    model_config = ConfigDict(frozen=True)

    reference: str = Field(..., max_length=100)
    bank_reference: Optional[str] = Field(None, max_length=100)
    amount: Decimal = Field(..., max_digits=15, decimal_places=2)
    currency: str = Field("USD", min_length=3, max_length=3)
    date: datetime
    description: str = ""
    metadata: Optional[dict[str, Any]] = None


# ── Requests ─────────────────────────────────────────────────────────


class CreateReconciliationRequest(BaseModel):
    """Request body to open a new reconciliation."""

    reconciliation_type: ReconciliationType = ReconciliationType.BANK_STATEMENT
    period: ReportPeriod = ReportPeriod.CUSTOM
    start_date: datetime
    end_date: datetime
    reconciliation_rules: Optional[MatchingRules] = None
    auto_match: bool = True
    bank_transactions: Optional[list[BankTransaction]] = Field(
        None,
        description="Statement lines; when omitted the configured bank feed is used",
    )

    @model_validator(mode="after")
    def _check_range(self) -> CreateReconciliationRequest:
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class ManualMatchRequest(BaseModel):
    payment_id: UUID
    notes: Optional[str] = None
    expected_version: Optional[int] = Field(
        None,
        description="Item version the operator saw; rejects stale updates",
    )


class UnmatchRequest(BaseModel):
    reason: Optional[str] = None


class AdjustmentRequest(BaseModel):
    type: AdjustmentType
    amount: Decimal = Field(..., max_digits=15, decimal_places=2)
    description: str = Field(..., min_length=1)
    reference: Optional[str] = None


class ApproveRequest(BaseModel):
    notes: Optional[str] = None


class RejectRequest(BaseModel):
    reason: str = Field(..., min_length=1)


# ── Responses ────────────────────────────────────────────────────────


class ReconciliationItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    reconciliation_id: UUID
    payment_id: Optional[UUID] = None
    transaction_reference: str
    bank_reference: Optional[str] = None
    amount: Decimal
    currency: str
    transaction_date: datetime
    description: Optional[str] = None
    match_status: MatchStatus
    match_confidence: Decimal
    matched_by: Optional[str] = None
    matched_at: Optional[datetime] = None
    discrepancy_type: Optional[DiscrepancyType] = None
    discrepancy_amount: Optional[Decimal] = None
    notes: Optional[str] = None
    requires_action: bool
    version: int


class ReconciliationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    tenant_id: str
    reconciliation_type: ReconciliationType
    period: ReportPeriod
    start_date: datetime
    end_date: datetime
    bank_statement_total: Decimal
    recorded_payments_total: Decimal
    variance: Decimal
    status: ReconciliationStatus
    matched_transactions: int = 0
    unmatched_transactions: int = 0
    duplicate_transactions: int = 0
    missing_transactions: int = 0
    auto_match_percentage: Decimal
    manual_review: bool
    adjustments: list[dict[str, Any]] = Field(default_factory=list)
    reconciliation_rules: dict[str, Any]
    notes: Optional[str] = None
    reconciled_by: str
    reconciled_at: Optional[datetime] = None
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    transactions: list[ReconciliationItemResponse] = Field(default_factory=list)


class ReconciliationPage(BaseModel):
    reconciliations: list[ReconciliationResponse]
    total: int
    has_more: bool
