"""Pydantic schemas for the reconciliation report."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from coworkhub.models.enums import DiscrepancyType
from coworkhub.schemas.payment import PaymentResponse
from coworkhub.schemas.reconciliation import ReconciliationItemResponse


class ReconciliationSummary(BaseModel):
    """Headline numbers of one reconciliation."""

    total_bank_transactions: int
    total_recorded_payments: int
    matched_count: int
    unmatched_bank_transactions: int
    unmatched_recorded_payments: int
    duplicate_transactions: int
    discrepancy_amount: float = Field(..., description="Absolute variance")
    adjustments_total: float = 0.0
    adjusted_variance: float = 0.0
    reconciliation_rate: float = Field(..., description="Percent of bank lines matched")
    auto_match_rate: float
    average_match_confidence: float


class DiscrepancyGroup(BaseModel):
    type: DiscrepancyType
    count: int
    total_amount: float
    transactions: list[ReconciliationItemResponse] = Field(default_factory=list)


class ReconciliationReport(BaseModel):
    summary: ReconciliationSummary
    matched_transactions: list[ReconciliationItemResponse]
    unmatched_bank_transactions: list[ReconciliationItemResponse]
    unmatched_recorded_payments: list[PaymentResponse]
    duplicates: list[ReconciliationItemResponse]
    discrepancies: list[DiscrepancyGroup]
    adjustments: list[dict[str, Any]] = Field(default_factory=list)
    recommendations: list[str]
