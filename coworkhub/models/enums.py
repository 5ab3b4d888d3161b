"""Status and classification enums shared by models and schemas."""

from __future__ import annotations

import enum


class ReconciliationType(str, enum.Enum):
    BANK_STATEMENT = "BANK_STATEMENT"
    PAYMENT_GATEWAY = "PAYMENT_GATEWAY"
    MANUAL = "MANUAL"


class ReportPeriod(str, enum.Enum):
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    YEARLY = "YEARLY"
    CUSTOM = "CUSTOM"


class ReconciliationStatus(str, enum.Enum):
    IN_PROGRESS = "IN_PROGRESS"
    REQUIRES_REVIEW = "REQUIRES_REVIEW"
    COMPLETED = "COMPLETED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


TERMINAL_STATUSES = frozenset(
    {ReconciliationStatus.APPROVED, ReconciliationStatus.REJECTED}
)


class MatchStatus(str, enum.Enum):
    UNMATCHED = "UNMATCHED"
    MATCHED = "MATCHED"
    MANUALLY_MATCHED = "MANUALLY_MATCHED"
    AUTO_MATCHED = "AUTO_MATCHED"


MATCHED_STATUSES = frozenset(
    {MatchStatus.MATCHED, MatchStatus.MANUALLY_MATCHED, MatchStatus.AUTO_MATCHED}
)


class DiscrepancyType(str, enum.Enum):
    AMOUNT_MISMATCH = "AMOUNT_MISMATCH"
    DATE_MISMATCH = "DATE_MISMATCH"
    REFERENCE_MISMATCH = "REFERENCE_MISMATCH"
    DUPLICATE_TRANSACTION = "DUPLICATE_TRANSACTION"
    MISSING_PAYMENT = "MISSING_PAYMENT"


class PaymentStatus(str, enum.Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class AdjustmentType(str, enum.Enum):
    BANK_ERROR = "BANK_ERROR"
    RECORDING_ERROR = "RECORDING_ERROR"
    TIMING_DIFFERENCE = "TIMING_DIFFERENCE"
    FEE = "FEE"
    OTHER = "OTHER"
