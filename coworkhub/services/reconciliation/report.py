"""Reconciliation report generation.

Splits a reconciliation's items into matched, unmatched and duplicate
lists, groups every recorded discrepancy by type and derives the headline
summary plus a short list of recommendations for the operator.

``summarize`` and ``build_recommendations`` only read attributes, so they
can be tested without a database.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Sequence

from coworkhub.core.logging import get_logger
from coworkhub.models.enums import MATCHED_STATUSES, DiscrepancyType, MatchStatus
from coworkhub.schemas.payment import PaymentResponse
from coworkhub.schemas.reconciliation import ReconciliationItemResponse
from coworkhub.schemas.report import (
    DiscrepancyGroup,
    ReconciliationReport,
    ReconciliationSummary,
)

logger = get_logger(__name__)

LOW_RECONCILIATION_RATE = 90
LOW_AUTO_MATCH_RATE = 70
LARGE_DISCREPANCY_AMOUNT = 1000
AMOUNT_MISMATCH_ALERT_COUNT = 5
DATE_MISMATCH_ALERT_COUNT = 3


def adjustments_total(adjustments: Sequence[dict[str, Any]] | None) -> Decimal:
    return sum(
        (Decimal(str(entry.get("amount", 0))) for entry in adjustments or []),
        Decimal(0),
    )


def summarize(
    reconciliation: Any, unmatched_payment_count: int
) -> ReconciliationSummary:
    """Compute the headline numbers for *reconciliation*."""
    items = list(reconciliation.transactions)
    matched = [i for i in items if i.match_status in MATCHED_STATUSES]
    unmatched = [i for i in items if i.match_status == MatchStatus.UNMATCHED]
    duplicates = [
        i for i in items if i.discrepancy_type == DiscrepancyType.DUPLICATE_TRANSACTION
    ]

    total = len(items)
    reconciliation_rate = (len(matched) / total) * 100 if total > 0 else 0.0
    average_confidence = (
        sum(float(i.match_confidence or 0) for i in matched) / len(matched)
        if matched
        else 0.0
    )

    variance = Decimal(reconciliation.variance or 0)
    adjusted = adjustments_total(reconciliation.adjustments)

    return ReconciliationSummary(
        total_bank_transactions=total,
        total_recorded_payments=len(matched) + unmatched_payment_count,
        matched_count=len(matched),
        unmatched_bank_transactions=len(unmatched),
        unmatched_recorded_payments=unmatched_payment_count,
        duplicate_transactions=len(duplicates),
        discrepancy_amount=float(abs(variance)),
        adjustments_total=float(adjusted),
        adjusted_variance=float(variance - adjusted),
        reconciliation_rate=round(reconciliation_rate, 2),
        auto_match_rate=float(reconciliation.auto_match_percentage or 0),
        average_match_confidence=round(average_confidence, 2),
    )


def group_discrepancies(items: Sequence[Any]) -> dict[DiscrepancyType, list[Any]]:
    """Bucket items by their recorded discrepancy type, keeping statement order."""
    groups: dict[DiscrepancyType, list[Any]] = {}
    for item in items:
        if item.discrepancy_type is None:
            continue
        groups.setdefault(item.discrepancy_type, []).append(item)
    return groups


def build_recommendations(
    summary: ReconciliationSummary,
    groups: dict[DiscrepancyType, list[Any]],
) -> list[str]:
    recommendations: list[str] = []

    if summary.reconciliation_rate < LOW_RECONCILIATION_RATE:
        recommendations.append(
            "Reconciliation rate is below 90%. Review matching rules and "
            "consider adjusting tolerances."
        )
    if summary.auto_match_rate < LOW_AUTO_MATCH_RATE:
        recommendations.append(
            "Auto-match rate is low. Consider improving transaction references "
            "and descriptions."
        )
    if summary.duplicate_transactions > 0:
        recommendations.append(
            "Duplicate transactions detected. Review the flagged statement lines "
            "before approval."
        )
    if summary.discrepancy_amount > LARGE_DISCREPANCY_AMOUNT:
        recommendations.append(
            "Large discrepancy amount detected. Investigate potential systematic issues."
        )
    if len(groups.get(DiscrepancyType.AMOUNT_MISMATCH, [])) >= AMOUNT_MISMATCH_ALERT_COUNT:
        recommendations.append(
            "Multiple amount mismatches detected. Review fee structures and "
            "payment processing."
        )
    if len(groups.get(DiscrepancyType.DATE_MISMATCH, [])) >= DATE_MISMATCH_ALERT_COUNT:
        recommendations.append(
            "Multiple date mismatches detected. Consider adjusting date tolerance "
            "or processing delays."
        )

    return recommendations


def build_report(reconciliation: Any, unmatched_payments: Sequence[Any]) -> ReconciliationReport:
    """Assemble the full report for a loaded reconciliation.

    Args:
        reconciliation: ORM reconciliation with its ``transactions`` loaded.
        unmatched_payments: Window payments no item of this reconciliation holds.
    """
    items = list(reconciliation.transactions)

    def _serialize(selected):
        return [ReconciliationItemResponse.model_validate(i) for i in selected]

    matched = [i for i in items if i.match_status in MATCHED_STATUSES]
    unmatched = [i for i in items if i.match_status == MatchStatus.UNMATCHED]
    duplicates = [
        i for i in items if i.discrepancy_type == DiscrepancyType.DUPLICATE_TRANSACTION
    ]

    groups = group_discrepancies(items)
    discrepancy_groups = [
        DiscrepancyGroup(
            type=dtype,
            count=len(members),
            total_amount=float(
                sum((Decimal(m.discrepancy_amount or 0) for m in members), Decimal(0))
            ),
            transactions=_serialize(members),
        )
        for dtype, members in groups.items()
    ]

    summary = summarize(reconciliation, len(unmatched_payments))
    recommendations = build_recommendations(summary, groups)

    logger.info(
        "Report generated: reconciliation=%s rate=%.2f%% discrepancies=%d recommendations=%d",
        reconciliation.id,
        summary.reconciliation_rate,
        sum(g.count for g in discrepancy_groups),
        len(recommendations),
    )

    return ReconciliationReport(
        summary=summary,
        matched_transactions=_serialize(matched),
        unmatched_bank_transactions=_serialize(unmatched),
        unmatched_recorded_payments=[
            PaymentResponse.model_validate(p) for p in unmatched_payments
        ],
        duplicates=_serialize(duplicates),
        discrepancies=discrepancy_groups,
        adjustments=list(reconciliation.adjustments or []),
        recommendations=recommendations,
    )
