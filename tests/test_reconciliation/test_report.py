"""Unit tests for the report summary and recommendations."""

from __future__ import annotations

from decimal import Decimal
from types import SimpleNamespace

import pytest

from coworkhub.models.enums import DiscrepancyType, MatchStatus
from coworkhub.services.reconciliation.report import (
    build_recommendations,
    group_discrepancies,
    summarize,
)


def _item(status: MatchStatus, confidence: str = "0", discrepancy=None, amount=None):
    return SimpleNamespace(
        match_status=status,
        match_confidence=Decimal(confidence),
        discrepancy_type=discrepancy,
        discrepancy_amount=amount,
    )


def _reconciliation(items, variance="0", adjustments=None, auto_rate="0"):
    return SimpleNamespace(
        id="rec-1",
        transactions=items,
        variance=Decimal(variance),
        adjustments=adjustments or [],
        auto_match_percentage=Decimal(auto_rate),
    )


class TestSummarize:
    def test_counts_every_matched_status(self) -> None:
        rec = _reconciliation(
            [
                _item(MatchStatus.AUTO_MATCHED, "100"),
                _item(MatchStatus.MANUALLY_MATCHED, "90"),
                _item(MatchStatus.MATCHED, "80"),
                _item(MatchStatus.UNMATCHED),
            ]
        )

        summary = summarize(rec, unmatched_payment_count=2)

        assert summary.total_bank_transactions == 4
        assert summary.matched_count == 3
        assert summary.unmatched_bank_transactions == 1
        assert summary.total_recorded_payments == 5
        assert summary.reconciliation_rate == 75.0
        assert summary.average_match_confidence == 90.0

    def test_adjustments_do_not_touch_variance(self) -> None:
        rec = _reconciliation(
            [_item(MatchStatus.UNMATCHED)],
            variance="-120.00",
            adjustments=[{"amount": -20.0}, {"amount": -100.0}],
        )

        summary = summarize(rec, unmatched_payment_count=0)

        assert summary.discrepancy_amount == 120.0
        assert summary.adjustments_total == -120.0
        assert summary.adjusted_variance == 0.0

    def test_empty_reconciliation(self) -> None:
        summary = summarize(_reconciliation([]), unmatched_payment_count=0)

        assert summary.reconciliation_rate == 0.0
        assert summary.average_match_confidence == 0.0


class TestRecommendations:
    def _summary(self, **overrides):
        rec = _reconciliation(
            [_item(MatchStatus.AUTO_MATCHED, "100")], auto_rate="100"
        )
        summary = summarize(rec, unmatched_payment_count=0)
        return summary.model_copy(update=overrides)

    def test_clean_reconciliation_has_no_recommendations(self) -> None:
        assert build_recommendations(self._summary(), {}) == []

    @pytest.mark.parametrize(
        "overrides, fragment",
        [
            ({"reconciliation_rate": 89.99}, "Reconciliation rate is below 90%"),
            ({"auto_match_rate": 69.0}, "Auto-match rate is low"),
            ({"duplicate_transactions": 1}, "Duplicate transactions detected"),
            ({"discrepancy_amount": 1000.01}, "Large discrepancy amount"),
        ],
    )
    def test_summary_thresholds(self, overrides, fragment) -> None:
        recommendations = build_recommendations(self._summary(**overrides), {})
        assert any(fragment in r for r in recommendations)

    def test_thresholds_are_exclusive_at_the_boundary(self) -> None:
        summary = self._summary(
            reconciliation_rate=90.0, auto_match_rate=70.0, discrepancy_amount=1000.0
        )
        assert build_recommendations(summary, {}) == []

    def test_mismatch_counts(self) -> None:
        items = [
            _item(MatchStatus.UNMATCHED, discrepancy=DiscrepancyType.AMOUNT_MISMATCH)
            for _ in range(5)
        ] + [
            _item(MatchStatus.UNMATCHED, discrepancy=DiscrepancyType.DATE_MISMATCH)
            for _ in range(2)
        ]
        groups = group_discrepancies(items)

        recommendations = build_recommendations(self._summary(), groups)

        assert any("amount mismatches" in r for r in recommendations)
        assert not any("date mismatches" in r for r in recommendations)
