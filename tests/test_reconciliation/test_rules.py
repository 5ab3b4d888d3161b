"""Unit tests for the pure reconciliation rules.

All tests are *pure*: no database, no I/O.  We use SimpleNamespace to
create lightweight stand-ins with exactly the attributes each rule needs.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from types import SimpleNamespace

from coworkhub.models.enums import DiscrepancyType, ReconciliationStatus
from coworkhub.services.reconciliation.rules import (
    detect_duplicate_transactions,
    most_severe_discrepancy,
    next_status,
    requires_manual_review,
)


def _line(reference: str, amount: str, when: datetime) -> SimpleNamespace:
    return SimpleNamespace(
        transaction_reference=reference,
        amount=Decimal(amount),
        transaction_date=when,
    )


# ── Duplicate detection ─────────────────────────────────────────────


class TestDetectDuplicates:
    def test_same_reference_and_amount_within_window(self) -> None:
        original = _line("INV-1", "80.00", datetime(2024, 1, 3, 9))
        repeat = _line("inv-1", "80.00", datetime(2024, 1, 3, 18))

        pairs = detect_duplicate_transactions([original, repeat], window_hours=24)

        assert pairs == [(repeat, original)]

    def test_outside_window_is_not_duplicate(self) -> None:
        first = _line("INV-1", "80.00", datetime(2024, 1, 1))
        later = _line("INV-1", "80.00", datetime(2024, 1, 3))

        assert detect_duplicate_transactions([first, later], window_hours=24) == []

    def test_different_amount_is_not_duplicate(self) -> None:
        first = _line("INV-1", "80.00", datetime(2024, 1, 1))
        other = _line("INV-1", "80.01", datetime(2024, 1, 1))

        assert detect_duplicate_transactions([first, other], window_hours=24) == []

    def test_triplicate_points_at_first_occurrence(self) -> None:
        lines = [_line("R", "5.00", datetime(2024, 1, 1, h)) for h in (1, 2, 3)]

        pairs = detect_duplicate_transactions(lines, window_hours=24)

        assert [dup for dup, _ in pairs] == lines[1:]
        assert all(orig is lines[0] for _, orig in pairs)


# ── Discrepancy ranking ─────────────────────────────────────────────


class TestMostSevereDiscrepancy:
    def test_high_beats_low(self) -> None:
        low = {"type": DiscrepancyType.REFERENCE_MISMATCH, "severity": "LOW"}
        high = {"type": DiscrepancyType.DATE_MISMATCH, "severity": "HIGH"}

        assert most_severe_discrepancy([low, high]) is high

    def test_first_wins_on_tie(self) -> None:
        first = {"type": DiscrepancyType.AMOUNT_MISMATCH, "severity": "MEDIUM"}
        second = {"type": DiscrepancyType.DATE_MISMATCH, "severity": "MEDIUM"}

        assert most_severe_discrepancy([first, second]) is first

    def test_empty_list(self) -> None:
        assert most_severe_discrepancy([]) is None


# ── Review / status ─────────────────────────────────────────────────


class TestStatusRules:
    def test_review_needed_for_unmatched(self) -> None:
        assert requires_manual_review(1, 0, 0.0, 100.0) is True

    def test_review_needed_for_duplicates(self) -> None:
        assert requires_manual_review(0, 1, 0.0, 100.0) is True

    def test_review_needed_for_large_variance(self) -> None:
        assert requires_manual_review(0, 0, -100.01, 100.0) is True

    def test_variance_at_threshold_is_fine(self) -> None:
        assert requires_manual_review(0, 0, 100.0, 100.0) is False

    def test_in_progress_moves_to_review(self) -> None:
        assert (
            next_status(ReconciliationStatus.IN_PROGRESS, True, 2)
            == ReconciliationStatus.REQUIRES_REVIEW
        )

    def test_in_progress_completes_when_clean(self) -> None:
        assert (
            next_status(ReconciliationStatus.IN_PROGRESS, False, 0)
            == ReconciliationStatus.COMPLETED
        )

    def test_other_statuses_never_move(self) -> None:
        for status in (
            ReconciliationStatus.REQUIRES_REVIEW,
            ReconciliationStatus.COMPLETED,
            ReconciliationStatus.APPROVED,
            ReconciliationStatus.REJECTED,
        ):
            assert next_status(status, False, 0) == status
