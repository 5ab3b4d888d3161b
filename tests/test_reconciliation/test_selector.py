"""Unit tests for best-candidate selection."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from types import SimpleNamespace

import pytest

from coworkhub.schemas.reconciliation import MatchingRules
from coworkhub.services.reconciliation.selector import find_best_match


def _item(**kwargs) -> SimpleNamespace:
    defaults = {
        "amount": Decimal("250.00"),
        "transaction_date": datetime(2024, 1, 5),
        "transaction_reference": "INV-42",
        "description": "",
    }
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


def _payment(pid: str, **kwargs) -> SimpleNamespace:
    defaults = {
        "id": pid,
        "amount": Decimal("250.00"),
        "processed_at": datetime(2024, 1, 5, 9, 0),
        "created_at": None,
        "reference": "INV-42",
        "description": None,
    }
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


@pytest.fixture
def rules() -> MatchingRules:
    return MatchingRules()


class TestFindBestMatch:
    def test_picks_highest_score(self, rules: MatchingRules) -> None:
        weak = _payment("p-weak", amount=Decimal("250.80"), reference="INV-99")
        exact = _payment("p-exact")

        result = find_best_match(_item(), [weak, exact], rules)

        assert result is not None
        assert result.payment_id == "p-exact"
        assert result.confidence == 100.0
        assert result.payment is exact

    def test_ties_keep_pool_order(self, rules: MatchingRules) -> None:
        first = _payment("p-1")
        second = _payment("p-2")

        result = find_best_match(_item(), [first, second], rules)

        assert result.payment_id == "p-1"

    def test_excluded_payments_are_skipped(self, rules: MatchingRules) -> None:
        claimed = _payment("p-claimed")
        other = _payment("p-other", reference="INV-43")

        result = find_best_match(_item(), [claimed, other], rules, exclude={"p-claimed"})

        assert result.payment_id == "p-other"

    def test_nothing_above_floor_returns_none(self, rules: MatchingRules) -> None:
        unrelated = _payment(
            "p-x",
            amount=Decimal("9000.00"),
            processed_at=datetime(2023, 6, 1),
            reference="ZZZ",
        )
        assert find_best_match(_item(), [unrelated], rules) is None

    def test_empty_pool_returns_none(self, rules: MatchingRules) -> None:
        assert find_best_match(_item(), [], rules) is None

    def test_score_equal_to_floor_is_not_eligible(self, rules: MatchingRules) -> None:
        # Only the exact date scores (0.25), equal to the floor
        date_only = _payment("p-date", amount=Decimal("999.00"), reference="QQQ")
        assert find_best_match(_item(), [date_only], rules, floor=0.25) is None

    def test_confidence_is_rounded_percentage(self, rules: MatchingRules) -> None:
        # Amount scaled 0.4 * (1 - 0.5) = 0.2, date 0.25, reference 0.2, description 0.15
        near = _payment("p-near", amount=Decimal("249.50"))

        result = find_best_match(_item(), [near], rules)

        assert result.confidence == 80.0
        assert result.discrepancies == []
