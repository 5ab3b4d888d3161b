"""Tests for the bank statement normalizer helpers.

These are pure functions -- no database, no I/O.
"""

from datetime import datetime
from decimal import Decimal

import pytest

from coworkhub.services.bank_feed.normalizer import (
    normalize_amount,
    normalize_currency,
    normalize_date,
    normalize_reference,
)


class TestNormalizeCurrency:
    @pytest.mark.parametrize(
        "input_code, expected",
        [
            ("USD", "USD"),
            ("usd", "USD"),
            (" eur ", "EUR"),
            ("$", "USD"),
            ("€", "EUR"),
            ("£", "GBP"),
            ("C$", "CAD"),
            ("mx$", "MXN"),
            ("CHF", "CHF"),
        ],
    )
    def test_codes_and_symbols(self, input_code: str, expected: str):
        assert normalize_currency(input_code) == expected

    @pytest.mark.parametrize("bad", ["", "US", "DOLLARS", "12$"])
    def test_unknown_currency_raises(self, bad: str):
        with pytest.raises(ValueError):
            normalize_currency(bad)


class TestNormalizeDate:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("2024-01-05", datetime(2024, 1, 5)),
            ("2024-01-05T14:30:00", datetime(2024, 1, 5, 14, 30)),
            ("2024-01-05 14:30:00", datetime(2024, 1, 5, 14, 30)),
            ("25/01/2024", datetime(2024, 1, 25)),
        ],
    )
    def test_supported_formats(self, value: str, expected: datetime):
        assert normalize_date(value) == expected

    def test_garbage_returns_none(self):
        assert normalize_date("last tuesday") is None


class TestNormalizeAmount:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("250.00", Decimal("250.00")),
            ("1,250.50", Decimal("1250.50")),
            ("$99.90", Decimal("99.90")),
            ("(45.10)", Decimal("-45.10")),
            ("-12", Decimal("-12")),
        ],
    )
    def test_amounts(self, value: str, expected: Decimal):
        assert normalize_amount(value) == expected

    @pytest.mark.parametrize("bad", ["", "abc", "12..5"])
    def test_non_numeric_returns_none(self, bad: str):
        assert normalize_amount(bad) is None


def test_normalize_reference():
    assert normalize_reference("  inv-42 ") == "INV-42"
