"""Tests for the CSV bank statement parser.

Parsing only -- no database required.  Statements are built inline.
"""

from datetime import datetime
from decimal import Decimal

import pytest

from coworkhub.services.bank_feed.base import StaticBankFeedProvider
from coworkhub.services.bank_feed.csv_statement import CsvStatementParser

HEADER = "reference,bank_reference,amount,currency,date,description\n"


@pytest.fixture
def parser() -> CsvStatementParser:
    return CsvStatementParser()


class TestParseStatement:
    def test_valid_rows(self, parser: CsvStatementParser):
        content = (
            HEADER
            + "inv-42,BNK-001,250.00,USD,2024-01-05,Hot desk January\n"
            + "INV-43,,\"1,200.00\",€,2024-01-06,Private office\n"
        ).encode("utf-8")

        lines = parser.parse(content, "jan.csv")

        assert len(lines) == 2
        first, second = lines
        assert first.reference == "INV-42"
        assert first.bank_reference == "BNK-001"
        assert first.amount == Decimal("250.00")
        assert first.date == datetime(2024, 1, 5)
        assert first.description == "Hot desk January"
        assert first.metadata == {"source_file": "jan.csv", "row": 2}
        assert second.bank_reference is None
        assert second.amount == Decimal("1200.00")
        assert second.currency == "EUR"

    def test_bad_rows_are_skipped(self, parser: CsvStatementParser):
        content = (
            HEADER
            + ",BNK-1,10.00,USD,2024-01-05,no reference\n"
            + "R-2,BNK-2,ten,USD,2024-01-05,bad amount\n"
            + "R-3,BNK-3,10.00,USD,someday,bad date\n"
            + "R-4,BNK-4,10.00,XXXX,2024-01-05,bad currency\n"
            + "R-5,BNK-5,10.00,,2024-01-05,ok\n"
        ).encode("utf-8")

        lines = parser.parse(content, "messy.csv")

        assert [line.reference for line in lines] == ["R-5"]
        assert lines[0].currency == "USD"

    def test_bom_is_ignored(self, parser: CsvStatementParser):
        content = "\ufeff".encode("utf-8") + (
            HEADER + "R-1,,5.00,USD,2024-01-05,\n"
        ).encode("utf-8")

        assert len(parser.parse(content, "bom.csv")) == 1

    def test_header_only(self, parser: CsvStatementParser):
        assert parser.parse(HEADER.encode("utf-8"), "empty.csv") == []


class TestStaticBankFeed:
    def test_filters_to_window(self, parser: CsvStatementParser):
        content = (
            HEADER
            + "R-1,,5.00,USD,2023-12-31,\n"
            + "R-2,,5.00,USD,2024-01-15,\n"
            + "R-3,,5.00,USD,2024-02-01,\n"
        ).encode("utf-8")
        feed = StaticBankFeedProvider(parser.parse(content, "q.csv"))

        lines = feed.fetch_statement("tenant", datetime(2024, 1, 1), datetime(2024, 1, 31))

        assert [line.reference for line in lines] == ["R-2"]
