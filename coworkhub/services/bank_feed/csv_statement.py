"""CSV bank statement parser."""

from __future__ import annotations

import csv
import io
from typing import List

from coworkhub.core.logging import get_logger
from coworkhub.schemas.reconciliation import BankTransaction
from coworkhub.services.bank_feed.normalizer import (
    normalize_amount,
    normalize_currency,
    normalize_date,
    normalize_reference,
)

logger = get_logger(__name__)


class CsvStatementParser:
    """Parser for bank statement exports in CSV form.

    Expected CSV columns:
        reference, bank_reference, amount, currency, date, description

    ``bank_reference``, ``currency`` and ``description`` may be empty;
    currency then falls back to ``default_currency``.
    """

    def __init__(self, default_currency: str = "USD") -> None:
        self.default_currency = default_currency

    def parse(self, file_content: bytes, filename: str) -> List[BankTransaction]:
        """Parse CSV bytes into statement lines.

        Rows that are malformed or missing required fields are skipped
        with a warning; one bad row never fails the whole upload.
        """
        transactions: List[BankTransaction] = []
        text = file_content.decode("utf-8-sig")  # handle BOM if present
        reader = csv.DictReader(io.StringIO(text))

        for row_num, row in enumerate(reader, start=2):  # row 1 is header
            try:
                tx = self._parse_row(row, filename, row_num)
                if tx is not None:
                    transactions.append(tx)
            except Exception as exc:
                logger.warning("Skipping CSV row %d in %s: %s", row_num, filename, exc)

        logger.info(
            "Statement parse complete for %s: %d lines parsed",
            filename,
            len(transactions),
        )
        return transactions

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _parse_row(self, row: dict, filename: str, row_num: int) -> BankTransaction | None:
        """Convert a single CSV dict-row to a BankTransaction.

        Returns None if a required field is missing or unparseable.
        """
        reference = (row.get("reference") or "").strip()
        if not reference:
            logger.warning("Row %d: missing reference, skipping", row_num)
            return None

        amount = normalize_amount(row.get("amount") or "")
        if amount is None:
            logger.warning("Row %d: non-numeric amount=%r", row_num, row.get("amount"))
            return None

        booked_at = normalize_date(row.get("date") or "")
        if booked_at is None:
            logger.warning("Row %d: unparseable date=%r", row_num, row.get("date"))
            return None

        raw_currency = (row.get("currency") or "").strip()
        currency = normalize_currency(raw_currency) if raw_currency else self.default_currency

        bank_reference = (row.get("bank_reference") or "").strip() or None

        return BankTransaction(
            reference=normalize_reference(reference),
            bank_reference=bank_reference,
            amount=amount,
            currency=currency,
            date=booked_at,
            description=(row.get("description") or "").strip(),
            metadata={"source_file": filename, "row": row_num},
        )
