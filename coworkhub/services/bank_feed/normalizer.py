"""Normalizer utility functions for bank statement data.

Bank exports are messy: currency symbols instead of codes, several date
formats, stray whitespace in references.  These helpers give the statement
parser a single place to handle that.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Optional

from coworkhub.core.logging import get_logger

logger = get_logger(__name__)

# Maps common currency symbols / aliases to ISO 4217 codes
_CURRENCY_ALIASES: dict[str, str] = {
    "$": "USD",
    "US$": "USD",
    "USD": "USD",
    "€": "EUR",
    "EUR": "EUR",
    "£": "GBP",
    "GBP": "GBP",
    "C$": "CAD",
    "CAD": "CAD",
    "A$": "AUD",
    "AUD": "AUD",
    "R$": "BRL",
    "MX$": "MXN",
}

# Date formats we accept, ordered from most specific to least
_DATE_FORMATS: list[str] = [
    "%Y-%m-%dT%H:%M:%S.%f",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d",
    "%d/%m/%Y %H:%M:%S",
    "%d/%m/%Y",
    "%m/%d/%Y",
    "%d-%m-%Y",
]


def normalize_currency(code: str) -> str:
    """Normalize currency codes: 'usd' -> 'USD', '€' -> 'EUR', etc.

    Raises:
        ValueError: If the code cannot be resolved.
    """
    stripped = code.strip()
    upper = stripped.upper()
    if upper in _CURRENCY_ALIASES:
        return _CURRENCY_ALIASES[upper]
    if stripped in _CURRENCY_ALIASES:
        return _CURRENCY_ALIASES[stripped]
    if len(stripped) == 3 and stripped.isalpha():
        return upper
    raise ValueError(f"Unknown currency code: {code!r}")


def normalize_date(date_str: str) -> Optional[datetime]:
    """Try multiple date formats and return a datetime, or None."""
    stripped = date_str.strip()
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(stripped, fmt)
        except ValueError:
            continue
    logger.warning("Could not parse date: %s", date_str)
    return None


def normalize_amount(value: str) -> Optional[Decimal]:
    """Parse an amount such as '1,250.00' or '(45.10)' into a Decimal.

    Parenthesised values are treated as negative, thousands separators are
    dropped.  Returns None when the value is not numeric.
    """
    stripped = value.strip().replace(",", "")
    negative = stripped.startswith("(") and stripped.endswith(")")
    if negative:
        stripped = stripped[1:-1]
    for symbol in ("$", "€", "£"):
        stripped = stripped.replace(symbol, "")
    try:
        amount = Decimal(stripped)
    except (InvalidOperation, ValueError):
        return None
    return -amount if negative else amount


def normalize_reference(reference: str) -> str:
    """Strip whitespace and uppercase a statement reference."""
    return reference.strip().upper()
