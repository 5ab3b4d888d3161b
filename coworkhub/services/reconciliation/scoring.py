"""Bank-line to recorded-payment match scoring.

``score_match`` compares one reconciliation item with one recorded payment
and returns a 0-1 score built from four weighted components:

    amount       0.40
    date         0.25
    reference    0.20
    description  0.15

Alongside the score it returns human-readable reasons for every component
that contributed and a discrepancy record for every component that failed
outright.  Like the discrepancy rules, the scorer works on plain attribute
access so it can be exercised with ``SimpleNamespace`` stand-ins.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, datetime
from difflib import SequenceMatcher
from typing import Any, Optional

from coworkhub.models.enums import DiscrepancyType
from coworkhub.schemas.reconciliation import MatchingRules

AMOUNT_WEIGHT = 0.4
DATE_WEIGHT = 0.25
REFERENCE_WEIGHT = 0.2
DESCRIPTION_WEIGHT = 0.15

ELIGIBILITY_FLOOR = 0.3

_NON_ALNUM = re.compile(r"[^a-z0-9]")


@dataclass
class MatchScore:
    """Outcome of scoring one (item, payment) pair."""

    score: float = 0.0
    reasons: list[str] = field(default_factory=list)
    discrepancies: list[dict[str, Any]] = field(default_factory=list)
    components: dict[str, float] = field(default_factory=dict)


# ── Text similarity ──────────────────────────────────────────────────


def _normalize_text(text: str) -> str:
    return _NON_ALNUM.sub("", text.lower())


def text_similarity(text1: Optional[str], text2: Optional[str], algorithm: str = "positional") -> float:
    """Similarity of two strings in [0, 1] after normalization.

    Both strings are lowercased and stripped of non-alphanumerics.  The
    ``positional`` algorithm counts characters equal at the same index and
    divides by the longer length; ``sequence`` uses difflib's ratio, which
    tolerates insertions and transpositions.
    """
    if not text1 or not text2:
        return 0.0

    str1 = _normalize_text(text1)
    str2 = _normalize_text(text2)

    if str1 == str2:
        return 1.0

    max_length = max(len(str1), len(str2))
    if max_length == 0:
        return 1.0

    if algorithm == "sequence":
        return SequenceMatcher(None, str1, str2).ratio()

    matches = sum(1 for a, b in zip(str1, str2) if a == b)
    return matches / max_length


def compare_references(
    ref1: Optional[str],
    ref2: Optional[str],
    strict: bool,
    algorithm: str = "positional",
) -> float:
    """Score two references: exact (case-insensitive) when strict, fuzzy otherwise."""
    if not ref1 or not ref2:
        return 0.0
    if strict:
        return 1.0 if ref1.lower() == ref2.lower() else 0.0
    return text_similarity(ref1, ref2, algorithm)


# ── Component helpers ────────────────────────────────────────────────


def _as_date(value: Any) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    return value


def _payment_date(payment: Any) -> Optional[date]:
    processed = getattr(payment, "processed_at", None)
    if processed is not None:
        return _as_date(processed)
    return _as_date(getattr(payment, "created_at", None))


def _score_amount(item: Any, payment: Any, rules: MatchingRules, result: MatchScore) -> None:
    item_amount = float(item.amount)
    payment_amount = float(payment.amount)
    diff = round(abs(item_amount - payment_amount), 6)

    tolerance = max(
        rules.amount_tolerance,
        payment_amount * rules.amount_tolerance_percent / 100,
    )

    if diff == 0:
        component = AMOUNT_WEIGHT
        result.reasons.append("Exact amount match")
    elif tolerance > 0 and diff <= tolerance:
        component = AMOUNT_WEIGHT * (1 - diff / tolerance)
        result.reasons.append(f"Amount within tolerance ({diff:.2f} difference)")
    else:
        component = 0.0
        result.discrepancies.append(
            {
                "type": DiscrepancyType.AMOUNT_MISMATCH,
                "severity": "HIGH" if diff > abs(payment_amount) * 0.1 else "MEDIUM",
                "description": f"Amount mismatch: {diff:.2f}",
                "amount": diff,
            }
        )
    result.components["amount"] = component


def _score_date(item: Any, payment: Any, rules: MatchingRules, result: MatchScore) -> None:
    item_date = _as_date(item.transaction_date)
    payment_date = _payment_date(payment)

    if item_date is None or payment_date is None:
        result.components["date"] = 0.0
        return

    day_diff = abs((item_date - payment_date).days)

    if day_diff == 0:
        component = DATE_WEIGHT
        result.reasons.append("Same date")
    elif day_diff <= rules.date_tolerance:
        component = DATE_WEIGHT * (1 - day_diff / rules.date_tolerance)
        result.reasons.append(f"Date within tolerance ({day_diff} days difference)")
    else:
        component = 0.0
        result.discrepancies.append(
            {
                "type": DiscrepancyType.DATE_MISMATCH,
                "severity": "HIGH" if day_diff > 7 else "MEDIUM",
                "description": f"Date mismatch: {day_diff} days difference",
            }
        )
    result.components["date"] = component


def _score_reference(
    item: Any,
    payment: Any,
    rules: MatchingRules,
    result: MatchScore,
    algorithm: str,
) -> None:
    if not rules.reference_matching.enabled:
        result.components["reference"] = 0.0
        return

    similarity = compare_references(
        item.transaction_reference,
        getattr(payment, "reference", None),
        rules.reference_matching.strict_matching,
        algorithm,
    )

    if similarity > 0.8:
        component = REFERENCE_WEIGHT
        result.reasons.append("Reference match")
    elif similarity > 0.5:
        component = REFERENCE_WEIGHT / 2
        result.reasons.append("Partial reference match")
    else:
        component = 0.0
        result.discrepancies.append(
            {
                "type": DiscrepancyType.REFERENCE_MISMATCH,
                "severity": "LOW",
                "description": "Reference mismatch",
            }
        )
    result.components["reference"] = component


def _score_description(
    item: Any,
    payment: Any,
    rules: MatchingRules,
    result: MatchScore,
    algorithm: str,
) -> None:
    if not rules.description_matching.enabled:
        result.components["description"] = 0.0
        return

    item_text = getattr(item, "description", None) or item.transaction_reference
    payment_text = getattr(payment, "description", None) or getattr(
        payment, "reference", None
    )
    similarity = text_similarity(item_text, payment_text, algorithm)

    component = 0.0
    if similarity > 0 and similarity >= rules.description_matching.minimum_similarity:
        component = DESCRIPTION_WEIGHT * similarity
        result.reasons.append("Description similarity")
    result.components["description"] = component


# ── Public API ───────────────────────────────────────────────────────


def score_match(
    item: Any,
    payment: Any,
    rules: MatchingRules,
    algorithm: str = "positional",
) -> MatchScore:
    """Score how likely *item* and *payment* describe the same money movement.

    Args:
        item: Object with ``amount``, ``transaction_date``,
            ``transaction_reference`` and optional ``description``.
        payment: Object with ``amount``, ``processed_at``/``created_at``,
            ``reference`` and optional ``description``.
        rules: Matching tolerances and toggles.
        algorithm: Text similarity algorithm (``positional`` or ``sequence``).

    Returns:
        A ``MatchScore`` whose ``score`` is capped at 1.0.
    """
    result = MatchScore()

    _score_amount(item, payment, rules, result)
    _score_date(item, payment, rules, result)
    _score_reference(item, payment, rules, result, algorithm)
    _score_description(item, payment, rules, result, algorithm)

    total = sum(result.components.values())
    result.score = round(min(1.0, max(0.0, total)), 6)
    return result
