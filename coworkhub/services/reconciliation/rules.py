"""Pure reconciliation rules: duplicates, discrepancy ranking, status moves.

Nothing here touches the database, so each rule can be unit-tested with
``SimpleNamespace`` stand-ins.  The service layer applies the results to
ORM objects.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from coworkhub.models.enums import ReconciliationStatus

_SEVERITY_RANK: dict[str, int] = {"HIGH": 3, "MEDIUM": 2, "LOW": 1}


# ── Duplicate detection ─────────────────────────────────────────────


def _reference_key(reference: Optional[str]) -> str:
    return (reference or "").strip().upper()


def _as_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime(value.year, value.month, value.day)


def detect_duplicate_transactions(
    items: list,
    window_hours: int,
) -> list[tuple[Any, Any]]:
    """Find bank lines that repeat an earlier line.

    Two lines are duplicates when they carry the same amount and the same
    reference (case-insensitive) and their dates are at most
    ``window_hours`` apart.  The first occurrence is kept as the original.

    Returns:
        ``(duplicate, original)`` pairs in statement order.
    """
    seen: dict[tuple[str, Decimal], list[Any]] = {}
    duplicates: list[tuple[Any, Any]] = []

    for item in items:
        key = (_reference_key(item.transaction_reference), Decimal(str(item.amount)))
        item_time = _as_datetime(item.transaction_date)
        original = None
        for earlier in seen.get(key, []):
            gap = abs((item_time - _as_datetime(earlier.transaction_date)).total_seconds())
            if gap <= window_hours * 3600:
                original = earlier
                break
        if original is not None:
            duplicates.append((item, original))
        else:
            seen.setdefault(key, []).append(item)

    return duplicates


# ── Discrepancy helpers ─────────────────────────────────────────────


def most_severe_discrepancy(discrepancies: list[dict]) -> Optional[dict]:
    """Pick the highest-severity discrepancy; first one wins on ties."""
    best: Optional[dict] = None
    for disc in discrepancies:
        if best is None or _SEVERITY_RANK.get(disc["severity"], 0) > _SEVERITY_RANK.get(
            best["severity"], 0
        ):
            best = disc
    return best


# ── Review / status rules ───────────────────────────────────────────


def requires_manual_review(
    unmatched_count: int,
    duplicate_count: int,
    variance: float,
    variance_threshold: float,
) -> bool:
    """A reconciliation needs a human when anything is left unexplained."""
    return unmatched_count > 0 or duplicate_count > 0 or abs(variance) > variance_threshold


def next_status(
    current: ReconciliationStatus,
    manual_review: bool,
    unmatched_count: int,
) -> ReconciliationStatus:
    """Status after a summary recompute.

    Only IN_PROGRESS reconciliations move automatically; every other status
    changes through an explicit approve/reject.
    """
    if current != ReconciliationStatus.IN_PROGRESS:
        return current
    if manual_review:
        return ReconciliationStatus.REQUIRES_REVIEW
    if unmatched_count == 0:
        return ReconciliationStatus.COMPLETED
    return current
