"""Best-match selection over a pool of recorded payments."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from coworkhub.core.logging import get_logger
from coworkhub.schemas.reconciliation import MatchingRules
from coworkhub.services.reconciliation.scoring import ELIGIBILITY_FLOOR, score_match

logger = get_logger(__name__)


@dataclass
class MatchingResult:
    """Top-ranked candidate for one bank line.

    Attributes:
        payment_id: Id of the chosen recorded payment.
        payment: The payment object itself.
        confidence: Score scaled to 0-100, two decimals.
        match_reasons: Why the components scored.
        discrepancies: Components that failed outright.
    """

    payment_id: Any
    payment: Any
    confidence: float
    match_reasons: list[str] = field(default_factory=list)
    discrepancies: list[dict[str, Any]] = field(default_factory=list)


def find_best_match(
    item: Any,
    payments: Iterable[Any],
    rules: MatchingRules,
    exclude: Iterable[Any] = (),
    floor: float = ELIGIBILITY_FLOOR,
    algorithm: str = "positional",
) -> Optional[MatchingResult]:
    """Return the highest-scoring payment for *item*, or None.

    Payments whose id is in *exclude* are skipped (already held by another
    item).  Only candidates scoring strictly above *floor* are eligible.
    Ties keep the pool's original order.
    """
    excluded = set(exclude)
    candidates: list[tuple[Any, Any]] = []

    for payment in payments:
        if payment.id in excluded:
            continue
        match_score = score_match(item, payment, rules, algorithm)
        if match_score.score > floor:
            candidates.append((payment, match_score))

    if not candidates:
        return None

    # sorted() is stable, so equal scores keep pool order
    candidates = sorted(candidates, key=lambda c: c[1].score, reverse=True)
    payment, best = candidates[0]

    logger.debug(
        "Best match for %s: payment=%s score=%.4f (of %d candidates)",
        getattr(item, "transaction_reference", "?"),
        payment.id,
        best.score,
        len(candidates),
    )

    return MatchingResult(
        payment_id=payment.id,
        payment=payment,
        confidence=round(best.score * 100, 2),
        match_reasons=best.reasons,
        discrepancies=best.discrepancies,
    )
