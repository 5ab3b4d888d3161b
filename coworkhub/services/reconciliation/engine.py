"""Reconciliation service: creation, matching, review and reporting.

A reconciliation compares what the bank says happened with what the
platform recorded for one tenant and period:

  1. Load the tenant's completed payments for the period.
  2. Import the bank statement lines as reconciliation items.
  3. Flag duplicate statement lines.
  4. Auto-match every unmatched line whose best candidate is confident enough.
  5. Recompute the summary and move the status (review / completed).

Operators then correct the result (manual match, unmatch, adjustments) and
finally approve or reject it.  Every public method is one unit of work:
it commits on success and rolls back on any error before re-raising.
"""

from __future__ import annotations

import uuid
from contextlib import contextmanager
from datetime import datetime, time, timedelta
from decimal import Decimal
from typing import Iterator, Optional

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from coworkhub.core.clock import utcnow
from coworkhub.core.config import Settings, settings
from coworkhub.core.exceptions import CoworkHubError, NotFoundError, ValidationError
from coworkhub.core.logging import get_logger
from coworkhub.models.enums import (
    MATCHED_STATUSES,
    TERMINAL_STATUSES,
    DiscrepancyType,
    MatchStatus,
    PaymentStatus,
    ReconciliationStatus,
    ReconciliationType,
)
from coworkhub.models.payment import RecordedPayment
from coworkhub.models.reconciliation import Reconciliation, ReconciliationItem
from coworkhub.schemas.reconciliation import (
    AdjustmentRequest,
    BankTransaction,
    CreateReconciliationRequest,
    MatchingRules,
)
from coworkhub.schemas.report import ReconciliationReport
from coworkhub.services.bank_feed.base import BankFeedProvider
from coworkhub.services.reconciliation.report import build_report
from coworkhub.services.reconciliation.rules import (
    detect_duplicate_transactions,
    most_severe_discrepancy,
    next_status,
    requires_manual_review,
)
from coworkhub.services.reconciliation.selector import find_best_match

logger = get_logger(__name__)


def window_end(end: datetime) -> datetime:
    """Make a midnight end bound cover the whole day."""
    if end.time() == time(0, 0):
        return end + timedelta(days=1) - timedelta(microseconds=1)
    return end


class ReconciliationService:
    """Creates, matches, reviews and reports on reconciliations."""

    def __init__(
        self,
        db: Session,
        config: Settings = settings,
        bank_feed: Optional[BankFeedProvider] = None,
    ) -> None:
        self.db = db
        self.config = config
        self.bank_feed = bank_feed

    # ── Unit of work ─────────────────────────────────────────────────

    @contextmanager
    def _unit_of_work(self, action: str, **context) -> Iterator[None]:
        """Commit the block's changes, or roll back, log and re-raise."""
        try:
            yield
            self.db.commit()
        except StaleDataError as exc:
            self.db.rollback()
            logger.warning("%s: concurrent modification %s", action, context)
            raise ValidationError(
                "Reconciliation item was modified concurrently; reload and retry"
            ) from exc
        except CoworkHubError as exc:
            self.db.rollback()
            logger.warning("%s rejected: %s %s", action, exc.message, context)
            raise
        except Exception:
            self.db.rollback()
            logger.exception("%s failed: %s", action, context)
            raise

    # ── Creation ─────────────────────────────────────────────────────

    def create_reconciliation(
        self,
        tenant_id: str,
        user_id: str,
        request: CreateReconciliationRequest,
    ) -> Reconciliation:
        """Open a reconciliation for the requested period and auto-match it.

        Statement lines come from ``request.bank_transactions`` when given,
        otherwise from the configured bank feed.
        """
        with self._unit_of_work("Create reconciliation", tenant=tenant_id, user=user_id):
            rules = request.reconciliation_rules or MatchingRules.from_settings(self.config)
            end = window_end(request.end_date)

            payments = self._get_recorded_payments(tenant_id, request.start_date, end)
            recorded_total = sum((Decimal(p.amount) for p in payments), Decimal(0))

            bank_transactions = self._get_bank_transactions(
                tenant_id, request.start_date, end, request.bank_transactions
            )
            bank_total = sum(
                (Decimal(tx.amount) for tx in bank_transactions), Decimal(0)
            )

            reconciliation = Reconciliation(
                id=uuid.uuid4(),
                tenant_id=tenant_id,
                reconciliation_type=request.reconciliation_type,
                period=request.period,
                start_date=request.start_date,
                end_date=request.end_date,
                bank_statement_total=bank_total,
                recorded_payments_total=recorded_total,
                variance=bank_total - recorded_total,
                status=ReconciliationStatus.IN_PROGRESS,
                reconciliation_rules=rules.model_dump(mode="json"),
                adjustments=[],
                reconciled_by=user_id,
                reconciled_at=utcnow(),
                auto_match_percentage=Decimal(0),
                manual_review=False,
            )
            self.db.add(reconciliation)

            items = self._create_items(reconciliation, bank_transactions)
            if rules.duplicate_detection.enabled:
                self._flag_duplicates(items, rules.duplicate_detection.time_window)
            self.db.flush()

            if request.auto_match:
                self._perform_auto_matching(reconciliation, payments, rules)

            self.recompute_summary(reconciliation)

        logger.info(
            "Reconciliation created: tenant=%s id=%s type=%s bank_total=%s "
            "recorded_total=%s variance=%s status=%s",
            tenant_id,
            reconciliation.id,
            request.reconciliation_type.value,
            bank_total,
            recorded_total,
            reconciliation.variance,
            reconciliation.status.value,
        )
        return reconciliation

    # ── Automatic matching ───────────────────────────────────────────

    def auto_match(self, tenant_id: str, reconciliation_id: uuid.UUID) -> Reconciliation:
        """Re-run automatic matching over the still-unmatched items."""
        with self._unit_of_work(
            "Auto-match", tenant=tenant_id, reconciliation=reconciliation_id
        ):
            reconciliation = self._get_reconciliation(tenant_id, reconciliation_id)
            self._ensure_mutable(reconciliation)

            rules = MatchingRules.model_validate(reconciliation.reconciliation_rules)
            payments = self._get_recorded_payments(
                tenant_id, reconciliation.start_date, window_end(reconciliation.end_date)
            )
            self._perform_auto_matching(reconciliation, payments, rules)
            self.recompute_summary(reconciliation)

        return reconciliation

    def _perform_auto_matching(
        self,
        reconciliation: Reconciliation,
        payments: list[RecordedPayment],
        rules: MatchingRules,
    ) -> int:
        """Match unmatched items above the auto-approval threshold.

        Returns the number of items auto-matched in this pass.
        """
        self.db.flush()
        unmatched_items = [
            item
            for item in reconciliation.transactions
            if item.match_status == MatchStatus.UNMATCHED
        ]
        claimed = self._claimed_payment_ids(reconciliation.tenant_id)
        approval = rules.auto_approval

        auto_matched_count = 0
        for item in unmatched_items:
            result = find_best_match(
                item,
                payments,
                rules,
                exclude=claimed,
                floor=self.config.match_eligibility_floor,
                algorithm=self.config.similarity_algorithm,
            )
            if result is None:
                continue

            if (
                approval.enabled
                and result.confidence >= approval.confidence_threshold
                and float(item.amount) <= approval.amount_limit
            ):
                self._apply_match(
                    item,
                    result.payment_id,
                    result.confidence,
                    MatchStatus.AUTO_MATCHED,
                    notes=(
                        f"Auto-matched with {result.confidence}% confidence: "
                        f"{', '.join(result.match_reasons)}"
                    ),
                )
                claimed.add(result.payment_id)
                auto_matched_count += 1
            elif item.discrepancy_type is None:
                worst = most_severe_discrepancy(result.discrepancies)
                if worst is not None:
                    item.discrepancy_type = worst["type"]
                    amount = worst.get("amount")
                    item.discrepancy_amount = (
                        Decimal(str(round(amount, 2))) if amount is not None else None
                    )

        total = len(unmatched_items)
        percentage = (auto_matched_count / total) * 100 if total > 0 else 0.0
        reconciliation.auto_match_percentage = Decimal(str(round(percentage, 2)))

        logger.info(
            "Auto-matching completed: reconciliation=%s total=%d auto_matched=%d (%.2f%%)",
            reconciliation.id,
            total,
            auto_matched_count,
            percentage,
        )
        return auto_matched_count

    # ── Manual override ──────────────────────────────────────────────

    def manual_match(
        self,
        tenant_id: str,
        item_id: uuid.UUID,
        payment_id: uuid.UUID,
        user_id: str,
        notes: Optional[str] = None,
        expected_version: Optional[int] = None,
    ) -> ReconciliationItem:
        """Force-match an item to a payment, bypassing scoring."""
        with self._unit_of_work(
            "Manual match", tenant=tenant_id, item=item_id, payment=payment_id
        ):
            item = self._get_item(tenant_id, item_id)
            self._ensure_mutable(item.reconciliation)
            self._check_version(item, expected_version)

            payment = (
                self.db.query(RecordedPayment)
                .filter(RecordedPayment.id == payment_id)
                .filter(RecordedPayment.tenant_id == tenant_id)
                .first()
            )
            if payment is None:
                raise NotFoundError("Payment not found or access denied")

            if payment.id in self._claimed_payment_ids(tenant_id, exclude_item_id=item.id):
                raise ValidationError("Payment is already matched to another transaction")

            self._apply_match(
                item,
                payment.id,
                100,
                MatchStatus.MANUALLY_MATCHED,
                notes=notes,
                user_id=user_id,
            )
            self.recompute_summary(item.reconciliation)

        logger.info(
            "Manual match created: tenant=%s item=%s payment=%s user=%s",
            tenant_id,
            item_id,
            payment_id,
            user_id,
        )
        return item

    def unmatch_transaction(
        self,
        tenant_id: str,
        item_id: uuid.UUID,
        user_id: str,
        reason: Optional[str] = None,
    ) -> ReconciliationItem:
        """Reset an item to UNMATCHED and flag it for follow-up."""
        with self._unit_of_work("Unmatch", tenant=tenant_id, item=item_id):
            item = self._get_item(tenant_id, item_id)
            self._ensure_mutable(item.reconciliation)

            item.payment_id = None
            item.match_status = MatchStatus.UNMATCHED
            item.match_confidence = Decimal(0)
            item.matched_by = None
            item.matched_at = None
            item.notes = f"Unmatched: {reason}" if reason else "Manually unmatched"
            item.requires_action = True

            self.recompute_summary(item.reconciliation)

        logger.info(
            "Transaction unmatched: tenant=%s item=%s user=%s reason=%s",
            tenant_id,
            item_id,
            user_id,
            reason,
        )
        return item

    def add_adjustment(
        self,
        tenant_id: str,
        reconciliation_id: uuid.UUID,
        adjustment: AdjustmentRequest,
        user_id: str,
    ) -> Reconciliation:
        """Append a manual correction entry; item state and variance are untouched."""
        with self._unit_of_work(
            "Add adjustment", tenant=tenant_id, reconciliation=reconciliation_id
        ):
            reconciliation = self._get_reconciliation(tenant_id, reconciliation_id)
            self._ensure_mutable(reconciliation)

            entry = {
                "id": f"adj_{uuid.uuid4().hex[:12]}",
                "type": adjustment.type.value,
                "amount": float(adjustment.amount),
                "description": adjustment.description,
                "reference": adjustment.reference,
                "added_by": user_id,
                "added_at": utcnow().isoformat(),
            }
            # Reassign so the JSON column is marked dirty
            reconciliation.adjustments = [*(reconciliation.adjustments or []), entry]

            self.recompute_summary(reconciliation)

        logger.info(
            "Adjustment added: tenant=%s reconciliation=%s type=%s amount=%s user=%s",
            tenant_id,
            reconciliation_id,
            adjustment.type.value,
            adjustment.amount,
            user_id,
        )
        return reconciliation

    # ── Summary / approval ───────────────────────────────────────────

    def recompute_summary(self, reconciliation: Reconciliation) -> Reconciliation:
        """Refresh counts, variance, review flag and automatic status.

        Calling it twice without a mutation in between changes nothing.
        """
        self.db.flush()
        items = reconciliation.transactions

        matched_count = sum(1 for i in items if i.match_status in MATCHED_STATUSES)
        unmatched_count = sum(1 for i in items if i.match_status == MatchStatus.UNMATCHED)
        duplicate_count = sum(
            1 for i in items if i.discrepancy_type == DiscrepancyType.DUPLICATE_TRANSACTION
        )
        missing_count = len(self._unmatched_recorded_payments(reconciliation))

        reconciliation.variance = Decimal(reconciliation.bank_statement_total) - Decimal(
            reconciliation.recorded_payments_total
        )
        manual_review = requires_manual_review(
            unmatched_count,
            duplicate_count,
            float(reconciliation.variance),
            self.config.manual_review_variance_threshold,
        )

        reconciliation.matched_transactions = matched_count
        reconciliation.unmatched_transactions = unmatched_count
        reconciliation.duplicate_transactions = duplicate_count
        reconciliation.missing_transactions = missing_count
        reconciliation.manual_review = manual_review
        reconciliation.status = next_status(
            reconciliation.status, manual_review, unmatched_count
        )
        self.db.flush()
        return reconciliation

    def approve_reconciliation(
        self,
        tenant_id: str,
        reconciliation_id: uuid.UUID,
        user_id: str,
        notes: Optional[str] = None,
    ) -> Reconciliation:
        """Approve a reviewed or completed reconciliation."""
        with self._unit_of_work(
            "Approve reconciliation", tenant=tenant_id, reconciliation=reconciliation_id
        ):
            reconciliation = self._get_reconciliation(tenant_id, reconciliation_id)

            if reconciliation.status not in (
                ReconciliationStatus.REQUIRES_REVIEW,
                ReconciliationStatus.COMPLETED,
            ):
                raise ValidationError("Reconciliation is not ready for approval")

            unresolved = [
                item
                for item in reconciliation.transactions
                if item.requires_action and item.match_status == MatchStatus.UNMATCHED
            ]
            if unresolved:
                raise ValidationError(
                    "Cannot approve reconciliation with unresolved items requiring action"
                )

            reconciliation.status = ReconciliationStatus.APPROVED
            reconciliation.approved_by = user_id
            reconciliation.approved_at = utcnow()
            if notes:
                reconciliation.notes = f"{reconciliation.notes or ''}\nApproval notes: {notes}".lstrip()

        logger.info(
            "Reconciliation approved: tenant=%s id=%s user=%s",
            tenant_id,
            reconciliation_id,
            user_id,
        )
        return reconciliation

    def reject_reconciliation(
        self,
        tenant_id: str,
        reconciliation_id: uuid.UUID,
        user_id: str,
        reason: str,
    ) -> Reconciliation:
        """Reject a reconciliation from any non-terminal state."""
        with self._unit_of_work(
            "Reject reconciliation", tenant=tenant_id, reconciliation=reconciliation_id
        ):
            reconciliation = self._get_reconciliation(tenant_id, reconciliation_id)
            self._ensure_mutable(reconciliation)

            reconciliation.status = ReconciliationStatus.REJECTED
            reconciliation.notes = f"Rejected by {user_id}: {reason}"

        logger.info(
            "Reconciliation rejected: tenant=%s id=%s user=%s reason=%s",
            tenant_id,
            reconciliation_id,
            user_id,
            reason,
        )
        return reconciliation

    # ── Reporting / queries ──────────────────────────────────────────

    def generate_report(
        self, tenant_id: str, reconciliation_id: uuid.UUID
    ) -> ReconciliationReport:
        """Build the human-readable report for one reconciliation."""
        try:
            reconciliation = self._get_reconciliation(tenant_id, reconciliation_id)
            unmatched_payments = self._unmatched_recorded_payments(reconciliation)
            return build_report(reconciliation, unmatched_payments)
        except CoworkHubError:
            raise
        except Exception:
            logger.exception(
                "Failed to generate reconciliation report: tenant=%s id=%s",
                tenant_id,
                reconciliation_id,
            )
            raise

    def list_reconciliations(
        self,
        tenant_id: str,
        reconciliation_type: Optional[ReconciliationType] = None,
        status: Optional[ReconciliationStatus] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        skip: int = 0,
        take: int = 50,
    ) -> tuple[list[Reconciliation], int, bool]:
        """Return (page, total, has_more) of the tenant's reconciliations, newest first."""
        query = self.db.query(Reconciliation).filter(Reconciliation.tenant_id == tenant_id)

        if reconciliation_type is not None:
            query = query.filter(Reconciliation.reconciliation_type == reconciliation_type)
        if status is not None:
            query = query.filter(Reconciliation.status == status)
        if start_date is not None:
            query = query.filter(Reconciliation.start_date >= start_date)
        if end_date is not None:
            query = query.filter(Reconciliation.end_date <= end_date)

        total = query.count()
        page = (
            query.order_by(Reconciliation.created_at.desc(), Reconciliation.reconciled_at.desc())
            .offset(skip)
            .limit(take)
            .all()
        )
        return page, total, skip + len(page) < total

    def get_reconciliation(
        self, tenant_id: str, reconciliation_id: uuid.UUID
    ) -> Optional[Reconciliation]:
        return (
            self.db.query(Reconciliation)
            .filter(Reconciliation.id == reconciliation_id)
            .filter(Reconciliation.tenant_id == tenant_id)
            .first()
        )

    # ── Private helpers ──────────────────────────────────────────────

    def _get_reconciliation(
        self, tenant_id: str, reconciliation_id: uuid.UUID
    ) -> Reconciliation:
        reconciliation = self.get_reconciliation(tenant_id, reconciliation_id)
        if reconciliation is None:
            raise NotFoundError("Reconciliation not found or access denied")
        return reconciliation

    def _get_item(self, tenant_id: str, item_id: uuid.UUID) -> ReconciliationItem:
        item = (
            self.db.query(ReconciliationItem)
            .join(Reconciliation, ReconciliationItem.reconciliation_id == Reconciliation.id)
            .filter(ReconciliationItem.id == item_id)
            .filter(Reconciliation.tenant_id == tenant_id)
            .first()
        )
        if item is None:
            raise NotFoundError("Reconciliation item not found or access denied")
        return item

    @staticmethod
    def _ensure_mutable(reconciliation: Reconciliation) -> None:
        if reconciliation.status in TERMINAL_STATUSES:
            raise ValidationError(
                f"Reconciliation is {reconciliation.status.value} and can no longer change"
            )

    @staticmethod
    def _check_version(item: ReconciliationItem, expected_version: Optional[int]) -> None:
        if expected_version is not None and expected_version != item.version:
            raise ValidationError(
                "Reconciliation item was modified concurrently; reload and retry"
            )

    def _get_recorded_payments(
        self, tenant_id: str, start: datetime, end: datetime
    ) -> list[RecordedPayment]:
        """Completed payments processed inside the window, oldest first."""
        return (
            self.db.query(RecordedPayment)
            .filter(RecordedPayment.tenant_id == tenant_id)
            .filter(RecordedPayment.status == PaymentStatus.COMPLETED)
            .filter(RecordedPayment.processed_at >= start)
            .filter(RecordedPayment.processed_at <= end)
            .order_by(RecordedPayment.processed_at.asc())
            .all()
        )

    def _get_bank_transactions(
        self,
        tenant_id: str,
        start: datetime,
        end: datetime,
        supplied: Optional[list[BankTransaction]],
    ) -> list[BankTransaction]:
        if supplied is not None:
            return list(supplied)
        if self.bank_feed is None:
            raise ValidationError("No bank statement supplied and no bank feed configured")
        return self.bank_feed.fetch_statement(tenant_id, start, end)

    def _create_items(
        self,
        reconciliation: Reconciliation,
        bank_transactions: list[BankTransaction],
    ) -> list[ReconciliationItem]:
        items: list[ReconciliationItem] = []
        for position, tx in enumerate(bank_transactions):
            item = ReconciliationItem(
                id=uuid.uuid4(),
                reconciliation=reconciliation,
                position=position,
                transaction_reference=tx.reference,
                bank_reference=tx.bank_reference,
                amount=tx.amount,
                currency=tx.currency,
                transaction_date=tx.date,
                description=tx.description,
                match_status=MatchStatus.UNMATCHED,
                match_confidence=Decimal(0),
                requires_action=False,
                metadata_json=tx.metadata or {},
            )
            self.db.add(item)
            items.append(item)
        return items

    @staticmethod
    def _flag_duplicates(items: list[ReconciliationItem], window_hours: int) -> None:
        for duplicate, original in detect_duplicate_transactions(items, window_hours):
            duplicate.discrepancy_type = DiscrepancyType.DUPLICATE_TRANSACTION
            duplicate.discrepancy_amount = duplicate.amount
            duplicate.requires_action = True
            duplicate.notes = f"Possible duplicate of {original.transaction_reference}"

    @staticmethod
    def _apply_match(
        item: ReconciliationItem,
        payment_id: uuid.UUID,
        confidence: float,
        status: MatchStatus,
        notes: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> None:
        item.payment_id = payment_id
        item.match_status = status
        item.match_confidence = Decimal(str(confidence))
        item.matched_by = user_id
        item.matched_at = utcnow()
        item.notes = notes
        item.requires_action = False

    def _claimed_payment_ids(
        self,
        tenant_id: str,
        exclude_item_id: Optional[uuid.UUID] = None,
    ) -> set:
        """Payment ids held by matched items of the tenant's live reconciliations."""
        query = (
            self.db.query(ReconciliationItem.payment_id)
            .join(Reconciliation, ReconciliationItem.reconciliation_id == Reconciliation.id)
            .filter(Reconciliation.tenant_id == tenant_id)
            .filter(Reconciliation.status != ReconciliationStatus.REJECTED)
            .filter(ReconciliationItem.payment_id.isnot(None))
            .filter(ReconciliationItem.match_status != MatchStatus.UNMATCHED)
        )
        if exclude_item_id is not None:
            query = query.filter(ReconciliationItem.id != exclude_item_id)
        return {row[0] for row in query.all()}

    def _unmatched_recorded_payments(
        self, reconciliation: Reconciliation
    ) -> list[RecordedPayment]:
        payments = self._get_recorded_payments(
            reconciliation.tenant_id,
            reconciliation.start_date,
            window_end(reconciliation.end_date),
        )
        held = {
            item.payment_id
            for item in reconciliation.transactions
            if item.payment_id is not None
        }
        return [p for p in payments if p.id not in held]
