"""Bank feed collaborator interface.

Statement lines come from outside the platform (bank exports, open-banking
APIs).  The reconciliation service only depends on this interface, so a
real integration can replace the static provider without touching the
matching engine.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Iterable, List

from coworkhub.schemas.reconciliation import BankTransaction


class BankFeedProvider(ABC):
    """Source of bank statement lines for a tenant and period."""

    @abstractmethod
    def fetch_statement(
        self,
        tenant_id: str,
        start: datetime,
        end: datetime,
    ) -> List[BankTransaction]:
        """Return the statement lines booked between *start* and *end*.

        Args:
            tenant_id: Tenant whose bank account is being reconciled.
            start: Start of the period (inclusive).
            end: End of the period (inclusive).

        Returns:
            Statement lines in booking order.
        """
        pass


class StaticBankFeedProvider(BankFeedProvider):
    """Serves a fixed list of lines, e.g. an uploaded or posted statement."""

    def __init__(self, transactions: Iterable[BankTransaction] = ()) -> None:
        self.transactions = list(transactions)

    def fetch_statement(
        self,
        tenant_id: str,
        start: datetime,
        end: datetime,
    ) -> List[BankTransaction]:
        return [tx for tx in self.transactions if start <= tx.date <= end]
