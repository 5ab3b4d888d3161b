"""SQLAlchemy models for the CoworkHub reconciliation backend."""

from coworkhub.models.behavior_profile import UserBehaviorProfile
from coworkhub.models.payment import RecordedPayment
from coworkhub.models.reconciliation import Reconciliation, ReconciliationItem

__all__ = [
    "RecordedPayment",
    "Reconciliation",
    "ReconciliationItem",
    "UserBehaviorProfile",
]
