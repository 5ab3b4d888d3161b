"""Persistence for user behavior baselines."""

from __future__ import annotations

from typing import Optional

from sqlalchemy.orm import Session

from coworkhub.models.behavior_profile import UserBehaviorProfile


class BehaviorProfileRepository:
    """Loads and stores ``UserBehaviorProfile`` rows; the caller commits."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def get(self, tenant_id: str, user_id: str) -> Optional[UserBehaviorProfile]:
        return (
            self.db.query(UserBehaviorProfile)
            .filter(UserBehaviorProfile.tenant_id == tenant_id)
            .filter(UserBehaviorProfile.user_id == user_id)
            .first()
        )

    def save(self, profile: UserBehaviorProfile) -> UserBehaviorProfile:
        self.db.add(profile)
        self.db.flush()
        return profile
