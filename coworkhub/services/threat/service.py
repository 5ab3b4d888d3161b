"""Threat detection service: baseline training and activity analysis."""

from __future__ import annotations

from typing import Any, Optional

from sqlalchemy.orm import Session

from coworkhub.core.clock import utcnow
from coworkhub.core.config import Settings, settings
from coworkhub.core.logging import get_logger
from coworkhub.models.behavior_profile import UserBehaviorProfile
from coworkhub.schemas.threat import ThreatAnalysis, UserActivity
from coworkhub.services.threat.profiles import BehaviorProfileRepository
from coworkhub.services.threat.scorer import ThreatScorer, utc_hour

logger = get_logger(__name__)

MAX_LOGIN_HOURS = 8
MAX_IP_ADDRESSES = 10
MAX_DEVICES = 5


def _append_capped(values: list, value: Any, limit: int) -> list:
    if value in values:
        return list(values)
    return [*values, value][-limit:]


def initial_baseline(activity: UserActivity) -> dict[str, Any]:
    volume = activity.data_volume or 0
    return {
        "avg_session_duration": activity.session_duration or 0,
        "typical_login_times": (
            [utc_hour(activity.timestamp)] if activity.timestamp else []
        ),
        "common_ip_addresses": [activity.ip_address] if activity.ip_address else [],
        "frequently_accessed_resources": list(activity.resources or []),
        "normal_data_volume_range": {"min": volume, "max": volume},
        "typical_device_fingerprints": (
            [activity.device_fingerprint] if activity.device_fingerprint else []
        ),
    }


def updated_baseline(baseline: dict[str, Any], activity: UserActivity) -> dict[str, Any]:
    """Return a new baseline dict with *activity* folded in."""
    metrics = dict(baseline)

    if activity.session_duration:
        metrics["avg_session_duration"] = (
            metrics.get("avg_session_duration", 0) + activity.session_duration
        ) / 2

    if activity.timestamp:
        metrics["typical_login_times"] = _append_capped(
            metrics.get("typical_login_times", []),
            utc_hour(activity.timestamp),
            MAX_LOGIN_HOURS,
        )

    if activity.ip_address:
        metrics["common_ip_addresses"] = _append_capped(
            metrics.get("common_ip_addresses", []), activity.ip_address, MAX_IP_ADDRESSES
        )

    if activity.data_volume:
        current = metrics.get("normal_data_volume_range", {"min": 0, "max": 0})
        metrics["normal_data_volume_range"] = {
            "min": min(current["min"], activity.data_volume),
            "max": max(current["max"], activity.data_volume),
        }

    if activity.device_fingerprint:
        metrics["typical_device_fingerprints"] = _append_capped(
            metrics.get("typical_device_fingerprints", []),
            activity.device_fingerprint,
            MAX_DEVICES,
        )

    return metrics


class ThreatDetectionService:
    """Trains per-user baselines and scores new activity against them."""

    def __init__(self, db: Session, config: Settings = settings) -> None:
        self.db = db
        self.config = config
        self.profiles = BehaviorProfileRepository(db)
        self.scorer = ThreatScorer(config.threat_min_training_samples)

    def update_profile(self, tenant_id: str, activity: UserActivity) -> UserBehaviorProfile:
        """Fold *activity* into the user's baseline, creating it on first sight."""
        try:
            profile = self.profiles.get(tenant_id, activity.user_id)
            if profile is None:
                profile = UserBehaviorProfile(
                    tenant_id=tenant_id,
                    user_id=activity.user_id,
                    baseline_metrics=initial_baseline(activity),
                    anomaly_score=0.0,
                    training_samples=1,
                    last_updated=utcnow(),
                )
            else:
                # Reassign so the JSON column is marked dirty
                profile.baseline_metrics = updated_baseline(profile.baseline_metrics, activity)
                profile.training_samples += 1
                profile.last_updated = utcnow()

            self.profiles.save(profile)
            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.exception(
                "Failed to update behavior profile: tenant=%s user=%s",
                tenant_id,
                activity.user_id,
            )
            raise

        logger.info(
            "Behavior profile updated: tenant=%s user=%s samples=%d",
            tenant_id,
            activity.user_id,
            profile.training_samples,
        )
        return profile

    def analyze_behavior(self, tenant_id: str, activity: UserActivity) -> ThreatAnalysis:
        """Score *activity* and remember the overall score on the profile."""
        try:
            profile = self.profiles.get(tenant_id, activity.user_id)
            baseline = profile.baseline_metrics if profile is not None else None
            samples = profile.training_samples if profile is not None else 0

            score = self.scorer.analyze(baseline, samples, activity)

            if profile is not None:
                profile.anomaly_score = score.overall
                self.profiles.save(profile)
                self.db.commit()
        except Exception:
            self.db.rollback()
            logger.exception(
                "Failed to analyze behavior: tenant=%s user=%s",
                tenant_id,
                activity.user_id,
            )
            raise

        is_alert = score.overall >= self.config.threat_alert_threshold
        if is_alert:
            logger.warning(
                "Threat alert: tenant=%s user=%s score=%.3f",
                tenant_id,
                activity.user_id,
                score.overall,
            )

        return ThreatAnalysis(
            user_id=activity.user_id,
            score=score,
            is_alert=is_alert,
            training_samples=samples,
        )

    def get_profile(self, tenant_id: str, user_id: str) -> Optional[UserBehaviorProfile]:
        return self.profiles.get(tenant_id, user_id)
