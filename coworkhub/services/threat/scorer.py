"""Behavioral anomaly scoring.

Compares one activity sample against a user's stored baseline and returns
five component scores in [0, 1] plus their weighted overall score.  The
scorer is stateless: it receives the baseline dict and sample count from
the caller and never touches the database.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from coworkhub.schemas.threat import ThreatScore, UserActivity

BEHAVIORAL_WEIGHT = 0.3
TEMPORAL_WEIGHT = 0.2
GEOGRAPHICAL_WEIGHT = 0.2
VOLUMETRIC_WEIGHT = 0.15
CONTEXTUAL_WEIGHT = 0.15

UNTRAINED_SCORE = 0.1
TYPICAL_HOUR_WINDOW = 2
BUSINESS_HOURS = (6, 22)


def _ip_prefix(ip: str) -> str:
    return ".".join(ip.split(".")[:2])


def utc_hour(moment: datetime) -> int:
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.hour


class ThreatScorer:
    """Scores activity samples against a behavior baseline."""

    def __init__(self, min_training_samples: int = 10) -> None:
        self.min_training_samples = min_training_samples

    def analyze(
        self,
        baseline: Optional[dict[str, Any]],
        training_samples: int,
        activity: UserActivity,
    ) -> ThreatScore:
        """Score *activity*; untrained baselines get a flat low score."""
        if baseline is None or training_samples < self.min_training_samples:
            return ThreatScore(
                overall=UNTRAINED_SCORE,
                behavioral=UNTRAINED_SCORE,
                temporal=UNTRAINED_SCORE,
                geographical=UNTRAINED_SCORE,
                volumetric=UNTRAINED_SCORE,
                contextual=UNTRAINED_SCORE,
            )

        behavioral = self.behavioral_score(baseline, activity)
        temporal = self.temporal_score(baseline, activity)
        geographical = self.geographical_score(baseline, activity)
        volumetric = self.volumetric_score(baseline, activity)
        contextual = self.contextual_score(activity)

        overall = (
            behavioral * BEHAVIORAL_WEIGHT
            + temporal * TEMPORAL_WEIGHT
            + geographical * GEOGRAPHICAL_WEIGHT
            + volumetric * VOLUMETRIC_WEIGHT
            + contextual * CONTEXTUAL_WEIGHT
        )

        return ThreatScore(
            overall=round(overall, 6),
            behavioral=behavioral,
            temporal=temporal,
            geographical=geographical,
            volumetric=volumetric,
            contextual=contextual,
        )

    # ── Components ───────────────────────────────────────────────────

    @staticmethod
    def behavioral_score(baseline: dict[str, Any], activity: UserActivity) -> float:
        anomaly_points = 0.0
        checks = 0

        average = baseline.get("avg_session_duration") or 0
        if activity.session_duration and average > 0:
            deviation = abs(activity.session_duration - average) / average
            if deviation > 0.5:
                anomaly_points += deviation
            checks += 1

        if activity.ip_address and activity.ip_address not in baseline.get(
            "common_ip_addresses", []
        ):
            anomaly_points += 0.3
            checks += 1

        if activity.resources:
            known = set(baseline.get("frequently_accessed_resources", []))
            unknown = [r for r in activity.resources if r not in known]
            if unknown:
                anomaly_points += (len(unknown) / len(activity.resources)) * 0.4
            checks += 1

        if activity.device_fingerprint and activity.device_fingerprint not in baseline.get(
            "typical_device_fingerprints", []
        ):
            anomaly_points += 0.4
            checks += 1

        if checks == 0:
            return 0.0
        return min(anomaly_points / checks, 1.0)

    @staticmethod
    def temporal_score(baseline: dict[str, Any], activity: UserActivity) -> float:
        if activity.timestamp is None:
            return 0.0
        typical_hours = baseline.get("typical_login_times", [])
        if not typical_hours:
            return 0.0

        hour = utc_hour(activity.timestamp)
        if any(abs(h - hour) <= TYPICAL_HOUR_WINDOW for h in typical_hours):
            return 0.1
        return 0.8

    @staticmethod
    def geographical_score(baseline: dict[str, Any], activity: UserActivity) -> float:
        if not activity.ip_address:
            return 0.0
        known = {_ip_prefix(ip) for ip in baseline.get("common_ip_addresses", [])}
        return 0.1 if _ip_prefix(activity.ip_address) in known else 0.6

    @staticmethod
    def volumetric_score(baseline: dict[str, Any], activity: UserActivity) -> float:
        if not activity.data_volume:
            return 0.0

        volume_range = baseline.get("normal_data_volume_range", {})
        low = float(volume_range.get("min", 0))
        high = float(volume_range.get("max", 0))
        volume = activity.data_volume

        if low <= volume <= high:
            return 0.1
        if volume > high:
            deviation = (volume - high) / high if high > 0 else 1.0
        else:
            deviation = (low - volume) / low
        return min(deviation, 1.0)

    @staticmethod
    def contextual_score(activity: UserActivity) -> float:
        risk = 0.0

        if activity.is_admin_action and activity.timestamp is not None:
            start, end = BUSINESS_HOURS
            hour = utc_hour(activity.timestamp)
            if hour < start or hour > end:
                risk += 0.5

        if activity.failed_attempts > 3:
            risk += min(activity.failed_attempts / 10, 0.6)

        if activity.privilege_escalation:
            risk += 0.7

        return min(risk, 1.0)
