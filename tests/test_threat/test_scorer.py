"""Unit tests for the behavioral threat scorer (pure, no database)."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from coworkhub.schemas.threat import UserActivity
from coworkhub.services.threat.scorer import ThreatScorer


@pytest.fixture
def baseline() -> dict:
    return {
        "avg_session_duration": 1800,
        "typical_login_times": [9, 10],
        "common_ip_addresses": ["10.0.1.5"],
        "frequently_accessed_resources": ["/bookings", "/invoices"],
        "normal_data_volume_range": {"min": 1000, "max": 5000},
        "typical_device_fingerprints": ["dev-a"],
    }


@pytest.fixture
def scorer() -> ThreatScorer:
    return ThreatScorer(min_training_samples=10)


def _normal(**overrides) -> UserActivity:
    data = {
        "user_id": "member-1",
        "timestamp": datetime(2024, 1, 8, 10, 0),
        "session_duration": 1800,
        "ip_address": "10.0.1.5",
        "resources": ["/bookings"],
        "device_fingerprint": "dev-a",
        "data_volume": 2000,
    }
    data.update(overrides)
    return UserActivity(**data)


class TestThreatScorer:
    def test_untrained_profile_scores_flat(self, scorer, baseline) -> None:
        score = scorer.analyze(baseline, 9, _normal())

        assert score.overall == 0.1
        assert score.behavioral == score.temporal == score.contextual == 0.1

    def test_missing_profile_scores_flat(self, scorer) -> None:
        assert scorer.analyze(None, 0, _normal()).overall == 0.1

    def test_normal_activity_scores_low(self, scorer, baseline) -> None:
        score = scorer.analyze(baseline, 10, _normal())

        assert score.behavioral == 0.0
        assert score.temporal == 0.1
        assert score.geographical == 0.1
        assert score.volumetric == 0.1
        assert score.contextual == 0.0
        assert score.overall == pytest.approx(0.055)

    def test_suspicious_activity_scores_high(self, scorer, baseline) -> None:
        activity = _normal(
            timestamp=datetime(2024, 1, 8, 3, 0),
            session_duration=7200,
            ip_address="203.0.113.9",
            resources=["/admin/export"],
            device_fingerprint="dev-z",
            data_volume=50000,
            is_admin_action=True,
            failed_attempts=5,
            privilege_escalation=True,
        )

        score = scorer.analyze(baseline, 10, activity)

        assert score.behavioral == 1.0
        assert score.temporal == 0.8
        assert score.geographical == 0.6
        assert score.volumetric == 1.0
        assert score.contextual == 1.0
        assert score.overall == pytest.approx(0.88)

    def test_same_subnet_is_known_location(self, scorer, baseline) -> None:
        assert scorer.geographical_score(baseline, _normal(ip_address="10.0.77.1")) == 0.1

    def test_aware_timestamps_are_read_in_utc(self, scorer, baseline) -> None:
        # 05:00 at UTC-5 is 10:00 UTC
        tz = timezone(timedelta(hours=-5))
        activity = _normal(timestamp=datetime(2024, 1, 8, 5, 0, tzinfo=tz))

        assert scorer.temporal_score(baseline, activity) == 0.1

    def test_volume_below_range(self, scorer, baseline) -> None:
        assert scorer.volumetric_score(baseline, _normal(data_volume=500)) == 0.5

    def test_failed_attempts_are_capped(self) -> None:
        activity = _normal(failed_attempts=50)
        assert ThreatScorer.contextual_score(activity) == 0.6

    def test_three_failed_attempts_are_tolerated(self) -> None:
        assert ThreatScorer.contextual_score(_normal(failed_attempts=3)) == 0.0
