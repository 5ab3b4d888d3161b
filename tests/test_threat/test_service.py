"""Service tests for ThreatDetectionService against a SQLite session."""

from __future__ import annotations

from datetime import datetime

import pytest

from coworkhub.schemas.threat import UserActivity
from coworkhub.services.threat.service import ThreatDetectionService, updated_baseline

TENANT = "tenant-test"


def _activity(**overrides) -> UserActivity:
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


@pytest.fixture
def service(db_session, config) -> ThreatDetectionService:
    return ThreatDetectionService(db_session, config)


class TestProfiles:
    def test_first_activity_creates_profile(self, service) -> None:
        profile = service.update_profile(TENANT, _activity())

        assert profile.training_samples == 1
        assert profile.baseline_metrics["typical_login_times"] == [10]
        assert profile.baseline_metrics["common_ip_addresses"] == ["10.0.1.5"]
        assert profile.baseline_metrics["normal_data_volume_range"] == {
            "min": 2000,
            "max": 2000,
        }

    def test_updates_fold_into_baseline(self, service) -> None:
        service.update_profile(TENANT, _activity())
        profile = service.update_profile(
            TENANT, _activity(session_duration=3600, data_volume=8000, ip_address="10.0.2.9")
        )

        metrics = profile.baseline_metrics
        assert profile.training_samples == 2
        assert metrics["avg_session_duration"] == 2700
        assert metrics["normal_data_volume_range"] == {"min": 2000, "max": 8000}
        assert metrics["common_ip_addresses"] == ["10.0.1.5", "10.0.2.9"]

    def test_profile_persists_across_service_instances(
        self, db_session, config, service
    ) -> None:
        for _ in range(10):
            service.update_profile(TENANT, _activity())

        analysis = service.analyze_behavior(
            TENANT,
            _activity(
                timestamp=datetime(2024, 1, 8, 3, 0),
                session_duration=7200,
                data_volume=50000,
                ip_address="203.0.113.9",
                device_fingerprint="dev-z",
                privilege_escalation=True,
                is_admin_action=True,
            ),
        )
        assert analysis.training_samples == 10
        assert analysis.score.overall == pytest.approx(0.8575)
        assert analysis.is_alert is True

        fresh = ThreatDetectionService(db_session, config)
        profile = fresh.get_profile(TENANT, "member-1")

        assert profile is not None
        assert profile.training_samples == 10
        assert profile.anomaly_score == pytest.approx(analysis.score.overall)

    def test_untrained_user_never_alerts(self, service) -> None:
        analysis = service.analyze_behavior(TENANT, _activity(privilege_escalation=True))

        assert analysis.score.overall == 0.1
        assert analysis.is_alert is False
        assert service.get_profile(TENANT, "member-1") is None

    def test_profiles_are_tenant_scoped(self, service) -> None:
        service.update_profile(TENANT, _activity())

        assert service.get_profile("other-tenant", "member-1") is None


class TestBaselineCaps:
    def test_ip_list_keeps_most_recent_ten(self) -> None:
        metrics = {"common_ip_addresses": []}
        for i in range(12):
            metrics = updated_baseline(metrics, _activity(ip_address=f"10.0.0.{i}"))

        assert len(metrics["common_ip_addresses"]) == 10
        assert metrics["common_ip_addresses"][0] == "10.0.0.2"

    def test_known_values_are_not_duplicated(self) -> None:
        metrics = {"typical_device_fingerprints": ["dev-a"]}
        metrics = updated_baseline(metrics, _activity(device_fingerprint="dev-a"))

        assert metrics["typical_device_fingerprints"] == ["dev-a"]
