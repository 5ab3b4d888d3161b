"""API integration tests for the threat detection endpoints."""

from __future__ import annotations

ACTIVITY = {
    "user_id": "member-1",
    "timestamp": "2024-01-08T10:00:00",
    "session_duration": 1800,
    "ip_address": "10.0.1.5",
    "resources": ["/bookings"],
    "device_fingerprint": "dev-a",
    "data_volume": 2000,
}


def test_record_activity_builds_profile(client, headers):
    response = client.post("/api/v1/threat/activity", headers=headers, json=ACTIVITY)

    assert response.status_code == 200, response.text
    data = response.json()["data"]
    assert data["training_samples"] == 1
    assert data["baseline_metrics"]["common_ip_addresses"] == ["10.0.1.5"]

    profile = client.get("/api/v1/threat/profiles/member-1", headers=headers)
    assert profile.status_code == 200
    assert profile.json()["data"]["user_id"] == "member-1"


def test_analyze_untrained_user(client, headers):
    response = client.post("/api/v1/threat/analyze", headers=headers, json=ACTIVITY)

    assert response.status_code == 200, response.text
    data = response.json()["data"]
    assert data["score"]["overall"] == 0.1
    assert data["is_alert"] is False


def test_unknown_profile_returns_404(client, headers):
    response = client.get("/api/v1/threat/profiles/nobody", headers=headers)

    assert response.status_code == 404
    assert response.json()["success"] is False
