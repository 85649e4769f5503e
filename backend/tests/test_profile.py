from __future__ import annotations

import json

import pytest
from sqlmodel import select

from app.models.profile import Profile

PROFILE = {
    "goals": ["stress-management", "better-focus"],
    "health_conditions": ["anxiety"],
    "tone": "gentle",
    "notification_times": ["08:00", "21:30"],
    "focus_session_length": 25,
}


def test_profile_missing_is_404(client):
    resp = client.get("/api/profile")
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Profile not found"


def test_create_profile(client, session, user):
    resp = client.put("/api/profile", json=PROFILE)
    assert resp.status_code == 200
    data = resp.json()
    assert data["goals"] == ["stress-management", "better-focus"]
    assert data["notification_times"] == ["08:00", "21:30"]

    stored = session.exec(select(Profile).where(Profile.user_id == user.id)).one()
    assert json.loads(stored.goals) == PROFILE["goals"]


def test_read_profile_after_save(client):
    client.put("/api/profile", json=PROFILE)
    data = client.get("/api/profile").json()
    assert data["tone"] == "gentle"
    assert data["health_conditions"] == ["anxiety"]
    assert data["focus_session_length"] == 25


def test_upsert_replaces(client, session, user):
    client.put("/api/profile", json=PROFILE)
    resp = client.put("/api/profile", json={**PROFILE, "tone": "motivational", "goals": ["sleep"]})
    assert resp.status_code == 200
    assert resp.json()["tone"] == "motivational"
    assert resp.json()["goals"] == ["sleep"]
    assert len(session.exec(select(Profile).where(Profile.user_id == user.id)).all()) == 1


def test_none_condition_dropped(client):
    resp = client.put("/api/profile", json={**PROFILE, "health_conditions": ["none"]})
    assert resp.json()["health_conditions"] == []


class TestProfileValidation:
    @pytest.mark.parametrize(
        "override",
        [
            {"goals": []},
            {"goals": [f"g{i}" for i in range(11)]},
            {"health_conditions": [f"c{i}" for i in range(11)]},
            {"tone": "harsh"},
            {"notification_times": ["8am"]},
            {"notification_times": ["24:00"]},
            {"focus_session_length": 4},
            {"focus_session_length": 121},
        ],
    )
    def test_rejected(self, client, override):
        resp = client.put("/api/profile", json={**PROFILE, **override})
        assert resp.status_code == 422

    def test_single_digit_hour_accepted(self, client):
        resp = client.put("/api/profile", json={**PROFILE, "notification_times": ["7:15"]})
        assert resp.status_code == 200


def test_profile_requires_auth(client_no_auth):
    assert client_no_auth.get("/api/profile").status_code in (401, 403)
