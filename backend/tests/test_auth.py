"""Auth flow tests: register, login, refresh, logout, me and JWT claims."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt
from sqlmodel import select

from app.config import get_settings
from app.models.user import RefreshToken, User

PASSWORD = "Morning-Walk-42"


def _register(tc, email: str = "ada@example.com", password: str = PASSWORD) -> dict:
    resp = tc.post("/api/auth/register", json={
        "email": email,
        "name": "Ada",
        "password": password,
    })
    assert resp.status_code == 201, resp.text
    return resp.json()


class TestRegister:
    def test_register_returns_tokens(self, client_no_auth, session) -> None:
        tokens = _register(client_no_auth)
        assert tokens["token_type"] == "bearer"
        assert tokens["expires_in"] == get_settings().jwt_access_token_expire_minutes * 60

        user = session.exec(select(User).where(User.email == "ada@example.com")).one()
        assert user.password_hash.startswith("$argon2id$")
        assert PASSWORD not in user.password_hash

    def test_email_is_lowercased(self, client_no_auth, session) -> None:
        _register(client_no_auth, email="Ada.Lovelace@Example.COM")
        assert session.exec(select(User).where(User.email == "ada.lovelace@example.com")).first()

    def test_duplicate_email(self, client_no_auth) -> None:
        _register(client_no_auth)
        resp = client_no_auth.post("/api/auth/register", json={
            "email": "ADA@example.com",
            "name": "Other Ada",
            "password": PASSWORD,
        })
        assert resp.status_code == 409

    @pytest.mark.parametrize(
        "password",
        ["short1A", "alllowercase1", "ALLUPPERCASE1", "NoDigitsHere"],
    )
    def test_weak_password_rejected(self, client_no_auth, password: str) -> None:
        resp = client_no_auth.post("/api/auth/register", json={
            "email": "weak@example.com",
            "name": "Weak",
            "password": password,
        })
        assert resp.status_code == 422

    def test_invalid_email_rejected(self, client_no_auth) -> None:
        resp = client_no_auth.post("/api/auth/register", json={
            "email": "not-an-email",
            "name": "Nobody",
            "password": PASSWORD,
        })
        assert resp.status_code == 422

    def test_short_name_rejected(self, client_no_auth) -> None:
        resp = client_no_auth.post("/api/auth/register", json={
            "email": "n@example.com",
            "name": "A",
            "password": PASSWORD,
        })
        assert resp.status_code == 422


class TestLogin:
    def test_login_success(self, client_no_auth) -> None:
        _register(client_no_auth)
        resp = client_no_auth.post("/api/auth/login", json={
            "email": "ada@example.com",
            "password": PASSWORD,
        })
        assert resp.status_code == 200
        assert "access_token" in resp.json()

    def test_login_wrong_password(self, client_no_auth) -> None:
        _register(client_no_auth)
        resp = client_no_auth.post("/api/auth/login", json={
            "email": "ada@example.com",
            "password": "Wrong-Password-1",
        })
        assert resp.status_code == 401

    def test_login_unknown_email(self, client_no_auth) -> None:
        resp = client_no_auth.post("/api/auth/login", json={
            "email": "ghost@example.com",
            "password": PASSWORD,
        })
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Invalid email or password"


class TestRefresh:
    def test_refresh_rotates(self, client_no_auth, session) -> None:
        tokens = _register(client_no_auth)
        resp = client_no_auth.post("/api/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
        assert resp.status_code == 200
        new_tokens = resp.json()
        assert new_tokens["refresh_token"] != tokens["refresh_token"]

        # Old refresh token is single-use
        again = client_no_auth.post("/api/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
        assert again.status_code == 401
        assert again.json()["detail"] == "Refresh token revoked"

    def test_access_token_not_accepted_as_refresh(self, client_no_auth) -> None:
        tokens = _register(client_no_auth)
        resp = client_no_auth.post("/api/auth/refresh", json={"refresh_token": tokens["access_token"]})
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Invalid token type"

    def test_expired_refresh_row(self, client_no_auth, session) -> None:
        tokens = _register(client_no_auth)
        claims = jwt.get_unverified_claims(tokens["refresh_token"])
        row = session.get(RefreshToken, claims["jti"])
        row.expires_at = datetime.now(timezone.utc) - timedelta(minutes=1)
        session.add(row)
        session.commit()

        resp = client_no_auth.post("/api/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Refresh token expired"

    def test_garbage_refresh_token(self, client_no_auth) -> None:
        resp = client_no_auth.post("/api/auth/refresh", json={"refresh_token": "not.a.jwt"})
        assert resp.status_code == 401


class TestLogoutAndMe:
    def test_me(self, client_no_auth) -> None:
        tokens = _register(client_no_auth)
        resp = client_no_auth.get(
            "/api/auth/me", headers={"Authorization": f"Bearer {tokens['access_token']}"}
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["email"] == "ada@example.com"
        assert data["name"] == "Ada"
        assert "password_hash" not in data

    def test_me_requires_auth(self, client_no_auth) -> None:
        resp = client_no_auth.get("/api/auth/me")
        assert resp.status_code in (401, 403)

    def test_logout_revokes_refresh_tokens(self, client_no_auth, session) -> None:
        tokens = _register(client_no_auth)
        headers = {"Authorization": f"Bearer {tokens['access_token']}"}
        resp = client_no_auth.post("/api/auth/logout", headers=headers)
        assert resp.status_code == 200

        rows = session.exec(select(RefreshToken)).all()
        assert rows and all(r.revoked for r in rows)

        resp = client_no_auth.post("/api/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
        assert resp.status_code == 401


class TestJwtClaims:
    def test_access_claims(self, client_no_auth, session) -> None:
        tokens = _register(client_no_auth)
        payload = jwt.decode(
            tokens["access_token"], get_settings().app_secret, algorithms=["HS256"]
        )
        user = session.exec(select(User)).one()
        assert payload["sub"] == user.id
        assert payload["type"] == "access"
        assert payload["exp"] > payload["iat"]

    def test_token_signed_with_other_secret_rejected(self, client_no_auth) -> None:
        forged = jwt.encode(
            {"sub": "someone", "type": "access", "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
            "a-completely-different-secret-value-here",
            algorithm="HS256",
        )
        resp = client_no_auth.get("/api/auth/me", headers={"Authorization": f"Bearer {forged}"})
        assert resp.status_code == 401
