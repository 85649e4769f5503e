"""Tests for backend/app/config.py Settings validation."""
from __future__ import annotations

import os
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from app.services.encryption import ConfigurationError


class TestAppSecretValidation:
    """Verify APP_SECRET enforcement in Settings."""

    def test_empty_app_secret_raises(self):
        """Settings() must raise when APP_SECRET is empty."""
        from app.config import Settings

        with patch.dict(os.environ, {"APP_SECRET": ""}, clear=False):
            with pytest.raises(ValueError, match="APP_SECRET is not set"):
                Settings(_env_file=None)

    def test_whitespace_app_secret_raises(self):
        """Whitespace-only APP_SECRET should also be rejected."""
        from app.config import Settings

        with patch.dict(os.environ, {"APP_SECRET": "     "}, clear=False):
            with pytest.raises(ValueError, match="APP_SECRET is not set"):
                Settings(_env_file=None)

    def test_short_app_secret_raises(self):
        """Secrets under 32 characters are rejected at load time."""
        from app.config import Settings

        with patch.dict(os.environ, {"APP_SECRET": "x" * 31}, clear=False):
            with pytest.raises(ValueError, match="at least 32 characters"):
                Settings(_env_file=None)

    def test_valid_app_secret_passes(self):
        from app.config import Settings

        secret = "a-real-secret-value-that-is-long-enough"
        with patch.dict(os.environ, {"APP_SECRET": secret}, clear=False):
            s = Settings(_env_file=None)
            assert s.app_secret == secret

    def test_app_secret_whitespace_is_stripped(self):
        """Leading/trailing whitespace is stripped before the length check."""
        from app.config import Settings

        secret = "y" * 32
        with patch.dict(os.environ, {"APP_SECRET": f"  {secret}\n"}, clear=False):
            s = Settings(_env_file=None)
            assert s.app_secret == secret

    def test_journal_limits_defaults(self):
        from app.config import Settings

        s = Settings(_env_file=None)
        assert s.journal_max_content_chars == 50_000
        assert s.journal_max_title_chars == 200
        assert s.journal_max_tags == 10


class TestStartupFailFast:
    def test_lifespan_refuses_short_secret(self, session):
        """A secret that slips past Settings still aborts startup via the cipher."""
        from app.config import Settings
        from app.db import get_session
        from app.main import app as fastapi_app

        weak = Settings.model_construct(**{**Settings(_env_file=None).model_dump(), "app_secret": "short"})

        def _get_session_override():
            yield session

        fastapi_app.dependency_overrides[get_session] = _get_session_override
        try:
            with patch("app.main.get_settings", return_value=weak):
                with pytest.raises(ConfigurationError):
                    with TestClient(fastapi_app):
                        pass
        finally:
            fastapi_app.dependency_overrides.clear()
