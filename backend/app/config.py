from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

MIN_APP_SECRET_LENGTH = 32


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    domain: str = "localhost"
    # Single master secret: journal content encryption + JWT signing
    app_secret: str = ""

    @model_validator(mode="after")
    def _check_app_secret(self) -> Settings:
        self.app_secret = self.app_secret.strip()
        if not self.app_secret:
            raise ValueError(
                "APP_SECRET is not set. Journal entries cannot be encrypted and "
                "session tokens cannot be signed without it. Set APP_SECRET in .env "
                "(e.g. `openssl rand -hex 32`)."
            )
        if len(self.app_secret) < MIN_APP_SECRET_LENGTH:
            raise ValueError(
                f"APP_SECRET must be at least {MIN_APP_SECRET_LENGTH} characters "
                f"(got {len(self.app_secret)})."
            )
        return self

    log_level: str = "INFO"
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:5173"]
    jwt_access_token_expire_minutes: int = 15
    jwt_refresh_token_expire_days: int = 7
    data_dir: Path = Path("./data")
    db_url: str = "sqlite:///./data/wellness.db"
    # Request validation limits
    journal_max_content_chars: int = 50_000
    journal_max_title_chars: int = 200
    journal_max_tags: int = 10
    journal_max_reflection_chars: int = 5_000


@lru_cache
def get_settings() -> Settings:
    return Settings()
