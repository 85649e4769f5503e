"""Wellness profile: goals, health conditions and affirmation preferences."""

from __future__ import annotations

import json
import re
from datetime import datetime, timezone
from typing import Literal
from uuid import uuid4

from pydantic import BaseModel, Field as PydanticField, field_validator
from sqlmodel import Field, SQLModel

ToneType = Literal["gentle", "encouraging", "motivational"]

_TIME_OF_DAY = re.compile(r"([0-1]?[0-9]|2[0-3]):[0-5][0-9]")


class Profile(SQLModel, table=True):
    __tablename__ = "profiles"

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    user_id: str = Field(foreign_key="users.id", index=True, unique=True)
    goals: str = Field(default="[]")  # JSON list of goal ids
    health_conditions: str = Field(default="[]")  # JSON list of condition ids
    tone: str = Field(default="gentle")
    notification_times: str = Field(default="[]")  # JSON list of "HH:MM"
    focus_session_length: int = Field(default=25)  # minutes
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


def _deserialize_list(v: str | list | None) -> list[str]:
    if v is None:
        return []
    if isinstance(v, list):
        return v
    try:
        parsed = json.loads(v)
        return parsed if isinstance(parsed, list) else []
    except (json.JSONDecodeError, TypeError):
        return []


# --- Pydantic request/response schemas ---


class ProfileUpsert(BaseModel):
    goals: list[str] = PydanticField(min_length=1, max_length=10)
    health_conditions: list[str] = PydanticField(default_factory=list, max_length=10)
    tone: ToneType = "gentle"
    notification_times: list[str] = PydanticField(default_factory=list)
    focus_session_length: int = PydanticField(default=25, ge=5, le=120)

    @field_validator("health_conditions")
    @classmethod
    def _drop_none(cls, value: list[str]) -> list[str]:
        # "none" is the opt-out choice in the onboarding form, not a condition
        return [c for c in value if c != "none"]

    @field_validator("notification_times")
    @classmethod
    def _check_times(cls, value: list[str]) -> list[str]:
        for t in value:
            if not _TIME_OF_DAY.fullmatch(t):
                raise ValueError(f"Invalid time format: {t!r} (expected HH:MM)")
        return value


class ProfileRead(BaseModel):
    goals: list[str]
    health_conditions: list[str]
    tone: ToneType
    notification_times: list[str]
    focus_session_length: int
    updated_at: datetime

    model_config = {"from_attributes": True}

    @field_validator("goals", "health_conditions", "notification_times", mode="before")
    @classmethod
    def deserialize_lists(cls, v: str | list | None) -> list[str]:
        return _deserialize_list(v)
