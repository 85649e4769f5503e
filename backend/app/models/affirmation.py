from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4

from pydantic import BaseModel, Field as PydanticField, field_validator
from sqlmodel import Field, SQLModel


class Affirmation(SQLModel, table=True):
    """Built-in library rows (user_id NULL) and user-written custom affirmations."""

    __tablename__ = "affirmations"

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    user_id: str | None = Field(default=None, foreign_key="users.id", index=True)
    text: str
    category: str = Field(default="personal")
    tone: str | None = Field(default=None)
    health_condition: str | None = Field(default=None)
    is_custom: bool = Field(default=False)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


# --- Pydantic request/response schemas ---


class CustomAffirmationCreate(BaseModel):
    text: str
    category: str = PydanticField(default="personal", max_length=50)

    @field_validator("text")
    @classmethod
    def _text(cls, value: str) -> str:
        value = value.strip()
        if len(value) < 5:
            raise ValueError("Affirmation must be at least 5 characters")
        if len(value) > 500:
            raise ValueError("Affirmation must be less than 500 characters")
        return value

    @field_validator("category")
    @classmethod
    def _category(cls, value: str) -> str:
        return value.strip() or "personal"


class AffirmationRead(BaseModel):
    id: str
    text: str
    category: str
    is_custom: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class DailyAffirmationsResponse(BaseModel):
    affirmations: list[str]
