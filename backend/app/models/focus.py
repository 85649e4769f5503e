from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal
from uuid import uuid4

from pydantic import BaseModel, Field as PydanticField
from sqlmodel import Field, SQLModel

FocusType = Literal["pomodoro", "custom", "meditation", "deep-work"]


class FocusSession(SQLModel, table=True):
    __tablename__ = "focus_sessions"

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    user_id: str = Field(foreign_key="users.id", index=True)
    duration: int  # minutes
    type: str = Field(default="custom")
    ambient_sound: str | None = Field(default=None)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), index=True)


class FocusSessionCreate(BaseModel):
    duration: int = PydanticField(ge=1, le=240)
    type: FocusType = "custom"
    ambient_sound: str | None = None


class FocusSessionRead(BaseModel):
    id: str
    duration: int
    type: str
    ambient_sound: str | None
    created_at: datetime

    model_config = {"from_attributes": True}
