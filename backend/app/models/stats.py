from __future__ import annotations

import datetime as dt
from uuid import uuid4

from pydantic import BaseModel
from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel


class DailyStats(SQLModel, table=True):
    """Per-user activity counters for one UTC calendar day."""

    __tablename__ = "daily_stats"
    __table_args__ = (UniqueConstraint("user_id", "date", name="uq_daily_stats_user_date"),)

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    user_id: str = Field(foreign_key="users.id", index=True)
    date: dt.date
    affirmations_viewed: int = Field(default=0)
    session_minutes: int = Field(default=0)
    journal_entries: int = Field(default=0)
    streak_count: int = Field(default=1)  # consecutive active days ending here


class DailyStatsRead(BaseModel):
    date: dt.date
    affirmations_viewed: int = 0
    session_minutes: int = 0
    journal_entries: int = 0
    streak_count: int = 0

    model_config = {"from_attributes": True}


class DailyStatsResponse(BaseModel):
    today: DailyStatsRead
    week: list[DailyStatsRead]
    current_streak: int
