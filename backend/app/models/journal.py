from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal, get_args
from uuid import uuid4

from pydantic import BaseModel, Field as PydanticField, field_validator
from sqlalchemy import CheckConstraint, UniqueConstraint
from sqlmodel import Field, SQLModel

from app.config import get_settings

MoodType = Literal[
    "happy",
    "calm",
    "anxious",
    "sad",
    "energetic",
    "grateful",
    "frustrated",
    "hopeful",
    "neutral",
]

MOODS: tuple[str, ...] = get_args(MoodType)

_MOOD_SQL = ", ".join(f"'{m}'" for m in MOODS)


class JournalEntry(SQLModel, table=True):
    __tablename__ = "journal_entries"
    __table_args__ = (
        CheckConstraint(f"mood IS NULL OR mood IN ({_MOOD_SQL})", name="ck_journal_entries_mood"),
    )

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    user_id: str = Field(foreign_key="users.id", index=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), index=True)
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    last_viewed_at: datetime | None = Field(default=None)

    title: str
    content: str  # packed salt:authTag:ciphertext (hex)
    content_iv: str  # hex IV, kept out of the packed body
    mood: str | None = Field(default=None)
    is_private: bool = Field(default=True)

    # Plaintext-derived, stored unencrypted for listing/sorting
    word_count: int = Field(default=0)
    reading_time: int = Field(default=1)


class JournalEntryTag(SQLModel, table=True):
    __tablename__ = "journal_entry_tags"
    __table_args__ = (UniqueConstraint("entry_id", "tag", name="uq_journal_entry_tag"),)

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    entry_id: str = Field(foreign_key="journal_entries.id", index=True)
    tag: str = Field(index=True)


ReflectionType = Literal["progress", "insight", "gratitude", "lesson"]


class JournalReflection(SQLModel, table=True):
    """A follow-up note on an entry. Sealed with the same cipher as the entry body."""

    __tablename__ = "journal_reflections"

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    entry_id: str = Field(foreign_key="journal_entries.id", index=True)
    reflection_type: str
    content: str  # packed salt:authTag:ciphertext (hex)
    content_iv: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), index=True)


# --- Pydantic schemas for request/response validation ---


def _check_content(value: str) -> str:
    if not value:
        raise ValueError("Content is required")
    limit = get_settings().journal_max_content_chars
    if len(value) > limit:
        raise ValueError(f"Content must be less than {limit} characters")
    return value


def _check_title(value: str) -> str:
    if not value:
        raise ValueError("Title is required")
    limit = get_settings().journal_max_title_chars
    if len(value) > limit:
        raise ValueError(f"Title must be less than {limit} characters")
    return value


def _check_tags(value: list[str]) -> list[str]:
    limit = get_settings().journal_max_tags
    cleaned: list[str] = []
    for tag in value:
        tag = tag.strip()
        if tag and tag not in cleaned:
            cleaned.append(tag)
    if len(cleaned) > limit:
        raise ValueError(f"Maximum {limit} tags allowed")
    return cleaned


class JournalEntryCreate(BaseModel):
    title: str
    content: str
    mood: MoodType | None = None
    tags: list[str] = PydanticField(default_factory=list)
    is_private: bool = True

    @field_validator("title")
    @classmethod
    def _title(cls, value: str) -> str:
        return _check_title(value)

    @field_validator("content")
    @classmethod
    def _content(cls, value: str) -> str:
        return _check_content(value)

    @field_validator("tags")
    @classmethod
    def _tags(cls, value: list[str]) -> list[str]:
        return _check_tags(value)


class JournalEntryUpdate(BaseModel):
    title: str | None = None
    content: str | None = None
    mood: MoodType | None = None
    tags: list[str] | None = None
    is_private: bool | None = None

    @field_validator("title")
    @classmethod
    def _title(cls, value: str | None) -> str | None:
        return None if value is None else _check_title(value)

    @field_validator("content")
    @classmethod
    def _content(cls, value: str | None) -> str | None:
        return None if value is None else _check_content(value)

    @field_validator("tags")
    @classmethod
    def _tags(cls, value: list[str] | None) -> list[str] | None:
        return None if value is None else _check_tags(value)


class JournalEntrySummary(BaseModel):
    """Listing view. Never carries content."""

    id: str
    title: str
    mood: str | None
    tags: list[str] = []
    is_private: bool
    word_count: int
    reading_time: int
    created_at: datetime
    updated_at: datetime
    last_viewed_at: datetime | None = None

    model_config = {"from_attributes": True}


class ReflectionCreate(BaseModel):
    content: str
    reflection_type: ReflectionType

    @field_validator("content")
    @classmethod
    def _content(cls, value: str) -> str:
        if not value:
            raise ValueError("Content is required")
        limit = get_settings().journal_max_reflection_chars
        if len(value) > limit:
            raise ValueError(f"Reflection must be less than {limit} characters")
        return value


class ReflectionRead(BaseModel):
    id: str
    reflection_type: str
    content: str  # decrypted plaintext
    created_at: datetime


class JournalEntryRead(JournalEntrySummary):
    content: str  # decrypted plaintext
    reflections: list[ReflectionRead] = []  # newest first, capped


class Pagination(BaseModel):
    page: int
    limit: int
    total_count: int
    total_pages: int
    has_next_page: bool
    has_prev_page: bool


class JournalListResponse(BaseModel):
    entries: list[JournalEntrySummary]
    pagination: Pagination
