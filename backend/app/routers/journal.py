"""Journal endpoints.

Entry bodies are sealed by the ContentCipher before they reach the database;
only the packed ciphertext and its IV are stored. Listing works purely off
the plaintext metadata columns and never touches ciphertext.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import delete
from sqlmodel import Session, col, func, select

from app.db import get_session
from app.dependencies import get_content_cipher, get_current_user_id
from app.models.journal import (
    JournalEntry,
    JournalEntryCreate,
    JournalEntryRead,
    JournalEntrySummary,
    JournalEntryTag,
    JournalEntryUpdate,
    JournalListResponse,
    JournalReflection,
    MoodType,
    Pagination,
    ReflectionCreate,
    ReflectionRead,
)
from app.services.encryption import ContentCipher, IntegrityError, MalformedDataError
from app.services.stats import record_activity

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/journal", tags=["journal"])

_SORT_COLUMNS = {
    "created_at": JournalEntry.created_at,
    "updated_at": JournalEntry.updated_at,
    "word_count": JournalEntry.word_count,
}

# Reflections returned alongside a single entry
REFLECTIONS_SHOWN = 5


def _parse_iso(value: str, name: str) -> datetime:
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        raise HTTPException(
            status_code=422, detail=f"Invalid {name} format. Use ISO 8601 (YYYY-MM-DDTHH:MM:SS)"
        ) from None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _attach_tags(entries: list[JournalEntry], session: Session) -> list[JournalEntrySummary]:
    """Convert JournalEntry rows to summaries with tags populated."""
    if not entries:
        return []
    entry_ids = [e.id for e in entries]
    rows = session.exec(
        select(JournalEntryTag.entry_id, JournalEntryTag.tag)
        .where(col(JournalEntryTag.entry_id).in_(entry_ids))
        .order_by(JournalEntryTag.tag)
    ).all()
    tags_by_entry: dict[str, list[str]] = {}
    for entry_id, tag in rows:
        tags_by_entry.setdefault(entry_id, []).append(tag)
    result = []
    for e in entries:
        summary = JournalEntrySummary.model_validate(e)
        summary.tags = tags_by_entry.get(e.id, [])
        result.append(summary)
    return result


def _replace_tags(entry_id: str, tags: list[str], session: Session) -> None:
    session.execute(delete(JournalEntryTag).where(col(JournalEntryTag.entry_id) == entry_id))
    for tag in tags:
        session.add(JournalEntryTag(entry_id=entry_id, tag=tag))


def _open_sealed(cipher: ContentCipher, content: str, iv: str, label: str) -> str:
    """Unseal stored content, mapping cipher failures to a 500."""
    try:
        return cipher.unseal(content, iv)
    except MalformedDataError:
        logger.error("%s has malformed packed content (storage corruption?)", label)
        raise HTTPException(status_code=500, detail="Journal entry could not be loaded")
    except IntegrityError:
        logger.error("%s failed ciphertext authentication", label)
        raise HTTPException(status_code=500, detail="Journal entry could not be loaded")


def _get_owned_entry(entry_id: str, user_id: str, session: Session) -> JournalEntry:
    entry = session.exec(
        select(JournalEntry).where(
            JournalEntry.id == entry_id,
            JournalEntry.user_id == user_id,
        )
    ).first()
    if entry is None:
        raise HTTPException(status_code=404, detail="Journal entry not found")
    return entry


@router.get("", response_model=JournalListResponse)
async def list_entries(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    mood: MoodType | None = None,
    tags: list[str] | None = Query(None, description="Match entries carrying any of these tags"),
    start_date: str | None = Query(None, description="ISO datetime lower bound (inclusive)"),
    end_date: str | None = Query(None, description="ISO datetime upper bound (inclusive)"),
    sort_by: Literal["created_at", "updated_at", "word_count"] = "created_at",
    sort_order: Literal["asc", "desc"] = "desc",
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
) -> JournalListResponse:
    conditions = [JournalEntry.user_id == user_id]
    if mood is not None:
        conditions.append(JournalEntry.mood == mood)
    if tags:
        tagged = select(JournalEntryTag.entry_id).where(col(JournalEntryTag.tag).in_(tags))
        conditions.append(col(JournalEntry.id).in_(tagged))
    if start_date is not None:
        conditions.append(JournalEntry.created_at >= _parse_iso(start_date, "start_date"))
    if end_date is not None:
        conditions.append(JournalEntry.created_at <= _parse_iso(end_date, "end_date"))

    total_count = session.exec(
        select(func.count()).select_from(JournalEntry).where(*conditions)
    ).one()

    order_col = _SORT_COLUMNS[sort_by]
    order = order_col.asc() if sort_order == "asc" else order_col.desc()  # type: ignore[union-attr]
    statement = (
        select(JournalEntry)
        .where(*conditions)
        .order_by(order, col(JournalEntry.id))
        .offset((page - 1) * limit)
        .limit(limit)
    )
    entries = list(session.exec(statement).all())

    total_pages = math.ceil(total_count / limit)
    return JournalListResponse(
        entries=_attach_tags(entries, session),
        pagination=Pagination(
            page=page,
            limit=limit,
            total_count=total_count,
            total_pages=total_pages,
            has_next_page=page < total_pages,
            has_prev_page=page > 1,
        ),
    )


@router.post("", response_model=JournalEntrySummary, status_code=201)
async def create_entry(
    body: JournalEntryCreate,
    user_id: str = Depends(get_current_user_id),
    cipher: ContentCipher = Depends(get_content_cipher),
    session: Session = Depends(get_session),
) -> JournalEntrySummary:
    sealed = cipher.seal(body.content)
    entry = JournalEntry(
        user_id=user_id,
        title=body.title,
        content=sealed.packed.content,
        content_iv=sealed.packed.iv,
        mood=body.mood,
        is_private=body.is_private,
        word_count=sealed.metadata.word_count,
        reading_time=sealed.metadata.reading_time,
    )
    session.add(entry)
    for tag in body.tags:
        session.add(JournalEntryTag(entry_id=entry.id, tag=tag))
    record_activity(session, user_id, journal_entries=1)
    session.commit()
    session.refresh(entry)

    logger.info("Created journal entry %s (%d words)", entry.id, entry.word_count)
    return _attach_tags([entry], session)[0]


@router.get("/{entry_id}", response_model=JournalEntryRead)
async def get_entry(
    entry_id: str,
    user_id: str = Depends(get_current_user_id),
    cipher: ContentCipher = Depends(get_content_cipher),
    session: Session = Depends(get_session),
) -> JournalEntryRead:
    entry = _get_owned_entry(entry_id, user_id, session)
    plaintext = _open_sealed(cipher, entry.content, entry.content_iv, f"Journal entry {entry_id}")

    rows = session.exec(
        select(JournalReflection)
        .where(JournalReflection.entry_id == entry.id)
        .order_by(col(JournalReflection.created_at).desc(), col(JournalReflection.id))
        .limit(REFLECTIONS_SHOWN)
    ).all()
    reflections = [
        ReflectionRead(
            id=r.id,
            reflection_type=r.reflection_type,
            content=_open_sealed(
                cipher, r.content, r.content_iv, f"Reflection {r.id} on journal entry {entry_id}"
            ),
            created_at=r.created_at,
        )
        for r in rows
    ]

    entry.last_viewed_at = datetime.now(timezone.utc)
    session.add(entry)
    session.commit()
    session.refresh(entry)

    summary = _attach_tags([entry], session)[0]
    return JournalEntryRead(**summary.model_dump(), content=plaintext, reflections=reflections)


@router.post("/{entry_id}/reflections", response_model=ReflectionRead, status_code=201)
async def add_reflection(
    entry_id: str,
    body: ReflectionCreate,
    user_id: str = Depends(get_current_user_id),
    cipher: ContentCipher = Depends(get_content_cipher),
    session: Session = Depends(get_session),
) -> ReflectionRead:
    """Attach a sealed follow-up note to an owned entry."""
    entry = _get_owned_entry(entry_id, user_id, session)
    packed = cipher.seal(body.content).packed
    reflection = JournalReflection(
        entry_id=entry.id,
        reflection_type=body.reflection_type,
        content=packed.content,
        content_iv=packed.iv,
    )
    session.add(reflection)
    session.commit()
    session.refresh(reflection)

    return ReflectionRead(
        id=reflection.id,
        reflection_type=reflection.reflection_type,
        content=body.content,
        created_at=reflection.created_at,
    )


@router.put("/{entry_id}", response_model=JournalEntrySummary)
async def update_entry(
    entry_id: str,
    body: JournalEntryUpdate,
    user_id: str = Depends(get_current_user_id),
    cipher: ContentCipher = Depends(get_content_cipher),
    session: Session = Depends(get_session),
) -> JournalEntrySummary:
    entry = _get_owned_entry(entry_id, user_id, session)

    update_data = body.model_dump(exclude_unset=True)
    content = update_data.pop("content", None)
    tags = update_data.pop("tags", None)

    for key, value in update_data.items():
        if value is None and key in ("title", "is_private"):
            raise HTTPException(status_code=422, detail=f"{key} cannot be null")
        setattr(entry, key, value)

    if content is not None:
        # New salt, IV and tag on every content change
        sealed = cipher.seal(content)
        entry.content = sealed.packed.content
        entry.content_iv = sealed.packed.iv
        entry.word_count = sealed.metadata.word_count
        entry.reading_time = sealed.metadata.reading_time

    if tags is not None:
        _replace_tags(entry.id, tags, session)

    entry.updated_at = datetime.now(timezone.utc)
    session.add(entry)
    session.commit()
    session.refresh(entry)

    return _attach_tags([entry], session)[0]


@router.delete("/{entry_id}", status_code=204)
async def delete_entry(
    entry_id: str,
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
) -> None:
    entry = _get_owned_entry(entry_id, user_id, session)
    session.execute(delete(JournalEntryTag).where(col(JournalEntryTag.entry_id) == entry.id))
    session.execute(delete(JournalReflection).where(col(JournalReflection.entry_id) == entry.id))
    session.delete(entry)
    session.commit()
