from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.db import get_session
from app.dependencies import get_current_user_id
from app.models.focus import FocusSession, FocusSessionCreate, FocusSessionRead
from app.services.stats import record_activity

router = APIRouter(prefix="/api/focus-session", tags=["focus"])


@router.post("", response_model=FocusSessionRead, status_code=201)
async def create_focus_session(
    body: FocusSessionCreate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_session),
) -> FocusSession:
    """Record a finished focus session and add its minutes to today's stats."""
    focus = FocusSession(
        user_id=user_id,
        duration=body.duration,
        type=body.type,
        ambient_sound=body.ambient_sound or None,
    )
    db.add(focus)
    record_activity(db, user_id, session_minutes=body.duration)
    db.commit()
    db.refresh(focus)
    return focus
