"""Profile router: wellness goals and affirmation preferences."""

from __future__ import annotations

import json
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from app.db import get_session
from app.dependencies import get_current_user_id
from app.models.profile import Profile, ProfileRead, ProfileUpsert

router = APIRouter(prefix="/api/profile", tags=["profile"])


def get_profile(user_id: str, db: Session) -> Profile | None:
    return db.exec(select(Profile).where(Profile.user_id == user_id)).first()


@router.get("", response_model=ProfileRead)
async def read_profile(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_session),
) -> ProfileRead:
    profile = get_profile(user_id, db)
    if profile is None:
        raise HTTPException(status_code=404, detail="Profile not found")
    return ProfileRead.model_validate(profile)


@router.put("", response_model=ProfileRead)
async def upsert_profile(
    body: ProfileUpsert,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_session),
) -> ProfileRead:
    """Create the profile on first save, replace it afterwards."""
    profile = get_profile(user_id, db)
    if profile is None:
        profile = Profile(user_id=user_id)

    profile.goals = json.dumps(body.goals)
    profile.health_conditions = json.dumps(body.health_conditions)
    profile.tone = body.tone
    profile.notification_times = json.dumps(body.notification_times)
    profile.focus_session_length = body.focus_session_length
    profile.updated_at = datetime.now(timezone.utc)

    db.add(profile)
    db.commit()
    db.refresh(profile)
    return ProfileRead.model_validate(profile)
