from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, col, select

from app.db import get_session
from app.dependencies import get_current_user_id
from app.models.affirmation import (
    Affirmation,
    AffirmationRead,
    CustomAffirmationCreate,
    DailyAffirmationsResponse,
)
from app.models.profile import ProfileRead
from app.models.user import User
from app.routers.profile import get_profile
from app.services.affirmations import generate_daily_affirmations
from app.services.stats import record_activity

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/affirmations", tags=["affirmations"])


@router.get("/daily", response_model=DailyAffirmationsResponse)
async def daily_affirmations(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_session),
) -> DailyAffirmationsResponse:
    """Today's affirmations for the caller's profile. Counts as a view."""
    profile = get_profile(user_id, db)
    if profile is None:
        raise HTTPException(status_code=404, detail="Profile not found")
    prefs = ProfileRead.model_validate(profile)
    user = db.get(User, user_id)

    affirmations = generate_daily_affirmations(
        goals=prefs.goals,
        health_conditions=prefs.health_conditions,
        tone=prefs.tone,
        user_name=user.name if user is not None else None,
    )

    record_activity(db, user_id, affirmations_viewed=1)
    db.commit()
    return DailyAffirmationsResponse(affirmations=affirmations)


@router.post("/custom", response_model=AffirmationRead, status_code=201)
async def create_custom_affirmation(
    body: CustomAffirmationCreate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_session),
) -> Affirmation:
    affirmation = Affirmation(
        user_id=user_id,
        text=body.text,
        category=body.category,
        is_custom=True,
    )
    db.add(affirmation)
    db.commit()
    db.refresh(affirmation)
    logger.info("Saved custom affirmation %s", affirmation.id)
    return affirmation


@router.get("/custom", response_model=list[AffirmationRead])
async def list_custom_affirmations(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_session),
) -> list[Affirmation]:
    return list(
        db.exec(
            select(Affirmation)
            .where(Affirmation.user_id == user_id, col(Affirmation.is_custom).is_(True))
            .order_by(col(Affirmation.created_at).desc(), col(Affirmation.id))
        ).all()
    )
