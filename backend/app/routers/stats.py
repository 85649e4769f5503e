from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.db import get_session
from app.dependencies import get_current_user_id
from app.models.stats import DailyStatsRead, DailyStatsResponse
from app.services.stats import current_streak, utc_today, week_stats

router = APIRouter(prefix="/api/stats", tags=["stats"])


@router.get("/daily", response_model=DailyStatsResponse)
async def daily_stats(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_session),
) -> DailyStatsResponse:
    """Today's counters, the last seven days and the running streak."""
    today = utc_today()
    rows = week_stats(db, user_id, today)
    today_row = next((r for r in rows if r.date == today), None)

    return DailyStatsResponse(
        today=DailyStatsRead.model_validate(today_row) if today_row else DailyStatsRead(date=today),
        week=[DailyStatsRead.model_validate(r) for r in rows],
        current_streak=current_streak(rows, today),
    )
