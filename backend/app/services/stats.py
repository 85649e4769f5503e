"""Daily activity counters and streaks.

Days are UTC calendar days. A day is active once any counter is non-zero.
Callers commit; these helpers only stage changes on the session.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

from sqlmodel import Session, select

from app.models.stats import DailyStats

WEEK_DAYS = 7


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def is_active(stats: DailyStats) -> bool:
    return stats.affirmations_viewed > 0 or stats.session_minutes > 0 or stats.journal_entries > 0


def _get_day(session: Session, user_id: str, day: date) -> DailyStats | None:
    return session.exec(
        select(DailyStats).where(DailyStats.user_id == user_id, DailyStats.date == day)
    ).first()


def record_activity(
    session: Session,
    user_id: str,
    *,
    affirmations_viewed: int = 0,
    session_minutes: int = 0,
    journal_entries: int = 0,
    today: date | None = None,
) -> DailyStats:
    """Upsert today's row and add to its counters.

    A new row continues yesterday's streak when yesterday was active.
    """
    today = today or utc_today()
    stats = _get_day(session, user_id, today)
    if stats is None:
        yesterday = _get_day(session, user_id, today - timedelta(days=1))
        streak = yesterday.streak_count + 1 if yesterday is not None and is_active(yesterday) else 1
        stats = DailyStats(user_id=user_id, date=today, streak_count=streak)

    stats.affirmations_viewed += affirmations_viewed
    stats.session_minutes += session_minutes
    stats.journal_entries += journal_entries
    session.add(stats)
    return stats


def week_stats(session: Session, user_id: str, today: date | None = None) -> list[DailyStats]:
    """Rows for the last WEEK_DAYS days including today, newest first."""
    today = today or utc_today()
    since = today - timedelta(days=WEEK_DAYS - 1)
    return list(
        session.exec(
            select(DailyStats)
            .where(
                DailyStats.user_id == user_id,
                DailyStats.date >= since,
                DailyStats.date <= today,
            )
            .order_by(DailyStats.date.desc())  # type: ignore[union-attr]
        ).all()
    )


def current_streak(rows: list[DailyStats], today: date) -> int:
    """Consecutive active days ending today, or yesterday if today is still idle."""
    by_day = {r.date: r for r in rows}
    for day in (today, today - timedelta(days=1)):
        stats = by_day.get(day)
        if stats is not None and is_active(stats):
            return stats.streak_count
    return 0
