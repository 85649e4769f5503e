"""Daily affirmation selection.

Affirmations come from a fixed template library. A user's daily set is the
templates matching their preferred tone, narrowed to general ones plus those
tied to their health conditions or goals, shuffled and capped.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass

from sqlmodel import Session, col, select

from app.models.affirmation import Affirmation

logger = logging.getLogger(__name__)

DAILY_COUNT = 12
MIN_RELEVANT = 8
NAME_PLACEHOLDER = "{name}"
DEFAULT_NAME = "friend"


@dataclass(frozen=True, slots=True)
class AffirmationTemplate:
    text: str
    category: str
    tone: str
    health_condition: str | None = None


AFFIRMATION_TEMPLATES: tuple[AffirmationTemplate, ...] = (
    # general
    AffirmationTemplate("You are capable of amazing things, {name}!", "general", "encouraging"),
    AffirmationTemplate("Your potential is limitless and your spirit is strong.", "general", "encouraging"),
    AffirmationTemplate("You have the power to create positive change in your life.", "general", "encouraging"),
    # self-compassion
    AffirmationTemplate("Be gentle with yourself today, {name}. You're doing your best.", "self-compassion", "gentle"),
    AffirmationTemplate("You deserve the same kindness you show others.", "self-compassion", "gentle"),
    AffirmationTemplate("Your feelings are valid, and you deserve compassion.", "self-compassion", "gentle"),
    # anxiety
    AffirmationTemplate(
        "You've survived anxious moments before, and you'll get through this one too, {name}.",
        "anxiety", "gentle", "anxiety",
    ),
    AffirmationTemplate(
        "Your anxiety doesn't control you - you have tools and strength.",
        "anxiety", "encouraging", "anxiety",
    ),
    AffirmationTemplate(
        "Taking deep breaths is always available to you as a reset button.",
        "anxiety", "gentle", "anxiety",
    ),
    # pcos
    AffirmationTemplate(
        "Your body is doing its best, and you're learning to work with it lovingly.",
        "pcos", "gentle", "pcos",
    ),
    AffirmationTemplate(
        "PCOS doesn't define you - your strength and resilience do, {name}.",
        "pcos", "encouraging", "pcos",
    ),
    AffirmationTemplate(
        "You're taking control of your health one informed choice at a time.",
        "pcos", "motivational", "pcos",
    ),
    # adhd
    AffirmationTemplate(
        "Your brain works differently, and that's your superpower, {name}.",
        "adhd", "encouraging", "adhd",
    ),
    AffirmationTemplate("Progress over perfection, always. Small steps count.", "adhd", "gentle", "adhd"),
    AffirmationTemplate(
        "You celebrate completing tasks, no matter how small they seem.",
        "adhd", "encouraging", "adhd",
    ),
    # depression
    AffirmationTemplate(
        "Getting through today is an accomplishment worth celebrating, {name}.",
        "depression", "gentle", "depression",
    ),
    AffirmationTemplate(
        "Your feelings are temporary, even when they feel overwhelming.",
        "depression", "gentle", "depression",
    ),
    AffirmationTemplate(
        "You matter, and the world is better with you in it.",
        "depression", "encouraging", "depression",
    ),
    # ocd
    AffirmationTemplate(
        "Your thoughts don't define you - your actions and values do, {name}.",
        "ocd", "encouraging", "ocd",
    ),
    AffirmationTemplate(
        "You're learning to observe your thoughts without judgment.",
        "ocd", "gentle", "ocd",
    ),
    AffirmationTemplate(
        "Recovery is a journey, and you're making progress every day.",
        "ocd", "encouraging", "ocd",
    ),
    # pms
    AffirmationTemplate(
        "Your body is going through natural changes, and you're handling it with grace.",
        "pms", "gentle", "pms",
    ),
    AffirmationTemplate(
        "It's okay to honor what your body needs during this time, {name}.",
        "pms", "gentle", "pms",
    ),
    AffirmationTemplate(
        "You know your body best and deserve to care for yourself accordingly.",
        "pms", "encouraging", "pms",
    ),
    # productivity
    AffirmationTemplate("Champions like you, {name}, are made in the daily grind!", "productivity", "motivational"),
    AffirmationTemplate("Every expert was once a beginner who refused to give up.", "productivity", "motivational"),
    AffirmationTemplate("Your consistent effort is turning your vision into reality.", "productivity", "motivational"),
    # focus
    AffirmationTemplate(
        "Your ability to focus is a skill that grows stronger with practice.",
        "focus", "encouraging",
    ),
    AffirmationTemplate("One task at a time, one breath at a time, {name}.", "focus", "gentle"),
    AffirmationTemplate(
        "You have the power to direct your attention where it serves you best.",
        "focus", "motivational",
    ),
)


def goal_category(goal: str) -> str:
    """Map a profile goal id onto the template category that serves it."""
    if "focus" in goal or "productivity" in goal:
        return "focus"
    if "self-compassion" in goal:
        return "self-compassion"
    if "stress" in goal:
        # stress management shares the anxiety templates
        return "anxiety"
    return goal


def select_templates(
    goals: list[str],
    health_conditions: list[str],
    tone: str,
    templates: tuple[AffirmationTemplate, ...] = AFFIRMATION_TEMPLATES,
) -> list[AffirmationTemplate]:
    """Templates relevant to a profile, before shuffling."""
    categories = {goal_category(g) for g in goals}
    conditions = set(health_conditions)

    relevant = [
        t for t in templates
        if t.tone == tone
        and (
            t.category == "general"
            or (t.health_condition is not None and t.health_condition in conditions)
            or t.category in categories
        )
    ]
    if len(relevant) < MIN_RELEVANT:
        relevant.extend(
            t for t in templates
            if t.category == "general" and t.tone == tone and t not in relevant
        )
    return relevant


def generate_daily_affirmations(
    goals: list[str],
    health_conditions: list[str],
    tone: str,
    user_name: str | None,
    rng: random.Random | None = None,
) -> list[str]:
    """Pick up to DAILY_COUNT affirmations for a profile, name filled in."""
    selected = select_templates(goals, health_conditions, tone)
    (rng or random).shuffle(selected)
    name = user_name or DEFAULT_NAME
    return [t.text.replace(NAME_PLACEHOLDER, name) for t in selected[:DAILY_COUNT]]


def seed_affirmations(session: Session) -> int:
    """Insert library templates missing from the affirmations table.

    Safe to call on every startup. Returns the number of rows added.
    """
    existing = set(
        session.exec(
            select(Affirmation.text).where(col(Affirmation.user_id).is_(None))
        ).all()
    )
    added = 0
    for t in AFFIRMATION_TEMPLATES:
        if t.text in existing:
            continue
        session.add(Affirmation(
            text=t.text,
            category=t.category,
            tone=t.tone,
            health_condition=t.health_condition,
            is_custom=False,
        ))
        added += 1
    if added:
        session.commit()
        logger.info("Seeded %d affirmation templates", added)
    return added
