from __future__ import annotations

from app.models.user import RefreshToken, User  # noqa: F401
from app.models.journal import JournalEntry, JournalEntryTag, JournalReflection  # noqa: F401
from app.models.profile import Profile  # noqa: F401
from app.models.affirmation import Affirmation  # noqa: F401
from app.models.focus import FocusSession  # noqa: F401
from app.models.stats import DailyStats  # noqa: F401
