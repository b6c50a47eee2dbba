"""Timezone-aware timestamp helpers.

Usage:
    from src.utils.datetime_utils import utc_now, utc_now_iso

    created_at = Column(DateTime, default=utc_now)
    entry = {"date": utc_now_iso()}
"""

from datetime import date, datetime, timezone


def utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string, used in recipe version history."""
    return utc_now().isoformat()


def today() -> date:
    """Current UTC calendar date (inventory count date)."""
    return utc_now().date()
