"""
Wall-clock helpers.

Timestamps are stored as naive UTC so that SQLite and PostgreSQL round-trip
them identically. Calendar-day questions (streaks) convert to the configured
timezone first.
"""

from __future__ import annotations

from datetime import UTC, date, datetime
from typing import Callable
from zoneinfo import ZoneInfo

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    """Current time as naive UTC."""
    return datetime.now(UTC).replace(tzinfo=None)


def local_date(moment: datetime | None, timezone: str = "UTC") -> date | None:
    """Calendar date of a naive-UTC ``moment`` in ``timezone``."""
    if moment is None:
        return None
    return moment.replace(tzinfo=UTC).astimezone(ZoneInfo(timezone)).date()
