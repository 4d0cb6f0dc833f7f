from __future__ import annotations

from datetime import datetime


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def format_hour(value: datetime) -> str:
    """12-hour clock used in operator messages (07:55 AM)."""
    return value.strftime("%I:%M %p")
