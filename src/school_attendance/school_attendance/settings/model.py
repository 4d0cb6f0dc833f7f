from __future__ import annotations

from dataclasses import dataclass
from datetime import time

from ..core.constants import DEFAULT_ENTRY_TIME, DEFAULT_EXIT_TIME, DEFAULT_SHIFT, DEFAULT_TOLERANCE_MINUTES


@dataclass(frozen=True)
class LevelSchedule:
    """Entry window for one (level, shift) of a tenant."""

    level: str
    shift: str
    entry_time: time
    exit_time: time
    tolerance_minutes: int = DEFAULT_TOLERANCE_MINUTES

    @classmethod
    def default(cls, level: str = "", shift: str = DEFAULT_SHIFT) -> "LevelSchedule":
        return cls(
            level=level,
            shift=shift,
            entry_time=DEFAULT_ENTRY_TIME,
            exit_time=DEFAULT_EXIT_TIME,
            tolerance_minutes=DEFAULT_TOLERANCE_MINUTES,
        )
