from __future__ import annotations

from datetime import datetime

from ...core.enums import EntryStatus
from ...settings.model import LevelSchedule
from .base import AttendanceStrategy, StatusDecision


class LateStrategy(AttendanceStrategy):
    """Entry after the tolerance window (entry side only)."""

    def decide_entry(self, *, at: datetime, schedule: LevelSchedule) -> StatusDecision:
        return StatusDecision(status=EntryStatus.TARDANZA)

    def decide_exit(self, *, at: datetime, schedule: LevelSchedule) -> StatusDecision:
        raise NotImplementedError("LateStrategy only decides entries")
