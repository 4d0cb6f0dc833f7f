from __future__ import annotations

from datetime import datetime

from ...core.enums import EntryStatus, ExitStatus
from ...settings.model import LevelSchedule
from .base import AttendanceStrategy, StatusDecision


class NormalStrategy(AttendanceStrategy):
    """Entry within tolerance, exit at or after the official time."""

    def decide_entry(self, *, at: datetime, schedule: LevelSchedule) -> StatusDecision:
        return StatusDecision(status=EntryStatus.PRESENTE)

    def decide_exit(self, *, at: datetime, schedule: LevelSchedule) -> StatusDecision:
        return StatusDecision(status=ExitStatus.COMPLETO)
