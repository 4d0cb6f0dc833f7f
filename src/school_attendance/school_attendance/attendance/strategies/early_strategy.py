from __future__ import annotations

from datetime import datetime

from ...core.enums import ExitStatus
from ...settings.model import LevelSchedule
from .base import AttendanceStrategy, StatusDecision


class EarlyExitStrategy(AttendanceStrategy):
    """Exit before the official exit time (exit side only)."""

    def decide_entry(self, *, at: datetime, schedule: LevelSchedule) -> StatusDecision:
        raise NotImplementedError("EarlyExitStrategy only decides exits")

    def decide_exit(self, *, at: datetime, schedule: LevelSchedule) -> StatusDecision:
        return StatusDecision(status=ExitStatus.SALIDA_ANTICIPADA)
