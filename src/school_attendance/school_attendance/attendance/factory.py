from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from ..settings.model import LevelSchedule
from .strategies.base import AttendanceStrategy
from .strategies.early_strategy import EarlyExitStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.normal_strategy import NormalStrategy


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: choose appropriate strategy based on rules."""

    def for_entry(self, *, at: datetime, schedule: LevelSchedule) -> AttendanceStrategy:
        # Inclusive boundary: exactly start + tolerance is still on time.
        window_start = datetime.combine(at.date(), schedule.entry_time)
        if at <= window_start + timedelta(minutes=schedule.tolerance_minutes):
            return NormalStrategy()
        return LateStrategy()

    def for_exit(self, *, at: datetime, schedule: LevelSchedule) -> AttendanceStrategy:
        exit_time = datetime.combine(at.date(), schedule.exit_time)
        if at < exit_time:
            return EarlyExitStrategy()
        return NormalStrategy()
