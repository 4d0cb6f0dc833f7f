from __future__ import annotations

from typing import Optional, Protocol

from .model import LevelSchedule


class ScheduleSettings(Protocol):
    def get_schedule(self, tenant_id: int, level: Optional[str], shift: Optional[str]) -> LevelSchedule:
        """Return the configured window, falling back to the defaults when unset."""

        raise NotImplementedError
