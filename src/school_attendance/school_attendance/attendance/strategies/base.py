from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Union

from ...core.enums import EntryStatus, ExitStatus
from ...settings.model import LevelSchedule


@dataclass(frozen=True)
class StatusDecision:
    status: Union[EntryStatus, ExitStatus]


class AttendanceStrategy(ABC):
    """Strategy Pattern: encapsulate how we decide an attendance status."""

    @abstractmethod
    def decide_entry(self, *, at: datetime, schedule: LevelSchedule) -> StatusDecision:
        raise NotImplementedError

    @abstractmethod
    def decide_exit(self, *, at: datetime, schedule: LevelSchedule) -> StatusDecision:
        raise NotImplementedError
