from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import Direction, EntryStatus, ExitStatus, PersonKind
from ..people.model import Person


@dataclass(frozen=True)
class AttendanceRecord:
    """Thực thể miền (domain): một dòng chấm công mỗi người mỗi ngày."""

    attendance_id: int
    tenant_id: int
    person_kind: PersonKind
    person_id: int
    attendance_date: date
    entry_time: Optional[datetime] = None
    exit_time: Optional[datetime] = None
    entry_status: Optional[EntryStatus] = None
    exit_status: Optional[ExitStatus] = None
    notified: bool = False

    def time_for(self, direction: Direction) -> Optional[datetime]:
        return self.entry_time if direction is Direction.ENTRY else self.exit_time

    def to_dict(self) -> dict:
        return {
            "id": self.attendance_id,
            "date": self.attendance_date.strftime("%Y-%m-%d"),
            "entry_time": self.entry_time.strftime("%H:%M:%S") if self.entry_time else None,
            "exit_time": self.exit_time.strftime("%H:%M:%S") if self.exit_time else None,
            "entry_status": self.entry_status.value if self.entry_status else None,
            "exit_status": self.exit_status.value if self.exit_status else None,
            "notified": self.notified,
        }


@dataclass(frozen=True)
class TransitionOutcome:
    """Result of the atomic claim on one direction of a day row.

    ``applied`` is False when the direction was already set; ``record`` then
    carries the stored (first) timestamp.
    """

    record: AttendanceRecord
    applied: bool


@dataclass(frozen=True)
class RegistrationResult:
    person: Person
    record: AttendanceRecord
    direction: Direction
    notified: bool
    message: str

    def to_dict(self) -> dict:
        return {
            "success": True,
            "message": self.message,
            "notified": self.notified,
            "person": self.person.to_dict(),
            "attendance": self.record.to_dict(),
        }
