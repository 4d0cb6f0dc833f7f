from __future__ import annotations

from datetime import date, datetime
from typing import Protocol, Union

from ..core.enums import Direction, EntryStatus, ExitStatus, PersonKind
from .model import AttendanceRecord, TransitionOutcome


class AttendanceRepository(Protocol):
    def apply_transition(
        self,
        *,
        tenant_id: int,
        person_kind: PersonKind,
        person_id: int,
        attendance_date: date,
        direction: Direction,
        at: datetime,
        status: Union[EntryStatus, ExitStatus],
    ) -> TransitionOutcome:
        """Set the direction's time/status only if still unset, atomically.

        Implementations must create the day row under the uniqueness
        constraint on (tenant_id, person_kind, person_id, attendance_date) and
        lock it before checking, so concurrent scanners cannot both succeed.
        """

        raise NotImplementedError

    def mark_notified(self, attendance_id: int) -> bool:
        raise NotImplementedError
