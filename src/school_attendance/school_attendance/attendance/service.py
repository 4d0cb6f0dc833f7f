from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import format_hour, now_local
from ..core.enums import Direction, EntryStatus, ExitStatus, PersonKind
from ..core.exceptions import AlreadyRegisteredError, NotFoundError
from ..notifications.dispatcher import NotificationDispatcher
from ..notifications.model import AttendanceEvent, guardian_recipient
from ..people.model import Person
from ..settings.repository import ScheduleSettings
from .factory import AttendanceStrategyFactory
from .model import AttendanceRecord, RegistrationResult
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

NOT_NOTIFIED_SUFFIX = " (registrado, sin notificar)"


class AttendanceService:
    """Per-(person, date) state machine: NEW -> ENTRY_RECORDED -> EXIT_RECORDED.

    Each direction can be set once per day. An EXIT without a prior ENTRY is
    accepted and leaves ``entry_time`` empty; operators sometimes scan only
    once. Registration never depends on the notification outcome.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        settings: ScheduleSettings,
        notifications: NotificationDispatcher,
        *,
        strategy_factory: AttendanceStrategyFactory | None = None,
    ):
        self._attendance = attendance
        self._settings = settings
        self._notifications = notifications
        self._factory = strategy_factory or AttendanceStrategyFactory()

    def register(
        self,
        tenant_id: int,
        person: Person,
        direction: Direction,
        *,
        at: datetime | None = None,
    ) -> RegistrationResult:
        at = at or now_local()

        if person.tenant_id != tenant_id:
            # Lookups are tenant-scoped, so a foreign person is simply unknown here.
            raise NotFoundError("Persona no encontrada")

        schedule = self._settings.get_schedule(tenant_id, person.level, person.shift)
        if direction is Direction.ENTRY:
            decision = self._factory.for_entry(at=at, schedule=schedule).decide_entry(at=at, schedule=schedule)
        else:
            decision = self._factory.for_exit(at=at, schedule=schedule).decide_exit(at=at, schedule=schedule)

        outcome = self._attendance.apply_transition(
            tenant_id=tenant_id,
            person_kind=person.kind,
            person_id=person.id,
            attendance_date=at.date(),
            direction=direction,
            at=at,
            status=decision.status,
        )

        if not outcome.applied:
            raise AlreadyRegisteredError(self._already_registered_message(person, outcome.record, direction))

        record = outcome.record
        if direction is Direction.EXIT and record.entry_time is None:
            logger.info("Exit registered without prior entry for %s on %s", person.external_id, record.attendance_date)

        notified = self._notify(tenant_id, person, record, direction)
        if notified:
            record = replace(record, notified=True)

        logger.info(
            "Attendance %s registered for %s: %s",
            direction.value,
            person.external_id,
            decision.status.value,
        )

        message = self._message(person, decision.status, at)
        if not notified and person.kind is PersonKind.STUDENT:
            message += NOT_NOTIFIED_SUFFIX

        return RegistrationResult(
            person=person,
            record=record,
            direction=direction,
            notified=notified,
            message=message,
        )

    def _notify(self, tenant_id: int, person: Person, record: AttendanceRecord, direction: Direction) -> bool:
        recipient = guardian_recipient(person)
        if not recipient:
            return False

        event = AttendanceEvent(
            tenant_id=tenant_id,
            recipient=recipient,
            direction=direction,
            person=person,
            record=record,
        )
        try:
            if not self._notifications.dispatch(event):
                return False
            self._attendance.mark_notified(record.attendance_id)
            return True
        except Exception as e:
            # The row is already committed; a notification problem must not undo the scan.
            logger.warning("Notification scheduling failed for attendance %s: %s", record.attendance_id, e)
            return False

    @staticmethod
    def _already_registered_message(person: Person, record: AttendanceRecord, direction: Direction) -> str:
        stored: Optional[datetime] = record.time_for(direction)
        what = "la entrada" if direction is Direction.ENTRY else "la salida"
        when = f" a las {stored.strftime('%H:%M')}" if stored else ""
        return f"Ya se registró {what} de {person.full_name}{when}"

    @staticmethod
    def _message(person: Person, status, at: datetime) -> str:
        prefix = f"{person.kind.label}: {person.full_name}"
        hour = format_hour(at)
        return {
            EntryStatus.PRESENTE: f"{prefix} - Entrada registrada a las {hour}",
            EntryStatus.TARDANZA: f"{prefix} - Tardanza registrada a las {hour}",
            ExitStatus.COMPLETO: f"{prefix} - Salida registrada a las {hour}",
            ExitStatus.SALIDA_ANTICIPADA: f"{prefix} - Salida anticipada a las {hour}",
        }.get(status, f"{prefix} - Asistencia registrada")
