from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, Union

from ..core.enums import Direction, EntryStatus, ExitStatus, PersonKind
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import AttendanceRecord, TransitionOutcome
from .repository import AttendanceRepository

_SELECT = """
    SELECT attendance_id, tenant_id, person_kind, person_id, attendance_date,
           entry_time, exit_time, entry_status, exit_status, notified
    FROM attendance_records
"""

_KEY = "tenant_id=%s AND person_kind=%s AND person_id=%s AND attendance_date=%s"

# Column names are fixed per direction, never taken from input.
_COLUMNS = {
    Direction.ENTRY: ("entry_time", "entry_status"),
    Direction.EXIT: ("exit_time", "exit_status"),
}


def _to_record(r: Dict[str, Any]) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        tenant_id=int(r["tenant_id"]),
        person_kind=PersonKind(r["person_kind"]),
        person_id=int(r["person_id"]),
        attendance_date=r["attendance_date"],
        entry_time=r.get("entry_time"),
        exit_time=r.get("exit_time"),
        entry_status=EntryStatus(r["entry_status"]) if r.get("entry_status") else None,
        exit_status=ExitStatus(r["exit_status"]) if r.get("exit_status") else None,
        notified=bool(r.get("notified")),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

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
        key = (tenant_id, person_kind.value, person_id, attendance_date)
        time_col, status_col = _COLUMNS[direction]

        with db_cursor(self._conn_factory) as (_, cur):
            # Lazily create the day row; the unique key makes concurrent inserts collapse into one row.
            cur.execute(
                """
                INSERT INTO attendance_records(tenant_id, person_kind, person_id, attendance_date, notified)
                VALUES(%s,%s,%s,%s,0)
                ON DUPLICATE KEY UPDATE attendance_id = attendance_id
                """,
                key,
            )

            cur.execute(_SELECT + " WHERE " + _KEY + " FOR UPDATE", key)
            current = _to_record(fetchone(cur))

            if current.time_for(direction) is not None:
                return TransitionOutcome(record=current, applied=False)

            cur.execute(
                f"""
                UPDATE attendance_records
                SET {time_col}=%s, {status_col}=%s
                WHERE attendance_id=%s
                """,
                (at, status.value, current.attendance_id),
            )

            cur.execute(_SELECT + " WHERE attendance_id=%s", (current.attendance_id,))
            return TransitionOutcome(record=_to_record(fetchone(cur)), applied=True)

    def mark_notified(self, attendance_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE attendance_records SET notified=1 WHERE attendance_id=%s",
                (int(attendance_id),),
            )
            return cur.rowcount > 0
