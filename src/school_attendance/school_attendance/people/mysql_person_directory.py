from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from ..core.enums import PersonKind
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Person
from .repository import PersonDirectory

_STUDENT_SELECT = """
    SELECT s.id, s.tenant_id, s.full_name, s.qr_code, s.photo_url, s.status,
           s.classroom_id, c.full_name AS classroom_name, c.level, c.shift,
           g.phone_number AS guardian_phone
    FROM students s
    LEFT JOIN classrooms c ON c.id = s.classroom_id
    LEFT JOIN guardians g ON g.id = s.guardian_id
"""

_TEACHER_SELECT = """
    SELECT t.id, t.tenant_id, t.full_name, t.qr_code, u.photo_url, u.status,
           t.level, t.shift
    FROM teachers t
    LEFT JOIN users u ON u.id = t.user_id
"""

ACTIVE_STATUS = "ACTIVO"


def _student(r: Dict[str, Any]) -> Person:
    return Person(
        id=int(r["id"]),
        tenant_id=int(r["tenant_id"]),
        kind=PersonKind.STUDENT,
        full_name=r["full_name"],
        qr_code=r.get("qr_code"),
        photo_url=r.get("photo_url"),
        classroom_id=int(r["classroom_id"]) if r.get("classroom_id") is not None else None,
        classroom_name=r.get("classroom_name"),
        level=r.get("level"),
        shift=r.get("shift"),
        guardian_phone=r.get("guardian_phone"),
        is_active=(r.get("status") or ACTIVE_STATUS) == ACTIVE_STATUS,
    )


def _teacher(r: Dict[str, Any]) -> Person:
    return Person(
        id=int(r["id"]),
        tenant_id=int(r["tenant_id"]),
        kind=PersonKind.TEACHER,
        full_name=r["full_name"],
        qr_code=r.get("qr_code"),
        photo_url=r.get("photo_url"),
        level=r.get("level"),
        shift=r.get("shift"),
        is_active=r.get("status") == ACTIVE_STATUS,
    )


class MySQLPersonDirectory(PersonDirectory):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_qr_code(self, tenant_id: int, qr_code: str) -> Optional[Person]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_STUDENT_SELECT + " WHERE s.tenant_id=%s AND s.qr_code=%s LIMIT 1", (tenant_id, qr_code))
            r = fetchone(cur)
            if r:
                return _student(r)

            cur.execute(_TEACHER_SELECT + " WHERE t.tenant_id=%s AND t.qr_code=%s LIMIT 1", (tenant_id, qr_code))
            r = fetchone(cur)
            return _teacher(r) if r else None

    def get(self, tenant_id: int, kind: PersonKind, person_id: int) -> Optional[Person]:
        with db_cursor(self._conn_factory) as (_, cur):
            if kind is PersonKind.STUDENT:
                cur.execute(_STUDENT_SELECT + " WHERE s.tenant_id=%s AND s.id=%s", (tenant_id, int(person_id)))
                r = fetchone(cur)
                return _student(r) if r else None

            cur.execute(_TEACHER_SELECT + " WHERE t.tenant_id=%s AND t.id=%s", (tenant_id, int(person_id)))
            r = fetchone(cur)
            return _teacher(r) if r else None

    def list_enrollment_candidates(self, tenant_id: int, kind: PersonKind) -> Sequence[Person]:
        with db_cursor(self._conn_factory) as (_, cur):
            if kind is PersonKind.STUDENT:
                cur.execute(
                    _STUDENT_SELECT
                    + """
                    WHERE s.tenant_id=%s
                      AND s.photo_url IS NOT NULL AND s.photo_url <> ''
                      AND s.status=%s
                    ORDER BY s.id
                    """,
                    (tenant_id, ACTIVE_STATUS),
                )
                return [_student(r) for r in fetchall(cur)]

            cur.execute(
                _TEACHER_SELECT
                + """
                WHERE t.tenant_id=%s
                  AND u.status=%s
                  AND u.photo_url IS NOT NULL AND u.photo_url <> ''
                ORDER BY t.id
                """,
                (tenant_id, ACTIVE_STATUS),
            )
            return [_teacher(r) for r in fetchall(cur)]
