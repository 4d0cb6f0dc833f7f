from __future__ import annotations

import re
from datetime import date, datetime

import mysql.connector
import pytest

from src.school_attendance.school_attendance.attendance.mysql_attendance_repository import MySQLAttendanceRepository
from src.school_attendance.school_attendance.biometric.mysql_embedding_repository import MySQLFaceEmbeddingRepository
from src.school_attendance.school_attendance.core.enums import (
    Direction,
    EmbeddingStatus,
    EntryStatus,
    ExitStatus,
    PersonKind,
)
from src.school_attendance.school_attendance.core.exceptions import InfrastructureError

DAY = date(2026, 3, 2)
AT = datetime(2026, 3, 2, 8, 1, 0)


class ScriptedCursor:
    """Records every statement and replays queued fetch results in order."""

    def __init__(self, rows=(), error_on=None):
        self.executed: list[tuple[str, tuple]] = []
        self._rows = list(rows)
        self._error_on = error_on
        self.rowcount = 1
        self.closed = False

    def execute(self, sql, params=()):
        sql = " ".join(sql.split())
        self.executed.append((sql, tuple(params)))
        if self._error_on and self._error_on in sql:
            raise mysql.connector.Error("Deadlock found when trying to get lock")

    def fetchone(self):
        return self._rows.pop(0) if self._rows else None

    def fetchall(self):
        rows = self._rows.pop(0) if self._rows else []
        return rows

    def close(self):
        self.closed = True

    def statements(self) -> list[str]:
        return [sql for sql, _ in self.executed]


class ScriptedConnection:
    def __init__(self, cursor: ScriptedCursor):
        self.cursor_obj = cursor
        self.committed = False
        self.rolled_back = False
        self.closed = False

    def cursor(self, dictionary=True):
        return self.cursor_obj

    def commit(self):
        self.committed = True

    def rollback(self):
        self.rolled_back = True

    def close(self):
        self.closed = True


class ScriptedFactory:
    def __init__(self, *connections: ScriptedConnection):
        self._connections = list(connections)
        self.opened = 0

    def connect(self):
        self.opened += 1
        return self._connections.pop(0)


def _attendance_row(**overrides):
    row = {
        "attendance_id": 40,
        "tenant_id": 1,
        "person_kind": "student",
        "person_id": 12,
        "attendance_date": DAY,
        "entry_time": None,
        "exit_time": None,
        "entry_status": None,
        "exit_status": None,
        "notified": 0,
    }
    row.update(overrides)
    return row


def _embedding_row(**overrides):
    row = {
        "id": 9,
        "tenant_id": 1,
        "embeddable_kind": "student",
        "embeddable_id": 12,
        "external_id": "student_12",
        "status": "PENDING",
        "source_image_url": "students/12.jpg",
        "error_message": None,
        "enrolled_at": None,
        "updated_at": datetime(2026, 3, 1, 7, 0),
    }
    row.update(overrides)
    return row


def _repo(repo_cls, cursor):
    conn = ScriptedConnection(cursor)
    return repo_cls(ScriptedFactory(conn)), conn


def test_first_entry_inserts_locks_and_updates_in_one_transaction():
    cur = ScriptedCursor(rows=[_attendance_row(), _attendance_row(entry_time=AT, entry_status="PRESENTE")])
    repo, conn = _repo(MySQLAttendanceRepository, cur)

    outcome = repo.apply_transition(
        tenant_id=1,
        person_kind=PersonKind.STUDENT,
        person_id=12,
        attendance_date=DAY,
        direction=Direction.ENTRY,
        at=AT,
        status=EntryStatus.PRESENTE,
    )

    assert outcome.applied is True
    assert outcome.record.entry_time == AT
    assert outcome.record.entry_status is EntryStatus.PRESENTE

    insert, locking_select, update, reread = cur.executed
    assert insert[0].startswith("INSERT INTO attendance_records")
    assert "ON DUPLICATE KEY UPDATE" in insert[0]
    assert insert[1] == (1, "student", 12, DAY)
    assert locking_select[0].endswith("FOR UPDATE")
    assert locking_select[1] == (1, "student", 12, DAY)
    assert update[0].startswith("UPDATE attendance_records SET entry_time=%s, entry_status=%s")
    assert update[1] == (AT, "PRESENTE", 40)
    assert reread[1] == (40,)

    assert conn.committed and not conn.rolled_back and conn.closed


def test_exit_writes_only_exit_columns():
    stored_entry = datetime(2026, 3, 2, 7, 58)
    cur = ScriptedCursor(
        rows=[
            _attendance_row(entry_time=stored_entry, entry_status="PRESENTE"),
            _attendance_row(
                entry_time=stored_entry,
                entry_status="PRESENTE",
                exit_time=datetime(2026, 3, 2, 13, 5),
                exit_status="COMPLETO",
            ),
        ]
    )
    repo, _ = _repo(MySQLAttendanceRepository, cur)

    outcome = repo.apply_transition(
        tenant_id=1,
        person_kind=PersonKind.STUDENT,
        person_id=12,
        attendance_date=DAY,
        direction=Direction.EXIT,
        at=datetime(2026, 3, 2, 13, 5),
        status=ExitStatus.COMPLETO,
    )

    assert outcome.applied is True
    update_sql = cur.statements()[2]
    assert "SET exit_time=%s, exit_status=%s" in update_sql
    assert "entry_" not in update_sql.split("WHERE")[0]


def test_direction_already_set_is_not_applied_and_issues_no_update():
    first = datetime(2026, 3, 2, 7, 50)
    cur = ScriptedCursor(rows=[_attendance_row(entry_time=first, entry_status="PRESENTE")])
    repo, conn = _repo(MySQLAttendanceRepository, cur)

    outcome = repo.apply_transition(
        tenant_id=1,
        person_kind=PersonKind.STUDENT,
        person_id=12,
        attendance_date=DAY,
        direction=Direction.ENTRY,
        at=AT,
        status=EntryStatus.TARDANZA,
    )

    assert outcome.applied is False
    assert outcome.record.entry_time == first
    assert outcome.record.entry_status is EntryStatus.PRESENTE
    assert len(cur.executed) == 2
    assert not any(sql.startswith("UPDATE") for sql in cur.statements())
    # the row lock is released by the commit
    assert conn.committed


def test_driver_error_during_transition_rolls_back():
    cur = ScriptedCursor(rows=[_attendance_row()], error_on="UPDATE attendance_records")
    repo, conn = _repo(MySQLAttendanceRepository, cur)

    with pytest.raises(InfrastructureError):
        repo.apply_transition(
            tenant_id=1,
            person_kind=PersonKind.STUDENT,
            person_id=12,
            attendance_date=DAY,
            direction=Direction.ENTRY,
            at=AT,
            status=EntryStatus.PRESENTE,
        )

    assert conn.rolled_back and not conn.committed and conn.closed


def test_mark_notified_reports_whether_a_row_changed():
    cur = ScriptedCursor()
    repo, _ = _repo(MySQLAttendanceRepository, cur)

    assert repo.mark_notified(40) is True
    assert cur.executed == [("UPDATE attendance_records SET notified=1 WHERE attendance_id=%s", (40,))]


def test_upsert_pending_is_keyed_on_the_person():
    cur = ScriptedCursor(rows=[_embedding_row()])
    repo, conn = _repo(MySQLFaceEmbeddingRepository, cur)

    embedding = repo.upsert_pending(
        tenant_id=1,
        embeddable_kind=PersonKind.STUDENT,
        embeddable_id=12,
        external_id="student_12",
        source_image_url="students/12.jpg",
    )

    assert embedding.status is EmbeddingStatus.PENDING
    assert embedding.embeddable_kind is PersonKind.STUDENT

    insert_sql, insert_params = cur.executed[0]
    assert insert_sql.startswith("INSERT INTO face_embeddings")
    assert "ON DUPLICATE KEY UPDATE" in insert_sql
    assert "status=VALUES(status)" in insert_sql
    assert "error_message=NULL" in insert_sql
    assert insert_params == (1, "student", 12, "student_12", "PENDING", "students/12.jpg")
    assert cur.executed[1][1] == (1, "student", 12)
    assert conn.committed


def test_list_needing_retry_filters_failed_rows_by_age():
    cutoff = datetime(2026, 3, 1, 7, 55)
    cur = ScriptedCursor(rows=[[_embedding_row(status="FAILED"), _embedding_row(id=10, embeddable_id=13, status="NO_FACE")]])
    repo, _ = _repo(MySQLFaceEmbeddingRepository, cur)

    rows = repo.list_needing_retry(tenant_id=1, updated_before=cutoff)

    assert [r.status for r in rows] == [EmbeddingStatus.FAILED, EmbeddingStatus.NO_FACE]
    sql, params = cur.executed[0]
    assert re.search(r"WHERE tenant_id=%s AND status IN \(%s, %s\) AND updated_at < %s", sql)
    assert params == (1, "FAILED", "NO_FACE", cutoff)


def test_mark_active_sets_enrolled_at_and_clears_error():
    enrolled_at = datetime(2026, 3, 2, 7, 55)
    cur = ScriptedCursor(rows=[_embedding_row(status="ACTIVE", enrolled_at=enrolled_at)])
    repo, _ = _repo(MySQLFaceEmbeddingRepository, cur)

    embedding = repo.mark_active(9, enrolled_at=enrolled_at)

    assert embedding.is_active
    sql, params = cur.executed[0]
    assert sql.startswith("UPDATE face_embeddings SET status=%s, enrolled_at=%s, error_message=NULL")
    assert "updated_at=CURRENT_TIMESTAMP" in sql
    assert params == ("ACTIVE", enrolled_at, 9)


def test_get_for_person_returns_none_when_missing():
    repo, _ = _repo(MySQLFaceEmbeddingRepository, ScriptedCursor())

    assert repo.get_for_person(tenant_id=1, embeddable_kind=PersonKind.TEACHER, embeddable_id=7) is None
