from __future__ import annotations

from typing import Optional

from ..core.constants import DEFAULT_SHIFT
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone, normalize_mysql_time
from .model import LevelSchedule
from .repository import ScheduleSettings


class MySQLScheduleSettings(ScheduleSettings):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_schedule(self, tenant_id: int, level: Optional[str], shift: Optional[str]) -> LevelSchedule:
        level = (level or "").strip().upper()
        shift = (shift or DEFAULT_SHIFT).strip().upper()

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT level, shift, entry_time, exit_time, tolerance_minutes
                FROM schedule_settings
                WHERE tenant_id=%s AND level=%s AND shift=%s
                """,
                (tenant_id, level, shift),
            )
            r = fetchone(cur)

        if not r:
            return LevelSchedule.default(level=level, shift=shift)

        return LevelSchedule(
            level=r["level"],
            shift=r["shift"],
            entry_time=normalize_mysql_time(r["entry_time"]),
            exit_time=normalize_mysql_time(r["exit_time"]),
            tolerance_minutes=int(r.get("tolerance_minutes") or 0),
        )
