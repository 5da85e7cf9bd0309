from __future__ import annotations

from datetime import time
from typing import Optional

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone, normalize_mysql_time
from .model import Period, Section, StaffMember, Subject
from .repository import DirectoryRepository


def _to_period(r: dict) -> Period:
    return Period(
        period_id=int(r["period_id"]),
        name=r["name"],
        start_time=normalize_mysql_time(r["start_time"]),
        end_time=normalize_mysql_time(r["end_time"]),
        sort_order=int(r.get("sort_order") or 0),
    )


class MySQLDirectoryRepository(DirectoryRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_section(self, section_id: int) -> Optional[Section]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT section_id, grade_name, name FROM sections WHERE section_id=%s", (int(section_id),))
            r = fetchone(cur)
            if not r:
                return None
            return Section(section_id=int(r["section_id"]), grade_name=r["grade_name"], name=r["name"])

    def get_subject(self, subject_id: int) -> Optional[Subject]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT subject_id, name, code FROM subjects WHERE subject_id=%s", (int(subject_id),))
            r = fetchone(cur)
            if not r:
                return None
            return Subject(subject_id=int(r["subject_id"]), name=r["name"], code=r["code"])

    def get_period(self, period_id: int) -> Optional[Period]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT period_id, name, start_time, end_time, sort_order FROM periods WHERE period_id=%s",
                (int(period_id),),
            )
            r = fetchone(cur)
            return _to_period(r) if r else None

    def get_user(self, user_id: int) -> Optional[StaffMember]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT user_id, full_name, role, is_active FROM users WHERE user_id=%s", (int(user_id),))
            r = fetchone(cur)
            if not r:
                return None
            return StaffMember(
                user_id=int(r["user_id"]),
                full_name=r["full_name"],
                role=Role(r["role"]),
                is_active=bool(r.get("is_active", True)),
            )

    def find_period_covering(self, at: time) -> Optional[Period]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT period_id, name, start_time, end_time, sort_order
                FROM periods
                WHERE start_time <= %s AND end_time >= %s
                ORDER BY sort_order ASC, start_time ASC
                LIMIT 1
                """,
                (at, at),
            )
            r = fetchone(cur)
            return _to_period(r) if r else None
