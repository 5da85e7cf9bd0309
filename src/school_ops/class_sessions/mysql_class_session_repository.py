from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import ClassSession
from .repository import ClassSessionRepository

_SELECT = """
    SELECT class_session_id, term_id, section_id, subject_id, teacher_user_id, period_id,
           session_date, opened_at, closed_at
    FROM class_sessions
"""


def _to_session(r: dict) -> ClassSession:
    return ClassSession(
        class_session_id=int(r["class_session_id"]),
        term_id=int(r["term_id"]),
        section_id=int(r["section_id"]),
        subject_id=int(r["subject_id"]),
        teacher_id=int(r["teacher_user_id"]),
        period_id=int(r["period_id"]),
        session_date=r["session_date"],
        opened_at=r.get("opened_at"),
        closed_at=r.get("closed_at"),
    )


class MySQLClassSessionRepository(ClassSessionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, class_session_id: int) -> Optional[ClassSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE class_session_id=%s", (int(class_session_id),))
            r = fetchone(cur)
            return _to_session(r) if r else None

    def get_by_key(
        self, *, section_id: int, subject_id: int, period_id: int, session_date: date
    ) -> Optional[ClassSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"{_SELECT} WHERE section_id=%s AND subject_id=%s AND period_id=%s AND session_date=%s",
                (int(section_id), int(subject_id), int(period_id), session_date),
            )
            r = fetchone(cur)
            return _to_session(r) if r else None

    def create(
        self,
        *,
        term_id: int,
        section_id: int,
        subject_id: int,
        teacher_id: int,
        period_id: int,
        session_date: date,
        opened_at: datetime,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO class_sessions(term_id, section_id, subject_id, teacher_user_id, period_id, session_date, opened_at)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (int(term_id), int(section_id), int(subject_id), int(teacher_id), int(period_id), session_date, opened_at),
            )
            return int(cur.lastrowid)
