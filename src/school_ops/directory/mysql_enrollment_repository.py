from __future__ import annotations

from typing import Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .model import RosterStudent
from .repository import EnrollmentRepository


class MySQLEnrollmentRepository(EnrollmentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def active_roster_for(self, *, section_id: int, term_id: int) -> Sequence[RosterStudent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT s.student_id, s.full_name, e.roll_no
                FROM enrollments e
                JOIN students s ON s.student_id = e.student_id
                WHERE e.section_id=%s AND e.term_id=%s AND e.status='active'
                ORDER BY e.roll_no IS NULL, e.roll_no ASC, s.student_id ASC
                """,
                (int(section_id), int(term_id)),
            )
            return [
                RosterStudent(
                    student_id=int(r["student_id"]),
                    full_name=r["full_name"],
                    roll_no=int(r["roll_no"]) if r.get("roll_no") is not None else None,
                )
                for r in fetchall(cur)
            ]
