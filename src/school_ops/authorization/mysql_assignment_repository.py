from __future__ import annotations

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .repository import AssignmentRepository


class MySQLAssignmentRepository(AssignmentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def has_section_assignment(self, *, teacher_id: int, section_id: int, term_id: int) -> bool:
        # Either an explicit teaching assignment or a timetable slot links teacher and section.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT (
                    EXISTS(
                        SELECT 1 FROM teacher_assignments
                        WHERE teacher_user_id=%s AND section_id=%s AND term_id=%s
                    )
                    OR EXISTS(
                        SELECT 1 FROM timetable_entries
                        WHERE teacher_user_id=%s AND section_id=%s AND term_id=%s
                    )
                ) AS assigned
                """,
                (int(teacher_id), int(section_id), int(term_id), int(teacher_id), int(section_id), int(term_id)),
            )
            r = fetchone(cur)
            return bool(r and r["assigned"])
