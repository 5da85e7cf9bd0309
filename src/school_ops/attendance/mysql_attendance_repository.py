from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..core.enums import AttendanceMark, AttendanceSessionStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import AttendanceRecord, AttendanceSession
from .repository import AttendanceRepository

_SELECT_SESSION = """
    SELECT attendance_session_id, term_id, section_id, session_date, created_by_teacher_id,
           status, created_at, submitted_at
    FROM attendance_sessions
"""


def _to_session(r: dict) -> AttendanceSession:
    return AttendanceSession(
        attendance_session_id=int(r["attendance_session_id"]),
        term_id=int(r["term_id"]),
        section_id=int(r["section_id"]),
        session_date=r["session_date"],
        created_by_teacher_id=int(r["created_by_teacher_id"]),
        status=AttendanceSessionStatus(r["status"]),
        created_at=r["created_at"],
        submitted_at=r.get("submitted_at"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, attendance_session_id: int) -> Optional[AttendanceSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT_SESSION} WHERE attendance_session_id=%s", (int(attendance_session_id),))
            r = fetchone(cur)
            return _to_session(r) if r else None

    def get_by_key(self, *, section_id: int, session_date: date) -> Optional[AttendanceSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"{_SELECT_SESSION} WHERE section_id=%s AND session_date=%s",
                (int(section_id), session_date),
            )
            r = fetchone(cur)
            return _to_session(r) if r else None

    def create_session(
        self,
        *,
        term_id: int,
        section_id: int,
        session_date: date,
        created_by_teacher_id: int,
        created_at: datetime,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_sessions(term_id, section_id, session_date, created_by_teacher_id, status, created_at)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(term_id),
                    int(section_id),
                    session_date,
                    int(created_by_teacher_id),
                    AttendanceSessionStatus.DRAFT.value,
                    created_at,
                ),
            )
            return int(cur.lastrowid)

    def mark_submitted(self, *, attendance_session_id: int, submitted_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_sessions
                SET status=%s, submitted_at=%s
                WHERE attendance_session_id=%s AND status=%s
                """,
                (
                    AttendanceSessionStatus.SUBMITTED.value,
                    submitted_at,
                    int(attendance_session_id),
                    AttendanceSessionStatus.DRAFT.value,
                ),
            )
            return cur.rowcount > 0

    def upsert_record(
        self,
        *,
        attendance_session_id: int,
        student_id: int,
        status: AttendanceMark,
        reason: Optional[str] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            # LAST_INSERT_ID(expr) makes lastrowid carry the existing id on update.
            cur.execute(
                """
                INSERT INTO attendance_records(attendance_session_id, student_id, status, reason)
                VALUES(%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    status=VALUES(status),
                    reason=VALUES(reason),
                    attendance_record_id=LAST_INSERT_ID(attendance_record_id)
                """,
                (int(attendance_session_id), int(student_id), status.value, reason),
            )
            return int(cur.lastrowid)

    def list_records(self, attendance_session_id: int) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT attendance_record_id, attendance_session_id, student_id, status, reason
                FROM attendance_records
                WHERE attendance_session_id=%s
                ORDER BY student_id ASC
                """,
                (int(attendance_session_id),),
            )
            return [
                AttendanceRecord(
                    attendance_record_id=int(r["attendance_record_id"]),
                    attendance_session_id=int(r["attendance_session_id"]),
                    student_id=int(r["student_id"]),
                    status=AttendanceMark(r["status"]),
                    reason=r.get("reason"),
                )
                for r in fetchall(cur)
            ]
