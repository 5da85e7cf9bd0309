from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceMark
from .model import AttendanceRecord, AttendanceSession


class AttendanceRepository(Protocol):
    def get_by_id(self, attendance_session_id: int) -> Optional[AttendanceSession]:
        raise NotImplementedError

    def get_by_key(self, *, section_id: int, session_date: date) -> Optional[AttendanceSession]:
        raise NotImplementedError

    def create_session(
        self,
        *,
        term_id: int,
        section_id: int,
        session_date: date,
        created_by_teacher_id: int,
        created_at: datetime,
    ) -> int:
        """Insert a draft session. Returns its id.

        Raises DuplicateKeyError when (section, date) already has one.
        """

        raise NotImplementedError

    def mark_submitted(self, *, attendance_session_id: int, submitted_at: datetime) -> bool:
        """Conditional draft -> submitted transition.

        Returns False when the session was not in draft (someone else won).
        """

        raise NotImplementedError

    def upsert_record(
        self,
        *,
        attendance_session_id: int,
        student_id: int,
        status: AttendanceMark,
        reason: Optional[str] = None,
    ) -> int:
        """Insert or overwrite the record for (session, student). Returns record id."""

        raise NotImplementedError

    def list_records(self, attendance_session_id: int) -> Sequence[AttendanceRecord]:
        raise NotImplementedError
