from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional

from ..core.enums import AttendanceMark, AttendanceSessionStatus


@dataclass(frozen=True)
class AttendanceSession:
    """Domain entity: one section's attendance for one day."""

    attendance_session_id: int
    term_id: int
    section_id: int
    session_date: date
    created_by_teacher_id: int
    status: AttendanceSessionStatus
    created_at: datetime
    submitted_at: Optional[datetime] = None

    @property
    def is_draft(self) -> bool:
        return self.status == AttendanceSessionStatus.DRAFT

    def to_dict(self) -> dict:
        return {
            "attendance_session_id": self.attendance_session_id,
            "term_id": self.term_id,
            "section_id": self.section_id,
            "date": self.session_date.isoformat(),
            "created_by_teacher_id": self.created_by_teacher_id,
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
            "submitted_at": self.submitted_at.isoformat() if self.submitted_at else None,
        }


@dataclass(frozen=True)
class AttendanceRecord:
    attendance_record_id: int
    attendance_session_id: int
    student_id: int
    status: AttendanceMark
    reason: Optional[str] = None


@dataclass(frozen=True)
class RecordInput:
    """A validated per-student mark from a submission payload."""

    student_id: int
    status: AttendanceMark
    reason: Optional[str] = None


@dataclass(frozen=True)
class RosterMark:
    """Roster row for the UI; `status` is None when nothing is recorded yet."""

    student_id: int
    student_name: str
    roll_no: Optional[int]
    status: Optional[AttendanceMark] = None
    reason: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "student_id": self.student_id,
            "student_name": self.student_name,
            "roll_no": self.roll_no,
            "status": self.status.value if self.status else None,
            "reason": self.reason,
        }


@dataclass(frozen=True)
class SessionWithRoster:
    session: AttendanceSession
    roster: List[RosterMark] = field(default_factory=list)
    created: bool = False

    def to_dict(self) -> dict:
        return {
            "session": self.session.to_dict(),
            "created": self.created,
            "roster": [m.to_dict() for m in self.roster],
        }


@dataclass(frozen=True)
class SubmissionSummary:
    attendance_session_id: int
    status: AttendanceSessionStatus
    present: int
    absent: int

    @property
    def total(self) -> int:
        return self.present + self.absent

    def to_dict(self) -> dict:
        return {
            "attendance_session_id": self.attendance_session_id,
            "status": self.status.value,
            "present": self.present,
            "absent": self.absent,
            "total": self.total,
        }
