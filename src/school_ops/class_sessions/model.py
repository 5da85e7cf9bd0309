from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional

from ..directory.model import Period, RosterStudent, Section, StaffMember, Subject


@dataclass(frozen=True)
class ClassSession:
    """One concrete, dated meeting of a timetable slot."""

    class_session_id: int
    term_id: int
    section_id: int
    subject_id: int
    teacher_id: int
    period_id: int
    session_date: date
    opened_at: Optional[datetime]
    closed_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "class_session_id": self.class_session_id,
            "term_id": self.term_id,
            "section_id": self.section_id,
            "subject_id": self.subject_id,
            "teacher_id": self.teacher_id,
            "period_id": self.period_id,
            "date": self.session_date.isoformat(),
            "opened_at": self.opened_at.isoformat() if self.opened_at else None,
            "closed_at": self.closed_at.isoformat() if self.closed_at else None,
        }


@dataclass(frozen=True)
class OpenedClassSession:
    session: ClassSession
    roster: List[RosterStudent] = field(default_factory=list)
    created: bool = False

    def to_dict(self) -> dict:
        return {
            "session": self.session.to_dict(),
            "created": self.created,
            "roster": [
                {"student_id": s.student_id, "student_name": s.full_name, "roll_no": s.roll_no}
                for s in self.roster
            ],
        }


@dataclass(frozen=True)
class ClassSessionDetail:
    session: ClassSession
    section: Section
    subject: Subject
    period: Period
    teacher: StaffMember

    def to_dict(self) -> dict:
        data = self.session.to_dict()
        data.update(
            {
                "section": {"section_id": self.section.section_id, "name": self.section.label},
                "subject": {"subject_id": self.subject.subject_id, "name": self.subject.name},
                "period": {"period_id": self.period.period_id, "name": self.period.name},
                "teacher": {"user_id": self.teacher.user_id, "full_name": self.teacher.full_name},
            }
        )
        return data
