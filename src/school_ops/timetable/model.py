from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import Weekday
from ..directory.model import Period, Section, StaffMember, Subject


@dataclass(frozen=True)
class TimetableSlot:
    """A recurring weekly booking. Immutable once created."""

    slot_id: int
    term_id: int
    section_id: int
    subject_id: int
    teacher_id: int
    weekday: Weekday
    period_id: int


@dataclass(frozen=True)
class SlotDetail:
    """Read-model: a slot with its referenced entities resolved."""

    slot: TimetableSlot
    section: Section
    subject: Subject
    teacher: StaffMember
    period: Period

    def to_dict(self) -> dict:
        return {
            "slot_id": self.slot.slot_id,
            "term_id": self.slot.term_id,
            "day_of_week": self.slot.weekday.value,
            "section": {"section_id": self.section.section_id, "name": self.section.label},
            "subject": {"subject_id": self.subject.subject_id, "name": self.subject.name, "code": self.subject.code},
            "teacher": {"user_id": self.teacher.user_id, "full_name": self.teacher.full_name},
            "period": {
                "period_id": self.period.period_id,
                "name": self.period.name,
                "start_time": self.period.start_time.strftime("%H:%M"),
                "end_time": self.period.end_time.strftime("%H:%M"),
            },
        }
