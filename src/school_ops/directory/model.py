from __future__ import annotations

from dataclasses import dataclass
from datetime import time
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class Section:
    section_id: int
    grade_name: str
    name: str

    @property
    def label(self) -> str:
        return f"{self.grade_name} - {self.name}"


@dataclass(frozen=True)
class Subject:
    subject_id: int
    name: str
    code: str


@dataclass(frozen=True)
class Period:
    period_id: int
    name: str
    start_time: time
    end_time: time
    sort_order: int = 0

    def covers(self, at: time) -> bool:
        return self.start_time <= at <= self.end_time

    def to_dict(self) -> dict:
        return {
            "period_id": self.period_id,
            "name": self.name,
            "start_time": self.start_time.strftime("%H:%M"),
            "end_time": self.end_time.strftime("%H:%M"),
        }


@dataclass(frozen=True)
class StaffMember:
    """A user as seen by the scheduling core (no credentials)."""

    user_id: int
    full_name: str
    role: Role
    is_active: bool = True


@dataclass(frozen=True)
class RosterStudent:
    student_id: int
    full_name: str
    roll_no: Optional[int]
