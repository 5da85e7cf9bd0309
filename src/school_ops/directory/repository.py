from __future__ import annotations

from datetime import time
from typing import Optional, Protocol, Sequence

from .model import Period, RosterStudent, Section, StaffMember, Subject


class DirectoryRepository(Protocol):
    def get_section(self, section_id: int) -> Optional[Section]:
        raise NotImplementedError

    def get_subject(self, subject_id: int) -> Optional[Subject]:
        raise NotImplementedError

    def get_period(self, period_id: int) -> Optional[Period]:
        raise NotImplementedError

    def get_user(self, user_id: int) -> Optional[StaffMember]:
        raise NotImplementedError

    def find_period_covering(self, at: time) -> Optional[Period]:
        raise NotImplementedError


class EnrollmentRepository(Protocol):
    def active_roster_for(self, *, section_id: int, term_id: int) -> Sequence[RosterStudent]:
        """Students actively enrolled in the section for the term, ordered by roll number."""

        raise NotImplementedError
