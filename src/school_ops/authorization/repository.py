from __future__ import annotations

from typing import Protocol


class AssignmentRepository(Protocol):
    def has_section_assignment(self, *, teacher_id: int, section_id: int, term_id: int) -> bool:
        """True when the teacher is assigned to teach the section in the term."""

        raise NotImplementedError
