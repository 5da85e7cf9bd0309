from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import Weekday
from .model import TimetableSlot


class TimetableRepository(Protocol):
    def get_by_id(self, slot_id: int) -> Optional[TimetableSlot]:
        raise NotImplementedError

    def find_section_slot(
        self, *, term_id: int, section_id: int, weekday: Weekday, period_id: int
    ) -> Optional[TimetableSlot]:
        raise NotImplementedError

    def find_teacher_slot(
        self, *, term_id: int, teacher_id: int, weekday: Weekday, period_id: int
    ) -> Optional[TimetableSlot]:
        raise NotImplementedError

    def find_matching(
        self,
        *,
        term_id: int,
        teacher_id: int,
        section_id: int,
        subject_id: int,
        period_id: int,
        weekday: Weekday,
    ) -> Optional[TimetableSlot]:
        raise NotImplementedError

    def insert(
        self,
        *,
        term_id: int,
        section_id: int,
        subject_id: int,
        teacher_id: int,
        weekday: Weekday,
        period_id: int,
    ) -> int:
        """Insert a slot. Returns slot_id.

        Raises DuplicateKeyError naming `section_time_unique` or
        `teacher_time_unique` when the storage layer rejects the row.
        """

        raise NotImplementedError

    def delete(self, slot_id: int) -> bool:
        raise NotImplementedError

    def list_for_section(self, *, term_id: int, section_id: int) -> Sequence[TimetableSlot]:
        raise NotImplementedError

    def list_for_teacher(self, *, term_id: int, teacher_id: int) -> Sequence[TimetableSlot]:
        raise NotImplementedError
