from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol

from .model import ClassSession


class ClassSessionRepository(Protocol):
    def get_by_id(self, class_session_id: int) -> Optional[ClassSession]:
        raise NotImplementedError

    def get_by_key(
        self, *, section_id: int, subject_id: int, period_id: int, session_date: date
    ) -> Optional[ClassSession]:
        raise NotImplementedError

    def create(
        self,
        *,
        term_id: int,
        section_id: int,
        subject_id: int,
        teacher_id: int,
        period_id: int,
        session_date: date,
        opened_at: datetime,
    ) -> int:
        """Insert a class session. Returns its id.

        Raises DuplicateKeyError when one already exists for
        (section, subject, period, date).
        """

        raise NotImplementedError
