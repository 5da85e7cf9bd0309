from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import Term


class TermRepository(Protocol):
    def get_by_id(self, term_id: int) -> Optional[Term]:
        raise NotImplementedError

    def get_active(self) -> Optional[Term]:
        raise NotImplementedError

    def list_all(self) -> Sequence[Term]:
        raise NotImplementedError

    def create(self, *, name: str, start_date: date, end_date: date) -> int:
        """Insert an inactive term. Returns term_id."""

        raise NotImplementedError

    def deactivate_all(self) -> int:
        raise NotImplementedError

    def set_active(self, term_id: int) -> bool:
        raise NotImplementedError
