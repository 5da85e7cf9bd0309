from __future__ import annotations

from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True)
class Term:
    """Academic term (year/period). Exactly one is active at a time."""

    term_id: int
    name: str
    start_date: date
    end_date: date
    is_active: bool = False

    def to_dict(self) -> dict:
        return {
            "term_id": self.term_id,
            "name": self.name,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "is_active": self.is_active,
        }
