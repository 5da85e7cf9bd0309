from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import Weekday
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import TimetableSlot
from .repository import TimetableRepository

_SELECT = """
    SELECT slot_id, term_id, section_id, subject_id, teacher_user_id, day_of_week, period_id
    FROM timetable_entries
"""


def _to_slot(r: dict) -> TimetableSlot:
    return TimetableSlot(
        slot_id=int(r["slot_id"]),
        term_id=int(r["term_id"]),
        section_id=int(r["section_id"]),
        subject_id=int(r["subject_id"]),
        teacher_id=int(r["teacher_user_id"]),
        weekday=Weekday(r["day_of_week"]),
        period_id=int(r["period_id"]),
    )


class MySQLTimetableRepository(TimetableRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _one(self, where: str, params: tuple) -> Optional[TimetableSlot]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE {where}", params)
            r = fetchone(cur)
            return _to_slot(r) if r else None

    def get_by_id(self, slot_id: int) -> Optional[TimetableSlot]:
        return self._one("slot_id=%s", (int(slot_id),))

    def find_section_slot(
        self, *, term_id: int, section_id: int, weekday: Weekday, period_id: int
    ) -> Optional[TimetableSlot]:
        return self._one(
            "term_id=%s AND section_id=%s AND day_of_week=%s AND period_id=%s",
            (int(term_id), int(section_id), weekday.value, int(period_id)),
        )

    def find_teacher_slot(
        self, *, term_id: int, teacher_id: int, weekday: Weekday, period_id: int
    ) -> Optional[TimetableSlot]:
        return self._one(
            "term_id=%s AND teacher_user_id=%s AND day_of_week=%s AND period_id=%s",
            (int(term_id), int(teacher_id), weekday.value, int(period_id)),
        )

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
        return self._one(
            """
            term_id=%s AND teacher_user_id=%s AND section_id=%s
            AND subject_id=%s AND period_id=%s AND day_of_week=%s
            """,
            (int(term_id), int(teacher_id), int(section_id), int(subject_id), int(period_id), weekday.value),
        )

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO timetable_entries(term_id, section_id, subject_id, teacher_user_id, day_of_week, period_id)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (int(term_id), int(section_id), int(subject_id), int(teacher_id), weekday.value, int(period_id)),
            )
            return int(cur.lastrowid)

    def delete(self, slot_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM timetable_entries WHERE slot_id=%s", (int(slot_id),))
            return cur.rowcount > 0

    def list_for_section(self, *, term_id: int, section_id: int) -> Sequence[TimetableSlot]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"{_SELECT} WHERE term_id=%s AND section_id=%s ORDER BY day_of_week, period_id",
                (int(term_id), int(section_id)),
            )
            return [_to_slot(r) for r in fetchall(cur)]

    def list_for_teacher(self, *, term_id: int, teacher_id: int) -> Sequence[TimetableSlot]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"{_SELECT} WHERE term_id=%s AND teacher_user_id=%s ORDER BY day_of_week, period_id",
                (int(term_id), int(teacher_id)),
            )
            return [_to_slot(r) for r in fetchall(cur)]
