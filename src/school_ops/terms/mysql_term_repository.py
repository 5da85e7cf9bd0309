from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Term
from .repository import TermRepository

_COLUMNS = "term_id, name, start_date, end_date, is_active"


def _to_term(r: dict) -> Term:
    return Term(
        term_id=int(r["term_id"]),
        name=r["name"],
        start_date=r["start_date"],
        end_date=r["end_date"],
        is_active=bool(r["is_active"]),
    )


class MySQLTermRepository(TermRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, term_id: int) -> Optional[Term]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM terms WHERE term_id=%s", (int(term_id),))
            r = fetchone(cur)
            return _to_term(r) if r else None

    def get_active(self) -> Optional[Term]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM terms WHERE is_active=1")
            r = fetchone(cur)
            return _to_term(r) if r else None

    def list_all(self) -> Sequence[Term]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM terms ORDER BY start_date DESC")
            return [_to_term(r) for r in fetchall(cur)]

    def create(self, *, name: str, start_date: date, end_date: date) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO terms(name, start_date, end_date, is_active) VALUES(%s,%s,%s,0)",
                (name, start_date, end_date),
            )
            return int(cur.lastrowid)

    def deactivate_all(self) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE terms SET is_active=0 WHERE is_active=1")
            return cur.rowcount

    def set_active(self, term_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE terms SET is_active=1 WHERE term_id=%s", (int(term_id),))
            return cur.rowcount > 0
