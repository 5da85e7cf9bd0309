from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import AuditAction
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, load_json
from .model import AuditEntry
from .repository import AuditRepository


class MySQLAuditRepository(AuditRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def append(
        self,
        *,
        user_id: int,
        action: AuditAction,
        entity_type: str,
        entity_id: int,
        description: str,
        metadata: Optional[dict],
        created_at: datetime,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO audit_logs(user_id, action, entity_type, entity_id, description, metadata, created_at)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (int(user_id), action.value, entity_type, int(entity_id), description, dump_json(metadata), created_at),
            )
            return int(cur.lastrowid)

    def list_for_entity(self, *, entity_type: str, entity_id: int) -> Sequence[AuditEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT audit_id, user_id, action, entity_type, entity_id, description, metadata, created_at
                FROM audit_logs
                WHERE entity_type=%s AND entity_id=%s
                ORDER BY audit_id ASC
                """,
                (entity_type, int(entity_id)),
            )
            return [
                AuditEntry(
                    audit_id=int(r["audit_id"]),
                    user_id=int(r["user_id"]),
                    action=AuditAction(r["action"]),
                    entity_type=r["entity_type"],
                    entity_id=int(r["entity_id"]),
                    description=r["description"],
                    created_at=r["created_at"],
                    metadata=load_json(r.get("metadata")),
                )
                for r in fetchall(cur)
            ]
