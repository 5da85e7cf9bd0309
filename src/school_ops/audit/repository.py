from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import AuditAction
from .model import AuditEntry


class AuditRepository(Protocol):
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
        raise NotImplementedError

    def list_for_entity(self, *, entity_type: str, entity_id: int) -> Sequence[AuditEntry]:
        raise NotImplementedError
