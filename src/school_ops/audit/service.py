from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from ..common.datetime_utils import now_local
from ..core.enums import AuditAction
from .repository import AuditRepository

logger = logging.getLogger(__name__)


class AuditTrail:
    """Use case: append audit entries for state-changing actions.

    Callers record entries inside the same transaction as the change they
    describe, so an entry exists exactly when the change was committed.
    """

    def __init__(self, audit: AuditRepository, *, clock: Callable[[], datetime] = now_local):
        self._audit = audit
        self._clock = clock

    def record(
        self,
        *,
        actor_id: int,
        action: AuditAction,
        entity_type: str,
        entity_id: int,
        description: str,
        metadata: Optional[dict] = None,
    ) -> int:
        audit_id = self._audit.append(
            user_id=int(actor_id),
            action=action,
            entity_type=entity_type,
            entity_id=int(entity_id),
            description=description,
            metadata=metadata,
            created_at=self._clock(),
        )
        logger.debug("audit %s %s#%s by user %s", action.value, entity_type, entity_id, actor_id)
        return audit_id

    def history(self, *, entity_type: str, entity_id: int):
        return self._audit.list_for_entity(entity_type=entity_type, entity_id=int(entity_id))
