from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import AuditAction


@dataclass(frozen=True)
class AuditEntry:
    """Append-only record of one state-changing action."""

    audit_id: int
    user_id: int
    action: AuditAction
    entity_type: str
    entity_id: int
    description: str
    created_at: datetime
    metadata: Optional[dict] = None
