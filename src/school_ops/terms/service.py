from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from ..audit.service import AuditTrail
from ..common.transaction import TransactionManager
from ..common.validators import require_non_empty
from ..core.enums import AuditAction
from ..core.exceptions import DuplicateKeyError, NoActiveTermError, NotFoundError, StateError, ValidationError
from .model import Term
from .repository import TermRepository

logger = logging.getLogger(__name__)


class TermService:
    """Registry of academic terms; the single source of "which term is now".

    Callers resolve the active term per request and never cache it.
    """

    def __init__(self, terms: TermRepository, transactions: TransactionManager, audit: AuditTrail):
        self._terms = terms
        self._tx = transactions
        self._audit = audit

    def active_term(self) -> Optional[Term]:
        return self._terms.get_active()

    def require_active_term(self) -> Term:
        term = self._terms.get_active()
        if not term:
            raise NoActiveTermError()
        return term

    def get(self, term_id: int) -> Term:
        term = self._terms.get_by_id(int(term_id))
        if not term:
            raise NotFoundError(f"Term {term_id} not found")
        return term

    def create_term(
        self,
        *,
        name: str,
        start_date: date,
        end_date: date,
        actor_id: int,
        activate: bool = False,
    ) -> Term:
        name = require_non_empty(name, "Term name")
        if end_date <= start_date:
            raise ValidationError("Term end date must be after its start date")

        with self._tx.atomic():
            try:
                term_id = self._terms.create(name=name, start_date=start_date, end_date=end_date)
            except DuplicateKeyError:
                raise ValidationError(f"A term named {name!r} already exists")
            if activate:
                self._switch_active(term_id, actor_id=actor_id)

        logger.info("term %s created (%s, active=%s)", term_id, name, activate)
        return self.get(term_id)

    def activate(self, term_id: int, *, actor_id: int) -> Term:
        """Make `term_id` the only active term.

        Clearing the previous term and flagging the new one share a
        transaction, so no reader ever observes zero or two active terms.
        """
        self.get(term_id)
        with self._tx.atomic():
            self._switch_active(int(term_id), actor_id=actor_id)

        logger.info("term %s activated by user %s", term_id, actor_id)
        return self.get(term_id)

    def _switch_active(self, term_id: int, *, actor_id: int) -> None:
        self._terms.deactivate_all()
        try:
            activated = self._terms.set_active(term_id)
        except DuplicateKeyError:
            logger.warning("term %s lost an activation race", term_id)
            raise StateError("Another term was activated concurrently; retry the activation.")
        if not activated:
            raise NotFoundError(f"Term {term_id} not found")
        self._audit.record(
            actor_id=actor_id,
            action=AuditAction.TERM_ACTIVATED,
            entity_type="Term",
            entity_id=term_id,
            description=f"Term {term_id} activated",
        )
