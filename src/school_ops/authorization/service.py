from __future__ import annotations

import logging

from ..core.enums import ELEVATED_ROLES
from ..core.exceptions import AuthorizationError
from ..directory.repository import DirectoryRepository
from .repository import AssignmentRepository

logger = logging.getLogger(__name__)


class SectionAccessPolicy:
    """Decides whether a user may run attendance for a section.

    Elevated roles are consulted before section ownership and skip it.
    """

    def __init__(self, assignments: AssignmentRepository, directory: DirectoryRepository):
        self._assignments = assignments
        self._directory = directory

    def has_elevated_role(self, user_id: int) -> bool:
        user = self._directory.get_user(int(user_id))
        return bool(user and user.is_active and user.role in ELEVATED_ROLES)

    def has_section_assignment(self, *, teacher_id: int, section_id: int, term_id: int) -> bool:
        return self._assignments.has_section_assignment(
            teacher_id=int(teacher_id), section_id=int(section_id), term_id=int(term_id)
        )

    def ensure_can_manage_section(self, *, teacher_id: int, section_id: int, term_id: int) -> None:
        if self.has_elevated_role(teacher_id):
            return
        if self.has_section_assignment(teacher_id=teacher_id, section_id=section_id, term_id=term_id):
            return

        logger.warning("user %s denied access to section %s (term %s)", teacher_id, section_id, term_id)
        raise AuthorizationError("Teacher is not assigned to this section.")
