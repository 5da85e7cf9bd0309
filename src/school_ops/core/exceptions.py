from __future__ import annotations

from typing import Optional


class DomainError(Exception):
    """Base exception for business rule violations."""

    kind = "domain_error"


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    kind = "validation_error"


class InvalidRecordError(ValidationError):
    """Raised when an attendance record in a submission is malformed."""

    kind = "invalid_record"


class NoClassTodayError(ValidationError):
    """Raised when a date falls on a day the school does not hold classes."""

    kind = "no_class_today"


class TimetableMismatchError(ValidationError):
    """Raised when no timetable slot matches the requested class session."""

    kind = "timetable_mismatch"


class ConflictError(DomainError):
    """Raised when a write would violate a scheduling invariant.

    `conflict_on` names the colliding entity: "section" or "teacher".
    """

    kind = "conflict"

    def __init__(self, message: str, *, conflict_on: str):
        super().__init__(message)
        self.conflict_on = conflict_on


class SectionConflictError(ConflictError):
    kind = "section_conflict"

    def __init__(self, message: str = "This section already has a subject assigned for this period and day."):
        super().__init__(message, conflict_on="section")


class TeacherConflictError(ConflictError):
    kind = "teacher_conflict"

    def __init__(self, message: str = "This teacher is already assigned to another section for this period and day."):
        super().__init__(message, conflict_on="teacher")


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    kind = "unauthorized"


class StateError(DomainError):
    """Raised when an operation is invalid for the current lifecycle state."""

    kind = "invalid_state"


class AlreadyFinalizedError(StateError):
    kind = "already_finalized"


class NoActiveTermError(StateError):
    kind = "no_active_term"

    def __init__(self, message: str = "No active academic term found."):
        super().__init__(message)


class NotFoundError(DomainError):
    """Raised when a referenced entity does not exist."""

    kind = "not_found"


class DuplicateKeyError(Exception):
    """Raised by repositories when an insert hits a unique key.

    Not a DomainError: services decide whether it means "someone else already
    created it" or a real conflict.
    """

    def __init__(self, constraint: Optional[str] = None, message: str = ""):
        super().__init__(message or f"Duplicate entry for key {constraint!r}")
        self.constraint = constraint
