from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Optional


class Role(str, Enum):
    """User roles used for authorization."""

    OFFICE = "office"
    PRINCIPAL = "principal"
    TEACHER = "teacher"
    STUDENT = "student"
    PARENT = "parent"


# Roles that bypass per-section assignment checks.
ELEVATED_ROLES = frozenset({Role.PRINCIPAL})


class Weekday(str, Enum):
    """School weekdays. Friday and Saturday are not school days."""

    SUN = "sun"
    MON = "mon"
    TUE = "tue"
    WED = "wed"
    THU = "thu"

    @classmethod
    def for_date(cls, value: date) -> Optional["Weekday"]:
        return _BY_ISO_WEEKDAY.get(value.isoweekday())

    @property
    def sort_key(self) -> int:
        return _ORDER.index(self)


_BY_ISO_WEEKDAY = {
    1: Weekday.MON,
    2: Weekday.TUE,
    3: Weekday.WED,
    4: Weekday.THU,
    7: Weekday.SUN,
}

_ORDER = [Weekday.SUN, Weekday.MON, Weekday.TUE, Weekday.WED, Weekday.THU]


class AttendanceSessionStatus(str, Enum):
    """Lifecycle of a day's attendance session.

    LOCKED is reserved for archival and is never entered by this package.
    """

    DRAFT = "draft"
    SUBMITTED = "submitted"
    LOCKED = "locked"


class AttendanceMark(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"


class AuditAction(str, Enum):
    SLOT_ASSIGNED = "timetable.slot_assigned"
    SLOT_REMOVED = "timetable.slot_removed"
    CLASS_SESSION_OPENED = "class_session.opened"
    ATTENDANCE_SESSION_CREATED = "attendance.session_created"
    ABSENCE_RECORDED = "attendance.absence_recorded"
    ATTENDANCE_SESSION_SUBMITTED = "attendance.session_submitted"
    TERM_ACTIVATED = "term.activated"
