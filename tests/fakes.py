"""In-memory repositories for service tests.

`InMemoryStore.atomic()` serializes transactions behind one re-entrant lock
and restores the pre-transaction snapshot on error, so all-or-nothing
behaviour and unique-key races can be asserted without MySQL.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from datetime import date, datetime, time
from typing import Dict, List, Optional, Set, Tuple

from school_ops.attendance.model import AttendanceRecord, AttendanceSession
from school_ops.audit.model import AuditEntry
from school_ops.class_sessions.model import ClassSession
from school_ops.core.constants import (
    SECTION_TIME_UNIQUE,
    TEACHER_TIME_UNIQUE,
    UNIQUE_CLASS_SESSION,
    UNIQUE_SECTION_ATTENDANCE_DAY,
)
from school_ops.core.enums import AttendanceMark, AttendanceSessionStatus, Weekday
from school_ops.core.exceptions import DuplicateKeyError
from school_ops.directory.model import Period, RosterStudent, Section, StaffMember, Subject
from school_ops.terms.model import Term
from school_ops.timetable.model import TimetableSlot

TABLES = ("terms", "slots", "class_sessions", "attendance_sessions", "attendance_records", "audit")


class InMemoryStore:
    def __init__(self):
        self._lock = threading.RLock()
        self._local = threading.local()
        self.tables: Dict[str, dict] = {name: {} for name in TABLES}
        self._ids: Dict[str, int] = {name: 0 for name in TABLES}

    @contextmanager
    def atomic(self):
        with self._lock:
            depth = getattr(self._local, "depth", 0)
            snapshot = None
            if depth == 0:
                snapshot = ({k: dict(v) for k, v in self.tables.items()}, dict(self._ids))
            self._local.depth = depth + 1
            try:
                yield self
            except Exception:
                if snapshot is not None:
                    self.tables, self._ids = snapshot
                raise
            finally:
                self._local.depth = depth

    @contextmanager
    def locked(self):
        with self._lock:
            yield self.tables

    def next_id(self, table: str) -> int:
        self._ids[table] += 1
        return self._ids[table]


class InMemoryTerms:
    def __init__(self, store: InMemoryStore):
        self.store = store

    def get_by_id(self, term_id: int) -> Optional[Term]:
        with self.store.locked() as t:
            return t["terms"].get(int(term_id))

    def get_active(self) -> Optional[Term]:
        with self.store.locked() as t:
            active = [term for term in t["terms"].values() if term.is_active]
            assert len(active) <= 1, "more than one active term"
            return active[0] if active else None

    def list_all(self):
        with self.store.locked() as t:
            return sorted(t["terms"].values(), key=lambda term: term.start_date, reverse=True)

    def create(self, *, name: str, start_date: date, end_date: date) -> int:
        with self.store.locked() as t:
            if any(term.name == name for term in t["terms"].values()):
                raise DuplicateKeyError("uq_terms_name")
            term_id = self.store.next_id("terms")
            t["terms"][term_id] = Term(term_id=term_id, name=name, start_date=start_date, end_date=end_date)
            return term_id

    def deactivate_all(self) -> int:
        with self.store.locked() as t:
            changed = 0
            for term_id, term in list(t["terms"].items()):
                if term.is_active:
                    t["terms"][term_id] = replace(term, is_active=False)
                    changed += 1
            return changed

    def set_active(self, term_id: int) -> bool:
        with self.store.locked() as t:
            term = t["terms"].get(int(term_id))
            if not term:
                return False
            if any(o.is_active for o in t["terms"].values() if o.term_id != term.term_id):
                raise DuplicateKeyError("uq_terms_single_active")
            t["terms"][term.term_id] = replace(term, is_active=True)
            return True


@dataclass
class InMemoryDirectory:
    sections: Dict[int, Section] = field(default_factory=dict)
    subjects: Dict[int, Subject] = field(default_factory=dict)
    periods: Dict[int, Period] = field(default_factory=dict)
    users: Dict[int, StaffMember] = field(default_factory=dict)

    def get_section(self, section_id: int) -> Optional[Section]:
        return self.sections.get(int(section_id))

    def get_subject(self, subject_id: int) -> Optional[Subject]:
        return self.subjects.get(int(subject_id))

    def get_period(self, period_id: int) -> Optional[Period]:
        return self.periods.get(int(period_id))

    def get_user(self, user_id: int) -> Optional[StaffMember]:
        return self.users.get(int(user_id))

    def find_period_covering(self, at: time) -> Optional[Period]:
        matches = sorted((p for p in self.periods.values() if p.covers(at)), key=lambda p: (p.sort_order, p.start_time))
        return matches[0] if matches else None


@dataclass
class InMemoryEnrollments:
    # (section_id, term_id) -> students; inactive enrollments are simply absent.
    rosters: Dict[Tuple[int, int], List[RosterStudent]] = field(default_factory=dict)

    def active_roster_for(self, *, section_id: int, term_id: int):
        students = self.rosters.get((int(section_id), int(term_id)), [])
        return sorted(students, key=lambda s: (s.roll_no is None, s.roll_no or 0, s.student_id))


@dataclass
class InMemoryAssignments:
    store: InMemoryStore
    rows: Set[Tuple[int, int, int]] = field(default_factory=set)

    def has_section_assignment(self, *, teacher_id: int, section_id: int, term_id: int) -> bool:
        if (int(teacher_id), int(section_id), int(term_id)) in self.rows:
            return True
        with self.store.locked() as t:
            return any(
                s.teacher_id == teacher_id and s.section_id == section_id and s.term_id == term_id
                for s in t["slots"].values()
            )


class InMemoryTimetable:
    def __init__(self, store: InMemoryStore):
        self.store = store

    def get_by_id(self, slot_id: int) -> Optional[TimetableSlot]:
        with self.store.locked() as t:
            return t["slots"].get(int(slot_id))

    def _first(self, pred) -> Optional[TimetableSlot]:
        with self.store.locked() as t:
            for s in t["slots"].values():
                if pred(s):
                    return s
            return None

    def find_section_slot(self, *, term_id, section_id, weekday, period_id):
        return self._first(
            lambda s: (s.term_id, s.section_id, s.weekday, s.period_id) == (term_id, section_id, weekday, period_id)
        )

    def find_teacher_slot(self, *, term_id, teacher_id, weekday, period_id):
        return self._first(
            lambda s: (s.term_id, s.teacher_id, s.weekday, s.period_id) == (term_id, teacher_id, weekday, period_id)
        )

    def find_matching(self, *, term_id, teacher_id, section_id, subject_id, period_id, weekday):
        return self._first(
            lambda s: (s.term_id, s.teacher_id, s.section_id, s.subject_id, s.period_id, s.weekday)
            == (term_id, teacher_id, section_id, subject_id, period_id, weekday)
        )

    def insert(self, *, term_id, section_id, subject_id, teacher_id, weekday: Weekday, period_id) -> int:
        with self.store.locked() as t:
            for s in t["slots"].values():
                if (s.term_id, s.section_id, s.weekday, s.period_id) == (term_id, section_id, weekday, period_id):
                    raise DuplicateKeyError(SECTION_TIME_UNIQUE)
                if (s.term_id, s.teacher_id, s.weekday, s.period_id) == (term_id, teacher_id, weekday, period_id):
                    raise DuplicateKeyError(TEACHER_TIME_UNIQUE)
            slot_id = self.store.next_id("slots")
            t["slots"][slot_id] = TimetableSlot(
                slot_id=slot_id,
                term_id=term_id,
                section_id=section_id,
                subject_id=subject_id,
                teacher_id=teacher_id,
                weekday=weekday,
                period_id=period_id,
            )
            return slot_id

    def delete(self, slot_id: int) -> bool:
        with self.store.locked() as t:
            return t["slots"].pop(int(slot_id), None) is not None

    def list_for_section(self, *, term_id, section_id):
        with self.store.locked() as t:
            return [s for s in t["slots"].values() if s.term_id == term_id and s.section_id == section_id]

    def list_for_teacher(self, *, term_id, teacher_id):
        with self.store.locked() as t:
            return [s for s in t["slots"].values() if s.term_id == term_id and s.teacher_id == teacher_id]


class InMemoryClassSessions:
    def __init__(self, store: InMemoryStore):
        self.store = store

    def get_by_id(self, class_session_id: int) -> Optional[ClassSession]:
        with self.store.locked() as t:
            return t["class_sessions"].get(int(class_session_id))

    def get_by_key(self, *, section_id, subject_id, period_id, session_date) -> Optional[ClassSession]:
        key = (section_id, subject_id, period_id, session_date)
        with self.store.locked() as t:
            for s in t["class_sessions"].values():
                if (s.section_id, s.subject_id, s.period_id, s.session_date) == key:
                    return s
            return None

    def create(self, *, term_id, section_id, subject_id, teacher_id, period_id, session_date, opened_at) -> int:
        with self.store.locked() as t:
            if self.get_by_key(
                section_id=section_id, subject_id=subject_id, period_id=period_id, session_date=session_date
            ):
                raise DuplicateKeyError(UNIQUE_CLASS_SESSION)
            session_id = self.store.next_id("class_sessions")
            t["class_sessions"][session_id] = ClassSession(
                class_session_id=session_id,
                term_id=term_id,
                section_id=section_id,
                subject_id=subject_id,
                teacher_id=teacher_id,
                period_id=period_id,
                session_date=session_date,
                opened_at=opened_at,
            )
            return session_id


class InMemoryAttendance:
    def __init__(self, store: InMemoryStore):
        self.store = store
        # Student id whose upsert raises, to exercise rollback.
        self.fail_on_student: Optional[int] = None

    def get_by_id(self, attendance_session_id: int) -> Optional[AttendanceSession]:
        with self.store.locked() as t:
            return t["attendance_sessions"].get(int(attendance_session_id))

    def get_by_key(self, *, section_id, session_date) -> Optional[AttendanceSession]:
        with self.store.locked() as t:
            for s in t["attendance_sessions"].values():
                if s.section_id == section_id and s.session_date == session_date:
                    return s
            return None

    def create_session(self, *, term_id, section_id, session_date, created_by_teacher_id, created_at) -> int:
        with self.store.locked() as t:
            if self.get_by_key(section_id=section_id, session_date=session_date):
                raise DuplicateKeyError(UNIQUE_SECTION_ATTENDANCE_DAY)
            session_id = self.store.next_id("attendance_sessions")
            t["attendance_sessions"][session_id] = AttendanceSession(
                attendance_session_id=session_id,
                term_id=term_id,
                section_id=section_id,
                session_date=session_date,
                created_by_teacher_id=created_by_teacher_id,
                status=AttendanceSessionStatus.DRAFT,
                created_at=created_at,
            )
            return session_id

    def mark_submitted(self, *, attendance_session_id, submitted_at: datetime) -> bool:
        with self.store.locked() as t:
            s = t["attendance_sessions"].get(int(attendance_session_id))
            if not s or s.status != AttendanceSessionStatus.DRAFT:
                return False
            t["attendance_sessions"][s.attendance_session_id] = replace(
                s, status=AttendanceSessionStatus.SUBMITTED, submitted_at=submitted_at
            )
            return True

    def set_status(self, attendance_session_id: int, status: AttendanceSessionStatus) -> None:
        with self.store.locked() as t:
            s = t["attendance_sessions"][int(attendance_session_id)]
            t["attendance_sessions"][s.attendance_session_id] = replace(s, status=status)

    def upsert_record(self, *, attendance_session_id, student_id, status: AttendanceMark, reason=None) -> int:
        if self.fail_on_student == student_id:
            raise RuntimeError(f"storage failure writing student {student_id}")
        with self.store.locked() as t:
            records = t["attendance_records"]
            for rid, r in records.items():
                if r.attendance_session_id == attendance_session_id and r.student_id == student_id:
                    records[rid] = replace(r, status=status, reason=reason)
                    return rid
            rid = self.store.next_id("attendance_records")
            records[rid] = AttendanceRecord(
                attendance_record_id=rid,
                attendance_session_id=attendance_session_id,
                student_id=student_id,
                status=status,
                reason=reason,
            )
            return rid

    def list_records(self, attendance_session_id: int):
        with self.store.locked() as t:
            rows = [r for r in t["attendance_records"].values() if r.attendance_session_id == attendance_session_id]
            return sorted(rows, key=lambda r: r.student_id)

    def count_for_key(self, *, section_id, session_date) -> int:
        with self.store.locked() as t:
            return sum(
                1
                for s in t["attendance_sessions"].values()
                if s.section_id == section_id and s.session_date == session_date
            )


class InMemoryAudit:
    def __init__(self, store: InMemoryStore):
        self.store = store

    def append(self, *, user_id, action, entity_type, entity_id, description, metadata, created_at) -> int:
        with self.store.locked() as t:
            audit_id = self.store.next_id("audit")
            t["audit"][audit_id] = AuditEntry(
                audit_id=audit_id,
                user_id=user_id,
                action=action,
                entity_type=entity_type,
                entity_id=entity_id,
                description=description,
                created_at=created_at,
                metadata=metadata,
            )
            return audit_id

    def list_for_entity(self, *, entity_type, entity_id):
        with self.store.locked() as t:
            return [e for e in t["audit"].values() if e.entity_type == entity_type and e.entity_id == entity_id]

    def entries(self, action=None) -> List[AuditEntry]:
        with self.store.locked() as t:
            rows = sorted(t["audit"].values(), key=lambda e: e.audit_id)
        return [e for e in rows if action is None or e.action == action]
