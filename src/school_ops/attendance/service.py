from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Mapping, Union

from ..audit.service import AuditTrail
from ..authorization.service import SectionAccessPolicy
from ..common.datetime_utils import coerce_date, now_local
from ..common.transaction import TransactionManager
from ..common.validators import require_id
from ..core.constants import MAX_REASON_LENGTH
from ..core.enums import AttendanceMark, AttendanceSessionStatus, AuditAction
from ..core.exceptions import (
    AlreadyFinalizedError,
    DuplicateKeyError,
    InvalidRecordError,
    NotFoundError,
    ValidationError,
)
from ..directory.repository import DirectoryRepository, EnrollmentRepository
from ..terms.service import TermService
from .model import AttendanceSession, RecordInput, RosterMark, SessionWithRoster, SubmissionSummary
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

RecordPayload = Union[RecordInput, Mapping]


def parse_record(raw: RecordPayload, *, index: int = 0) -> RecordInput:
    """Validate one submitted mark.

    `reason` is kept only for absences; blank reasons become None.
    """
    if isinstance(raw, RecordInput):
        student_id, status, reason = raw.student_id, raw.status, raw.reason
    elif isinstance(raw, Mapping):
        student_id, status, reason = raw.get("student_id"), raw.get("status"), raw.get("reason")
    else:
        raise InvalidRecordError(f"records[{index}] must be an object")

    try:
        student_id = require_id(student_id, "student_id")
    except ValidationError as e:
        raise InvalidRecordError(f"records[{index}]: {e}")

    try:
        mark = AttendanceMark(status.value if isinstance(status, AttendanceMark) else str(status or "").strip().lower())
    except ValueError:
        raise InvalidRecordError(f"records[{index}]: status must be 'present' or 'absent'")

    if reason is not None and not isinstance(reason, str):
        raise InvalidRecordError(f"records[{index}]: reason must be text")
    reason = (reason or "").strip() or None
    if reason and len(reason) > MAX_REASON_LENGTH:
        raise InvalidRecordError(f"records[{index}]: reason is longer than {MAX_REASON_LENGTH} characters")
    if mark != AttendanceMark.ABSENT:
        reason = None

    return RecordInput(student_id=student_id, status=mark, reason=reason)


def parse_records(records: Iterable[RecordPayload]) -> List[RecordInput]:
    if records is None or isinstance(records, (str, bytes, Mapping)):
        raise InvalidRecordError("records must be a list")

    # One mark per student; a later entry for the same student wins.
    by_student: Dict[int, RecordInput] = {}
    for i, raw in enumerate(records):
        rec = parse_record(raw, index=i)
        by_student[rec.student_id] = rec
    if not by_student:
        raise InvalidRecordError("records must not be empty")
    return list(by_student.values())


class AttendanceService:
    """Attendance session lifecycle: draft -> submitted.

    A session is created at most once per (section, date) and its records
    can change only while it is a draft. Submission writes every record and
    flips the state in one transaction.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        terms: TermService,
        enrollments: EnrollmentRepository,
        directory: DirectoryRepository,
        access: SectionAccessPolicy,
        transactions: TransactionManager,
        audit: AuditTrail,
        *,
        clock: Callable[[], datetime] = now_local,
    ):
        self._attendance = attendance
        self._terms = terms
        self._enrollments = enrollments
        self._directory = directory
        self._access = access
        self._tx = transactions
        self._audit = audit
        self._clock = clock

    def create_or_get_session(
        self,
        *,
        section_id: int,
        session_date,
        teacher_id: int,
        now: datetime | None = None,
    ) -> SessionWithRoster:
        section_id = require_id(section_id, "section_id")
        teacher_id = require_id(teacher_id, "teacher_id")
        day = coerce_date(session_date)

        term = self._terms.require_active_term()
        if not self._directory.get_section(section_id):
            raise NotFoundError(f"Section {section_id} not found")
        self._access.ensure_can_manage_section(teacher_id=teacher_id, section_id=section_id, term_id=term.term_id)

        existing = self._attendance.get_by_key(section_id=section_id, session_date=day)
        if existing:
            return self._with_roster(existing, created=False)

        try:
            with self._tx.atomic():
                session_id = self._attendance.create_session(
                    term_id=term.term_id,
                    section_id=section_id,
                    session_date=day,
                    created_by_teacher_id=teacher_id,
                    created_at=now or self._clock(),
                )
                self._audit.record(
                    actor_id=teacher_id,
                    action=AuditAction.ATTENDANCE_SESSION_CREATED,
                    entity_type="AttendanceSession",
                    entity_id=session_id,
                    description=f"Attendance session created for section {section_id} on {day.isoformat()}",
                )
        except DuplicateKeyError:
            # Lost the race: the other caller's row is the session.
            winner = self._attendance.get_by_key(section_id=section_id, session_date=day)
            if winner is None:
                raise
            logger.info("attendance session %s created concurrently; reusing", winner.attendance_session_id)
            return self._with_roster(winner, created=False)

        logger.info("attendance session %s created for section %s on %s", session_id, section_id, day)
        return self._with_roster(self._require_session(session_id), created=True)

    def get_session_with_roster(self, attendance_session_id: int) -> SessionWithRoster:
        return self._with_roster(self._require_session(attendance_session_id), created=False)

    def get_for_section(self, *, section_id: int, session_date) -> SessionWithRoster:
        day = coerce_date(session_date)
        session = self._attendance.get_by_key(section_id=require_id(section_id, "section_id"), session_date=day)
        if not session:
            raise NotFoundError("No attendance recorded for this date.")
        return self._with_roster(session, created=False)

    def submit_session(
        self,
        *,
        attendance_session_id: int,
        records: Iterable[RecordPayload],
        teacher_id: int,
        now: datetime | None = None,
    ) -> SubmissionSummary:
        teacher_id = require_id(teacher_id, "teacher_id")
        session = self._require_session(attendance_session_id)
        self._ensure_draft(session)

        if session.created_by_teacher_id != teacher_id:
            # Substitute finishing another teacher's session.
            self._access.ensure_can_manage_section(
                teacher_id=teacher_id, section_id=session.section_id, term_id=session.term_id
            )

        marks = parse_records(records)
        enrolled = {
            s.student_id
            for s in self._enrollments.active_roster_for(section_id=session.section_id, term_id=session.term_id)
        }
        for mark in marks:
            if mark.student_id not in enrolled:
                raise InvalidRecordError(f"student {mark.student_id} is not enrolled in this section")

        sid = session.attendance_session_id
        submitted_at = now or self._clock()

        with self._tx.atomic():
            # Claim the draft first: the conditional update is the race-breaker
            # and holds the session row for the rest of the transaction.
            if not self._attendance.mark_submitted(attendance_session_id=sid, submitted_at=submitted_at):
                logger.warning("attendance session %s was finalized concurrently", sid)
                raise AlreadyFinalizedError("Session is already submitted and cannot be modified.")

            for mark in marks:
                record_id = self._attendance.upsert_record(
                    attendance_session_id=sid,
                    student_id=mark.student_id,
                    status=mark.status,
                    reason=mark.reason,
                )
                if mark.status == AttendanceMark.ABSENT:
                    self._audit.record(
                        actor_id=teacher_id,
                        action=AuditAction.ABSENCE_RECORDED,
                        entity_type="AttendanceRecord",
                        entity_id=record_id,
                        description=f"Student {mark.student_id} marked absent",
                        metadata={"session_id": sid, "reason": mark.reason or ""},
                    )

            stored = self._attendance.list_records(sid)
            absent = sum(1 for r in stored if r.status == AttendanceMark.ABSENT)
            present = len(stored) - absent

            self._audit.record(
                actor_id=teacher_id,
                action=AuditAction.ATTENDANCE_SESSION_SUBMITTED,
                entity_type="AttendanceSession",
                entity_id=sid,
                description=f"Attendance session {sid} submitted and locked.",
                metadata={"present": present, "absent": absent},
            )

        logger.info("attendance session %s submitted by %s (present=%s absent=%s)", sid, teacher_id, present, absent)
        return SubmissionSummary(
            attendance_session_id=sid,
            status=AttendanceSessionStatus.SUBMITTED,
            present=present,
            absent=absent,
        )

    def _ensure_draft(self, session: AttendanceSession) -> None:
        if not session.is_draft:
            logger.warning("rejected change to %s attendance session %s", session.status.value, session.attendance_session_id)
            raise AlreadyFinalizedError(f"Session is already {session.status.value} and cannot be modified.")

    def _require_session(self, attendance_session_id: int) -> AttendanceSession:
        session = self._attendance.get_by_id(require_id(attendance_session_id, "attendance_session_id"))
        if not session:
            raise NotFoundError(f"Attendance session {attendance_session_id} not found")
        return session

    def _with_roster(self, session: AttendanceSession, *, created: bool) -> SessionWithRoster:
        recorded = {r.student_id: r for r in self._attendance.list_records(session.attendance_session_id)}
        roster = []
        for student in self._enrollments.active_roster_for(section_id=session.section_id, term_id=session.term_id):
            rec = recorded.get(student.student_id)
            roster.append(
                RosterMark(
                    student_id=student.student_id,
                    student_name=student.full_name,
                    roll_no=student.roll_no,
                    status=rec.status if rec else None,
                    reason=rec.reason if rec else None,
                )
            )
        return SessionWithRoster(session=session, roster=roster, created=created)
