from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Callable, Optional

from ..audit.service import AuditTrail
from ..common.datetime_utils import coerce_date, now_local
from ..common.transaction import TransactionManager
from ..common.validators import require_id
from ..core.enums import AuditAction, Weekday
from ..core.exceptions import DuplicateKeyError, NoClassTodayError, NotFoundError, TimetableMismatchError
from ..directory.model import Period
from ..directory.repository import DirectoryRepository, EnrollmentRepository
from ..terms.service import TermService
from ..timetable.service import TimetableService
from .model import ClassSession, ClassSessionDetail, OpenedClassSession
from .repository import ClassSessionRepository

logger = logging.getLogger(__name__)


class ClassSessionService:
    def __init__(
        self,
        sessions: ClassSessionRepository,
        timetable: TimetableService,
        terms: TermService,
        enrollments: EnrollmentRepository,
        directory: DirectoryRepository,
        transactions: TransactionManager,
        audit: AuditTrail,
        *,
        clock: Callable[[], datetime] = now_local,
    ):
        self._sessions = sessions
        self._timetable = timetable
        self._terms = terms
        self._enrollments = enrollments
        self._directory = directory
        self._tx = transactions
        self._audit = audit
        self._clock = clock

    def open_session(
        self,
        *,
        teacher_id: int,
        section_id: int,
        subject_id: int,
        period_id: int,
        session_date,
        now: datetime | None = None,
    ) -> OpenedClassSession:
        """Open (or re-open) the class a teacher is scheduled to teach.

        Repeated calls with the same arguments return the same session with
        its original `opened_at`.
        """
        teacher_id = require_id(teacher_id, "teacher_id")
        section_id = require_id(section_id, "section_id")
        subject_id = require_id(subject_id, "subject_id")
        period_id = require_id(period_id, "period_id")
        day_date = coerce_date(session_date)

        weekday = Weekday.for_date(day_date)
        if weekday is None:
            raise NoClassTodayError(f"{day_date.isoformat()} ({day_date.strftime('%A')}) is not a school day.")

        term = self._terms.require_active_term()
        slot = self._timetable.find_scheduled_slot(
            term_id=term.term_id,
            teacher_id=teacher_id,
            section_id=section_id,
            subject_id=subject_id,
            period_id=period_id,
            weekday=weekday,
        )
        if not slot:
            logger.warning(
                "teacher %s has no slot for section=%s subject=%s period=%s on %s",
                teacher_id, section_id, subject_id, period_id, weekday.value,
            )
            raise TimetableMismatchError("No matching timetable entry found for this session.")

        session, created = self._get_or_create(
            term_id=term.term_id,
            teacher_id=teacher_id,
            section_id=section_id,
            subject_id=subject_id,
            period_id=period_id,
            session_date=day_date,
            now=now or self._clock(),
        )
        roster = list(self._enrollments.active_roster_for(section_id=section_id, term_id=term.term_id))
        return OpenedClassSession(session=session, roster=roster, created=created)

    def _get_or_create(
        self,
        *,
        term_id: int,
        teacher_id: int,
        section_id: int,
        subject_id: int,
        period_id: int,
        session_date: date,
        now: datetime,
    ) -> tuple[ClassSession, bool]:
        key = dict(section_id=section_id, subject_id=subject_id, period_id=period_id, session_date=session_date)

        existing = self._sessions.get_by_key(**key)
        if existing:
            return existing, False

        try:
            with self._tx.atomic():
                session_id = self._sessions.create(term_id=term_id, teacher_id=teacher_id, opened_at=now, **key)
                self._audit.record(
                    actor_id=teacher_id,
                    action=AuditAction.CLASS_SESSION_OPENED,
                    entity_type="ClassSession",
                    entity_id=session_id,
                    description=f"Class session opened for section {section_id}, subject {subject_id}, "
                    f"period {period_id} on {session_date.isoformat()}",
                )
        except DuplicateKeyError:
            # Another request created it between our read and insert.
            winner = self._sessions.get_by_key(**key)
            if winner is None:
                raise
            logger.info("class session %s already opened concurrently; reusing", winner.class_session_id)
            return winner, False

        logger.info("class session %s opened by teacher %s", session_id, teacher_id)
        return self._sessions.get_by_id(session_id), True

    def get_session(self, class_session_id: int) -> ClassSessionDetail:
        session = self._sessions.get_by_id(require_id(class_session_id, "class_session_id"))
        if not session:
            raise NotFoundError(f"Class session {class_session_id} not found")

        section = self._directory.get_section(session.section_id)
        subject = self._directory.get_subject(session.subject_id)
        period = self._directory.get_period(session.period_id)
        teacher = self._directory.get_user(session.teacher_id)
        if not (section and subject and period and teacher):
            raise NotFoundError(f"Class session {class_session_id} references a missing entity")
        return ClassSessionDetail(session=session, section=section, subject=subject, period=period, teacher=teacher)

    def current_period(self, *, now: datetime | None = None) -> Optional[Period]:
        """Period whose start/end window covers the current time of day."""
        now = now or self._clock()
        return self._directory.find_period_covering(now.time().replace(microsecond=0))
