from __future__ import annotations

import logging
from typing import Dict, List, Optional

from ..audit.service import AuditTrail
from ..common.transaction import TransactionManager
from ..common.validators import require_id
from ..core.constants import SECTION_TIME_UNIQUE, TEACHER_TIME_UNIQUE
from ..core.enums import AuditAction, Role, Weekday
from ..core.exceptions import (
    DuplicateKeyError,
    NotFoundError,
    SectionConflictError,
    TeacherConflictError,
    ValidationError,
)
from ..directory.repository import DirectoryRepository
from ..terms.model import Term
from ..terms.service import TermService
from .model import SlotDetail, TimetableSlot
from .repository import TimetableRepository

logger = logging.getLogger(__name__)


def parse_weekday(value) -> Weekday:
    if isinstance(value, Weekday):
        return value
    try:
        return Weekday(str(value or "").strip().lower())
    except ValueError:
        allowed = ", ".join(d.value for d in Weekday)
        raise ValidationError(f"day_of_week must be one of: {allowed}")


class TimetableService:
    """Timetable conflict engine.

    A section cannot attend two subjects at once and a teacher cannot teach
    two sections at once. The unique keys in storage decide races; the
    pre-checks here only produce the clearer error (section first).
    """

    def __init__(
        self,
        slots: TimetableRepository,
        directory: DirectoryRepository,
        terms: TermService,
        transactions: TransactionManager,
        audit: AuditTrail,
    ):
        self._slots = slots
        self._directory = directory
        self._terms = terms
        self._tx = transactions
        self._audit = audit

    def _resolve_term(self, term_id: Optional[int]) -> Term:
        if term_id is None:
            return self._terms.require_active_term()
        return self._terms.get(require_id(term_id, "term_id"))

    def _validate_references(self, *, section_id: int, subject_id: int, teacher_id: int, period_id: int) -> None:
        if not self._directory.get_section(section_id):
            raise NotFoundError(f"Section {section_id} not found")
        if not self._directory.get_subject(subject_id):
            raise NotFoundError(f"Subject {subject_id} not found")
        teacher = self._directory.get_user(teacher_id)
        if not teacher or teacher.role != Role.TEACHER or not teacher.is_active:
            raise NotFoundError(f"Teacher {teacher_id} not found")
        if not self._directory.get_period(period_id):
            raise NotFoundError(f"Period {period_id} not found")

    def _insert(
        self,
        *,
        term_id: int,
        section_id: int,
        subject_id: int,
        teacher_id: int,
        weekday: Weekday,
        period_id: int,
    ) -> int:
        if self._slots.find_section_slot(term_id=term_id, section_id=section_id, weekday=weekday, period_id=period_id):
            raise SectionConflictError()
        if self._slots.find_teacher_slot(term_id=term_id, teacher_id=teacher_id, weekday=weekday, period_id=period_id):
            raise TeacherConflictError()

        try:
            return self._slots.insert(
                term_id=term_id,
                section_id=section_id,
                subject_id=subject_id,
                teacher_id=teacher_id,
                weekday=weekday,
                period_id=period_id,
            )
        except DuplicateKeyError as e:
            # Lost a race against a concurrent assignment.
            if e.constraint == SECTION_TIME_UNIQUE:
                raise SectionConflictError() from e
            if e.constraint == TEACHER_TIME_UNIQUE:
                raise TeacherConflictError() from e
            raise

    def assign_slot(
        self,
        *,
        section_id: int,
        subject_id: int,
        teacher_id: int,
        weekday,
        period_id: int,
        actor_id: int,
        term_id: Optional[int] = None,
    ) -> SlotDetail:
        term = self._resolve_term(term_id)
        section_id = require_id(section_id, "section_id")
        subject_id = require_id(subject_id, "subject_id")
        teacher_id = require_id(teacher_id, "teacher_id")
        period_id = require_id(period_id, "period_id")
        day = parse_weekday(weekday)
        self._validate_references(section_id=section_id, subject_id=subject_id, teacher_id=teacher_id, period_id=period_id)

        try:
            with self._tx.atomic():
                slot_id = self._insert(
                    term_id=term.term_id,
                    section_id=section_id,
                    subject_id=subject_id,
                    teacher_id=teacher_id,
                    weekday=day,
                    period_id=period_id,
                )
                self._audit.record(
                    actor_id=actor_id,
                    action=AuditAction.SLOT_ASSIGNED,
                    entity_type="TimetableSlot",
                    entity_id=slot_id,
                    description=f"Teacher {teacher_id} assigned to section {section_id} on {day.value} period {period_id}",
                    metadata={"term_id": term.term_id, "subject_id": subject_id},
                )
        except (SectionConflictError, TeacherConflictError) as e:
            logger.warning("slot rejected (%s): term=%s section=%s teacher=%s %s/%s",
                           e.conflict_on, term.term_id, section_id, teacher_id, day.value, period_id)
            raise

        logger.info("slot %s assigned: section=%s teacher=%s %s/%s", slot_id, section_id, teacher_id, day.value, period_id)
        return self.get_slot(slot_id)

    def remove_slot(self, *, slot_id: int, actor_id: int) -> None:
        slot = self._require_slot(slot_id)
        with self._tx.atomic():
            if not self._slots.delete(slot.slot_id):
                raise NotFoundError(f"Timetable slot {slot_id} not found")
            self._audit_removal(slot, actor_id=actor_id)

        logger.info("slot %s removed by user %s", slot_id, actor_id)

    def replace_slot(
        self,
        *,
        slot_id: int,
        section_id: int,
        subject_id: int,
        teacher_id: int,
        weekday,
        period_id: int,
        actor_id: int,
    ) -> SlotDetail:
        """Delete a slot and create its replacement as one unit.

        The replacement is validated against both invariants after the old
        slot is gone; if it conflicts, the old slot stays.
        """
        old = self._require_slot(slot_id)
        section_id = require_id(section_id, "section_id")
        subject_id = require_id(subject_id, "subject_id")
        teacher_id = require_id(teacher_id, "teacher_id")
        period_id = require_id(period_id, "period_id")
        day = parse_weekday(weekday)
        self._validate_references(section_id=section_id, subject_id=subject_id, teacher_id=teacher_id, period_id=period_id)

        with self._tx.atomic():
            self._slots.delete(old.slot_id)
            self._audit_removal(old, actor_id=actor_id)
            new_id = self._insert(
                term_id=old.term_id,
                section_id=section_id,
                subject_id=subject_id,
                teacher_id=teacher_id,
                weekday=day,
                period_id=period_id,
            )
            self._audit.record(
                actor_id=actor_id,
                action=AuditAction.SLOT_ASSIGNED,
                entity_type="TimetableSlot",
                entity_id=new_id,
                description=f"Slot {old.slot_id} replaced by slot {new_id}",
                metadata={"term_id": old.term_id, "replaces": old.slot_id},
            )

        logger.info("slot %s replaced by %s", old.slot_id, new_id)
        return self.get_slot(new_id)

    def _audit_removal(self, slot: TimetableSlot, *, actor_id: int) -> None:
        self._audit.record(
            actor_id=actor_id,
            action=AuditAction.SLOT_REMOVED,
            entity_type="TimetableSlot",
            entity_id=slot.slot_id,
            description=f"Slot removed: section {slot.section_id} on {slot.weekday.value} period {slot.period_id}",
            metadata={"term_id": slot.term_id, "teacher_id": slot.teacher_id, "subject_id": slot.subject_id},
        )

    def _require_slot(self, slot_id: int) -> TimetableSlot:
        slot = self._slots.get_by_id(require_id(slot_id, "slot_id"))
        if not slot:
            raise NotFoundError(f"Timetable slot {slot_id} not found")
        return slot

    def get_slot(self, slot_id: int) -> SlotDetail:
        return self._detail(self._require_slot(slot_id))

    def find_scheduled_slot(
        self,
        *,
        term_id: int,
        teacher_id: int,
        section_id: int,
        subject_id: int,
        period_id: int,
        weekday: Weekday,
    ) -> Optional[TimetableSlot]:
        return self._slots.find_matching(
            term_id=term_id,
            teacher_id=teacher_id,
            section_id=section_id,
            subject_id=subject_id,
            period_id=period_id,
            weekday=weekday,
        )

    def lookup_for_section(self, section_id: int, term_id: Optional[int] = None) -> Dict[Weekday, List[SlotDetail]]:
        term = self._resolve_term(term_id)
        slots = self._slots.list_for_section(term_id=term.term_id, section_id=require_id(section_id, "section_id"))
        return self._group_by_weekday(slots)

    def lookup_for_teacher(self, teacher_id: int, term_id: Optional[int] = None) -> Dict[Weekday, List[SlotDetail]]:
        term = self._resolve_term(term_id)
        slots = self._slots.list_for_teacher(term_id=term.term_id, teacher_id=require_id(teacher_id, "teacher_id"))
        return self._group_by_weekday(slots)

    def _group_by_weekday(self, slots) -> Dict[Weekday, List[SlotDetail]]:
        details = [self._detail(s) for s in slots]
        details.sort(key=lambda d: (d.slot.weekday.sort_key, d.period.sort_order, d.period.start_time))

        grouped: Dict[Weekday, List[SlotDetail]] = {}
        for d in details:
            grouped.setdefault(d.slot.weekday, []).append(d)
        return grouped

    def _detail(self, slot: TimetableSlot) -> SlotDetail:
        section = self._directory.get_section(slot.section_id)
        subject = self._directory.get_subject(slot.subject_id)
        teacher = self._directory.get_user(slot.teacher_id)
        period = self._directory.get_period(slot.period_id)
        if not (section and subject and teacher and period):
            raise NotFoundError(f"Timetable slot {slot.slot_id} references a missing entity")
        return SlotDetail(slot=slot, section=section, subject=subject, teacher=teacher, period=period)
