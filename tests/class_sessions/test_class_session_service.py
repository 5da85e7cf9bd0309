from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, time
from threading import Barrier

import pytest

from factories import FRIDAY, MATH, MONDAY, OTHER_TEACHER, P1, P2, SECTION_A, TEACHER, TERM_ID
from fakes import InMemoryClassSessions
from school_ops.core.enums import AuditAction
from school_ops.core.exceptions import (
    NoActiveTermError,
    NoClassTodayError,
    NotFoundError,
    TimetableMismatchError,
    ValidationError,
)


def _open(world, **overrides):
    kwargs = dict(teacher_id=TEACHER, section_id=SECTION_A, subject_id=MATH, period_id=P1, session_date=MONDAY)
    kwargs.update(overrides)
    return world.container.class_session_service.open_session(**kwargs)


def test_open_scheduled_session_returns_session_and_ordered_roster(world, fixed_now):
    world.assign()

    opened = _open(world)

    assert opened.created is True
    assert opened.session.opened_at == fixed_now
    assert opened.session.term_id == TERM_ID
    assert opened.session.session_date == MONDAY
    assert [s.student_id for s in opened.roster] == [1, 2, 3]
    assert [e.entity_id for e in world.audit.entries(AuditAction.CLASS_SESSION_OPENED)] == [
        opened.session.class_session_id
    ]


def test_reopening_is_idempotent_and_keeps_opened_at(world, fixed_now):
    world.assign()
    first = _open(world)

    again = _open(world, now=datetime(2026, 2, 2, 8, 30))

    assert again.created is False
    assert again.session.class_session_id == first.session.class_session_id
    assert again.session.opened_at == fixed_now
    assert len(world.audit.entries(AuditAction.CLASS_SESSION_OPENED)) == 1


def test_unscheduled_period_is_timetable_mismatch(world):
    world.assign()

    with pytest.raises(TimetableMismatchError, match="No matching timetable entry found for this session."):
        _open(world, period_id=P2)


def test_other_teacher_cannot_open_someone_elses_class(world):
    world.assign()

    with pytest.raises(TimetableMismatchError):
        _open(world, teacher_id=OTHER_TEACHER)


def test_non_school_day_is_no_class_today_not_mismatch(world):
    world.assign()

    with pytest.raises(NoClassTodayError):
        _open(world, session_date=FRIDAY)
    with pytest.raises(NoClassTodayError):
        _open(world, session_date="2026-02-07")


def test_string_dates_are_accepted_and_bad_ones_rejected(world):
    world.assign()

    assert _open(world, session_date="2026-02-02").session.session_date == MONDAY
    with pytest.raises(ValidationError):
        _open(world, session_date="02/02/2026")


def test_open_requires_active_term(world):
    world.assign()
    world.terms.deactivate_all()

    with pytest.raises(NoActiveTermError):
        _open(world)


def test_lost_insert_race_returns_winner(world):
    world.assign()

    class LateReader(InMemoryClassSessions):
        """First lookup misses, as if another request inserted right after it."""

        def __init__(self, store):
            super().__init__(store)
            self.misses = 1

        def get_by_key(self, **key):
            if self.misses:
                self.misses -= 1
                return None
            return super().get_by_key(**key)

    winner_id = world.class_sessions.create(
        term_id=TERM_ID,
        teacher_id=TEACHER,
        section_id=SECTION_A,
        subject_id=MATH,
        period_id=P1,
        session_date=MONDAY,
        opened_at=datetime(2026, 2, 2, 7, 59),
    )
    world.container.class_session_service._sessions = LateReader(world.store)

    opened = _open(world)

    assert opened.created is False
    assert opened.session.class_session_id == winner_id
    assert world.audit.entries(AuditAction.CLASS_SESSION_OPENED) == []


def test_concurrent_opens_converge_on_one_session(world):
    world.assign()
    barrier = Barrier(4)

    def attempt(_):
        barrier.wait()
        return _open(world).session.class_session_id

    with ThreadPoolExecutor(max_workers=4) as pool:
        ids = set(pool.map(attempt, range(4)))

    assert len(ids) == 1
    assert len(world.store.tables["class_sessions"]) == 1
    assert len(world.audit.entries(AuditAction.CLASS_SESSION_OPENED)) == 1


def test_get_session_resolves_references(world):
    world.assign()
    opened = _open(world)

    detail = world.container.class_session_service.get_session(opened.session.class_session_id)

    data = detail.to_dict()
    assert data["section"]["name"] == "Grade 7 - A"
    assert data["subject"]["name"] == "Mathematics"
    assert data["teacher"]["user_id"] == TEACHER
    with pytest.raises(NotFoundError):
        world.container.class_session_service.get_session(999)


@pytest.mark.parametrize(
    "at, expected",
    [(time(8, 10), P1), (time(8, 45), P1), (time(9, 0), P2), (time(8, 47), None), (time(12, 0), None)],
)
def test_current_period_covers_time_of_day(world, at, expected):
    now = datetime.combine(MONDAY, at)

    period = world.container.class_session_service.current_period(now=now)

    assert (period.period_id if period else None) == expected


def test_current_period_defaults_to_clock(world):
    assert world.container.class_session_service.current_period().period_id == P1
