from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from functools import partial
from typing import Callable, Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .audit.mysql_audit_repository import MySQLAuditRepository
from .audit.repository import AuditRepository
from .audit.service import AuditTrail
from .authorization.mysql_assignment_repository import MySQLAssignmentRepository
from .authorization.repository import AssignmentRepository
from .authorization.service import SectionAccessPolicy
from .class_sessions.mysql_class_session_repository import MySQLClassSessionRepository
from .class_sessions.repository import ClassSessionRepository
from .class_sessions.service import ClassSessionService
from .common.datetime_utils import now_local
from .common.transaction import TransactionManager
from .database.connection import DBConfig, DatabaseConnection
from .directory.mysql_directory_repository import MySQLDirectoryRepository
from .directory.mysql_enrollment_repository import MySQLEnrollmentRepository
from .directory.repository import DirectoryRepository, EnrollmentRepository
from .terms.mysql_term_repository import MySQLTermRepository
from .terms.repository import TermRepository
from .terms.service import TermService
from .timetable.mysql_timetable_repository import MySQLTimetableRepository
from .timetable.repository import TimetableRepository
from .timetable.service import TimetableService


@dataclass(frozen=True)
class Container:
    transactions: TransactionManager

    terms_repo: TermRepository
    directory_repo: DirectoryRepository
    enrollments_repo: EnrollmentRepository
    assignments_repo: AssignmentRepository
    timetable_repo: TimetableRepository
    class_sessions_repo: ClassSessionRepository
    attendance_repo: AttendanceRepository
    audit_repo: AuditRepository

    audit_trail: AuditTrail
    term_service: TermService
    access_policy: SectionAccessPolicy
    timetable_service: TimetableService
    class_session_service: ClassSessionService
    attendance_service: AttendanceService


def assemble_container(
    *,
    transactions: TransactionManager,
    terms_repo: TermRepository,
    directory_repo: DirectoryRepository,
    enrollments_repo: EnrollmentRepository,
    assignments_repo: AssignmentRepository,
    timetable_repo: TimetableRepository,
    class_sessions_repo: ClassSessionRepository,
    attendance_repo: AttendanceRepository,
    audit_repo: AuditRepository,
    clock: Callable[[], datetime] = now_local,
) -> Container:
    """Wire services over any set of repositories (MySQL or in-memory)."""

    audit_trail = AuditTrail(audit_repo, clock=clock)
    term_service = TermService(terms_repo, transactions, audit_trail)
    access_policy = SectionAccessPolicy(assignments_repo, directory_repo)
    timetable_service = TimetableService(timetable_repo, directory_repo, term_service, transactions, audit_trail)
    class_session_service = ClassSessionService(
        class_sessions_repo,
        timetable_service,
        term_service,
        enrollments_repo,
        directory_repo,
        transactions,
        audit_trail,
        clock=clock,
    )
    attendance_service = AttendanceService(
        attendance_repo,
        term_service,
        enrollments_repo,
        directory_repo,
        access_policy,
        transactions,
        audit_trail,
        clock=clock,
    )

    return Container(
        transactions=transactions,
        terms_repo=terms_repo,
        directory_repo=directory_repo,
        enrollments_repo=enrollments_repo,
        assignments_repo=assignments_repo,
        timetable_repo=timetable_repo,
        class_sessions_repo=class_sessions_repo,
        attendance_repo=attendance_repo,
        audit_repo=audit_repo,
        audit_trail=audit_trail,
        term_service=term_service,
        access_policy=access_policy,
        timetable_service=timetable_service,
        class_session_service=class_session_service,
        attendance_service=attendance_service,
    )


def build_container(*, db_config: dict, timezone: Optional[str] = None) -> Container:
    config = DBConfig(
        host=str(db_config["host"]),
        port=int(db_config.get("port", 3306)),
        user=str(db_config["user"]),
        password=str(db_config["password"]),
        database=str(db_config["database"]),
    )
    conn = DatabaseConnection.get_instance(config)

    return assemble_container(
        transactions=conn,
        terms_repo=MySQLTermRepository(conn),
        directory_repo=MySQLDirectoryRepository(conn),
        enrollments_repo=MySQLEnrollmentRepository(conn),
        assignments_repo=MySQLAssignmentRepository(conn),
        timetable_repo=MySQLTimetableRepository(conn),
        class_sessions_repo=MySQLClassSessionRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        audit_repo=MySQLAuditRepository(conn),
        clock=partial(now_local, timezone),
    )
