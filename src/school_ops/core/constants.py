"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

# MySQL error number for a duplicate entry on a unique key (ER_DUP_ENTRY).
MYSQL_DUPLICATE_ENTRY = 1062

SECTION_TIME_UNIQUE = "section_time_unique"
TEACHER_TIME_UNIQUE = "teacher_time_unique"
UNIQUE_CLASS_SESSION = "unique_class_session"
UNIQUE_SECTION_ATTENDANCE_DAY = "unique_section_attendance_day"
UNIQUE_STUDENT_ATTENDANCE_SESSION = "unique_student_attendance_session"

MAX_REASON_LENGTH = 255
DEFAULT_TIMEZONE = "UTC"
