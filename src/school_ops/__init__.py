"""School operations core.

The package is organized by feature modules (terms, timetable, class sessions,
attendance, audit, ...) with a thin Flask controller layer over
service/repository layers.
"""
