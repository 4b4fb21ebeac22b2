"""Schools.by scraping client.

Logs in to the Schools.by school portal, fetches its HTML pages and extracts
typed records (users, classes, timetables, journals, bell schedule).
"""

from src.schoolsby.client import SchoolsByClient
from src.schoolsby.errors import (
    AuthorizationFailedError,
    BadCredentialsError,
    PageNotFoundError,
    SchoolsByError,
    ServiceUnavailableError,
    UnknownParseError,
)
from src.schoolsby.models import Credentials, Timetable, TwoShiftsTimetable, Weekday
from src.schoolsby.transport import Transport

__all__ = [
    "SchoolsByClient",
    "Transport",
    "Credentials",
    "Timetable",
    "TwoShiftsTimetable",
    "Weekday",
    "SchoolsByError",
    "AuthorizationFailedError",
    "BadCredentialsError",
    "PageNotFoundError",
    "ServiceUnavailableError",
    "UnknownParseError",
]
