"""Pydantic models for Schools.by data.

All data structures use Pydantic v2 for validation, serialization, and type safety.
Every model is frozen: extractors return immutable snapshots.
"""

import re
from datetime import date
from enum import Enum, IntEnum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Weekday(IntEnum):
    """Day of week, numbered like date.weekday()."""

    MONDAY = 0
    TUESDAY = 1
    WEDNESDAY = 2
    THURSDAY = 3
    FRIDAY = 4
    SATURDAY = 5
    SUNDAY = 6


# Timetables cover Monday..Saturday only
SCHOOL_DAYS: tuple[Weekday, ...] = tuple(day for day in Weekday if day != Weekday.SUNDAY)


class Credentials(BaseModel):
    """csrftoken/sessionid cookie pair of a logged-in session."""

    model_config = ConfigDict(frozen=True)

    csrf_token: str = Field(min_length=1)
    session_id: str = Field(min_length=1)

    def as_cookies(self) -> dict[str, str]:
        return {"csrftoken": self.csrf_token, "sessionid": self.session_id}


class Name(BaseModel):
    """Full name of a person as shown on the portal ("Last First [Middle]")."""

    model_config = ConfigDict(frozen=True)

    first: str
    middle: str | None = None
    last: str

    @classmethod
    def parse(cls, text: str | None) -> "Name | None":
        """Parse "Иванов Иван" or "Иванов Иван Иванович".

        Returns None for any other number of tokens.
        """
        if text is None:
            return None
        parts = text.split()
        if len(parts) == 2:
            return cls(first=parts[1], last=parts[0])
        if len(parts) == 3:
            return cls(first=parts[1], middle=parts[2], last=parts[0])
        return None

    def __str__(self) -> str:
        return " ".join(p for p in (self.last, self.first, self.middle) if p)


class UserRole(str, Enum):
    PARENT = "parent"
    PUPIL = "pupil"
    TEACHER = "teacher"
    ADMINISTRATION = "administration"
    DIRECTOR = "director"


class _UserBase(BaseModel):
    """Fields every portal account exposes.

    Equality and hashing use (id, role, name) only, so a Pupil read from a
    profile page equals the same Pupil read from a class roster.
    """

    model_config = ConfigDict(frozen=True)

    id: int
    name: Name

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, _UserBase):
            return NotImplemented
        return (self.id, self.role, self.name) == (other.id, other.role, other.name)

    def __hash__(self) -> int:
        return hash((self.id, self.role, self.name))


class Parent(_UserBase):
    role: Literal[UserRole.PARENT] = UserRole.PARENT


class Pupil(_UserBase):
    role: Literal[UserRole.PUPIL] = UserRole.PUPIL
    class_id: int | None = None  # not exposed on the pupil's own profile page


class Teacher(_UserBase):
    role: Literal[UserRole.TEACHER] = UserRole.TEACHER


class Administration(_UserBase):
    role: Literal[UserRole.ADMINISTRATION] = UserRole.ADMINISTRATION


class Director(_UserBase):
    role: Literal[UserRole.DIRECTOR] = UserRole.DIRECTOR


User = Annotated[
    Union[Parent, Pupil, Teacher, Administration, Director],
    Field(discriminator="role"),
]

_USER_TYPES: dict[UserRole, type[_UserBase]] = {
    UserRole.PARENT: Parent,
    UserRole.PUPIL: Pupil,
    UserRole.TEACHER: Teacher,
    UserRole.ADMINISTRATION: Administration,
    UserRole.DIRECTOR: Director,
}


def make_user(user_id: int, role: UserRole, name: Name) -> User:
    """Build the User variant matching role."""
    return _USER_TYPES[role](id=user_id, name=name)


class SchoolClass(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    class_teacher_id: int
    title: str  # free text, e.g. 11 "А"


_TIME_RANGE_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})\s+[–-]\s+(\d{1,2}):(\d{2})\s*$")


class TimeConstraints(BaseModel):
    """Wall-clock start/end of a lesson."""

    model_config = ConfigDict(frozen=True)

    start_hour: int
    start_minute: int
    end_hour: int
    end_minute: int

    @classmethod
    def parse(cls, text: str | None) -> "TimeConstraints | None":
        """Parse "8:30 – 9:15". Returns None for anything else."""
        if not text:
            return None
        match = _TIME_RANGE_RE.match(text)
        if match is None:
            return None
        start_hour, start_minute, end_hour, end_minute = (int(g) for g in match.groups())
        return cls(
            start_hour=start_hour,
            start_minute=start_minute,
            end_hour=end_hour,
            end_minute=end_minute,
        )

    def __str__(self) -> str:
        return (
            f"{self.start_hour}:{self.start_minute:02d} – "
            f"{self.end_hour}:{self.end_minute:02d}"
        )


class TimetableLesson(BaseModel):
    """One slot of a weekly timetable (a template, not a dated event)."""

    model_config = ConfigDict(frozen=True)

    place: int  # ordinal lesson number within the day
    time: TimeConstraints
    title: str
    class_id: int
    teacher_ids: frozenset[int] | None = None
    journal_id: int | None = None


def _fill_school_days(days: dict, empty) -> dict:
    if Weekday.SUNDAY in days:
        raise ValueError("Timetables do not include Sunday")
    return {day: days.get(day, empty) for day in SCHOOL_DAYS}


def _check_school_day(day: Weekday) -> Weekday:
    day = Weekday(day)
    if day == Weekday.SUNDAY:
        raise KeyError("Timetables do not include Sunday")
    return day


class Timetable(BaseModel):
    """Weekly timetable of a class, Monday..Saturday.

    Days missing from the input are filled with empty tuples, so every
    accessor is always safe to call.
    """

    model_config = ConfigDict(frozen=True)

    days: dict[Weekday, tuple[TimetableLesson, ...]] = Field(
        default_factory=dict, validate_default=True
    )

    @field_validator("days")
    @classmethod
    def _complete_week(cls, days: dict) -> dict:
        return _fill_school_days(days, ())

    def __getitem__(self, day: Weekday) -> tuple[TimetableLesson, ...]:
        return self.days[_check_school_day(day)]

    def with_day(self, day: Weekday, lessons) -> "Timetable":
        """Return a copy with lessons of day replaced."""
        days = dict(self.days)
        days[_check_school_day(day)] = tuple(lessons)
        return Timetable(days=days)

    def lessons(self):
        """Iterate (day, lesson) pairs in week order."""
        for day in SCHOOL_DAYS:
            for lesson in self.days[day]:
                yield day, lesson

    @property
    def monday(self) -> tuple[TimetableLesson, ...]:
        return self.days[Weekday.MONDAY]

    @property
    def tuesday(self) -> tuple[TimetableLesson, ...]:
        return self.days[Weekday.TUESDAY]

    @property
    def wednesday(self) -> tuple[TimetableLesson, ...]:
        return self.days[Weekday.WEDNESDAY]

    @property
    def thursday(self) -> tuple[TimetableLesson, ...]:
        return self.days[Weekday.THURSDAY]

    @property
    def friday(self) -> tuple[TimetableLesson, ...]:
        return self.days[Weekday.FRIDAY]

    @property
    def saturday(self) -> tuple[TimetableLesson, ...]:
        return self.days[Weekday.SATURDAY]


ShiftPair = tuple[tuple[TimetableLesson, ...], tuple[TimetableLesson, ...]]


class TwoShiftsTimetable(BaseModel):
    """Weekly timetable of a teacher: (first shift, second shift) per day."""

    model_config = ConfigDict(frozen=True)

    days: dict[Weekday, ShiftPair] = Field(default_factory=dict, validate_default=True)

    @field_validator("days")
    @classmethod
    def _complete_week(cls, days: dict) -> dict:
        return _fill_school_days(days, ((), ()))

    def __getitem__(self, day: Weekday) -> ShiftPair:
        return self.days[_check_school_day(day)]

    @property
    def first_shift(self) -> Timetable:
        return Timetable(days={day: pair[0] for day, pair in self.days.items()})

    @property
    def second_shift(self) -> Timetable:
        return Timetable(days={day: pair[1] for day, pair in self.days.items()})

    @property
    def monday(self) -> ShiftPair:
        return self.days[Weekday.MONDAY]

    @property
    def tuesday(self) -> ShiftPair:
        return self.days[Weekday.TUESDAY]

    @property
    def wednesday(self) -> ShiftPair:
        return self.days[Weekday.WEDNESDAY]

    @property
    def thursday(self) -> ShiftPair:
        return self.days[Weekday.THURSDAY]

    @property
    def friday(self) -> ShiftPair:
        return self.days[Weekday.FRIDAY]

    @property
    def saturday(self) -> ShiftPair:
        return self.days[Weekday.SATURDAY]


class Lesson(BaseModel):
    """A dated lesson from a journal page."""

    model_config = ConfigDict(frozen=True)

    lesson_id: int
    journal_id: int | None = None
    teacher_ids: frozenset[int] = frozenset()
    subgroup_ids: frozenset[int] | None = None
    title: str
    date: date
    place: int


class Subgroup(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    title: str
    pupil_ids: tuple[int, ...] = ()


class TimetablePlace(BaseModel):
    """One slot of the bell schedule."""

    model_config = ConfigDict(frozen=True)

    place: int
    time: TimeConstraints


class BellSchedule(BaseModel):
    model_config = ConfigDict(frozen=True)

    first_shift: tuple[TimetablePlace, ...] = ()
    second_shift: tuple[TimetablePlace, ...] = ()


class PupilOrder(BaseModel):
    """Position of a pupil in the class list ordering form."""

    model_config = ConfigDict(frozen=True)

    pupil_id: int
    order: int


class ClassTransfer(BaseModel):
    """One entry of a pupil's class history.

    kind is "joined" when the pupil was enrolled into to_class_id, "moved" when
    transferred from from_class_id to to_class_id.
    """

    model_config = ConfigDict(frozen=True)

    pupil_id: int
    kind: Literal["joined", "moved"]
    from_class_id: int | None = None
    to_class_id: int
    date: date
