"""Normalizers for Russian text found on Schools.by pages."""

import re
from datetime import date, datetime, timedelta, timezone

from src.schoolsby.errors import DatePhraseError, InvalidInputError
from src.schoolsby.models import Weekday

# Schools.by shows dates in Belarus time, which has no DST
MINSK_TZ = timezone(timedelta(hours=3), "Europe/Minsk")

_DAY_NAMES: dict[str, Weekday] = {
    "понедельник": Weekday.MONDAY,
    "вторник": Weekday.TUESDAY,
    "среда": Weekday.WEDNESDAY,
    "четверг": Weekday.THURSDAY,
    "пятница": Weekday.FRIDAY,
    "суббота": Weekday.SATURDAY,
    "воскресенье": Weekday.SUNDAY,
}

_LESSON_TITLES: dict[str, str] = {
    "Англ. яз.": "Английский язык",
    "Бел. лит.": "Белорусская литература",
    "Бел. яз.": "Белорусский язык",
    "Рус. яз.": "Русский язык",
    "Рус. лит.": "Русская литература",
    "Физ. к. и зд.": "Физическая культура и здоровье",
    "Матем.": "Математика",
    "Труд. обуч.": "Трудовое обучение",
    "Информ. час": "Информационный час",
    "ЧЗС": "Час здоровья и спорта",
    "Кл. час": "Классный час",
    "Всемир. ист.": "Всемирная история",
    "Обществов.": "Обществоведение",
    "Ист. Бел.": "История Беларуси",
    "Информ.": "Информатика",
}

# Genitive month names, as in "1 сентября"
_MONTHS: dict[str, int] = {
    "января": 1,
    "февраля": 2,
    "марта": 3,
    "апреля": 4,
    "мая": 5,
    "июня": 6,
    "июля": 7,
    "августа": 8,
    "сентября": 9,
    "октября": 10,
    "ноября": 11,
    "декабря": 12,
}

_DATE_RE = re.compile(r"(\d{1,2})\s+([а-яё]+)(?:\s+(\d{4}))?", re.IGNORECASE)


def russian_day_to_weekday(text: str) -> Weekday:
    """Convert a Russian weekday name (e.g. "Понедельник") to Weekday.

    Raises:
        InvalidInputError: If text is not a weekday name.
    """
    day = _DAY_NAMES.get(text.strip().lower())
    if day is None:
        raise InvalidInputError(f"Value {text!r} is not a valid day of week name.")
    return day


def unfold_lesson_title(title: str) -> str:
    """Expand a shortened lesson title ("Матем." -> "Математика").

    Unknown titles are returned unchanged.
    """
    return _LESSON_TITLES.get(title, title)


def parse_date_phrase(text: str, now: datetime | None = None) -> date:
    """Parse a journal date cell into a calendar date.

    Understands "15 сентября", "15 сентября 2021" and the relative words
    "сегодня", "вчера", "завтра". Omitted years default to the current one.
    Relative words are resolved in Minsk time.

    Args:
        text: Date cell text.
        now: Reference instant (defaults to the current time).

    Raises:
        DatePhraseError: If text has no recognizable date.
    """
    if now is None:
        now = datetime.now(MINSK_TZ)
    elif now.tzinfo is not None:
        now = now.astimezone(MINSK_TZ)
    today = now.date()

    lowered = text.lower()
    if "сегодня" in lowered:
        return today
    if "вчера" in lowered:
        return today - timedelta(days=1)
    if "завтра" in lowered:
        return today + timedelta(days=1)

    match = _DATE_RE.search(text)
    if match is None:
        raise DatePhraseError(f"No date found in {text!r}")
    day_text, month_text, year_text = match.groups()
    month = _MONTHS.get(month_text.lower())
    if month is None:
        raise DatePhraseError(f"Unknown month {month_text!r} in {text!r}")
    year = int(year_text) if year_text else today.year
    try:
        return date(year, month, int(day_text))
    except ValueError as e:
        raise DatePhraseError(f"Invalid date in {text!r}: {e}") from e
