"""JournalPage - lessons and teachers of one subject journal at /journal/{id}.

DOM structure:
  div.journal_head h1 -> subject title ("Английский язык")
  div.journal_teachers
    div.jt_row -> a.user_type_3[href=/teacher/{id}]
    div.jt_row.class-time -> homeroom teacher, not a subject teacher
  div.lessons_group (one per teacher / subgroup)
    div.group_head
      a.user_type_3[href=/teacher/{id}]
      span.subgroup -> 'Подгруппа "Группа 1"'
    table tbody tr[lesson_id=...]
      td.place -> "2"
      td.date  -> "15 сентября", "15 сентября 2021", "Сегодня", ...
"""

import re
from datetime import datetime

from bs4 import Tag

from src.schoolsby.errors import DatePhraseError, UnknownParseError
from src.schoolsby.logging import get_logger
from src.schoolsby.models import Lesson
from src.schoolsby.pages.dom import (
    attr,
    body_rows,
    id_after,
    own_text,
    parse_html,
    text_of,
    to_int,
)
from src.schoolsby.text import parse_date_phrase

log = get_logger(__name__)

_QUOTED_RE = re.compile(r"[\"«„“]([^\"«»„“”]+)[\"»“”]")

CLASS_TIME_MARKER = "class-time"


class JournalPage:
    """One subject journal."""

    URL_PATH = "journal/{journal_id}"

    SUBJECT = "div.journal_head h1"
    TEACHER_ROWS = "div.journal_teachers div.jt_row"
    TEACHER_LINK = "a.user_type_3"
    GROUP = "div.lessons_group"
    GROUP_TEACHER = "div.group_head a.user_type_3"
    GROUP_SUBGROUP = "div.group_head .subgroup"
    PLACE = "td.place"
    DATE = "td.date"

    def __init__(self, html: str, path: str | None = None) -> None:
        self.soup = parse_html(html)
        self.path = path
        self._teacher_ids: frozenset[int] | None = None

    def subject_title(self) -> str:
        """Raises UnknownParseError when the journal has no subject title."""
        title = text_of(self.soup.select_one(self.SUBJECT))
        if not title:
            raise UnknownParseError(
                "Journal subject title not found", path=self.path, element=self.SUBJECT
            )
        return title

    def teacher_ids(self) -> frozenset[int]:
        """Teachers of the journal, excluding the class-time (homeroom) entry."""
        if self._teacher_ids is not None:
            return self._teacher_ids
        ids: set[int] = set()
        for row in self.soup.select(self.TEACHER_ROWS):
            if CLASS_TIME_MARKER in (row.get("class") or []):
                continue
            teacher_id = id_after(attr(row.select_one(self.TEACHER_LINK), "href"), "teacher")
            if teacher_id is not None:
                ids.add(teacher_id)
        self._teacher_ids = frozenset(ids)
        return self._teacher_ids

    def extract_lessons(
        self,
        journal_id: int,
        subgroups: dict[int, str] | None = None,
        now: datetime | None = None,
    ) -> list[Lesson]:
        """Parse every dated lesson row of the journal.

        Args:
            journal_id: ID of this journal.
            subgroups: Subgroup id -> title map used to resolve quoted
                subgroup names in group headers.
            now: Reference instant for relative dates.

        Raises:
            UnknownParseError: If the subject title is missing.
        """
        title = self.subject_title()
        journal_teachers = self.teacher_ids()
        subgroups = subgroups or {}

        lessons: list[Lesson] = []
        for group in self.soup.select(self.GROUP):
            group_teacher = id_after(
                attr(group.select_one(self.GROUP_TEACHER), "href"), "teacher"
            )
            teacher_ids = (
                frozenset({group_teacher}) if group_teacher is not None else journal_teachers
            )
            subgroup_ids = self._subgroup_ids(group, subgroups)

            for row in body_rows(group.find("table")):
                try:
                    lesson = self._parse_row(row, now)
                except DatePhraseError as e:
                    log.warning(
                        "lesson_row_skipped",
                        journal_id=journal_id,
                        path=self.path,
                        error=str(e),
                    )
                    continue
                if lesson is None:
                    continue
                lesson_id, place, when = lesson
                lessons.append(
                    Lesson(
                        lesson_id=lesson_id,
                        journal_id=journal_id,
                        teacher_ids=teacher_ids,
                        subgroup_ids=subgroup_ids,
                        title=title,
                        date=when,
                        place=place,
                    )
                )

        log.debug("journal_lessons_extracted", journal_id=journal_id, lessons=len(lessons))
        return lessons

    def _subgroup_ids(self, group: Tag, subgroups: dict[int, str]) -> frozenset[int] | None:
        match = _QUOTED_RE.search(text_of(group.select_one(self.GROUP_SUBGROUP)))
        if match is None:
            return None
        quoted = match.group(1).strip()
        for subgroup_id, subgroup_title in subgroups.items():
            if subgroup_title == quoted:
                return frozenset({subgroup_id})
        log.debug("subgroup_not_matched", title=quoted, path=self.path)
        return None

    def _parse_row(self, row: Tag, now: datetime | None):
        holder = row if row.has_attr("lesson_id") else row.select_one("[lesson_id]")
        lesson_id = to_int(attr(holder, "lesson_id"))
        place = to_int(own_text(row.select_one(self.PLACE)).removesuffix("."))
        if lesson_id is None or place is None:
            log.warning("lesson_row_skipped", path=self.path, reason="missing_id_or_place")
            return None
        when = parse_date_phrase(text_of(row.select_one(self.DATE)), now=now)
        return lesson_id, place, when
