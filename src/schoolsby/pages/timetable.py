"""Weekly timetable pages of classes and teachers.

Class timetable at /class/{id}/timetable:
  div.ttb_boxes
    div.ttb_box (one per day)
      div.ttb_day -> "Понедельник"
      table tbody tr
        td.num   -> "3."
        td.time  -> "10:20 – 11:05"
        td.subjs -> a[title] per subject (a.subj[href=/journal/{id}]),
                    or span[title] when the subject has no journal link;
                    several titles mean a split slot ("Англ. яз. / Нем. яз.")

Teacher timetable at /teacher/{id}/timetable:
  div.tabs1_cbb (tab container)
    div.cc_timeTable (one per shift) table tbody tr
      td.num   -> "1."
      td.bells -> "8:30 – 9:15" (separator rows have none)
      td x 6   -> Monday..Saturday; "—" when free, class attribute set on
                  non-lesson markers other than "crossed-lesson"
        div.lesson
          a.subject[href=/journal/{id}] -> short subject title
            (or b -> title, when the lesson has no journal)
          span.class a[href=/class/{id}]
"""

from bs4 import Tag

from src.schoolsby.errors import InvalidInputError, UnknownParseError
from src.schoolsby.logging import get_logger
from src.schoolsby.models import (
    SCHOOL_DAYS,
    TimeConstraints,
    Timetable,
    TimetableLesson,
    TwoShiftsTimetable,
    Weekday,
)
from src.schoolsby.pages.dom import (
    attr,
    body_rows,
    child_tags,
    class_name,
    id_after,
    last_segment_id,
    own_text,
    parse_html,
    to_int,
)
from src.schoolsby.text import russian_day_to_weekday, unfold_lesson_title

log = get_logger(__name__)

# Placeholder shown in a teacher timetable cell without a lesson
EMPTY_CELL = "—"


def _place(row: Tag, selector: str) -> int | None:
    return to_int(own_text(row.select_one(selector)).removesuffix("."))


def guess_second_shift(timetable: Timetable) -> bool:
    """Guess whether a class studies in the second shift.

    Looks at the first lesson of the first weekday (Saturday excluded) that
    has one; a start at 12:00 or later means second shift.
    """
    for day in SCHOOL_DAYS:
        if day == Weekday.SATURDAY:
            continue
        for lesson in timetable[day]:
            if lesson.place == 1:
                return lesson.time.start_hour >= 12
    return False


class ClassTimetablePage:
    """Weekly timetable of one class."""

    URL_PATH = "class/{class_id}/timetable"

    DAY_BOX = "div.ttb_boxes div.ttb_box"
    DAY_NAME = "div.ttb_day"
    PLACE = "td.num"
    TIME = "td.time"
    SUBJECTS = "td.subjs"
    JOURNAL_LINK = "a.subj"

    def __init__(self, html: str, path: str | None = None) -> None:
        self.soup = parse_html(html)
        self.path = path

    def extract(self, class_id: int) -> Timetable:
        """Parse every day box into a Timetable (teacher ids unresolved).

        Raises:
            UnknownParseError: If a day name, lesson number or lesson time
                cannot be read.
        """
        days: dict[Weekday, tuple[TimetableLesson, ...]] = {}
        for box in self.soup.select(self.DAY_BOX):
            day_text = own_text(box.select_one(self.DAY_NAME))
            try:
                day = russian_day_to_weekday(day_text)
            except InvalidInputError as e:
                raise UnknownParseError(
                    str(e), path=self.path, element=self.DAY_NAME
                ) from e
            if day == Weekday.SUNDAY:
                log.warning("sunday_box_skipped", class_id=class_id, path=self.path)
                continue

            lessons: list[TimetableLesson] = []
            for row in body_rows(box.find("table")):
                lesson = self._parse_row(row, class_id)
                if lesson is not None:
                    lessons.append(lesson)
            days[day] = tuple(lessons)

        timetable = Timetable(days=days)
        log.debug(
            "class_timetable_extracted",
            class_id=class_id,
            lessons=sum(1 for _ in timetable.lessons()),
        )
        return timetable

    def _parse_row(self, row: Tag, class_id: int) -> TimetableLesson | None:
        place = _place(row, self.PLACE)
        if place is None:
            raise UnknownParseError(
                "Failed detecting lesson number", path=self.path, element=str(row)
            )
        time = TimeConstraints.parse(own_text(row.select_one(self.TIME)))
        if time is None:
            raise UnknownParseError(
                "Failed detecting lesson time", path=self.path, element=str(row)
            )

        title = self._title(row.select_one(self.SUBJECTS))
        if title is None:
            log.debug("timetable_slot_skipped", path=self.path, place=place)
            return None

        journal_link = row.select_one(self.JOURNAL_LINK)
        journal_id = id_after(attr(journal_link, "href"), "journal")
        return TimetableLesson(
            place=place,
            time=time,
            title=title,
            class_id=class_id,
            journal_id=journal_id,
        )

    @staticmethod
    def _title(cell: Tag | None) -> str | None:
        """Join distinct title attributes of links (or spans, without links)."""
        if cell is None:
            return None
        elements = cell.find_all("a") or cell.find_all("span")
        titles: list[str] = []
        for element in elements:
            title = attr(element, "title").strip()
            if title and title not in titles:
                titles.append(title)
        if not titles:
            return None
        return " / ".join(titles)


class TeacherTimetablePage:
    """Weekly timetable of a teacher (also administration and director)."""

    URL_PATH = "teacher/{teacher_id}/timetable"

    SHIFT_TABLE = "div.cc_timeTable"
    TABS = "div.tabs1_cbb"
    PLACE = "td.num"
    BELLS = "td.bells"
    LESSON = "div.lesson"
    SUBJECT = "a.subject"
    CLASS_LINK = "span.class a"

    def __init__(self, html: str, path: str | None = None) -> None:
        self.soup = parse_html(html)
        self.path = path

    def _available_shifts(self) -> tuple[bool, bool]:
        count = len(self.soup.select(self.SHIFT_TABLE))
        if count == 2:
            return True, True
        if count == 1:
            # A lone table is the first shift when it is the second child of
            # the tab container (the first child is the tab switcher)
            first_shift = second_shift = False
            tabs = self.soup.select_one(self.TABS)
            if tabs is not None:
                for index, child in enumerate(child_tags(tabs)):
                    if class_name(child) == "cc_timeTable":
                        if index == 1:
                            first_shift = True
                        else:
                            second_shift = True
            return first_shift, second_shift
        raise UnknownParseError(
            f"Shifts detection failure: found {count} timetable containers",
            path=self.path,
            element=self.SHIFT_TABLE,
        )

    def _table(self, index: int) -> Tag:
        tables = self.soup.select(f"{self.SHIFT_TABLE} table")
        if index >= len(tables):
            raise UnknownParseError(
                f"Timetable table #{index + 1} not found",
                path=self.path,
                element=f"{self.SHIFT_TABLE} table",
            )
        return tables[index]

    def extract(self, teacher_id: int) -> TwoShiftsTimetable:
        """Parse both shifts. Every slot gets {teacher_id} as its teacher set.

        Raises:
            UnknownParseError: If shift tables, a lesson number or a class link
                cannot be read.
        """
        has_first, has_second = self._available_shifts()
        first: dict[Weekday, list[TimetableLesson]] = {day: [] for day in SCHOOL_DAYS}
        second: dict[Weekday, list[TimetableLesson]] = {day: [] for day in SCHOOL_DAYS}

        if has_first:
            self._parse_table(self._table(0), teacher_id, first)
        if has_second:
            self._parse_table(self._table(1 if has_first else 0), teacher_id, second)

        log.debug(
            "teacher_timetable_extracted",
            teacher_id=teacher_id,
            first_shift=has_first,
            second_shift=has_second,
        )
        return TwoShiftsTimetable(
            days={day: (tuple(first[day]), tuple(second[day])) for day in SCHOOL_DAYS}
        )

    def _parse_table(
        self,
        table: Tag,
        teacher_id: int,
        target: dict[Weekday, list[TimetableLesson]],
    ) -> None:
        for row in body_rows(table):
            place = _place(row, self.PLACE)
            if place is None:
                raise UnknownParseError(
                    "Lesson place detection failure", path=self.path, element=str(row)
                )
            bells = TimeConstraints.parse(own_text(row.select_one(self.BELLS)))
            if bells is None:
                continue

            for index, cell in enumerate(row.find_all("td", recursive=False)):
                if class_name(cell) not in ("", "crossed-lesson"):
                    continue
                if own_text(cell) == EMPTY_CELL:
                    continue
                # Columns 0 and 1 are the number and bells cells
                day_index = index - 2
                if not 0 <= day_index < len(SCHOOL_DAYS):
                    continue
                day = SCHOOL_DAYS[day_index]
                for block in cell.select(self.LESSON):
                    lesson = self._parse_lesson(block, place, bells, teacher_id)
                    if lesson is not None:
                        target[day].append(lesson)

    def _parse_lesson(
        self, block: Tag, place: int, bells: TimeConstraints, teacher_id: int
    ) -> TimetableLesson | None:
        subject = block.select_one(self.SUBJECT)
        if subject is not None:
            title = own_text(subject)
            journal_id = id_after(attr(subject, "href"), "journal")
        else:
            bold = block.find("b")
            if bold is None:
                log.warning("lesson_block_skipped", path=self.path, place=place)
                return None
            title = own_text(bold)
            journal_id = None

        class_id = last_segment_id(attr(block.select_one(self.CLASS_LINK), "href"))
        if class_id is None:
            raise UnknownParseError(
                "Class ID detection failure", path=self.path, element=str(block)
            )
        return TimetableLesson(
            place=place,
            time=bells,
            title=unfold_lesson_title(title),
            class_id=class_id,
            teacher_ids=frozenset({teacher_id}),
            journal_id=journal_id,
        )
