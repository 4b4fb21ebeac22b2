"""Tests for class and teacher timetable extraction."""

import pytest

from src.schoolsby.errors import UnknownParseError
from src.schoolsby.models import TimeConstraints, Timetable, TimetableLesson, Weekday
from src.schoolsby.pages.timetable import (
    ClassTimetablePage,
    TeacherTimetablePage,
    guess_second_shift,
)


def _day_box(day: str, rows: str) -> str:
    return f"""
    <div class="ttb_box">
      <div class="ttb_day">{day}</div>
      <table>
        <thead><tr><th>№</th><th>Время</th><th>Предмет</th></tr></thead>
        <tbody>{rows}</tbody>
      </table>
    </div>
    """


CLASS_TIMETABLE = f"""
<div class="ttb_boxes">
  {_day_box("Понедельник", '''
    <tr>
      <td class="num">1.</td>
      <td class="time">8:30 – 9:15</td>
      <td class="subjs">
        <a class="subj" href="/journal/15" title="Математика">Матем.</a>
        <a class="subj" href="/journal/15" title="Математика">Матем.</a>
      </td>
    </tr>
    <tr>
      <td class="num">2.</td>
      <td class="time">9:25 – 10:10</td>
      <td class="subjs"><span title="Классный час">Кл. час</span></td>
    </tr>
    <tr>
      <td class="num">3.</td>
      <td class="time">10:20 – 11:05</td>
      <td class="subjs"></td>
    </tr>
  ''')}
  {_day_box("Вторник", '''
    <tr>
      <td class="num">1.</td>
      <td class="time">8:30 – 9:15</td>
      <td class="subjs">
        <a class="subj" href="/journal/21" title="Английский язык">Англ. яз.</a>
        <a class="subj" href="/journal/22" title="Немецкий язык">Нем. яз.</a>
      </td>
    </tr>
  ''')}
</div>
"""

MONDAY_8_30 = TimeConstraints(start_hour=8, start_minute=30, end_hour=9, end_minute=15)


class TestClassTimetablePage:
    def test_duplicate_titles_collapse(self):
        timetable = ClassTimetablePage(CLASS_TIMETABLE).extract(8)
        first = timetable.monday[0]
        assert first == TimetableLesson(
            place=1, time=MONDAY_8_30, title="Математика", class_id=8, journal_id=15
        )
        assert first.teacher_ids is None

    def test_span_titles_and_empty_slots(self):
        timetable = ClassTimetablePage(CLASS_TIMETABLE).extract(8)
        assert [lesson.title for lesson in timetable.monday] == ["Математика", "Классный час"]
        assert timetable.monday[1].journal_id is None

    def test_split_slot_titles_are_joined(self):
        timetable = ClassTimetablePage(CLASS_TIMETABLE).extract(8)
        assert timetable.tuesday[0].title == "Английский язык / Немецкий язык"
        assert timetable.tuesday[0].journal_id == 21

    def test_missing_days_are_empty(self):
        timetable = ClassTimetablePage(CLASS_TIMETABLE).extract(8)
        assert timetable.wednesday == ()
        assert timetable.saturday == ()

    def test_unparsable_time_is_fatal(self):
        html = f"""<div class="ttb_boxes">{_day_box("Среда", '''
            <tr><td class="num">1.</td><td class="time">утром</td>
                <td class="subjs"><span title="Математика">Матем.</span></td></tr>
        ''')}</div>"""
        with pytest.raises(UnknownParseError, match="lesson time"):
            ClassTimetablePage(html).extract(8)

    def test_unknown_day_is_fatal(self):
        html = f'<div class="ttb_boxes">{_day_box("Восьмидневка", "")}</div>'
        with pytest.raises(UnknownParseError):
            ClassTimetablePage(html).extract(8)

    def test_sunday_box_is_skipped(self):
        sunday = _day_box("Воскресенье", '''
            <tr><td class="num">1.</td><td class="time">10:00 – 10:45</td>
                <td class="subjs"><span title="Факультатив">Фак.</span></td></tr>
        ''')
        html = f'{CLASS_TIMETABLE}<div class="ttb_boxes">{sunday}</div>'

        timetable = ClassTimetablePage(html).extract(8)

        assert Weekday.SUNDAY not in timetable.days
        assert [lesson.title for lesson in timetable.monday] == ["Математика", "Классный час"]
        assert timetable.tuesday[0].journal_id == 21

    def test_extraction_is_repeatable(self):
        page = ClassTimetablePage(CLASS_TIMETABLE)
        assert page.extract(8).model_dump_json() == page.extract(8).model_dump_json()


def _teacher_table(rows: str) -> str:
    return f"""
    <div class="cc_timeTable">
      <table>
        <thead><tr><th>№</th><th>Звонки</th><th>Пн</th><th>Вт</th><th>Ср</th>
          <th>Чт</th><th>Пт</th><th>Сб</th></tr></thead>
        <tbody>{rows}</tbody>
      </table>
    </div>
    """


def _lesson(title: str, class_id: int, journal_id: int | None = None) -> str:
    if journal_id is None:
        subject = f"<b>{title}</b>"
    else:
        subject = f'<a class="subject" href="/journal/{journal_id}">{title}</a>'
    return (
        f'<div class="lesson">{subject}'
        f'<span class="class"><a href="/class/{class_id}">{class_id}</a></span></div>'
    )


FIRST_SHIFT_ROWS = f"""
<tr>
  <td class="num">1.</td>
  <td class="bells">8:30 – 9:15</td>
  <td>{_lesson("Матем.", 8, journal_id=15)}</td>
  <td>—</td>
  <td class="crossed-lesson">{_lesson("Информ.", 9)}</td>
  <td class="holiday">{_lesson("Матем.", 8, journal_id=15)}</td>
  <td>—</td>
  <td>—</td>
</tr>
<tr>
  <td class="num">2.</td>
  <td></td>
  <td>{_lesson("Матем.", 8, journal_id=15)}</td>
  <td>—</td><td>—</td><td>—</td><td>—</td><td>—</td>
</tr>
"""

SECOND_SHIFT_ROWS = f"""
<tr>
  <td class="num">1.</td>
  <td class="bells">13:30 – 14:15</td>
  <td>—</td><td>—</td><td>—</td><td>—</td><td>—</td>
  <td>{_lesson("Кл. час", 11)}</td>
</tr>
"""


def _teacher_page(*containers: str, leading: bool = True) -> str:
    switcher = '<ul class="tabs"><li>1 смена</li><li>2 смена</li></ul>' if leading else ""
    return f'<div class="tabs1_cbb">{switcher}{"".join(containers)}</div>'


class TestTeacherTimetablePage:
    def test_two_shifts(self):
        html = _teacher_page(
            _teacher_table(FIRST_SHIFT_ROWS), _teacher_table(SECOND_SHIFT_ROWS)
        )
        timetable = TeacherTimetablePage(html).extract(103040)

        first, second = timetable.monday
        assert second == ()
        assert first == (
            TimetableLesson(
                place=1,
                time=MONDAY_8_30,
                title="Математика",
                class_id=8,
                teacher_ids=frozenset({103040}),
                journal_id=15,
            ),
        )
        assert timetable.tuesday == ((), ())
        assert [lesson.title for lesson in timetable.wednesday[0]] == ["Информатика"]
        assert timetable.wednesday[0][0].journal_id is None
        # cells with a marker class other than crossed-lesson are not lessons
        assert timetable.thursday == ((), ())
        saturday_second = timetable.saturday[1]
        assert [(l.title, l.class_id) for l in saturday_second] == [("Классный час", 11)]

    def test_lone_table_after_switcher_is_first_shift(self):
        html = _teacher_page(_teacher_table(FIRST_SHIFT_ROWS))
        timetable = TeacherTimetablePage(html).extract(1)
        assert len(timetable.first_shift.monday) == 1
        assert timetable.second_shift.monday == ()

    def test_lone_table_elsewhere_is_second_shift(self):
        html = _teacher_page(_teacher_table(SECOND_SHIFT_ROWS), leading=False)
        timetable = TeacherTimetablePage(html).extract(1)
        assert timetable.first_shift.saturday == ()
        assert [l.title for l in timetable.second_shift.saturday] == ["Классный час"]

    def test_no_tables_is_fatal(self):
        with pytest.raises(UnknownParseError, match="Shifts detection"):
            TeacherTimetablePage(_teacher_page()).extract(1)

    def test_missing_class_link_is_fatal(self):
        rows = """
        <tr><td class="num">1.</td><td class="bells">8:30 – 9:15</td>
            <td><div class="lesson"><b>Матем.</b></div></td></tr>
        """
        with pytest.raises(UnknownParseError, match="Class ID"):
            TeacherTimetablePage(_teacher_page(_teacher_table(rows))).extract(1)

    def test_extraction_is_repeatable(self):
        page = TeacherTimetablePage(
            _teacher_page(_teacher_table(FIRST_SHIFT_ROWS), _teacher_table(SECOND_SHIFT_ROWS))
        )
        assert page.extract(1).model_dump_json() == page.extract(1).model_dump_json()


def _first_lesson(start_hour: int, day: Weekday = Weekday.MONDAY) -> Timetable:
    lesson = TimetableLesson(
        place=1,
        time=TimeConstraints(
            start_hour=start_hour, start_minute=0, end_hour=start_hour, end_minute=45
        ),
        title="Математика",
        class_id=8,
    )
    return Timetable(days={day: (lesson,)})


class TestGuessSecondShift:
    def test_morning_start(self):
        assert guess_second_shift(_first_lesson(8)) is False

    def test_afternoon_start(self):
        assert guess_second_shift(_first_lesson(13)) is True

    def test_noon_counts_as_second_shift(self):
        assert guess_second_shift(_first_lesson(12)) is True

    def test_saturday_is_ignored(self):
        assert guess_second_shift(_first_lesson(14, Weekday.SATURDAY)) is False

    def test_first_day_with_lessons_wins(self):
        timetable = _first_lesson(14, Weekday.WEDNESDAY)
        assert guess_second_shift(timetable) is True

    def test_empty_timetable(self):
        assert guess_second_shift(Timetable()) is False
