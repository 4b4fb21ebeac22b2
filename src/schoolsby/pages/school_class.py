"""Class pages at /class/{id}/...

DOM structure (per page):

  /class/{id}
    div.title_box h1 -> class title ('11 "А"')
    div.grid_st_r div.r_user_info p.name a.user_type_3[href=.../teacher/{id}]

  /class/{id}/pupils
    div.pupil
      a.user_type_1[href=/pupil/{id}] -> "Last First Middle"
      history (optional)
        li -> a[href=/class/{id}] ... span.date "1 сентября 2020"
              one class link = joined, two = moved from A to B;
              links to users (who made the change) may accompany them

  /class/{id}/pupils/edit (Django formset)
    table.pupils_edit tbody tr
      input[name=form-N-id], form-N-last_name, form-N-first_name, form-N-middle_name

  /class/{id}/pupils/order
    input[name=form-TOTAL_FORMS], then form-N-id / form-N-order pairs

  /class/{id}/edit
    select[name=shift] option[selected] -> "1" first shift, "2" second shift

  /class/{id}/subgroups
    div.subgroup
      .subgroup_title -> title
      a[href=.../subgroup/{id}/edit]
      table tr -> exactly one a[href=/pupil/{id}] per pupil row

  /class/{id}/lessons
    a[href=/journal/{id}] -> one per subject journal
"""

import re

from bs4 import Tag

from src.schoolsby.errors import DatePhraseError, UnknownParseError
from src.schoolsby.logging import get_logger
from src.schoolsby.models import (
    ClassTransfer,
    Name,
    Pupil,
    PupilOrder,
    SchoolClass,
    Subgroup,
)
from src.schoolsby.pages.dom import (
    attr,
    id_after,
    last_segment_id,
    own_text,
    parse_html,
    text_of,
    to_int,
)
from src.schoolsby.text import parse_date_phrase

log = get_logger(__name__)

_EDIT_LINK_RE = re.compile(r"/(\d+)/edit")


class ClassPage:
    """Main page of a class: title and class teacher."""

    URL_PATH = "class/{class_id}"

    TITLE = "div.title_box h1"
    CLASS_TEACHER = "div.grid_st_r div.r_user_info p.name a.user_type_3"

    def __init__(self, html: str, path: str | None = None) -> None:
        self.soup = parse_html(html)
        self.path = path

    def extract(self, class_id: int) -> SchoolClass:
        """Raises UnknownParseError when the class teacher link is missing."""
        title = own_text(self.soup.select_one(self.TITLE))
        teacher_link = self.soup.select_one(self.CLASS_TEACHER)
        teacher_id = id_after(attr(teacher_link, "href"), "teacher")
        if teacher_id is None:
            raise UnknownParseError(
                "Class teacher ID detection failure: no class teacher ID was found",
                path=self.path,
                element=self.CLASS_TEACHER,
            )
        return SchoolClass(id=class_id, class_teacher_id=teacher_id, title=title)


class ClassPupilsPage:
    """Pupil list of a class, with optional per-pupil class history."""

    URL_PATH = "class/{class_id}/pupils"

    PUPIL_ROW = "div.pupil"
    PUPIL_LINK = "a.user_type_1"

    def __init__(self, html: str, path: str | None = None) -> None:
        self.soup = parse_html(html)
        self.path = path

    def extract(self, class_id: int) -> list[Pupil]:
        """Pupils in document order.

        Raises:
            UnknownParseError: If a pupil link has no id or an unparsable name.
        """
        pupils: list[Pupil] = []
        for link in self.soup.select(f"{self.PUPIL_ROW} {self.PUPIL_LINK}"):
            pupil_id = last_segment_id(attr(link, "href"))
            name = Name.parse(own_text(link))
            if pupil_id is None or name is None:
                raise UnknownParseError(
                    f"Pupil detection failed: invalid value {own_text(link)!r}",
                    path=self.path,
                    element=str(link),
                )
            pupils.append(Pupil(id=pupil_id, name=name, class_id=class_id))
        return pupils

    def extract_transfers(self) -> dict[int, list[ClassTransfer]]:
        """Class history of every pupil on the page.

        Pupils without a history list map to an empty list. Entries whose date
        cannot be parsed are skipped.

        Raises:
            UnknownParseError: If an entry has an unexpected number of links.
        """
        transfers: dict[int, list[ClassTransfer]] = {}
        for row in self.soup.select(self.PUPIL_ROW):
            pupil_id = last_segment_id(attr(row.select_one(self.PUPIL_LINK), "href"))
            if pupil_id is None:
                continue
            entries: list[ClassTransfer] = []
            history = row.find("history")
            if history is not None:
                for item in history.find_all("li"):
                    transfer = self._parse_history_item(pupil_id, item)
                    if transfer is not None:
                        entries.append(transfer)
            transfers[pupil_id] = entries
        return transfers

    def _parse_history_item(self, pupil_id: int, item: Tag) -> ClassTransfer | None:
        links = item.find_all("a")
        if len(links) not in (1, 2, 3, 4):
            raise UnknownParseError(
                f"Unexpected number of links in class history: {len(links)}",
                path=self.path,
                element=str(item),
            )
        class_ids = [
            class_id
            for class_id in (id_after(attr(link, "href"), "class") for link in links)
            if class_id is not None
        ]
        if len(class_ids) not in (1, 2):
            raise UnknownParseError(
                f"Unexpected number of class links in class history: {len(class_ids)}",
                path=self.path,
                element=str(item),
            )

        date_cell = item.select_one("span.date")
        date_text = text_of(date_cell) if date_cell is not None else text_of(item)
        try:
            when = parse_date_phrase(date_text)
        except DatePhraseError as e:
            log.warning(
                "history_entry_skipped", pupil_id=pupil_id, path=self.path, error=str(e)
            )
            return None

        if len(class_ids) == 1:
            return ClassTransfer(
                pupil_id=pupil_id, kind="joined", to_class_id=class_ids[0], date=when
            )
        return ClassTransfer(
            pupil_id=pupil_id,
            kind="moved",
            from_class_id=class_ids[0],
            to_class_id=class_ids[1],
            date=when,
        )


class ClassPupilsEditPage:
    """Editable pupil list form; the authoritative source for names."""

    URL_PATH = "class/{class_id}/pupils/edit"

    ROWS = "table.pupils_edit tbody tr"

    def __init__(self, html: str, path: str | None = None) -> None:
        self.soup = parse_html(html)
        self.path = path

    @staticmethod
    def _field(row: Tag, suffix: str) -> str:
        return attr(row.select_one(f"input[name$='-{suffix}']"), "value").strip()

    def extract(self, class_id: int) -> list[Pupil]:
        """One pupil per form row; rows missing id, first or last name are dropped."""
        pupils: list[Pupil] = []
        for row in self.soup.select(self.ROWS):
            pupil_id = to_int(self._field(row, "id"))
            last = self._field(row, "last_name")
            first = self._field(row, "first_name")
            middle = self._field(row, "middle_name") or None
            if pupil_id is None or not first or not last:
                log.debug("pupil_form_row_skipped", path=self.path)
                continue
            pupils.append(
                Pupil(
                    id=pupil_id,
                    name=Name(first=first, middle=middle, last=last),
                    class_id=class_id,
                )
            )
        return pupils


class ClassPupilsOrderPage:
    """Form that sets the order pupils are listed in."""

    URL_PATH = "class/{class_id}/pupils/order"

    TOTAL = "input[name='form-TOTAL_FORMS']"

    def __init__(self, html: str, path: str | None = None) -> None:
        self.soup = parse_html(html)
        self.path = path

    def _value(self, name: str) -> int:
        selector = f"input[name='{name}']"
        value = to_int(attr(self.soup.select_one(selector), "value"))
        if value is None:
            raise UnknownParseError(
                "Pupil ordering field is missing or not a number",
                path=self.path,
                element=selector,
            )
        return value

    def extract(self) -> list[PupilOrder]:
        """Raises UnknownParseError if the count or an indexed pair is missing."""
        total = self._value("form-TOTAL_FORMS")
        return [
            PupilOrder(
                pupil_id=self._value(f"form-{index}-id"),
                order=self._value(f"form-{index}-order"),
            )
            for index in range(total)
        ]


class ClassEditPage:
    """Class settings form."""

    URL_PATH = "class/{class_id}/edit"

    SHIFT_SELECT = "select[name='shift']"

    def __init__(self, html: str, path: str | None = None) -> None:
        self.soup = parse_html(html)
        self.path = path

    def is_second_shift(self) -> bool:
        """True unless the selected shift option has value "1".

        Without a selected option the first option applies, as in a browser.

        Raises:
            UnknownParseError: If the shift select has no options.
        """
        select = self.soup.select_one(self.SHIFT_SELECT)
        option = None
        if select is not None:
            option = select.select_one("option[selected]") or select.find("option")
        if option is None:
            raise UnknownParseError(
                "Shift detection failure: no shift option found",
                path=self.path,
                element=self.SHIFT_SELECT,
            )
        return attr(option, "value").strip() != "1"


class ClassSubgroupsPage:
    """Subgroups a class is divided into."""

    URL_PATH = "class/{class_id}/subgroups"

    BLOCK = "div.subgroup"
    TITLE = ".subgroup_title"
    EDIT_LINK = "a[href*='/edit']"

    def __init__(self, html: str, path: str | None = None) -> None:
        self.soup = parse_html(html)
        self.path = path

    def extract(self) -> list[Subgroup]:
        """Subgroups in document order; blocks without a title or id are skipped."""
        subgroups: list[Subgroup] = []
        for block in self.soup.select(self.BLOCK):
            title = text_of(block.select_one(self.TITLE))
            match = _EDIT_LINK_RE.search(attr(block.select_one(self.EDIT_LINK), "href"))
            if not title or match is None:
                log.warning("subgroup_block_skipped", path=self.path, title=title)
                continue

            pupil_ids: list[int] = []
            for row in block.select("tr"):
                links = row.find_all("a")
                # Rows with several links are headers/teacher rows, not pupils
                if len(links) != 1:
                    continue
                pupil_id = id_after(attr(links[0], "href"), "pupil")
                if pupil_id is not None:
                    pupil_ids.append(pupil_id)

            subgroups.append(
                Subgroup(id=int(match.group(1)), title=title, pupil_ids=tuple(pupil_ids))
            )
        return subgroups


class ClassLessonsPage:
    """Index of every journal of a class."""

    URL_PATH = "class/{class_id}/lessons"

    JOURNAL_LINK = "a[href*='/journal/']"

    def __init__(self, html: str, path: str | None = None) -> None:
        self.soup = parse_html(html)
        self.path = path

    def journal_ids(self) -> list[int]:
        """Distinct journal ids in document order."""
        seen: dict[int, None] = {}
        for link in self.soup.select(self.JOURNAL_LINK):
            journal_id = id_after(attr(link, "href"), "journal")
            if journal_id is not None:
                seen.setdefault(journal_id, None)
        return list(seen)
