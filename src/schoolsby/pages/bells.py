"""BellsPage - school bell schedule at /bells.

DOM structure:
  div.bells_shift (first shift, then second shift)
    table tr
      td.place -> "1"
      td.time  -> "8:30 – 9:15"
"""

from src.schoolsby.logging import get_logger
from src.schoolsby.models import BellSchedule, TimeConstraints, TimetablePlace
from src.schoolsby.pages.dom import body_rows, own_text, parse_html, to_int

log = get_logger(__name__)


class BellsPage:
    URL_PATH = "bells"

    SHIFT = "div.bells_shift"

    def __init__(self, html: str, path: str | None = None) -> None:
        self.soup = parse_html(html)
        self.path = path

    def extract(self) -> BellSchedule:
        """Both shift columns; rows with an unreadable number or time are dropped."""
        shifts: list[tuple[TimetablePlace, ...]] = []
        for column in self.soup.select(self.SHIFT)[:2]:
            places: list[TimetablePlace] = []
            for row in body_rows(column.find("table")):
                place = to_int(own_text(row.select_one("td.place")).removesuffix("."))
                time = TimeConstraints.parse(own_text(row.select_one("td.time")))
                if place is None or time is None:
                    log.debug("bell_row_skipped", path=self.path)
                    continue
                places.append(TimetablePlace(place=place, time=time))
            shifts.append(tuple(places))

        while len(shifts) < 2:
            shifts.append(())
        return BellSchedule(first_shift=shifts[0], second_shift=shifts[1])
