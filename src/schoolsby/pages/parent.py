"""ParentProfilePage - pupils listed on a parent's profile at /parent/{id}.

DOM structure:
  div.pp_line div.cnt table tr
    a.user_type_1[href=/pupil/{id}] -> pupil name
    a[href=/class/{id}] (no class attribute) -> pupil's class
"""

from src.schoolsby.logging import get_logger
from src.schoolsby.models import Name, Pupil
from src.schoolsby.pages.dom import attr, class_name, last_segment_id, own_text, parse_html

log = get_logger(__name__)


class ParentProfilePage:
    URL_PATH = "parent/{parent_id}"

    ROWS = "div.pp_line div.cnt table tr"
    PUPIL_LINK = "a.user_type_1"

    def __init__(self, html: str, path: str | None = None) -> None:
        self.soup = parse_html(html)
        self.path = path

    def extract(self) -> list[Pupil]:
        """Pupils of the parent. Rows missing a name, id or class are skipped."""
        pupils: list[Pupil] = []
        for row in self.soup.select(self.ROWS):
            pupil_link = row.select_one(self.PUPIL_LINK)
            if pupil_link is None:
                continue
            name = Name.parse(own_text(pupil_link))
            pupil_id = last_segment_id(attr(pupil_link, "href"))

            class_id = None
            links = row.find_all("a")
            if len(links) > 1 and not class_name(links[1]):
                class_id = last_segment_id(attr(links[1], "href"))

            if name is None or pupil_id is None or class_id is None:
                log.debug("parent_pupil_row_skipped", path=self.path)
                continue
            pupils.append(Pupil(id=pupil_id, name=name, class_id=class_id))
        return pupils
