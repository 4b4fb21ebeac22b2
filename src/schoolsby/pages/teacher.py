"""TeacherProfilePage - quick info of a teacher at /teacher/{id}.

DOM structure:
  div.pp_line a[href*='/class/'] -> 'Классный руководитель 11-го "А"' link
"""

from src.schoolsby.models import SchoolClass
from src.schoolsby.pages.dom import attr, last_segment_id, own_text, parse_html


class TeacherProfilePage:
    URL_PATH = "teacher/{teacher_id}"

    QUICK_INFO_LINKS = "div.pp_line a[href]"

    def __init__(self, html: str, path: str | None = None) -> None:
        self.soup = parse_html(html)
        self.path = path

    def class_teacher_of(self, teacher_id: int) -> SchoolClass | None:
        """Class the teacher is class teacher of, or None if there is none."""
        for link in self.soup.select(self.QUICK_INFO_LINKS):
            href = attr(link, "href")
            if "/class/" not in href:
                continue
            class_id = last_segment_id(href)
            if class_id is None:
                continue
            return SchoolClass(
                id=class_id,
                class_teacher_id=teacher_id,
                title=own_text(link).replace("-го", ""),
            )
        return None
