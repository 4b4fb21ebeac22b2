"""Profile pages: /user/{id} (redirects to /{role}/{id}) and /pupil/{id}.

DOM structure:
  div.title_box h1 -> own text is the full name ("Соловьева Тамара Николаевна")
  div.pp_line a[href] -> quick-info links; a pupil's class link reads
                         '11-го "А"' and points at /class/{id}
"""

import re
from urllib.parse import urlsplit

from src.schoolsby.errors import UnknownParseError
from src.schoolsby.logging import get_logger
from src.schoolsby.models import Name, User, UserRole, make_user
from src.schoolsby.pages.dom import attr, last_segment_id, own_text, parse_html

log = get_logger(__name__)

# "director" profiles live in the same role bucket as "administration"
_ROLE_ALIASES = {"director": "administration"}

_CLASS_LINK_RE = re.compile(r'^\d{1,2}-го\s".+"')


def role_from_url(url: str) -> UserRole | None:
    """Role encoded in the first path segment of a profile URL."""
    segments = [s for s in urlsplit(url).path.split("/") if s]
    if not segments:
        return None
    segment = _ROLE_ALIASES.get(segments[0], segments[0])
    try:
        return UserRole(segment)
    except ValueError:
        return None


class UserProfilePage:
    """Profile page of any user, reached through /user/{id}."""

    URL_PATH = "user/{user_id}"

    NAME = "div.title_box h1"

    def __init__(self, html: str, url: str, path: str | None = None) -> None:
        self.soup = parse_html(html)
        self.url = url
        self.path = path or url

    def extract(self, user_id: int) -> User:
        """Build the User shown on this page.

        Raises:
            UnknownParseError: If the name or the role cannot be detected.
        """
        name_text = own_text(self.soup.select_one(self.NAME))
        name = Name.parse(name_text)
        if name is None:
            raise UnknownParseError(
                f"Name detection failed: bad input {name_text!r}",
                path=self.path,
                element=self.NAME,
            )

        role = role_from_url(self.url)
        if role is None:
            raise UnknownParseError(
                "Role detection failed: unknown profile path",
                path=self.path,
                element=f"url {self.url!r}",
            )

        log.debug("user_extracted", user_id=user_id, role=role.value)
        return make_user(user_id, role, name)


class PupilProfilePage:
    """Profile page of a pupil at /pupil/{id}."""

    URL_PATH = "pupil/{pupil_id}"

    QUICK_INFO_LINKS = "div.pp_line a[href]"

    def __init__(self, html: str, path: str | None = None) -> None:
        self.soup = parse_html(html)
        self.path = path

    def class_id(self) -> int:
        """ID of the class the pupil attends.

        Raises:
            UnknownParseError: If no class link is present.
        """
        for link in self.soup.select(self.QUICK_INFO_LINKS):
            if _CLASS_LINK_RE.match(own_text(link)):
                class_id = last_segment_id(attr(link, "href"))
                if class_id is not None:
                    return class_id
        raise UnknownParseError(
            "Class ID was not found", path=self.path, element=self.QUICK_INFO_LINKS
        )
