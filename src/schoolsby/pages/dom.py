"""Small helpers over BeautifulSoup used by every page extractor.

Lookups return None (or an empty list) when an element is missing; extractor
code branches on presence instead of catching not-found errors.
"""

import re

from bs4 import BeautifulSoup, Comment, NavigableString, Tag


def parse_html(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def own_text(tag: Tag | None) -> str:
    """Text directly inside tag, excluding descendants, whitespace-collapsed."""
    if tag is None:
        return ""
    parts = [
        str(child)
        for child in tag.children
        if isinstance(child, NavigableString) and not isinstance(child, Comment)
    ]
    return " ".join(" ".join(parts).split())


def text_of(tag: Tag | None) -> str:
    """Full text of tag including descendants, whitespace-collapsed."""
    if tag is None:
        return ""
    return " ".join(tag.get_text(" ").split())


def attr(tag: Tag | None, name: str) -> str:
    """Attribute value as a string ("" when tag or attribute is missing)."""
    if tag is None:
        return ""
    value = tag.get(name)
    if value is None:
        return ""
    if isinstance(value, list):
        return " ".join(value)
    return value


def class_name(tag: Tag) -> str:
    return attr(tag, "class")


def child_tags(tag: Tag) -> list[Tag]:
    return [child for child in tag.children if isinstance(child, Tag)]


def body_rows(table: Tag | None) -> list[Tag]:
    """Data rows of a table: tbody rows, or td-bearing rows outside thead."""
    if table is None:
        return []
    bodies = table.find_all("tbody")
    if bodies:
        return [row for body in bodies for row in body.find_all("tr", recursive=False)]
    return [
        row
        for row in table.find_all("tr")
        if row.find_parent("thead") is None and row.find("td") is not None
    ]


def to_int(text: str | None) -> int | None:
    if text is None:
        return None
    text = text.strip()
    if not re.fullmatch(r"-?\d+", text):
        return None
    return int(text)


def id_after(href: str, segment: str) -> int | None:
    """Numeric id following /segment/ in href ("/journal/15" -> 15)."""
    match = re.search(rf"/{re.escape(segment)}/(\d+)", href)
    return int(match.group(1)) if match else None


def last_segment_id(href: str) -> int | None:
    """Numeric last path segment of href ("/pupil/100135" -> 100135)."""
    return to_int(href.split("?", 1)[0].rstrip("/").rsplit("/", 1)[-1])
