"""LoginFormPage - hidden fields of the central login form at schools.by/login."""

from src.schoolsby.pages.dom import attr, parse_html


class LoginFormPage:
    """Login form served before credentials are posted."""

    FORM = "form:has(input[name='password'])"

    def __init__(self, html: str) -> None:
        self.soup = parse_html(html)

    def hidden_fields(self) -> dict[str, str]:
        """Hidden inputs the form carries (next, csrfmiddlewaretoken, ...).

        Falls back to the first form on the page when no password form exists.
        """
        form = self.soup.select_one(self.FORM) or self.soup.find("form")
        if form is None:
            return {}
        fields: dict[str, str] = {}
        for field in form.select("input[type='hidden'][name]"):
            fields[attr(field, "name")] = attr(field, "value")
        return fields
