"""Error hierarchy for classifying Schools.by failures.

Transport-level failures (timeouts, rejected cookies, missing pages) and
page-level structural failures each get their own class so callers can
branch on the kind of failure instead of parsing messages.

Example usage with tenacity:
    @retry(retry=retry_if_exception_type(TransientError), stop=stop_after_attempt(3))
    def fetch_timetable(class_id: int):
        ...
"""


class SchoolsByError(Exception):
    """Base exception for all Schools.by errors."""

    pass


class TransientError(SchoolsByError):
    """Temporary failure that may succeed on retry."""

    pass


class ServiceUnavailableError(TransientError):
    """Schools.by did not respond (connection or read timeout)."""

    pass


class PermanentError(SchoolsByError):
    """Failure that won't succeed on retry."""

    pass


class AuthenticationError(PermanentError):
    """Base class for credential problems - needs new login, not a retry."""

    pass


class AuthorizationFailedError(AuthenticationError):
    """Login credentials were rejected (redirect target still points to login)."""

    pass


class BadCredentialsError(AuthenticationError):
    """Session cookies were rejected on an authenticated fetch."""

    pass


class BrokenResponseError(PermanentError):
    """Schools.by answered, but not with anything usable.

    Redirect loops, truncated or undecodable bodies and malformed URLs end up
    here instead of escaping as raw requests exceptions.
    """

    def __init__(self, message: str, *, url: str | None = None) -> None:
        super().__init__(f"{message} (url: {url!r})" if url else message)
        self.url = url


class PageNotFoundError(PermanentError):
    """Requested page returned HTTP 404."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Page '{path}' was not found")
        self.path = path


class UnknownParseError(PermanentError):
    """A required element was absent or malformed on the page.

    Carries the requested path and a description of the offending element
    for diagnostics.
    """

    def __init__(
        self, message: str, *, path: str | None = None, element: str | None = None
    ) -> None:
        details = message
        if path:
            details += f" (path: {path!r})"
        if element:
            details += f" (element: {element})"
        super().__init__(details)
        self.path = path
        self.element = element


class InvalidInputError(ValueError):
    """Text handed to a normalizer is not something it can map.

    Raised for inputs the caller already expected to be well-formed, such as
    a weekday name taken from a timetable header.
    """

    pass


class DatePhraseError(ValueError):
    """A date phrase could not be parsed - callers skip the record."""

    pass
