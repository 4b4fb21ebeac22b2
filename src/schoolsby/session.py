"""Session gateway for Schools.by authentication and page fetching.

SessionGateway performs the two-stage login handshake, validates cookies and
wraps every authenticated fetch with uniform error classification, so page
extractors only ever see successfully fetched bodies.
"""

from http.cookies import CookieError, SimpleCookie
from urllib.parse import urljoin

import requests
from pydantic import BaseModel, ConfigDict
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from src.schoolsby.errors import (
    AuthorizationFailedError,
    BadCredentialsError,
    BrokenResponseError,
    PageNotFoundError,
    ServiceUnavailableError,
    TransientError,
    UnknownParseError,
)
from src.schoolsby.logging import get_logger
from src.schoolsby.models import Credentials
from src.schoolsby.pages.login import LoginFormPage
from src.schoolsby.transport import Transport

logger = get_logger(__name__)

# Appears in the final URL when the portal bounced an invalid session around
_REDIRECT_MARKER = "already-redirected"


class Page(BaseModel):
    """A fetched page body together with where it came from."""

    model_config = ConfigDict(frozen=True)

    path: str  # requested path, relative to the school subdomain
    url: str  # final URL after redirects
    text: str


def _set_cookie_headers(response: requests.Response) -> list[str]:
    """Raw Set-Cookie headers of one response, one entry per cookie."""
    raw_headers = getattr(response.raw, "headers", None)
    if raw_headers is not None and hasattr(raw_headers, "getlist"):
        return raw_headers.getlist("Set-Cookie")
    header = response.headers.get("Set-Cookie")
    return [header] if header else []


def _find_cookie(response: requests.Response, name: str) -> str | None:
    """Value the response sets for cookie name, read from the raw headers.

    The cookie jar of a response drops cookies that are already expired, and
    Django clears a session by sending exactly such a cookie
    (`sessionid=""; expires=Thu, 01 Jan 1970 ...; Max-Age=0`).
    """
    for header in _set_cookie_headers(response):
        cookie = SimpleCookie()
        try:
            cookie.load(header)
        except CookieError:
            logger.debug("set_cookie_unparsable", header=header)
            continue
        if name in cookie:
            return cookie[name].value
    return None


def _session_cleared(response: requests.Response) -> bool:
    """True if any response in the redirect chain emptied the sessionid cookie."""
    for hop in (*response.history, response):
        value = _find_cookie(hop, "sessionid")
        if value is not None and value.strip('"') == "":
            return True
    return False


class SessionGateway:
    """Login handshake, cookie checks and classified page fetches.

    All network access goes through the injected Transport.
    """

    def __init__(self, transport: Transport) -> None:
        self.transport = transport
        self.config = transport.config

    def _send(self, method: str, url: str, **kwargs) -> requests.Response:
        try:
            return self.transport.request(method, url, **kwargs)
        except (requests.Timeout, requests.ConnectionError) as e:
            logger.warning("schoolsby_unavailable", url=url, error=str(e))
            raise ServiceUnavailableError("Schools.by did not respond") from e
        except requests.RequestException as e:
            logger.warning(
                "schoolsby_broken_response",
                url=url,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise BrokenResponseError(
                f"Schools.by response could not be read: {type(e).__name__}", url=url
            ) from e

    def url_for(self, path: str) -> str:
        return urljoin(self.config.base_url, path)

    def login(self, username: str, password: str) -> Credentials:
        """Log in and return session cookies.

        Transient failures are retried up to config.login_attempts times.

        Raises:
            AuthorizationFailedError: If Schools.by rejected the credentials.
            ServiceUnavailableError: If Schools.by did not respond.
            UnknownParseError: If expected cookies were missing.
        """
        retrying = Retrying(
            stop=stop_after_attempt(self.config.login_attempts),
            wait=wait_fixed(2),
            retry=retry_if_exception_type(TransientError),
            reraise=True,
        )
        return retrying(self._login, username, password)

    def _login(self, username: str, password: str) -> Credentials:
        login_url = self.config.login_url
        logger.info("login_started", url=login_url)

        form_response = self._send("GET", login_url)
        csrf_token = _find_cookie(form_response, "csrftoken")
        if not csrf_token:
            raise UnknownParseError(
                "First stage of login failed: csrftoken cookie was not found",
                path=login_url,
                element="Set-Cookie: csrftoken",
            )

        form = LoginFormPage(form_response.text).hidden_fields()
        form["csrfmiddlewaretoken"] = csrf_token
        form["username"] = username
        form["password"] = password

        response = self._send(
            "POST",
            login_url,
            data=form,
            cookies={"csrftoken": csrf_token},
            headers={"Referer": login_url},
            allow_redirects=False,
        )

        location = response.headers.get("Location") or login_url
        if "login" in location:
            logger.info("login_rejected", status=response.status_code)
            raise AuthorizationFailedError("Schools.by rejected the login credentials")

        new_csrf_token = _find_cookie(response, "csrftoken")
        session_id = _find_cookie(response, "sessionid")
        if not new_csrf_token or not session_id:
            missing = "csrftoken" if not new_csrf_token else "sessionid"
            raise UnknownParseError(
                f"Second stage of login failed: {missing} cookie was not found",
                path=login_url,
                element=f"Set-Cookie: {missing}",
            )

        logger.info("login_succeeded")
        return Credentials(csrf_token=new_csrf_token, session_id=session_id)

    def check_cookies(self, credentials: Credentials) -> bool:
        """Check whether credentials are still accepted by the portal.

        Raises:
            ServiceUnavailableError: If Schools.by did not respond.
        """
        response = self._send(
            "GET", self.config.base_url, cookies=credentials.as_cookies()
        )
        valid = not _session_cleared(response)
        logger.debug("cookies_checked", valid=valid)
        return valid

    def fetch(self, path: str, credentials: Credentials | None = None) -> Page:
        """GET a page of the school subdomain.

        Args:
            path: Path relative to base_url, e.g. "class/8/timetable".
            credentials: Session cookies; None for public pages.

        Raises:
            BadCredentialsError: If the session cookie was rejected.
            PageNotFoundError: If the page does not exist.
            ServiceUnavailableError: If Schools.by did not respond.
            BrokenResponseError: If the response could not be read (redirect
                loop, broken body).
        """
        url = self.url_for(path)
        cookies = credentials.as_cookies() if credentials else None
        response = self._send("GET", url, cookies=cookies)
        final_url = response.url or url

        if _session_cleared(response) or _REDIRECT_MARKER in final_url:
            logger.info("credentials_rejected", path=path)
            raise BadCredentialsError(f"Credentials were rejected fetching '{path}'")
        if response.status_code == 404:
            raise PageNotFoundError(path)

        return Page(path=path, url=final_url, text=response.text)

    def get_user_id(self, credentials: Credentials) -> int:
        """Return the id of the user owning credentials.

        The login page redirects a logged-in user to their own profile, whose
        last path segment is the user id.

        Raises:
            BadCredentialsError: If the session cookie was rejected.
            UnknownParseError: If no usable redirect was returned.
        """
        login_url = self.config.login_url
        response = self._send(
            "GET",
            login_url,
            cookies=credentials.as_cookies(),
            allow_redirects=False,
        )
        if _session_cleared(response):
            raise BadCredentialsError("Credentials were rejected by the login page")
        if response.status_code == 404:
            raise UnknownParseError("Login page was not found", path=login_url)
        if response.status_code == 200:
            raise UnknownParseError(
                "Schools.by returned unusual HTTP code OK", path=login_url
            )

        location = response.headers.get("Location", "")
        user_id = location.rstrip("/").rsplit("/", 1)[-1]
        if not user_id.isdigit():
            raise UnknownParseError(
                "User ID was not found in location",
                path=login_url,
                element=f"Location: {location!r}",
            )
        return int(user_id)
