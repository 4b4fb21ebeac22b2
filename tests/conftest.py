"""Shared fixtures: a fake transport serving canned responses and a local portal."""

import io
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest
import requests
from requests.adapters import HTTPAdapter
from urllib3 import HTTPResponse

from src.schoolsby.config import SchoolsByConfig
from src.schoolsby.session import SessionGateway
from src.schoolsby.transport import Transport

BASE_URL = "https://demo.schools.by/"
LOGIN_URL = "https://schools.by/login"

# How Django's response.delete_cookie() expires a cookie
DELETED_COOKIE_ATTRS = "expires=Thu, 01 Jan 1970 00:00:00 GMT; Max-Age=0; Path=/"


def set_cookie_header(name: str, value: str) -> str:
    if value == "":
        return f'{name}=""; {DELETED_COOKIE_ATTRS}'
    return f"{name}={value}; Path=/; SameSite=Lax"


def make_response(
    url: str,
    text: str = "",
    status: int = 200,
    cookies: dict[str, str] | None = None,
    headers: dict[str, str] | None = None,
    method: str = "GET",
) -> requests.Response:
    """Build a requests.Response from raw wire headers, as HTTPAdapter does.

    cookies become one Set-Cookie header each; an empty value is sent the way
    Django clears a cookie (already expired).
    """
    raw_headers = [("Content-Type", "text/html; charset=utf-8")]
    raw_headers += list((headers or {}).items())
    raw_headers += [
        ("Set-Cookie", set_cookie_header(name, value))
        for name, value in (cookies or {}).items()
    ]
    raw = HTTPResponse(
        body=io.BytesIO(text.encode("utf-8")),
        headers=raw_headers,
        status=status,
        preload_content=False,
        decode_content=False,
    )
    request = requests.Request(method, url).prepare()
    return HTTPAdapter().build_response(request, raw)


class FakeTransport(Transport):
    """Transport answering from a (method, url) -> response table."""

    def __init__(self, config: SchoolsByConfig) -> None:
        super().__init__(config)
        self.routes: dict[tuple[str, str], object] = {}
        self.calls: list[tuple[str, str, dict]] = []

    def add(self, method: str, url: str, result) -> None:
        self.routes[(method, url)] = result

    def add_page(self, path: str, html: str, **kwargs) -> None:
        url = BASE_URL + path
        self.add("GET", url, make_response(url, html, **kwargs))

    def request(self, method: str, url: str, **kwargs) -> requests.Response:
        self.calls.append((method, url, kwargs))
        try:
            result = self.routes[(method, url)]
        except KeyError:
            return make_response(url, "", status=404)
        if isinstance(result, Exception):
            raise result
        return result

    def fetched(self, path: str) -> int:
        return sum(1 for _, url, _ in self.calls if url == BASE_URL + path)


@pytest.fixture
def config() -> SchoolsByConfig:
    return SchoolsByConfig(base_url=BASE_URL, login_url=LOGIN_URL)


@pytest.fixture
def transport(config) -> FakeTransport:
    return FakeTransport(config)


@pytest.fixture
def gateway(transport) -> SessionGateway:
    return SessionGateway(transport)


class PortalHandler(BaseHTTPRequestHandler):
    """Answers from server.routes: (method, path) -> (status, headers, body)."""

    def do_GET(self):
        self._answer("GET")

    def do_POST(self):
        content_length = int(self.headers.get("Content-Length", 0))
        self.rfile.read(content_length)
        self._answer("POST")

    def _answer(self, method: str) -> None:
        self.server.seen.append((method, self.path, self.headers.get("Host", "")))
        status, headers, body = self.server.routes.get(
            (method, self.path), (404, [], "")
        )
        payload = body.encode("utf-8")
        self.send_response(status)
        for name, value in headers:
            self.send_header(name, value)
        self.send_header("Content-Type", "text/html; charset=utf-8")
        self.send_header("Content-Length", str(len(payload)))
        self.end_headers()
        self.wfile.write(payload)

    def log_message(self, format, *args):
        pass


class Portal:
    """A Schools.by stand-in on 127.0.0.1 speaking real HTTP."""

    def __init__(self) -> None:
        self.server = ThreadingHTTPServer(("127.0.0.1", 0), PortalHandler)
        self.server.routes = {}
        self.server.seen = []
        self.address = f"127.0.0.1:{self.server.server_port}"
        self.url = f"http://{self.address}/"
        self._thread = threading.Thread(target=self.server.serve_forever, daemon=True)

    def serve(
        self,
        path: str,
        body: str = "",
        status: int = 200,
        headers: list[tuple[str, str]] | None = None,
        cookies: dict[str, str] | None = None,
        method: str = "GET",
    ) -> None:
        headers = list(headers or [])
        headers += [
            ("Set-Cookie", set_cookie_header(name, value))
            for name, value in (cookies or {}).items()
        ]
        self.server.routes[(method, path)] = (status, headers, body)

    @property
    def seen(self) -> list[tuple[str, str, str]]:
        return self.server.seen

    def start(self) -> None:
        self._thread.start()

    def stop(self) -> None:
        self.server.shutdown()
        self.server.server_close()


@pytest.fixture
def portal():
    portal = Portal()
    portal.start()
    yield portal
    portal.stop()


@pytest.fixture
def live_gateway(portal):
    config = SchoolsByConfig(base_url=portal.url, login_url=portal.url + "login")
    with Transport(config) as transport:
        yield SessionGateway(transport)
