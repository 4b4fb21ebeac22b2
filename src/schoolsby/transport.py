"""HTTP transport shared by all Schools.by calls.

Transport owns a single requests.Session (connection pool, user agent,
timeouts). The session is created on first use and shared by every call made
through the same Transport until close() is called.
"""

import threading
from http.cookiejar import DefaultCookiePolicy
from urllib.parse import urlsplit, urlunsplit

import requests
from requests.adapters import HTTPAdapter

from src.schoolsby.config import SchoolsByConfig, get_config
from src.schoolsby.logging import get_logger

logger = get_logger(__name__)


class _NoPersistPolicy(DefaultCookiePolicy):
    def set_ok(self, cookie, request) -> bool:
        return False


class HostHeaderSSLAdapter(HTTPAdapter):
    """HTTPS adapter that checks the certificate against the Host header.

    In bypass mode requests go to https://<bypass_ip>/..., so without this the
    TLS server name and certificate hostname check would use the IP and the
    portal certificate would never match. The names are part of the pool key,
    so pools for different portal hosts on the same IP stay separate.
    """

    def build_connection_pool_key_attributes(self, request, verify, cert=None):
        host_params, pool_kwargs = super().build_connection_pool_key_attributes(
            request, verify, cert
        )
        host = request.headers.get("Host")
        if host:
            hostname = host.partition(":")[0]
            pool_kwargs["server_hostname"] = hostname
            pool_kwargs["assert_hostname"] = hostname
        return host_params, pool_kwargs


class Transport:
    """Thin wrapper around requests.Session with an explicit lifecycle.

    Usable as a context manager:

        with Transport() as transport:
            gateway = SessionGateway(transport)
            ...
    """

    def __init__(
        self,
        config: SchoolsByConfig | None = None,
        session: requests.Session | None = None,
    ) -> None:
        """Initialize Transport.

        Args:
            config: Client configuration (defaults to get_config()).
            session: Pre-built session to use instead of creating one.
        """
        self.config = config or get_config()
        self._session = session
        self._closed = False
        self._lock = threading.Lock()

    @property
    def session(self) -> requests.Session:
        if self._closed:
            raise RuntimeError("Transport is closed")
        if self._session is None:
            with self._lock:
                if self._session is None:
                    self._session = self._build_session()
        return self._session

    def _build_session(self) -> requests.Session:
        session = requests.Session()
        session.headers["User-Agent"] = self.config.user_agent
        # Cookies travel with each call's Credentials, never in the shared jar
        session.cookies.set_policy(_NoPersistPolicy())
        if self.config.use_bypass:
            session.mount("https://", HostHeaderSSLAdapter())
        logger.debug("transport_session_created", bypass=self.config.use_bypass)
        return session

    def _route(self, url: str, headers: dict[str, str]) -> str:
        """Swap the host for bypass_ip while keeping the Host header."""
        if not self.config.use_bypass or not self.config.bypass_ip:
            return url
        parts = urlsplit(url)
        headers.setdefault("Host", parts.netloc)
        return urlunsplit(parts._replace(netloc=self.config.bypass_ip))

    def request(
        self,
        method: str,
        url: str,
        *,
        cookies: dict[str, str] | None = None,
        data: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
        allow_redirects: bool = True,
    ) -> requests.Response:
        """Issue a request. Network errors propagate as requests exceptions."""
        headers = dict(headers or {})
        target = self._route(url, headers)
        logger.debug("http_request", method=method, url=url)
        response = self.session.request(
            method,
            target,
            cookies=cookies,
            data=data,
            headers=headers,
            allow_redirects=allow_redirects,
            timeout=self.config.request_timeout,
        )
        logger.debug("http_response", url=url, status=response.status_code)
        return response

    def get(self, url: str, **kwargs) -> requests.Response:
        return self.request("GET", url, **kwargs)

    def post(self, url: str, **kwargs) -> requests.Response:
        return self.request("POST", url, **kwargs)

    def close(self) -> None:
        """Release pooled connections. The transport is unusable afterwards."""
        if self._session is not None:
            self._session.close()
            self._session = None
        self._closed = True
        logger.debug("transport_closed")

    def __enter__(self) -> "Transport":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
