"""Client configuration loaded from environment variables."""

import re

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

# https://demo.schools.by/ (notice trailing slash), optionally with a port
_BASE_URL_RE = re.compile(r"^https?://[\w-]+(?:\.[\w-]+)+(?::\d+)?/$")


class SchoolsByConfig(BaseSettings):
    """Client configuration loaded from environment variables.

    Settings are loaded from SCHOOLSBY_* environment variables with sensible
    defaults. For local development, create a .env file in the project root.
    """

    base_url: str = Field(
        default="https://demo.schools.by/",
        description="School subdomain URL, e.g. https://demo.schools.by/",
    )
    login_url: str = Field(
        default="https://schools.by/login",
        description="Central login form URL",
    )

    # Transport settings
    request_timeout: float = Field(
        default=10.0,
        description="Connect/read timeout for each request, in seconds",
    )
    user_agent: str = Field(
        default=(
            "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/120.0 Safari/537.36"
        ),
        description="User-Agent header sent with every request",
    )
    use_bypass: bool = Field(
        default=False,
        description="Connect to bypass_ip directly, keeping the portal Host header",
    )
    bypass_ip: str = Field(
        default="",
        description="IP address used when use_bypass is enabled",
    )
    login_attempts: int = Field(
        default=1,
        ge=1,
        description="Login attempts on transient failures (1 = no retry)",
    )

    # Logging
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format (for production)",
    )
    log_level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    model_config = {
        "env_prefix": "SCHOOLSBY_",
        "case_sensitive": False,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @field_validator("base_url")
    @classmethod
    def _check_base_url(cls, value: str) -> str:
        if not _BASE_URL_RE.match(value):
            raise ValueError(
                f"base_url must look like 'https://<subdomain>.schools.by/', got {value!r}"
            )
        return value


# Singleton pattern
_config: SchoolsByConfig | None = None


def get_config() -> SchoolsByConfig:
    """Get the client configuration singleton.

    Returns:
        SchoolsByConfig: Client configuration instance
    """
    global _config
    if _config is None:
        _config = SchoolsByConfig()
    return _config
