"""Environment-driven settings for the upstream LLM gateway."""
import os
from dataclasses import dataclass
from typing import Optional

from synoeager.core.errors import ConfigurationError

DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_MODEL = "google/gemini-3-flash-preview"
DEFAULT_REFERER = "http://localhost"
DEFAULT_APP_NAME = "Syno-Eager"
DEFAULT_TIMEOUT_S = 60.0

# Checked in order; the first non-empty value wins.
PROXY_ENV_VARS = (
    "OPENROUTER_PROXY_URL",
    "HTTPS_PROXY",
    "HTTP_PROXY",
    "https_proxy",
    "http_proxy",
)


def _env(name: str) -> Optional[str]:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def get_proxy_url() -> Optional[str]:
    """Return the outbound proxy URL, if any proxy variable is set.

    Set ``OPENROUTER_PROXY_URL=http://127.0.0.1:10808`` for a local proxy, or
    rely on the conventional ``HTTPS_PROXY`` / ``HTTP_PROXY`` variables.
    """
    for name in PROXY_ENV_VARS:
        value = _env(name)
        if value:
            return value
    return None


@dataclass(frozen=True)
class UpstreamSettings:
    """Snapshot of the upstream configuration for one request."""

    api_key: Optional[str]
    model: str = DEFAULT_MODEL
    base_url: str = DEFAULT_BASE_URL
    proxy_url: Optional[str] = None
    referer: str = DEFAULT_REFERER
    app_name: str = DEFAULT_APP_NAME
    timeout_s: float = DEFAULT_TIMEOUT_S

    @classmethod
    def from_env(cls) -> "UpstreamSettings":
        """Read settings from the process environment.

        Read per request so a key rotated in the environment takes effect
        without a restart.
        """
        timeout_raw = _env("OPENROUTER_TIMEOUT_S")
        try:
            timeout_s = float(timeout_raw) if timeout_raw else DEFAULT_TIMEOUT_S
        except ValueError:
            raise ConfigurationError(
                f"OPENROUTER_TIMEOUT_S must be a number, got {timeout_raw!r}"
            )

        return cls(
            api_key=_env("OPENROUTER_API_KEY"),
            model=_env("OPENROUTER_MODEL") or DEFAULT_MODEL,
            base_url=_env("OPENROUTER_BASE_URL") or DEFAULT_BASE_URL,
            proxy_url=get_proxy_url(),
            referer=_env("OPENROUTER_SITE_URL") or _env("VERCEL_URL") or DEFAULT_REFERER,
            app_name=_env("OPENROUTER_APP_NAME") or DEFAULT_APP_NAME,
            timeout_s=timeout_s,
        )

    def require_api_key(self) -> str:
        """Return the API key or raise ConfigurationError when it is missing."""
        if not self.api_key:
            raise ConfigurationError("Server misconfiguration: Missing API Key")
        return self.api_key
