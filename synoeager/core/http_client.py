"""HTTP client for the upstream LLM gateway with error-body capture."""
import logging
from typing import Any, Callable, Dict, Optional

import httpx

from synoeager.config.settings import UpstreamSettings
from synoeager.core.errors import UpstreamHTTPError
from synoeager.core.security import mask_api_key

logger = logging.getLogger(__name__)

# Captured error bodies are truncated to this many characters.
MAX_CAPTURED_BODY_CHARS = 8192

CHAT_COMPLETIONS_PATH = "/chat/completions"

CaptureCallback = Callable[[str], None]


class CapturingTransport(httpx.AsyncBaseTransport):
    """Transport wrapper that records the body of non-2xx responses.

    The body is buffered on the response, so the caller can still read it
    after it was captured. Each request pipeline builds its own
    transport bound to its own callback; captures never leak across requests.
    """

    def __init__(self, inner: httpx.AsyncBaseTransport, on_error_body: CaptureCallback):
        """
        Args:
            inner: Transport that performs the real I/O
            on_error_body: Called with the (truncated) text of each non-2xx body
        """
        self.inner = inner
        self.on_error_body = on_error_body

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        response = await self.inner.handle_async_request(request)
        if 200 <= response.status_code < 300:
            return response

        # aread() caches the body on the response, so the client reads it again
        # from memory.
        try:
            await response.aread()
        except Exception:
            self.on_error_body("")
            await response.aclose()
            raise

        self.on_error_body(response.text[:MAX_CAPTURED_BODY_CHARS])
        return response

    async def aclose(self) -> None:
        await self.inner.aclose()


def create_upstream_client(
    settings: UpstreamSettings,
    capture_error_body: Optional[CaptureCallback] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """Build an AsyncClient for the gateway.

    Args:
        settings: Upstream settings (base URL, proxy, timeout)
        capture_error_body: Optional callback receiving non-2xx bodies
        transport: Inner transport override (tests inject a MockTransport)

    Returns:
        Configured httpx.AsyncClient. The caller owns and closes it.
    """
    inner = transport or httpx.AsyncHTTPTransport(proxy=settings.proxy_url)
    if settings.proxy_url and transport is None:
        logger.debug("Routing upstream traffic through configured proxy")

    if capture_error_body is not None:
        inner = CapturingTransport(inner, capture_error_body)

    return httpx.AsyncClient(
        base_url=settings.base_url.rstrip("/"),
        timeout=httpx.Timeout(settings.timeout_s, connect=10.0),
        transport=inner,
    )


def _error_object(response: httpx.Response) -> Optional[Dict[str, Any]]:
    """Return the nested OpenAI-style ``error`` object of a failed response."""
    try:
        data = response.json()
    except ValueError:
        return None
    if isinstance(data, dict) and isinstance(data.get("error"), dict):
        return data["error"]
    return None


class UpstreamLLMClient:
    """Minimal OpenAI-compatible chat completions client."""

    def __init__(
        self,
        settings: UpstreamSettings,
        capture_error_body: Optional[CaptureCallback] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings
        self.client = create_upstream_client(settings, capture_error_body, transport)
        logger.debug(
            f"Upstream client for {settings.base_url} model={settings.model} "
            f"key={mask_api_key(settings.api_key)}"
        )

    def _prepare_headers(self) -> Dict[str, str]:
        """Prepare headers with authentication and gateway attribution."""
        return {
            "Authorization": f"Bearer {self.settings.require_api_key()}",
            "HTTP-Referer": self.settings.referer,
            "X-Title": self.settings.app_name,
            "Content-Type": "application/json",
        }

    async def create_chat_completion(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        POST a chat completion request.

        Args:
            payload: Provider request payload (see OpenRouterAdapter)

        Returns:
            Decoded JSON completion

        Raises:
            UpstreamHTTPError: On any non-2xx answer
            httpx.HTTPError: On network errors and timeouts
        """
        response = await self.client.post(
            CHAT_COMPLETIONS_PATH,
            json=payload,
            headers=self._prepare_headers(),
        )

        if not response.is_success:
            raise UpstreamHTTPError(
                status=response.status_code,
                headers=dict(response.headers),
                error=_error_object(response),
            )

        return response.json()

    async def close(self):
        """Close HTTP client."""
        await self.client.aclose()

    async def __aenter__(self) -> "UpstreamLLMClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
