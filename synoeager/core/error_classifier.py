"""Map pipeline failures to client-facing error responses."""
import json
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from synoeager.config.schema import DEFAULT_BILLING_MESSAGE
from synoeager.core.security import redact_sensitive_info

DEFAULT_UPSTREAM_RETRY_AFTER = "60"
UPSTREAM_RATE_LIMIT_MESSAGE = "Rate limit exceeded. Please wait."
FALLBACK_ERROR_MESSAGE = "Upstream API Error"


@dataclass
class ErrorClassification:
    """Client-facing shape of a failed request."""

    status: int
    retry_after: Optional[str] = None
    upstream_message: Optional[str] = None
    error_message: str = FALLBACK_ERROR_MESSAGE

    def to_body(self) -> Dict[str, Any]:
        """JSON body for the error response."""
        if self.status == 429:
            return {"error": UPSTREAM_RATE_LIMIT_MESSAGE}

        body: Dict[str, Any] = {
            "error": self.error_message,
            "upstream_status": self.status,
        }
        if self.upstream_message is not None:
            body["upstream_message"] = self.upstream_message
        return body

    def to_headers(self) -> Dict[str, str]:
        if self.retry_after is not None:
            return {"Retry-After": self.retry_after}
        return {}


def _field(obj: Any, name: str) -> Any:
    """Read ``name`` from a mapping or an attribute, None when absent."""
    if obj is None:
        return None
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)


def _header(headers: Any, name: str) -> Optional[str]:
    """Case-insensitive header lookup over any mapping-like object."""
    if headers is None or not hasattr(headers, "items"):
        return None

    wanted = name.lower()
    for key, value in headers.items():
        if isinstance(key, str) and key.lower() == wanted and value is not None:
            return str(value)
    return None


def _status_of(error: Any) -> int:
    status = _field(error, "status")
    # bool is an int subclass; True is not a status code.
    if isinstance(status, int) and not isinstance(status, bool):
        return status
    return 500


def _nested_message(error: Any) -> Optional[str]:
    message = _field(_field(error, "error"), "message")
    if isinstance(message, str):
        message = message.strip()
        if message:
            return message
    return None


def _captured_message(captured_body: Optional[str]) -> Optional[str]:
    if not captured_body:
        return None
    try:
        data = json.loads(captured_body)
    except ValueError:
        return None
    message = _field(data, "message") if isinstance(data, dict) else None
    if isinstance(message, str):
        message = message.strip()
        if message:
            return message
    return None


def _error_text(error: Any) -> str:
    if isinstance(error, BaseException):
        text = str(error)
    else:
        text = _field(error, "message")
    if isinstance(text, str) and text.strip():
        redacted = redact_sensitive_info(text.strip())
        return redacted if isinstance(redacted, str) else FALLBACK_ERROR_MESSAGE
    return FALLBACK_ERROR_MESSAGE


def classify(
    error: Any,
    captured_body: Optional[str] = None,
    billing_message: str = DEFAULT_BILLING_MESSAGE,
) -> ErrorClassification:
    """Classify a pipeline failure.

    Args:
        error: Exception or error-shaped object (``status``, ``headers`` and a
            nested ``error.message`` are read when present)
        captured_body: Raw upstream error body captured for this request
        billing_message: Text returned when the upstream answers 402

    Returns:
        ErrorClassification describing status, headers and body
    """
    status = _status_of(error)

    if status == 429:
        retry_after = _header(_field(error, "headers"), "retry-after")
        return ErrorClassification(
            status=429,
            retry_after=retry_after or DEFAULT_UPSTREAM_RETRY_AFTER,
            error_message=UPSTREAM_RATE_LIMIT_MESSAGE,
        )

    upstream_message = _nested_message(error) or _captured_message(captured_body)
    if upstream_message is not None:
        upstream_message = redact_sensitive_info(upstream_message)

    if status == 402:
        error_message = billing_message
    else:
        error_message = _error_text(error)

    return ErrorClassification(
        status=status,
        upstream_message=upstream_message,
        error_message=error_message,
    )
