"""Secret masking for logs and outward error messages."""
import re
from typing import Any, Optional

SENSITIVE_KEYS = frozenset(
    {"apikey", "api_key", "authorization", "cookie", "password", "secret", "token"}
)

_API_KEY_PATTERN = re.compile(r"sk-[a-zA-Z0-9-]{10,}")
REDACTED = "[REDACTED]"


def mask_api_key(api_key: Optional[str]) -> str:
    """Mask API key for logging (show only first 8 and last 4 characters).

    Args:
        api_key: API key to mask

    Returns:
        Masked API key string
    """
    if not api_key or len(api_key) < 12:
        return "***"

    return f"{api_key[:8]}...{api_key[-4:]}"


def redact_sensitive_info(data: Any, _seen: Optional[set] = None) -> Any:
    """Redact API keys and sensitive fields from strings and containers.

    Strings have anything that looks like an ``sk-`` key replaced. Mappings
    have values under sensitive keys replaced wholesale. Exceptions are turned
    into ``{"name", "message"}`` dicts. Self-referencing containers are
    reported as ``"[Circular]"`` instead of recursing forever.
    """
    if data is None:
        return None

    if isinstance(data, str):
        return _API_KEY_PATTERN.sub(REDACTED, data)

    if isinstance(data, BaseException):
        return {
            "name": type(data).__name__,
            "message": redact_sensitive_info(str(data), _seen),
        }

    if isinstance(data, (dict, list, tuple)):
        seen = _seen if _seen is not None else set()
        if id(data) in seen:
            return "[Circular]"
        seen.add(id(data))

        if isinstance(data, dict):
            redacted = {}
            for key, value in data.items():
                if isinstance(key, str) and key.lower() in SENSITIVE_KEYS:
                    redacted[key] = REDACTED
                else:
                    redacted[key] = redact_sensitive_info(value, seen)
            return redacted

        return [redact_sensitive_info(item, seen) for item in data]

    return data
