"""Error codes, exception types and status normalization for Syno-Eager."""
from enum import Enum
from typing import Any, Dict, List, Optional

GENERIC_PARSE_FAILURE = "Failed to parse AI response"


class ErrorCode(str, Enum):
    """Normalized error codes for Syno-Eager.

    Used in structured logs and metrics labels.
    """
    # Client errors (4xx)
    BAD_REQUEST = "BAD_REQUEST"
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"

    # Upstream errors (from the LLM gateway)
    UPSTREAM_RATE_LIMITED = "UPSTREAM_RATE_LIMITED"
    PAYMENT_REQUIRED = "PAYMENT_REQUIRED"
    SERVER_ERROR = "SERVER_ERROR"  # 5xx from upstream
    CLIENT_ERROR = "CLIENT_ERROR"  # 4xx from upstream

    # Completion handling
    PARSE_ERROR = "PARSE_ERROR"
    SCHEMA_VALIDATION_ERROR = "SCHEMA_VALIDATION_ERROR"

    # Configuration errors
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"

    # Internal errors
    INTERNAL_ERROR = "INTERNAL_ERROR"

    @classmethod
    def from_http_status(cls, status_code: int) -> "ErrorCode":
        """Map HTTP status code to error code."""
        if status_code == 429:
            return cls.UPSTREAM_RATE_LIMITED
        elif status_code == 402:
            return cls.PAYMENT_REQUIRED
        elif status_code >= 500:
            return cls.SERVER_ERROR
        elif status_code >= 400:
            return cls.CLIENT_ERROR
        else:
            return cls.INTERNAL_ERROR


class UpstreamStatus(str, Enum):
    """Normalized upstream status codes for metrics.

    Upstream status codes are normalized to reduce Prometheus cardinality.
    Actual status codes are preserved in logs and response bodies.
    """
    OK = "200"

    BAD_REQUEST = "400"
    UNAUTHORIZED = "401"
    PAYMENT_REQUIRED = "402"
    FORBIDDEN = "403"
    NOT_FOUND = "404"
    TOO_MANY_REQUESTS = "429"
    CLIENT_ERROR_OTHER = "4xx"

    INTERNAL_SERVER_ERROR = "500"
    BAD_GATEWAY = "502"
    SERVICE_UNAVAILABLE = "503"
    GATEWAY_TIMEOUT = "504"
    SERVER_ERROR_OTHER = "5xx"

    UNKNOWN = "unknown"

    @classmethod
    def normalize(cls, status_code: Optional[int]) -> str:
        """Normalize HTTP status code to enum value.

        Args:
            status_code: HTTP status code or None

        Returns:
            Normalized status string for metrics
        """
        if status_code is None:
            return cls.UNKNOWN.value

        for member in cls:
            if member.value == str(status_code):
                return member.value

        if 400 <= status_code < 500:
            return cls.CLIENT_ERROR_OTHER.value
        elif 500 <= status_code < 600:
            return cls.SERVER_ERROR_OTHER.value
        return cls.UNKNOWN.value


class SynoError(Exception):
    """Base class for errors raised inside the request pipeline."""

    code: ErrorCode = ErrorCode.INTERNAL_ERROR


class QueryValidationError(SynoError):
    """Query parameters are missing, malformed or unexpected."""

    code = ErrorCode.BAD_REQUEST

    def __init__(self, issues: List[Dict[str, str]]):
        self.issues = issues
        super().__init__("Invalid query parameters")


class ConfigurationError(SynoError):
    """A required server-side setting (e.g. the upstream API key) is missing."""

    code = ErrorCode.CONFIGURATION_ERROR


class ParseError(SynoError):
    """The completion text could not be coerced into JSON.

    The message is always generic; ``stage`` names the last extraction stage
    attempted and is only meant for logs and metrics.
    """

    code = ErrorCode.PARSE_ERROR

    def __init__(self, label: str, stage: str):
        self.label = label
        self.stage = stage
        super().__init__(GENERIC_PARSE_FAILURE)


class SchemaValidationError(SynoError):
    """Parsed JSON does not match the expected response shape."""

    code = ErrorCode.SCHEMA_VALIDATION_ERROR

    def __init__(self, label: str, issues: List[Dict[str, str]]):
        self.label = label
        self.issues = issues
        super().__init__(GENERIC_PARSE_FAILURE)


class UpstreamHTTPError(SynoError):
    """The LLM gateway answered with a non-2xx status.

    Attributes mirror the shape the error classifier inspects: ``status``,
    lower-cased ``headers`` and the nested OpenAI-style ``error`` object
    (``None`` when the body is not shaped that way).
    """

    def __init__(
        self,
        status: int,
        headers: Optional[Dict[str, str]] = None,
        error: Optional[Dict[str, Any]] = None,
    ):
        self.status = status
        self.headers = {k.lower(): v for k, v in (headers or {}).items()}
        self.error = error
        self.code = ErrorCode.from_http_status(status)

        detail = None
        if error is not None:
            message = error.get("message")
            if isinstance(message, str) and message.strip():
                detail = message.strip()
        if detail:
            super().__init__(f"{status} {detail}")
        else:
            super().__init__(f"{status} status code (no body)")
