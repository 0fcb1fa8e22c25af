"""Syno-Eager Core - LLM response ingestion primitives."""

from synoeager.core.errors import (
    ConfigurationError,
    ErrorCode,
    ParseError,
    QueryValidationError,
    SchemaValidationError,
    SynoError,
    UpstreamHTTPError,
)
from synoeager.core.error_classifier import ErrorClassification, classify
from synoeager.core.extraction import parse_completion, validate_payload
from synoeager.core.rate_limiter import FixedWindowRateLimiter, RateLimitDecision

__all__ = [
    "ConfigurationError",
    "ErrorClassification",
    "ErrorCode",
    "FixedWindowRateLimiter",
    "ParseError",
    "QueryValidationError",
    "RateLimitDecision",
    "SchemaValidationError",
    "SynoError",
    "UpstreamHTTPError",
    "classify",
    "parse_completion",
    "validate_payload",
]
