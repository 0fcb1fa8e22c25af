"""Shared dependencies and utilities for the Syno-Eager FastAPI application.

This module contains:
- Global state management (config, rate limiter, upstream transport override)
- Client IP extraction for rate limiting
"""
from dataclasses import dataclass, field
from typing import Optional

import httpx
from fastapi import Request

from synoeager.config.schema import SynoConfig
from synoeager.core.rate_limiter import FixedWindowRateLimiter

# Checked in order after the first X-Forwarded-For entry.
_SINGLE_IP_HEADERS = ("x-real-ip", "x-vercel-forwarded-for")


@dataclass
class AppState:
    """Application state container for all shared components.

    ``upstream_transport`` replaces the real network transport when set;
    tests use it to stub the LLM gateway.
    """
    config: SynoConfig = field(default_factory=SynoConfig)
    rate_limiter: FixedWindowRateLimiter = field(default_factory=FixedWindowRateLimiter)
    upstream_transport: Optional[httpx.AsyncBaseTransport] = None


# Global application state instance
app_state = AppState()


def get_app_state() -> AppState:
    """Get the global application state.

    Returns:
        AppState: The global application state instance.
    """
    return app_state


def _normalize_ip(value: str) -> str:
    value = value.strip()
    if value.startswith("[") and "]" in value:
        value = value[1:value.index("]")]
    return value


def extract_client_ip(request: Request) -> str:
    """Resolve the client IP used as the rate limit key.

    Order: first X-Forwarded-For entry, X-Real-IP, X-Vercel-Forwarded-For,
    then the socket peer. Falls back to "unknown".
    """
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        first = _normalize_ip(forwarded_for.split(",")[0])
        if first:
            return first

    for header in _SINGLE_IP_HEADERS:
        value = request.headers.get(header)
        if value:
            ip = _normalize_ip(value)
            if ip:
                return ip

    if request.client and request.client.host:
        return _normalize_ip(request.client.host)

    return "unknown"
