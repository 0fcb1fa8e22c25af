"""Pydantic schemas for Syno-Eager configuration validation."""
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_CACHE_CONTROL = "public, s-maxage=86400, stale-while-revalidate=604800"
DEFAULT_BILLING_MESSAGE = (
    "Upstream billing/quota required. "
    "Please add billing or credits in your provider dashboard."
)


class RateLimitConfig(BaseModel):
    """Per-IP fixed-window limiter configuration."""

    model_config = ConfigDict(extra="forbid")

    max_requests: int = Field(default=20, gt=0, description="Admitted requests per window per IP")
    window_s: int = Field(default=3600, gt=0, description="Window length in seconds")
    cleanup_interval_s: int = Field(default=300, gt=0, description="Minimum seconds between stale-bucket sweeps")


class EndpointConfig(BaseModel):
    """Settings for one LLM-backed endpoint."""

    model_config = ConfigDict(extra="forbid")

    cache_control: Optional[str] = Field(
        default=DEFAULT_CACHE_CONTROL,
        description="Cache-Control header for successful responses (null disables it)",
    )
    billing_message: str = Field(
        default=DEFAULT_BILLING_MESSAGE,
        min_length=1,
        description="Outward error text when the upstream answers 402",
    )
    provider_only: Optional[List[str]] = Field(
        default=None,
        description="Restrict OpenRouter routing to these providers (no fallbacks)",
    )
    reasoning_effort: Optional[Literal["low", "medium", "high"]] = Field(
        default=None,
        description="OpenRouter reasoning effort; reasoning tokens are excluded from the reply",
    )
    max_tokens: Optional[int] = Field(default=None, gt=0, description="Completion token cap")


class SynoConfig(BaseModel):
    """Root configuration document."""

    model_config = ConfigDict(extra="forbid")

    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
    endpoints: Dict[str, EndpointConfig] = Field(default_factory=dict)

    def endpoint(self, name: str) -> EndpointConfig:
        """Return the settings for ``name``, falling back to defaults."""
        return self.endpoints.get(name) or EndpointConfig()
