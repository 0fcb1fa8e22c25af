"""Per-IP fixed-window rate limiting.

Buckets live in process memory only. Restarting the process resets every
counter, and several instances each keep their own counters; the limiter is a
coarse abuse guard, not a quota ledger.
"""
import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Dict, Optional

logger = logging.getLogger(__name__)

# Configuration constants
DEFAULT_WINDOW_SECONDS = 60 * 60
DEFAULT_MAX_REQUESTS = 20
CLEANUP_INTERVAL_SECONDS = 5 * 60


@dataclass
class RateLimitBucket:
    """Request counter for one client IP and one window."""

    count: int
    reset_at: float


@dataclass
class RateLimitDecision:
    """Outcome of a single admission check."""

    allowed: bool
    limit: int
    remaining: int
    reset_at: float
    retry_after_seconds: int

    def to_headers(self) -> Dict[str, str]:
        """Rate limit headers attached to every response past the limiter."""
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(math.floor(self.reset_at)),
        }


class FixedWindowRateLimiter:
    """Fixed-window request counter keyed by client IP.

    Note: Uses threading.Lock so the read-check-increment sequence stays
    atomic under threaded servers as well as on a single event loop.
    """

    def __init__(
        self,
        max_requests: int = DEFAULT_MAX_REQUESTS,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        cleanup_interval_seconds: float = CLEANUP_INTERVAL_SECONDS,
    ):
        """
        Args:
            max_requests: Admitted requests per window per IP
            window_seconds: Window length in seconds
            cleanup_interval_seconds: Minimum time between stale-bucket sweeps
        """
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.cleanup_interval_seconds = cleanup_interval_seconds
        # Buckets idle for this long past their reset are dropped.
        self.max_idle_seconds = window_seconds * 2
        self.buckets: Dict[str, RateLimitBucket] = {}
        self._last_cleanup_at = 0.0
        self._lock = threading.Lock()

    def check(self, ip: str, now: Optional[float] = None) -> RateLimitDecision:
        """Count a request from ``ip`` and decide whether to admit it.

        Args:
            ip: Client IP address (empty values share the "unknown" bucket)
            now: Current unix time in seconds (defaults to time.time())

        Returns:
            RateLimitDecision for this request
        """
        if now is None:
            now = time.time()
        key = ip or "unknown"

        with self._lock:
            self._cleanup_stale_buckets(now)

            bucket = self.buckets.get(key)
            if bucket is None or now >= bucket.reset_at:
                bucket = RateLimitBucket(count=0, reset_at=now + self.window_seconds)
                self.buckets[key] = bucket

            # Clamp so clock skew never yields a zero or negative Retry-After.
            retry_after = max(1, math.ceil(bucket.reset_at - now))

            if bucket.count >= self.max_requests:
                return RateLimitDecision(
                    allowed=False,
                    limit=self.max_requests,
                    remaining=0,
                    reset_at=bucket.reset_at,
                    retry_after_seconds=retry_after,
                )

            bucket.count += 1
            return RateLimitDecision(
                allowed=True,
                limit=self.max_requests,
                remaining=max(0, self.max_requests - bucket.count),
                reset_at=bucket.reset_at,
                retry_after_seconds=retry_after,
            )

    def _cleanup_stale_buckets(self, now: float) -> None:
        """Drop buckets idle well past their window. Caller holds the lock."""
        if now - self._last_cleanup_at < self.cleanup_interval_seconds:
            return
        self._last_cleanup_at = now

        expired = [
            key for key, bucket in self.buckets.items()
            if now - bucket.reset_at > self.max_idle_seconds
        ]
        for key in expired:
            del self.buckets[key]
        if expired:
            logger.info(f"Cleaned up {len(expired)} stale rate limit buckets")

    def reset(self) -> None:
        """Forget every bucket (used by tests and on config reload)."""
        with self._lock:
            self.buckets.clear()
            self._last_cleanup_at = 0.0

    def describe_limit(self) -> str:
        """Human-readable limit for 429 bodies."""
        if self.window_seconds == 3600:
            window = "hour"
        elif self.window_seconds == 60:
            window = "minute"
        else:
            window = f"{int(self.window_seconds)} seconds"
        return f"Max {self.max_requests} requests per {window} per IP."
