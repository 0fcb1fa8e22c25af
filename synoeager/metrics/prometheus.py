"""Prometheus metrics - minimal implementation."""
from prometheus_client import Counter, Histogram

# Request counter by endpoint and final outcome
requests_total = Counter(
    "synoeager_requests_total",
    "Total dictionary API requests",
    ["endpoint", "outcome"],
)

# Request latency histogram
request_latency_ms = Histogram(
    "synoeager_request_latency_ms",
    "Request latency in milliseconds",
    ["endpoint"],
    buckets=[10, 50, 100, 200, 500, 1000, 2000, 5000, 10000, 30000],
)

# Errors counter with detailed labels
errors_total = Counter(
    "synoeager_errors_total",
    "Total errors",
    ["endpoint", "error_code", "upstream_status"],
)

# Requests denied by the per-IP limiter
rate_limited_total = Counter(
    "synoeager_rate_limited_total",
    "Total requests rejected by the per-IP rate limiter",
    ["endpoint"],
)

# Completions that could not be parsed or validated
parse_failures_total = Counter(
    "synoeager_parse_failures_total",
    "Total completions rejected by the extraction pipeline",
    ["endpoint", "kind"],  # kind: "parse" or "schema"
)
