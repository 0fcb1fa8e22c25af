"""Request orchestration for the LLM-backed dictionary endpoints.

``handle_llm_request`` is the single entry point shared by /api/lookup and
/api/connotation: method check, query validation, per-IP rate limiting,
credential check, one upstream completion, extraction and validation, and
error classification.
"""
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Type

from fastapi import Request
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, ValidationError

from synoeager.adapters.llm.openrouter import OpenRouterAdapter
from synoeager.app.dependencies import extract_client_ip, get_app_state
from synoeager.app.prompts import (
    CONNOTATION_RESPONSE_FORMAT,
    LOOKUP_RESPONSE_FORMAT,
    build_connotation_messages,
    build_lookup_messages,
)
from synoeager.app.schemas import (
    ConnotationQuery,
    ConnotationResponse,
    LookupQuery,
    SynonymResponse,
)
from synoeager.config.schema import EndpointConfig
from synoeager.config.settings import UpstreamSettings
from synoeager.core.error_classifier import classify
from synoeager.core.errors import (
    ConfigurationError,
    ErrorCode,
    ParseError,
    QueryValidationError,
    SchemaValidationError,
    SynoError,
    UpstreamHTTPError,
    UpstreamStatus,
)
from synoeager.core.extraction import (
    format_validation_issues,
    parse_completion,
    validate_payload,
)
from synoeager.core.http_client import UpstreamLLMClient
from synoeager.core.logging import structured_logger
from synoeager.core.security import redact_sensitive_info
from synoeager.metrics.prometheus import (
    errors_total,
    parse_failures_total,
    rate_limited_total,
    request_latency_ms,
    requests_total,
)

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET,OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


@dataclass
class RequestContext:
    """Per-request state threaded through the pipeline.

    The upstream transport writes the captured error body here, so a body is
    only ever visible to the request that received it.
    """
    request_id: str
    endpoint: str
    client_ip: Optional[str] = None
    model: Optional[str] = None
    captured_error_body: Optional[str] = None
    start_time: float = field(default_factory=time.time)

    def capture_error_body(self, body: str) -> None:
        self.captured_error_body = body

    def latency_ms(self) -> int:
        return int((time.time() - self.start_time) * 1000)


@dataclass(frozen=True)
class LLMEndpoint:
    """Static description of one LLM-backed endpoint."""
    name: str
    query_model: Type[BaseModel]
    result_model: Type[BaseModel]
    build_messages: Callable[[Any], List[Dict[str, str]]]
    response_format: Dict[str, Any]


LOOKUP_ENDPOINT = LLMEndpoint(
    name="lookup",
    query_model=LookupQuery,
    result_model=SynonymResponse,
    build_messages=build_lookup_messages,
    response_format=LOOKUP_RESPONSE_FORMAT,
)

CONNOTATION_ENDPOINT = LLMEndpoint(
    name="connotation",
    query_model=ConnotationQuery,
    result_model=ConnotationResponse,
    build_messages=build_connotation_messages,
    response_format=CONNOTATION_RESPONSE_FORMAT,
)

_adapter = OpenRouterAdapter()


def _log_and_metric_request(
    ctx: RequestContext,
    outcome: str,
    status: int,
    error_code: Optional[ErrorCode] = None,
    upstream_status: Optional[int] = None,
):
    """Helper to update metrics and log one finished request."""
    latency_ms = ctx.latency_ms()

    requests_total.labels(endpoint=ctx.endpoint, outcome=outcome).inc()
    request_latency_ms.labels(endpoint=ctx.endpoint).observe(latency_ms)

    if outcome == "error" and error_code:
        # Normalize upstream_status for metrics (reduce cardinality)
        upstream_status_norm = UpstreamStatus.normalize(upstream_status)
        errors_total.labels(
            endpoint=ctx.endpoint,
            error_code=error_code.value,
            upstream_status=upstream_status_norm,
        ).inc()

    if outcome == "error":
        level = "ERROR" if status >= 500 else "WARNING"
    else:
        level = "INFO"

    structured_logger.log_request(
        request_id=ctx.request_id,
        endpoint=ctx.endpoint,
        outcome=outcome,
        status=status,
        error_code=error_code.value if error_code else None,
        upstream_status=upstream_status,
        latency_ms=latency_ms,
        model=ctx.model,
        client_ip=ctx.client_ip,
        level=level,
    )


def parse_query(request: Request, model: Type[BaseModel]) -> BaseModel:
    """Validate query parameters against ``model``.

    Repeated keys are passed through as lists so they fail string validation
    instead of silently keeping one value.

    Raises:
        QueryValidationError: On missing, malformed or unknown parameters
    """
    raw: Dict[str, Any] = {}
    for key, value in request.query_params.multi_items():
        if key in raw:
            existing = raw[key]
            raw[key] = existing + [value] if isinstance(existing, list) else [existing, value]
        else:
            raw[key] = value

    try:
        return model.model_validate(raw)
    except ValidationError as e:
        raise QueryValidationError(format_validation_issues(e)) from e


def build_completion_payload(
    endpoint: LLMEndpoint,
    query: BaseModel,
    model: str,
    endpoint_config: EndpointConfig,
) -> Dict[str, Any]:
    """Build the deterministic, schema-constrained completion request."""
    return _adapter.prepare_request(
        messages=endpoint.build_messages(query),
        model=model,
        temperature=0,
        max_tokens=endpoint_config.max_tokens,
        response_format=endpoint.response_format,
        provider_only=endpoint_config.provider_only,
        reasoning_effort=endpoint_config.reasoning_effort,
    )


async def run_completion(
    ctx: RequestContext,
    endpoint: LLMEndpoint,
    query: BaseModel,
    settings: UpstreamSettings,
    endpoint_config: EndpointConfig,
) -> BaseModel:
    """One upstream call followed by extraction and validation."""
    state = get_app_state()
    payload = build_completion_payload(endpoint, query, settings.model, endpoint_config)
    ctx.model = settings.model

    async with UpstreamLLMClient(
        settings,
        capture_error_body=ctx.capture_error_body,
        transport=state.upstream_transport,
    ) as client:
        completion = await client.create_chat_completion(payload)

    normalized = _adapter.parse_response(completion)
    if normalized["finish_reason"] == "length":
        logger.warning(f"[{endpoint.name}] completion truncated at max_tokens")

    data = parse_completion(normalized["content"], endpoint.name)
    return validate_payload(data, endpoint.result_model, endpoint.name)


def _error_response(
    ctx: RequestContext,
    error: Exception,
    endpoint_config: EndpointConfig,
    headers: Dict[str, str],
) -> JSONResponse:
    """Classify a pipeline failure and build the outward response."""
    upstream_status = None

    if isinstance(error, UpstreamHTTPError):
        upstream_status = error.status
        logger.warning(
            f"[{ctx.endpoint}] upstream returned {error.status}: "
            f"{redact_sensitive_info(ctx.captured_error_body or '')}"
        )
    elif isinstance(error, ParseError):
        parse_failures_total.labels(endpoint=ctx.endpoint, kind="parse").inc()
    elif isinstance(error, SchemaValidationError):
        parse_failures_total.labels(endpoint=ctx.endpoint, kind="schema").inc()
    elif not isinstance(error, SynoError):
        logger.error(f"[{ctx.endpoint}] unexpected error: {redact_sensitive_info(error)}", exc_info=True)

    classification = classify(
        error,
        ctx.captured_error_body,
        billing_message=endpoint_config.billing_message,
    )
    headers.update(classification.to_headers())

    error_code = error.code if isinstance(error, SynoError) else ErrorCode.INTERNAL_ERROR
    _log_and_metric_request(
        ctx,
        outcome="error",
        status=classification.status,
        error_code=error_code,
        upstream_status=upstream_status,
    )
    return JSONResponse(
        content=classification.to_body(),
        status_code=classification.status,
        headers=headers,
    )


async def handle_llm_request(request: Request, endpoint: LLMEndpoint) -> Response:
    """Handle one request to an LLM-backed endpoint.

    Args:
        request: Incoming request (any method)
        endpoint: Endpoint description (query/result models, prompt builder)

    Returns:
        JSON response; every response carries the CORS headers and, once the
        limiter has run, the X-RateLimit-* headers.
    """
    state = get_app_state()
    ctx = RequestContext(
        request_id=f"req_{uuid.uuid4().hex[:16]}",
        endpoint=endpoint.name,
    )
    headers = dict(CORS_HEADERS)

    if request.method == "OPTIONS":
        return Response(status_code=204, headers=headers)

    if request.method != "GET":
        _log_and_metric_request(ctx, "rejected", 405, ErrorCode.METHOD_NOT_ALLOWED)
        return JSONResponse(
            content={"error": "Method Not Allowed"},
            status_code=405,
            headers=headers,
        )

    # Invalid queries are rejected before they can consume quota.
    try:
        query = parse_query(request, endpoint.query_model)
    except QueryValidationError as e:
        _log_and_metric_request(ctx, "rejected", 400, e.code)
        return JSONResponse(
            content={"error": str(e), "issues": e.issues},
            status_code=400,
            headers=headers,
        )

    ctx.client_ip = extract_client_ip(request)
    decision = state.rate_limiter.check(ctx.client_ip)
    headers.update(decision.to_headers())

    if not decision.allowed:
        headers["Retry-After"] = str(decision.retry_after_seconds)
        rate_limited_total.labels(endpoint=endpoint.name).inc()
        _log_and_metric_request(ctx, "rejected", 429, ErrorCode.RATE_LIMIT_EXCEEDED)
        return JSONResponse(
            content={"error": f"Rate limit exceeded. {state.rate_limiter.describe_limit()}"},
            status_code=429,
            headers=headers,
        )

    endpoint_config = state.config.endpoint(endpoint.name)

    try:
        settings = UpstreamSettings.from_env()
        settings.require_api_key()
    except ConfigurationError as e:
        logger.error(f"[{endpoint.name}] {e}")
        _log_and_metric_request(ctx, "error", 500, e.code)
        return JSONResponse(content={"error": str(e)}, status_code=500, headers=headers)

    try:
        result = await run_completion(ctx, endpoint, query, settings, endpoint_config)
    except Exception as e:
        return _error_response(ctx, e, endpoint_config, headers)

    if endpoint_config.cache_control:
        headers["Cache-Control"] = endpoint_config.cache_control

    _log_and_metric_request(ctx, "success", 200)
    return JSONResponse(
        content=result.model_dump(mode="json", exclude_none=True, by_alias=True),
        status_code=200,
        headers=headers,
    )
