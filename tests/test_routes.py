"""End-to-end tests for /api/lookup, /api/connotation, /health and /metrics."""
import json

import httpx

from synoeager.config.schema import DEFAULT_BILLING_MESSAGE, DEFAULT_CACHE_CONTROL, EndpointConfig

CONNOTATION_PARAMS = {
    "headword": "bright",
    "synonym": "brilliant",
    "partOfSpeech": "adjective",
    "definition": "Giving out or reflecting a lot of light.",
}


def test_lookup_success(client, upstream_env, stub_upstream, bright_entry, make_completion):
    """Test GET /api/lookup?word=bright against a clean upstream answer."""
    seen = stub_upstream(lambda request: httpx.Response(200, json=make_completion(bright_entry)))

    response = client.get("/api/lookup", params={"word": "bright"})

    assert response.status_code == 200
    assert response.json() == bright_entry
    assert response.headers["Cache-Control"] == DEFAULT_CACHE_CONTROL
    assert response.headers["Access-Control-Allow-Origin"] == "*"
    assert response.headers["X-RateLimit-Limit"] == "20"
    assert response.headers["X-RateLimit-Remaining"] == "19"
    assert "X-RateLimit-Reset" in response.headers

    sent = json.loads(seen[0].content)
    assert sent["temperature"] == 0
    assert sent["response_format"]["json_schema"]["name"] == "lookup"
    assert seen[0].headers["Authorization"] == "Bearer sk-or-test-key-1234567890"


def test_lookup_trims_word(client, upstream_env, stub_upstream, bright_entry, make_completion):
    seen = stub_upstream(lambda request: httpx.Response(200, json=make_completion(bright_entry)))

    client.get("/api/lookup", params={"word": "  bright  "})

    sent = json.loads(seen[0].content)
    assert sent["messages"][1]["content"] == 'Define the word: "bright"'


def test_lookup_fenced_completion(client, upstream_env, stub_upstream, bright_entry, make_completion):
    fenced = "```json\n" + json.dumps(bright_entry) + "\n```"
    stub_upstream(lambda request: httpx.Response(200, json=make_completion(fenced)))

    response = client.get("/api/lookup", params={"word": "bright"})

    assert response.status_code == 200
    assert response.json()["word"] == "bright"


def test_word_too_long_is_rejected(client, upstream_env, stub_upstream, app_state):
    seen = stub_upstream(lambda request: httpx.Response(500))

    response = client.get("/api/lookup", params={"word": "a" * 101})

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Invalid query parameters"
    assert body["issues"][0]["path"] == "word"
    assert "80" in body["issues"][0]["message"]
    assert seen == []
    # Rejected queries consume no quota.
    assert app_state.rate_limiter.buckets == {}
    assert "X-RateLimit-Limit" not in response.headers


def test_missing_or_empty_word_is_rejected(client, upstream_env):
    assert client.get("/api/lookup").status_code == 400
    assert client.get("/api/lookup", params={"word": ""}).status_code == 400
    assert client.get("/api/lookup", params={"word": "   "}).status_code == 400


def test_unknown_and_repeated_params_are_rejected(client, upstream_env):
    response = client.get("/api/lookup", params={"word": "bright", "lang": "en"})
    assert response.status_code == 400
    assert response.json()["issues"][0]["path"] == "lang"

    response = client.get("/api/lookup?word=bright&word=dark")
    assert response.status_code == 400


def test_options_returns_204_with_cors(client):
    response = client.options("/api/lookup")

    assert response.status_code == 204
    assert response.content == b""
    assert response.headers["Access-Control-Allow-Origin"] == "*"
    assert response.headers["Access-Control-Allow-Methods"] == "GET,OPTIONS"
    assert response.headers["Access-Control-Allow-Headers"] == "Content-Type"


def test_post_is_not_allowed(client, app_state):
    response = client.post("/api/lookup", params={"word": "bright"})

    assert response.status_code == 405
    assert response.json() == {"error": "Method Not Allowed"}
    assert response.headers["Access-Control-Allow-Origin"] == "*"
    assert app_state.rate_limiter.buckets == {}


def test_rate_limit_after_twenty_requests(client, upstream_env, stub_upstream, bright_entry, make_completion):
    seen = stub_upstream(lambda request: httpx.Response(200, json=make_completion(bright_entry)))

    for _ in range(20):
        assert client.get("/api/lookup", params={"word": "bright"}).status_code == 200

    response = client.get("/api/lookup", params={"word": "bright"})

    assert response.status_code == 429
    assert response.json() == {"error": "Rate limit exceeded. Max 20 requests per hour per IP."}
    assert int(response.headers["Retry-After"]) >= 1
    assert response.headers["X-RateLimit-Remaining"] == "0"
    assert "Cache-Control" not in response.headers
    assert len(seen) == 20


def test_rate_limit_is_per_forwarded_ip(client, upstream_env, stub_upstream, bright_entry, make_completion):
    stub_upstream(lambda request: httpx.Response(200, json=make_completion(bright_entry)))

    for _ in range(20):
        client.get("/api/lookup", params={"word": "bright"}, headers={"X-Forwarded-For": "1.1.1.1"})

    blocked = client.get("/api/lookup", params={"word": "bright"}, headers={"X-Forwarded-For": "1.1.1.1"})
    other = client.get("/api/lookup", params={"word": "bright"}, headers={"X-Forwarded-For": "2.2.2.2"})

    assert blocked.status_code == 429
    assert other.status_code == 200


def test_missing_api_key_skips_upstream(client, upstream_env, stub_upstream):
    upstream_env.delenv("OPENROUTER_API_KEY")
    seen = stub_upstream(lambda request: httpx.Response(200))

    response = client.get("/api/lookup", params={"word": "bright"})

    assert response.status_code == 500
    assert response.json() == {"error": "Server misconfiguration: Missing API Key"}
    assert "X-RateLimit-Limit" in response.headers
    assert "Cache-Control" not in response.headers
    assert seen == []


def test_upstream_402_returns_billing_guidance(client, upstream_env, stub_upstream):
    stub_upstream(
        lambda request: httpx.Response(402, json={"error": {"message": "Insufficient credits", "code": 402}})
    )

    response = client.get("/api/lookup", params={"word": "bright"})

    assert response.status_code == 402
    assert response.json() == {
        "error": DEFAULT_BILLING_MESSAGE,
        "upstream_status": 402,
        "upstream_message": "Insufficient credits",
    }
    assert "Cache-Control" not in response.headers


def test_billing_message_comes_from_endpoint_config(client, upstream_env, stub_upstream, app_state):
    app_state.config.endpoints["lookup"] = EndpointConfig(billing_message="Add Cerebras credits.")
    stub_upstream(lambda request: httpx.Response(402, json={"message": "Payment required"}))

    response = client.get("/api/lookup", params={"word": "bright"})

    assert response.json()["error"] == "Add Cerebras credits."
    assert response.json()["upstream_message"] == "Payment required"


def test_upstream_429_passes_retry_after(client, upstream_env, stub_upstream):
    stub_upstream(
        lambda request: httpx.Response(429, headers={"Retry-After": "42"}, json={"error": {"message": "slow"}})
    )

    response = client.get("/api/lookup", params={"word": "bright"})

    assert response.status_code == 429
    assert response.headers["Retry-After"] == "42"
    assert response.json() == {"error": "Rate limit exceeded. Please wait."}


def test_upstream_5xx_uses_captured_body(client, upstream_env, stub_upstream):
    stub_upstream(lambda request: httpx.Response(503, json={"message": "Provider overloaded"}))

    response = client.get("/api/lookup", params={"word": "bright"})

    assert response.status_code == 503
    body = response.json()
    assert body["upstream_status"] == 503
    assert body["upstream_message"] == "Provider overloaded"
    assert "upstream_body" not in body


def test_unparseable_completion_is_generic_500(client, upstream_env, stub_upstream, make_completion):
    stub_upstream(lambda request: httpx.Response(200, json=make_completion("Sorry, I can't do that.")))

    response = client.get("/api/lookup", params={"word": "bright"})

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to parse AI response", "upstream_status": 500}
    assert "Cache-Control" not in response.headers


def test_schema_mismatch_is_generic_500(client, upstream_env, stub_upstream, make_completion):
    stub_upstream(lambda request: httpx.Response(200, json=make_completion({"word": "bright"})))

    response = client.get("/api/lookup", params={"word": "bright"})

    assert response.status_code == 500
    assert response.json()["error"] == "Failed to parse AI response"


def test_network_error_is_500(client, upstream_env, stub_upstream):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    stub_upstream(handler)

    response = client.get("/api/lookup", params={"word": "bright"})

    assert response.status_code == 500
    assert response.json()["upstream_status"] == 500


def test_cache_control_can_be_disabled(client, upstream_env, stub_upstream, app_state, bright_entry, make_completion):
    app_state.config.endpoints["lookup"] = EndpointConfig(cache_control=None)
    stub_upstream(lambda request: httpx.Response(200, json=make_completion(bright_entry)))

    response = client.get("/api/lookup", params={"word": "bright"})

    assert response.status_code == 200
    assert "Cache-Control" not in response.headers


def test_provider_routing_from_config(client, upstream_env, stub_upstream, app_state, bright_entry, make_completion):
    app_state.config.endpoints["lookup"] = EndpointConfig(provider_only=["cerebras"])
    seen = stub_upstream(lambda request: httpx.Response(200, json=make_completion(bright_entry)))

    client.get("/api/lookup", params={"word": "bright"})

    sent = json.loads(seen[0].content)
    assert sent["provider"] == {"only": ["cerebras"], "allow_fallbacks": False}


def test_connotation_success(client, upstream_env, stub_upstream, connotation_result, make_completion):
    seen = stub_upstream(lambda request: httpx.Response(200, json=make_completion(connotation_result)))

    response = client.get("/api/connotation", params=CONNOTATION_PARAMS)

    assert response.status_code == 200
    assert response.json() == connotation_result
    assert response.headers["Cache-Control"] == DEFAULT_CACHE_CONTROL
    assert json.loads(seen[0].content)["response_format"]["json_schema"]["name"] == "connotation"


def test_connotation_requires_all_params(client, upstream_env):
    params = dict(CONNOTATION_PARAMS)
    del params["definition"]

    response = client.get("/api/connotation", params=params)

    assert response.status_code == 400
    assert response.json()["issues"][0]["path"] == "definition"


def test_connotation_definition_length(client, upstream_env):
    params = dict(CONNOTATION_PARAMS, definition="x" * 401)

    assert client.get("/api/connotation", params=params).status_code == 400


def test_connotation_drops_extra_keys_in_completion(client, upstream_env, stub_upstream, connotation_result, make_completion):
    drifted = dict(connotation_result, confidence=0.9)
    stub_upstream(lambda request: httpx.Response(200, json=make_completion(drifted)))

    response = client.get("/api/connotation", params=CONNOTATION_PARAMS)

    assert response.status_code == 200
    body = response.json()
    assert "confidence" not in body
    assert body == connotation_result


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_metrics_exposes_request_counters(client, upstream_env):
    client.get("/api/lookup")

    response = client.get("/metrics")

    assert response.status_code == 200
    assert "synoeager_requests_total" in response.text
