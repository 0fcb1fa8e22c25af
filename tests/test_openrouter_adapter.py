"""Tests for the OpenRouter adapter and completion payloads."""
from synoeager.adapters.llm.openrouter import OpenRouterAdapter
from synoeager.app.prompts import CONNOTATION_RESPONSE_FORMAT, LOOKUP_RESPONSE_FORMAT
from synoeager.app.schemas import ConnotationQuery, LookupQuery
from synoeager.app.services import (
    CONNOTATION_ENDPOINT,
    LOOKUP_ENDPOINT,
    build_completion_payload,
)
from synoeager.config.schema import EndpointConfig


def test_prepare_request_minimal():
    payload = OpenRouterAdapter().prepare_request(
        messages=[{"role": "user", "content": "hi"}],
        model="test/model",
    )

    assert payload == {"model": "test/model", "messages": [{"role": "user", "content": "hi"}]}


def test_prepare_request_routing_and_reasoning():
    payload = OpenRouterAdapter().prepare_request(
        messages=[],
        model="test/model",
        temperature=0,
        provider_only=["cerebras"],
        reasoning_effort="high",
    )

    assert payload["temperature"] == 0
    assert payload["provider"] == {"only": ["cerebras"], "allow_fallbacks": False}
    assert payload["reasoning"] == {"effort": "high", "exclude": True}


def test_parse_response():
    result = OpenRouterAdapter().parse_response(
        {"choices": [{"message": {"role": "assistant", "content": "{}"}, "finish_reason": "stop"}]}
    )

    assert result == {"content": "{}", "role": "assistant", "finish_reason": "stop"}


def test_parse_response_null_content_becomes_empty_string():
    result = OpenRouterAdapter().parse_response({"choices": [{"message": {"content": None}}]})

    assert result["content"] == ""


def test_parse_response_without_choices():
    result = OpenRouterAdapter().parse_response({"choices": []})

    assert result["content"] == ""
    assert result["finish_reason"] == "error"


def test_lookup_payload_is_deterministic_and_schema_constrained():
    payload = build_completion_payload(
        LOOKUP_ENDPOINT,
        LookupQuery(word="bright"),
        "google/gemini-3-flash-preview",
        EndpointConfig(),
    )

    assert payload["model"] == "google/gemini-3-flash-preview"
    assert payload["temperature"] == 0
    assert payload["response_format"] == LOOKUP_RESPONSE_FORMAT
    assert payload["messages"][0]["role"] == "system"
    assert payload["messages"][1] == {"role": "user", "content": 'Define the word: "bright"'}
    assert "provider" not in payload
    assert "reasoning" not in payload


def test_connotation_payload_includes_query_fields():
    query = ConnotationQuery(
        headword="bright",
        synonym="brilliant",
        partOfSpeech="adjective",
        definition="Giving out a lot of light.",
    )

    payload = build_completion_payload(
        CONNOTATION_ENDPOINT,
        query,
        "test/model",
        EndpointConfig(provider_only=["cerebras"], max_tokens=800),
    )

    user_prompt = payload["messages"][1]["content"]
    assert "Headword: bright" in user_prompt
    assert "Candidate synonym: brilliant" in user_prompt
    assert "Sense definition: Giving out a lot of light." in user_prompt
    assert payload["response_format"] == CONNOTATION_RESPONSE_FORMAT
    assert payload["provider"]["only"] == ["cerebras"]
    assert payload["max_tokens"] == 800


def test_connotation_schema_requires_core_fields():
    schema = CONNOTATION_RESPONSE_FORMAT["json_schema"]["schema"]

    assert schema["additionalProperties"] is False
    assert schema["properties"]["toneTags"]["maxItems"] == 6
    assert set(schema["required"]) == {
        "headword",
        "synonym",
        "partOfSpeech",
        "definition",
        "polarity",
        "register",
        "toneTags",
        "usageNote",
    }
