"""Pytest configuration and fixtures."""
import json
from typing import Any, Callable, Dict

import httpx
import pytest
from fastapi.testclient import TestClient

from synoeager.app.dependencies import get_app_state
from synoeager.app.main import create_app
from synoeager.config.schema import SynoConfig
from synoeager.config.settings import PROXY_ENV_VARS
from synoeager.core.rate_limiter import FixedWindowRateLimiter

UPSTREAM_ENV_VARS = (
    "OPENROUTER_API_KEY",
    "OPENROUTER_MODEL",
    "OPENROUTER_BASE_URL",
    "OPENROUTER_SITE_URL",
    "VERCEL_URL",
    "OPENROUTER_APP_NAME",
    "OPENROUTER_TIMEOUT_S",
)

BRIGHT_ENTRY = {
    "word": "bright",
    "phonetics": ["/braɪt/"],
    "items": [
        {
            "partOfSpeech": "adjective",
            "meanings": [
                {
                    "definition": "Giving out or reflecting a lot of light.",
                    "example": {"en": "The bright sun was shining.", "zh": "明亮的阳光照耀着。"},
                    "synonyms": [
                        {"en": "shining", "zh": "闪耀的"},
                        {"en": "brilliant"},
                    ],
                }
            ],
        }
    ],
}

CONNOTATION_RESULT = {
    "headword": "bright",
    "synonym": "brilliant",
    "partOfSpeech": "adjective",
    "definition": "Giving out or reflecting a lot of light.",
    "polarity": "positive",
    "register": "neutral",
    "toneTags": [{"en": "intense", "zh": "强烈"}, {"en": "vivid"}],
    "usageNote": {"en": "Stronger than bright; suggests dazzling light."},
}


def completion(content: Any) -> Dict[str, Any]:
    """OpenAI-shaped chat completion wrapping ``content``."""
    if not isinstance(content, str):
        content = json.dumps(content, ensure_ascii=False)
    return {
        "id": "gen-test",
        "object": "chat.completion",
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ],
    }


@pytest.fixture(autouse=True)
def app_state():
    """Fresh global state (config, limiter, upstream stub) for each test."""
    state = get_app_state()
    saved = (state.config, state.rate_limiter, state.upstream_transport)

    state.config = SynoConfig()
    state.rate_limiter = FixedWindowRateLimiter()
    state.upstream_transport = None

    yield state

    state.rate_limiter.reset()
    state.config, state.rate_limiter, state.upstream_transport = saved


@pytest.fixture
def upstream_env(monkeypatch):
    """Deterministic upstream environment with an API key set."""
    for name in UPSTREAM_ENV_VARS + PROXY_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("OPENROUTER_API_KEY", "sk-or-test-key-1234567890")
    return monkeypatch


@pytest.fixture
def stub_upstream(app_state) -> Callable:
    """Install a MockTransport handler as the upstream gateway.

    Returns a function taking the handler; every request seen by the stub is
    recorded on the returned list.
    """
    seen = []

    def install(handler: Callable) -> list:
        async def recording_handler(request: httpx.Request):
            seen.append(request)
            response = handler(request)
            if not isinstance(response, httpx.Response):
                response = await response
            return response

        app_state.upstream_transport = httpx.MockTransport(recording_handler)
        return seen

    return install


@pytest.fixture
def client():
    """Test client without lifespan, so tests control the app state directly."""
    return TestClient(create_app())


@pytest.fixture
def bright_entry() -> Dict[str, Any]:
    return json.loads(json.dumps(BRIGHT_ENTRY))


@pytest.fixture
def connotation_result() -> Dict[str, Any]:
    return json.loads(json.dumps(CONNOTATION_RESULT))


@pytest.fixture
def make_completion() -> Callable[[Any], Dict[str, Any]]:
    return completion
