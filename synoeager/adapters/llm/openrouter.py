"""OpenRouter (OpenAI-compatible) LLM adapter."""
from typing import Any, Dict, List, Optional

from synoeager.adapters.llm.base import LLMAdapter


class OpenRouterAdapter(LLMAdapter):
    """OpenRouter chat completions adapter.

    Besides the OpenAI fields, OpenRouter accepts ``provider`` routing
    preferences and a ``reasoning`` block.
    See https://openrouter.ai/docs/guides/routing/provider-selection
    """

    def prepare_request(
        self,
        messages: List[Dict[str, str]],
        model: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        response_format: Optional[Dict[str, Any]] = None,
        provider_only: Optional[List[str]] = None,
        reasoning_effort: Optional[str] = None,
        **kwargs,
    ) -> Dict[str, Any]:
        """Prepare OpenRouter request payload."""
        payload: Dict[str, Any] = {
            "model": model,
            "messages": messages,
        }

        if temperature is not None:
            payload["temperature"] = temperature
        if max_tokens is not None:
            payload["max_tokens"] = max_tokens
        if response_format is not None:
            payload["response_format"] = response_format
        if provider_only:
            payload["provider"] = {
                "only": list(provider_only),
                "allow_fallbacks": False,
            }
        if reasoning_effort:
            # Reasoning traces stay server-side; only the answer is returned.
            payload["reasoning"] = {"effort": reasoning_effort, "exclude": True}

        return payload

    def parse_response(self, response: Dict[str, Any]) -> Dict[str, Any]:
        """Parse OpenRouter response to normalized format."""
        choices = response.get("choices") or []
        if not choices:
            return {
                "content": "",
                "role": "assistant",
                "finish_reason": "error",
            }

        choice = choices[0] or {}
        message = choice.get("message") or {}
        content = message.get("content")

        return {
            "content": content if isinstance(content, str) else "",
            "role": message.get("role") or "assistant",
            "finish_reason": choice.get("finish_reason") or "stop",
        }
