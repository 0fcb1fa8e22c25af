"""Base LLM adapter interface."""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional


class LLMAdapter(ABC):
    """Base class for LLM provider adapters."""

    @abstractmethod
    def prepare_request(
        self,
        messages: List[Dict[str, str]],
        model: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        response_format: Optional[Dict[str, Any]] = None,
        **kwargs,
    ) -> Dict[str, Any]:
        """Prepare provider-specific request payload."""
        pass

    @abstractmethod
    def parse_response(self, response: Dict[str, Any]) -> Dict[str, Any]:
        """Parse provider response to normalized format.

        Must return:
        {
            "content": str,           # Text content (required, "" when missing)
            "role": str,              # "assistant" (required, default "assistant")
            "finish_reason": str,     # "stop", "length", "error", etc. (required)
        }
        """
        pass
