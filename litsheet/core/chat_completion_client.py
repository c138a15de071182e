"""OpenAI-compatible chat completions client.

Used for both the OpenAI API and OpenRouter, which share the
``/chat/completions`` request and response shape.
"""

from typing import Any, Dict, List, Optional

from litsheet.core.base_llm_client import BaseLLMClient
from litsheet.core.exceptions import APIClientError
from litsheet.utils.logging import get_logger

LOGGER = get_logger(__name__)

# Reasoning models reject temperature and expect "developer" instead of "system"
REASONING_MODEL_PREFIXES = ("o1", "o3", "o4")


def is_reasoning_model(model: str) -> bool:
    """Check whether a model name refers to a reasoning model."""
    name = model.split("/")[-1].lower()
    return name.startswith(REASONING_MODEL_PREFIXES)


class ChatCompletionClient:
    """Wrapper for an OpenAI-compatible chat completions endpoint."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        base_url: str = "https://api.openai.com/v1/chat/completions",
        timeout: int = 60,
        max_retries: int = 3,
        extra_headers: Optional[Dict[str, str]] = None,
    ):
        """Initialize chat completions client.

        Args:
            api_key: Provider API key
            model: Model name to use
            base_url: Full chat completions URL
            timeout: Request timeout in seconds
            max_retries: Maximum retry attempts
            extra_headers: Headers sent with every request
        """
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self.extra_headers = extra_headers or {}

        self.client = BaseLLMClient(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            max_retries=max_retries,
        )

        LOGGER.info(f"Initialized chat completion client with model {self.model}")

    def build_payload(
        self,
        messages: List[Dict[str, str]],
        temperature: float = 0.1,
        max_tokens: int = 2000,
    ) -> Dict[str, Any]:
        """Build the request body, adapting to reasoning models.

        Args:
            messages: Chat messages with ``role`` and ``content``
            temperature: Sampling temperature (ignored by reasoning models)
            max_tokens: Completion token limit

        Returns:
            Request payload
        """
        if is_reasoning_model(self.model):
            return {
                "model": self.model,
                "messages": [
                    {
                        "role": "developer" if m["role"] == "system" else m["role"],
                        "content": m["content"],
                    }
                    for m in messages
                ],
                "max_completion_tokens": max_tokens,
            }

        return {
            "model": self.model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }

    async def generate_content(
        self,
        user_prompt: str,
        system_instruction: Optional[str] = None,
        temperature: float = 0.1,
        max_tokens: int = 2000,
    ) -> str:
        """Generate a completion.

        Args:
            user_prompt: User message content
            system_instruction: Optional system message
            temperature: Sampling temperature
            max_tokens: Completion token limit

        Returns:
            Generated text

        Raises:
            APIClientError: If the call fails or returns no content
        """
        messages = []
        if system_instruction:
            messages.append({"role": "system", "content": system_instruction})
        messages.append({"role": "user", "content": user_prompt})

        payload = self.build_payload(messages, temperature=temperature, max_tokens=max_tokens)
        response = await self.client.call_api(payload=payload, headers=self.extra_headers)

        choices = response.get("choices") or []
        if not choices:
            raise APIClientError(f"Completion response had no choices (model: {self.model})")

        content = (choices[0].get("message") or {}).get("content")
        if not content:
            raise APIClientError(f"Completion response had empty content (model: {self.model})")

        return content
