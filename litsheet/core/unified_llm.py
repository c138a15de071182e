"""Unified LLM client factory and manager.

Provides a single ``complete(system_prompt, user_prompt)`` entry point over
the supported providers (OpenAI, OpenRouter) with optional fallback to the
other provider when the primary one fails.
"""

from enum import Enum
from typing import Optional, Union

from litsheet.core.chat_completion_client import ChatCompletionClient
from litsheet.core.exceptions import APIClientError, CompletionServiceError
from litsheet.services.sheet.contracts import CompletionService
from litsheet.utils.logging import get_logger

LOGGER = get_logger(__name__)

OPENAI_API_URL = "https://api.openai.com/v1/chat/completions"
OPENROUTER_API_URL = "https://openrouter.ai/api/v1/chat/completions"


class LLMProvider(str, Enum):
    """Supported LLM providers."""
    OPENAI = "openai"
    OPENROUTER = "openrouter"


class UnifiedLLMClient(CompletionService):
    """Provider-agnostic completion client.

    Attributes:
        provider: Primary provider
        client: Primary chat completion client
        fallback_client: Optional client tried when the primary fails
    """

    def __init__(
        self,
        provider: Union[str, LLMProvider],
        api_key: str,
        model: str,
        base_url: Optional[str] = None,
        timeout: int = 60,
        max_retries: int = 3,
        temperature: float = 0.1,
        max_tokens: int = 2000,
        fallback_client: Optional[ChatCompletionClient] = None,
    ):
        """Initialize unified LLM client.

        Args:
            provider: LLM provider to use ("openai" or "openrouter")
            api_key: API key for the primary provider
            model: Model name to use
            base_url: Optional endpoint override
            timeout: Request timeout in seconds
            max_retries: Maximum retry attempts
            temperature: Sampling temperature for completions
            max_tokens: Completion token limit
            fallback_client: Client used when the primary provider fails
        """
        self.provider = LLMProvider(provider)
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

        if self.provider == LLMProvider.OPENAI:
            default_url = OPENAI_API_URL
        else:
            default_url = OPENROUTER_API_URL

        self.client = ChatCompletionClient(
            api_key=api_key,
            model=model,
            base_url=base_url or default_url,
            timeout=timeout,
            max_retries=max_retries,
        )
        self.fallback_client = fallback_client

        LOGGER.info(
            f"Initialized unified LLM with {self.provider.value} provider (model: {model})",
            extra={"fallback": bool(fallback_client)},
        )

    async def generate_content(
        self,
        contents: str,
        system_instruction: Optional[str] = None,
        temperature: Optional[float] = None,
    ) -> str:
        """Generate content using the configured provider.

        Args:
            contents: User prompt
            system_instruction: Optional system instruction
            temperature: Override for the configured temperature

        Returns:
            Generated text response

        Raises:
            APIClientError: If generation fails on every provider
        """
        temp = self.temperature if temperature is None else temperature
        try:
            return await self.client.generate_content(
                user_prompt=contents,
                system_instruction=system_instruction,
                temperature=temp,
                max_tokens=self.max_tokens,
            )
        except APIClientError as e:
            if not self.fallback_client:
                raise

            LOGGER.warning(f"Primary provider ({self.provider.value}) failed, attempting fallback: {e}")
            try:
                return await self.fallback_client.generate_content(
                    user_prompt=contents,
                    system_instruction=system_instruction,
                    temperature=temp,
                    max_tokens=self.max_tokens,
                )
            except APIClientError as fallback_error:
                LOGGER.error(f"Fallback provider also failed: {fallback_error}")
                raise APIClientError(
                    f"Both primary ({self.provider.value}) and fallback providers failed",
                    original_error=fallback_error,
                ) from fallback_error

    async def complete(self, system_prompt: str, user_prompt: str) -> str:
        """Run one completion for the extraction engine.

        Raises:
            CompletionServiceError: If no provider produced an answer
        """
        try:
            return await self.generate_content(contents=user_prompt, system_instruction=system_prompt)
        except APIClientError as e:
            raise CompletionServiceError(str(e), original_error=e) from e


def create_llm_client_from_settings(llm_settings) -> UnifiedLLMClient:
    """Create a unified LLM client from ``LLMSettings``.

    Selects key, model and URL for the configured provider and wires the
    other provider as fallback when ``enable_fallback`` is set and that
    provider has a key.

    Raises:
        ValueError: If the primary provider has no API key
    """
    provider = LLMProvider(llm_settings.provider.lower())

    if provider == LLMProvider.OPENAI:
        primary = (llm_settings.openai_api_key, llm_settings.openai_model, llm_settings.openai_api_url)
        secondary = (llm_settings.openrouter_api_key, llm_settings.openrouter_model, llm_settings.openrouter_api_url)
    else:
        primary = (llm_settings.openrouter_api_key, llm_settings.openrouter_model, llm_settings.openrouter_api_url)
        secondary = (llm_settings.openai_api_key, llm_settings.openai_model, llm_settings.openai_api_url)

    api_key, model, url = primary
    if not api_key or not api_key.strip():
        raise ValueError(
            f"API key required when provider='{provider.value}'. "
            f"Please set {provider.value.upper()}_API_KEY environment variable."
        )

    fallback_client = None
    fallback_key, fallback_model, fallback_url = secondary
    if llm_settings.enable_fallback and fallback_key and fallback_key.strip():
        fallback_client = ChatCompletionClient(
            api_key=fallback_key.strip(),
            model=fallback_model,
            base_url=fallback_url,
            timeout=llm_settings.timeout,
            max_retries=llm_settings.max_retries,
        )

    return UnifiedLLMClient(
        provider=provider,
        api_key=api_key.strip(),
        model=model,
        base_url=url,
        timeout=llm_settings.timeout,
        max_retries=llm_settings.max_retries,
        temperature=llm_settings.temperature,
        max_tokens=llm_settings.max_tokens,
        fallback_client=fallback_client,
    )
