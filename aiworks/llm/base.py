"""LLM provider interface.

The ``ai-generate`` node, the chat session and the workflow generator only
talk to ``BaseLLMProvider``, so tests can swap in a fake provider.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, AsyncIterator

from aiworks.core.types import LLMResponse, Message, StreamChunk


class BaseLLMProvider(ABC):
    """Abstract base class for LLM providers.

    Example:
        >>> provider = GeminiProvider()
        >>> response = await provider.generate("Summarize this", system_prompt="Be brief")
    """

    @property
    @abstractmethod
    def model(self) -> str:
        """Return the model identifier."""
        ...

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider name (e.g., 'gemini')."""
        ...

    @abstractmethod
    async def complete(
        self,
        messages: list[Message],
        *,
        temperature: float = 0.7,
        max_tokens: int = 4096,
        **kwargs: Any,
    ) -> LLMResponse:
        """Generate a completion for the given messages.

        ``model`` in kwargs overrides the provider model for one call.

        Raises:
            RateLimitError: If rate limit is exceeded.
            AuthenticationError: If authentication fails.
            APIError: If the API returns an error.
            TimeoutError: If the request times out.
        """
        ...

    @abstractmethod
    async def stream(
        self,
        messages: list[Message],
        *,
        temperature: float = 0.7,
        max_tokens: int = 4096,
        **kwargs: Any,
    ) -> AsyncIterator[StreamChunk]:
        """Stream a completion for the given messages."""
        ...

    async def generate(
        self,
        prompt: str,
        *,
        system_prompt: str | None = None,
        **kwargs: Any,
    ) -> LLMResponse:
        """Complete a single prompt, optionally under a system prompt."""
        return await self.complete(Message.prompt(prompt, system_prompt), **kwargs)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(model={self.model!r})"
