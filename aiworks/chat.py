"""Multi-turn chat with an LLM provider."""

from __future__ import annotations

from aiworks.core.types import Message
from aiworks.llm.base import BaseLLMProvider


class ChatSession:
    """Keeps a conversation and sends it with every turn.

    Only the latest ``max_history`` user/assistant messages are kept; the
    system prompt is always sent first.

    Example:
        >>> chat = ChatSession(GeminiProvider(), system_prompt="Be brief.")
        >>> reply = await chat.send("What is a webhook?")
    """

    def __init__(
        self,
        provider: BaseLLMProvider,
        system_prompt: str | None = None,
        max_history: int = 50,
        temperature: float = 0.7,
        max_tokens: int = 4096,
    ) -> None:
        if max_history < 2:
            raise ValueError("max_history must be at least 2")
        self._provider = provider
        self._system_prompt = system_prompt
        self._max_history = max_history
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._messages: list[Message] = []

    @property
    def history(self) -> list[Message]:
        return list(self._messages)

    async def send(self, text: str) -> str:
        """Send a user message and return the assistant reply."""
        if not text or not text.strip():
            raise ValueError("Message must not be empty")

        user_message = Message.user(text)
        messages = [Message.system(self._system_prompt)] if self._system_prompt else []
        messages += self._messages + [user_message]

        response = await self._provider.complete(
            messages,
            temperature=self._temperature,
            max_tokens=self._max_tokens,
        )

        self._messages += [user_message, Message.assistant(response.content)]
        if len(self._messages) > self._max_history:
            self._messages = self._messages[-self._max_history :]
        return response.content

    def reset(self) -> None:
        """Forget the conversation."""
        self._messages.clear()
