"""Message and response types shared by the LLM layer.

The field names follow the OpenAI-compatible chat format that the Gemini
endpoint speaks, so payloads convert without renaming.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class MessageRole(str, Enum):
    """Role of a message in a conversation."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class Message(BaseModel):
    """A single chat message."""

    role: MessageRole = Field(..., description="Role of the message sender")
    content: str = Field(..., description="Content of the message")

    @classmethod
    def system(cls, content: str) -> Message:
        return cls(role=MessageRole.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str) -> Message:
        return cls(role=MessageRole.USER, content=content)

    @classmethod
    def assistant(cls, content: str) -> Message:
        return cls(role=MessageRole.ASSISTANT, content=content)

    @classmethod
    def prompt(cls, text: str, system_prompt: str | None = None) -> list[Message]:
        """Build the message list for a one-shot prompt."""
        messages = [cls.system(system_prompt)] if system_prompt else []
        messages.append(cls.user(text))
        return messages

    def to_payload(self) -> dict[str, str]:
        """Chat-completions message dict."""
        return {"role": self.role.value, "content": self.content}


class Usage(BaseModel):
    """Token usage reported for one completion."""

    prompt_tokens: int = Field(0, ge=0, description="Number of prompt tokens used")
    completion_tokens: int = Field(0, ge=0, description="Number of completion tokens used")

    @classmethod
    def from_payload(cls, data: dict[str, Any] | None) -> Usage:
        """Read the ``usage`` object of a chat-completions response."""
        data = data or {}
        return cls(
            prompt_tokens=data.get("prompt_tokens") or 0,
            completion_tokens=data.get("completion_tokens") or 0,
        )

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens


class LLMResponse(BaseModel):
    """A finished completion."""

    content: str = Field(..., description="Generated content")
    model: str = Field(..., description="Model used for generation")
    usage: Usage = Field(default_factory=Usage, description="Token usage statistics")
    finish_reason: str = Field("stop", description="Reason for completion")
    raw_response: dict[str, Any] | None = Field(
        None, description="Raw response from the provider"
    )


class StreamChunk(BaseModel):
    """One increment of a streamed completion."""

    content: str = Field(..., description="Accumulated content so far")
    delta: str = Field(..., description="New content in this chunk")
    finish_reason: str | None = Field(None, description="Set on the last chunk")
    usage: Usage | None = Field(None, description="Set on the last chunk when reported")
