"""AIWorks core types."""

from aiworks.core.types import (
    LLMResponse,
    Message,
    MessageRole,
    StreamChunk,
    Usage,
)

__all__ = [
    "LLMResponse",
    "Message",
    "MessageRole",
    "StreamChunk",
    "Usage",
]
