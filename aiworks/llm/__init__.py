"""LLM provider implementations."""

from aiworks.llm.base import BaseLLMProvider
from aiworks.llm.gemini import GeminiProvider
from aiworks.llm.keys import ApiKeyValidator

__all__ = [
    "ApiKeyValidator",
    "BaseLLMProvider",
    "GeminiProvider",
]
