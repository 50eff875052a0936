"""Pytest configuration and fixtures for AIWorks tests."""

from __future__ import annotations

from collections.abc import AsyncIterator
from io import StringIO
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from rich.console import Console

from aiworks.config import Settings
from aiworks.core.types import LLMResponse, Message, StreamChunk, Usage
from aiworks.llm.base import BaseLLMProvider
from aiworks.logging import AIWorksLogger, LogLevel
from aiworks.workflow.engine import WorkflowEngine
from aiworks.workflow.models import ExecutionContext


class MockLLMProvider(BaseLLMProvider):
    """Mock LLM provider for testing."""

    def __init__(
        self,
        model: str = "mock-model",
        response_content: str = "Mock response",
        responses: list[str] | None = None,
    ) -> None:
        self._model = model
        self._response_content = response_content
        self._responses = responses
        self.call_count = 0
        self.received_messages: list[list[Message]] = []
        self.received_kwargs: list[dict[str, Any]] = []

    async def complete(
        self,
        messages: list[Message],
        *,
        temperature: float = 0.7,
        max_tokens: int = 4096,
        **kwargs: Any,
    ) -> LLMResponse:
        """Mock complete implementation."""
        self.received_messages.append(list(messages))
        self.received_kwargs.append({"temperature": temperature, "max_tokens": max_tokens, **kwargs})
        content = self._response_content
        if self._responses:
            content = self._responses[min(self.call_count, len(self._responses) - 1)]
        self.call_count += 1
        return LLMResponse(
            content=content,
            model=kwargs.get("model") or self._model,
            usage=Usage(prompt_tokens=10, completion_tokens=5),
            finish_reason="stop",
        )

    async def stream(
        self,
        messages: list[Message],
        *,
        temperature: float = 0.7,
        max_tokens: int = 4096,
        **kwargs: Any,
    ) -> AsyncIterator[StreamChunk]:
        """Mock stream implementation."""
        self.call_count += 1
        yield StreamChunk(
            content=self._response_content,
            delta=self._response_content,
            finish_reason="stop",
            usage=Usage(prompt_tokens=10, completion_tokens=5),
        )

    @property
    def model(self) -> str:
        return self._model

    @property
    def provider_name(self) -> str:
        return "mock"


def mock_http_client(response: MagicMock | None = None, side_effect: Any = None) -> AsyncMock:
    """AsyncClient stand-in usable as ``async with httpx.AsyncClient() as client``."""
    client = AsyncMock()
    client.request = AsyncMock(return_value=response, side_effect=side_effect)
    client.get = AsyncMock(return_value=response, side_effect=side_effect)
    client.post = AsyncMock(return_value=response, side_effect=side_effect)
    client.__aenter__ = AsyncMock(return_value=client)
    client.__aexit__ = AsyncMock(return_value=None)
    return client


def mock_http_response(status_code: int = 200, json_data: Any = None, text: str = "") -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.headers = {"content-type": "application/json"}
    response.text = text
    if json_data is None:
        response.json.side_effect = ValueError("not json")
    else:
        response.json.return_value = json_data
    return response


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from the environment and the workflow directory."""
    return Settings(
        gemini_api_key="",
        workflow_dir="",
        node_timeout=5.0,
        max_delay_ms=1000,
        history_limit=10,
    )


@pytest.fixture
def quiet_logger() -> AIWorksLogger:
    """Logger that writes to a buffer instead of the terminal."""
    console = Console(file=StringIO(), force_terminal=False)
    return AIWorksLogger(level=LogLevel.DEBUG, console=console)


@pytest.fixture
def mock_provider() -> MockLLMProvider:
    return MockLLMProvider(response_content="Generated text")


@pytest.fixture
def engine(settings: Settings, quiet_logger: AIWorksLogger) -> WorkflowEngine:
    return WorkflowEngine(settings=settings, logger=quiet_logger)


@pytest.fixture
def context() -> ExecutionContext:
    return ExecutionContext(workflow_id="wf-test", variables={"user": "ada", "count": 3})
