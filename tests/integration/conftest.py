"""Shared fixtures for integration tests."""

from __future__ import annotations

import pytest

from aiworks.workflow.engine import WorkflowEngine
from tests.conftest import MockLLMProvider


@pytest.fixture
def wired_engine(settings, quiet_logger):
    """Factory for an engine wired to a mock LLM provider."""

    def _factory(response_content: str = "Sunny summary") -> tuple[WorkflowEngine, MockLLMProvider]:
        provider = MockLLMProvider(response_content=response_content)
        engine = WorkflowEngine(provider=provider, settings=settings, logger=quiet_logger)
        return engine, provider

    return _factory
