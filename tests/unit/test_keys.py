"""Unit tests for API key validation caching."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from aiworks.errors.exceptions import APIError
from aiworks.llm.keys import ApiKeyValidator


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def factory_returning(valid: bool) -> MagicMock:
    provider = MagicMock()
    provider.validate_api_key = AsyncMock(return_value=valid)
    return MagicMock(return_value=provider)


class TestApiKeyValidator:
    """Tests for ApiKeyValidator."""

    @pytest.mark.asyncio
    async def test_validates_through_provider(self) -> None:
        factory = factory_returning(True)
        validator = ApiKeyValidator(provider_factory=factory)

        assert await validator.validate("key-1") is True
        factory.assert_called_once_with("key-1")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("key", ["", "   "])
    async def test_blank_key_is_invalid(self, key) -> None:
        factory = factory_returning(True)
        validator = ApiKeyValidator(provider_factory=factory)

        assert await validator.validate(key) is False
        factory.assert_not_called()

    @pytest.mark.asyncio
    async def test_result_is_cached(self) -> None:
        factory = factory_returning(False)
        validator = ApiKeyValidator(provider_factory=factory)

        assert await validator.validate("key-1") is False
        assert await validator.validate("key-1") is False
        assert factory.call_count == 1

    @pytest.mark.asyncio
    async def test_cache_expires(self) -> None:
        clock = FakeClock()
        factory = factory_returning(True)
        validator = ApiKeyValidator(provider_factory=factory, ttl=60.0, clock=clock)

        await validator.validate("key-1")
        clock.now += 59.0
        await validator.validate("key-1")
        assert factory.call_count == 1

        clock.now += 2.0
        await validator.validate("key-1")
        assert factory.call_count == 2

    @pytest.mark.asyncio
    async def test_register_and_forget(self) -> None:
        factory = factory_returning(False)
        validator = ApiKeyValidator(provider_factory=factory)

        validator.register("trusted")
        assert await validator.validate("trusted") is True
        factory.assert_not_called()

        validator.forget("trusted")
        assert await validator.validate("trusted") is False
        factory.assert_called_once_with("trusted")

    @pytest.mark.asyncio
    async def test_network_error_is_not_cached(self) -> None:
        provider = MagicMock()
        provider.validate_api_key = AsyncMock(
            side_effect=[APIError("unreachable", provider="gemini"), True]
        )
        validator = ApiKeyValidator(provider_factory=MagicMock(return_value=provider))

        assert await validator.validate("key-1") is False
        assert await validator.validate("key-1") is True
        assert provider.validate_api_key.await_count == 2

    @pytest.mark.asyncio
    async def test_expired_entries_are_pruned(self) -> None:
        clock = FakeClock()
        validator = ApiKeyValidator(provider_factory=factory_returning(True), ttl=60.0, clock=clock)

        await validator.validate("key-1")
        clock.now += 61.0
        await validator.validate("key-2")

        assert len(validator) == 1

    @pytest.mark.asyncio
    async def test_cache_is_bounded(self) -> None:
        factory = factory_returning(True)
        validator = ApiKeyValidator(provider_factory=factory, max_entries=2)

        for key in ("a", "b", "c"):
            await validator.validate(key)

        assert len(validator) == 2
        await validator.validate("a")
        assert factory.call_count == 4
