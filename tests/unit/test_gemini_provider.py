"""Unit tests for the Gemini provider."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from aiworks.config import Settings
from aiworks.core.types import Message
from aiworks.errors.exceptions import (
    APIError,
    AuthenticationError,
    MissingAPIKeyError,
    RateLimitError,
    TimeoutError as AIWorksTimeoutError,
)
from aiworks.llm.gemini import GeminiProvider


def client_with(**methods) -> AsyncMock:
    mock_client = AsyncMock()
    for name, value in methods.items():
        setattr(mock_client, name, value)
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=None)
    return mock_client


def status_error(status_code: int, text: str = "", headers: dict | None = None):
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    response.headers = headers or {}
    return httpx.HTTPStatusError(str(status_code), request=MagicMock(), response=response)


def completion_response(content: str = "Hello there!") -> MagicMock:
    response = MagicMock()
    response.raise_for_status = MagicMock()
    response.json.return_value = {
        "choices": [{"message": {"content": content}, "finish_reason": "stop"}],
        "usage": {"prompt_tokens": 12, "completion_tokens": 4},
    }
    return response


class TestGeminiProviderInit:
    """Tests for construction and properties."""

    def test_defaults(self) -> None:
        provider = GeminiProvider(api_key="test-key")

        assert provider.model == "gemini-2.0-flash"
        assert provider.provider_name == "gemini"

    def test_reads_key_from_env(self, monkeypatch) -> None:
        monkeypatch.setenv("GOOGLE_API_KEY", "env-key")

        provider = GeminiProvider()

        assert provider._api_key == "env-key"

    def test_from_settings(self, monkeypatch) -> None:
        monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
        settings = Settings(gemini_api_key="cfg-key", default_model="gemini-1.5-pro", llm_timeout=5.0)

        provider = GeminiProvider.from_settings(settings)

        assert provider.model == "gemini-1.5-pro"
        assert provider._api_key == "cfg-key"
        assert provider._timeout == 5.0

    def test_from_settings_without_key(self, monkeypatch) -> None:
        monkeypatch.delenv("GOOGLE_API_KEY", raising=False)

        assert GeminiProvider.from_settings(Settings(gemini_api_key="")) is None

    @pytest.mark.asyncio
    async def test_missing_key_raises(self, monkeypatch) -> None:
        monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
        provider = GeminiProvider()

        with pytest.raises(MissingAPIKeyError):
            await provider.complete([Message.user("Hi")])


class TestGeminiComplete:
    """Tests for GeminiProvider.complete."""

    @pytest.mark.asyncio
    async def test_complete_success(self) -> None:
        mock_client = client_with(post=AsyncMock(return_value=completion_response()))

        with patch("aiworks.llm.gemini.httpx.AsyncClient", return_value=mock_client):
            provider = GeminiProvider(api_key="test-key")
            response = await provider.complete(
                [Message.system("Be brief"), Message.user("Hi")],
                temperature=0.1,
                max_tokens=50,
            )

        assert response.content == "Hello there!"
        assert response.model == "gemini-2.0-flash"
        assert response.usage.prompt_tokens == 12
        assert response.usage.completion_tokens == 4
        assert response.finish_reason == "stop"

        kwargs = mock_client.post.call_args.kwargs
        assert kwargs["json"]["temperature"] == 0.1
        assert kwargs["json"]["max_completion_tokens"] == 50
        assert kwargs["json"]["messages"][0] == {"role": "system", "content": "Be brief"}
        assert kwargs["headers"]["Authorization"] == "Bearer test-key"

    @pytest.mark.asyncio
    async def test_model_override(self) -> None:
        mock_client = client_with(post=AsyncMock(return_value=completion_response()))

        with patch("aiworks.llm.gemini.httpx.AsyncClient", return_value=mock_client):
            provider = GeminiProvider(api_key="test-key")
            response = await provider.complete([Message.user("Hi")], model="gemini-1.5-pro")

        assert response.model == "gemini-1.5-pro"
        assert mock_client.post.call_args.kwargs["json"]["model"] == "gemini-1.5-pro"

    @pytest.mark.asyncio
    async def test_no_choices(self) -> None:
        response = MagicMock()
        response.raise_for_status = MagicMock()
        response.json.return_value = {"choices": []}
        mock_client = client_with(post=AsyncMock(return_value=response))

        with patch("aiworks.llm.gemini.httpx.AsyncClient", return_value=mock_client):
            provider = GeminiProvider(api_key="test-key")
            with pytest.raises(APIError, match="no choices"):
                await provider.complete([Message.user("Hi")])

    @pytest.mark.asyncio
    async def test_connect_error(self) -> None:
        mock_client = client_with(post=AsyncMock(side_effect=httpx.ConnectError("refused")))

        with patch("aiworks.llm.gemini.httpx.AsyncClient", return_value=mock_client):
            provider = GeminiProvider(api_key="test-key")
            with pytest.raises(APIError, match="Failed to connect"):
                await provider.complete([Message.user("Hi")])

    @pytest.mark.asyncio
    async def test_timeout_error(self) -> None:
        mock_client = client_with(post=AsyncMock(side_effect=httpx.TimeoutException("slow")))

        with patch("aiworks.llm.gemini.httpx.AsyncClient", return_value=mock_client):
            provider = GeminiProvider(api_key="test-key", timeout=5.0)
            with pytest.raises(AIWorksTimeoutError):
                await provider.complete([Message.user("Hi")])

    @pytest.mark.asyncio
    async def test_auth_error_401(self) -> None:
        mock_client = client_with(post=AsyncMock(side_effect=status_error(401, "Unauthorized")))

        with patch("aiworks.llm.gemini.httpx.AsyncClient", return_value=mock_client):
            provider = GeminiProvider(api_key="bad-key")
            with pytest.raises(AuthenticationError):
                await provider.complete([Message.user("Hi")])

    @pytest.mark.asyncio
    async def test_rate_limit_429(self) -> None:
        error = status_error(429, "quota", headers={"retry-after": "7"})
        mock_client = client_with(post=AsyncMock(side_effect=error))

        with patch("aiworks.llm.gemini.httpx.AsyncClient", return_value=mock_client):
            provider = GeminiProvider(api_key="test-key")
            with pytest.raises(RateLimitError) as exc_info:
                await provider.complete([Message.user("Hi")])

        assert exc_info.value.retry_after == 7.0

    @pytest.mark.asyncio
    async def test_http_error_500(self) -> None:
        mock_client = client_with(
            post=AsyncMock(side_effect=status_error(500, "Internal Server Error"))
        )

        with patch("aiworks.llm.gemini.httpx.AsyncClient", return_value=mock_client):
            provider = GeminiProvider(api_key="test-key")
            with pytest.raises(APIError, match="500"):
                await provider.complete([Message.user("Hi")])


class TestGeminiValidateKey:
    """Tests for GeminiProvider.validate_api_key."""

    @pytest.mark.asyncio
    async def test_valid_key(self) -> None:
        mock_client = client_with(get=AsyncMock(return_value=MagicMock(status_code=200)))

        with patch("aiworks.llm.gemini.httpx.AsyncClient", return_value=mock_client):
            provider = GeminiProvider(api_key="good-key")
            assert await provider.validate_api_key() is True

        assert mock_client.get.call_args.kwargs["params"] == {"key": "good-key"}

    @pytest.mark.asyncio
    async def test_rejected_key(self) -> None:
        mock_client = client_with(get=AsyncMock(return_value=MagicMock(status_code=400)))

        with patch("aiworks.llm.gemini.httpx.AsyncClient", return_value=mock_client):
            provider = GeminiProvider(api_key="bad-key")
            assert await provider.validate_api_key() is False

    @pytest.mark.asyncio
    async def test_network_failure_raises(self) -> None:
        mock_client = client_with(get=AsyncMock(side_effect=httpx.ConnectError("down")))

        with patch("aiworks.llm.gemini.httpx.AsyncClient", return_value=mock_client):
            provider = GeminiProvider(api_key="some-key")
            with pytest.raises(APIError):
                await provider.validate_api_key()

    @pytest.mark.asyncio
    async def test_missing_key(self, monkeypatch) -> None:
        monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
        provider = GeminiProvider()

        with pytest.raises(MissingAPIKeyError):
            await provider.validate_api_key()


class TestGeminiStream:
    """Tests for GeminiProvider.stream."""

    @pytest.mark.asyncio
    async def test_stream_accumulates(self) -> None:
        lines = [
            'data: {"choices": [{"delta": {"content": "Hel"}}]}',
            "",
            "data: not-json",
            'data: {"choices": [{"delta": {"content": "lo"}, "finish_reason": "stop"}],'
            ' "usage": {"prompt_tokens": 3, "completion_tokens": 2}}',
            "data: [DONE]",
        ]

        async def aiter_lines():
            for line in lines:
                yield line

        response = MagicMock()
        response.raise_for_status = MagicMock()
        response.aiter_lines = aiter_lines
        stream_cm = MagicMock()
        stream_cm.__aenter__ = AsyncMock(return_value=response)
        stream_cm.__aexit__ = AsyncMock(return_value=None)
        mock_client = client_with(stream=MagicMock(return_value=stream_cm))

        with patch("aiworks.llm.gemini.httpx.AsyncClient", return_value=mock_client):
            provider = GeminiProvider(api_key="test-key")
            chunks = [chunk async for chunk in provider.stream([Message.user("Hi")])]

        assert [c.delta for c in chunks] == ["Hel", "lo"]
        assert chunks[-1].content == "Hello"
        assert chunks[-1].finish_reason == "stop"
        assert chunks[-1].usage.completion_tokens == 2
        assert mock_client.stream.call_args.kwargs["json"]["stream"] is True
