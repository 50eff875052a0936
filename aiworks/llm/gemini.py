"""Google Gemini provider.

Talks to the OpenAI-compatible chat endpoint of the generative-language
API with httpx. The key check uses the native ``/models`` listing, which
accepts the key as a query parameter.
"""

from __future__ import annotations

import json
import logging
import os
from contextlib import contextmanager
from typing import Any, AsyncIterator, Iterator, NoReturn

import httpx

from aiworks.config import Settings
from aiworks.core.types import LLMResponse, Message, StreamChunk, Usage
from aiworks.errors.exceptions import (
    APIError,
    AuthenticationError,
    MissingAPIKeyError,
    RateLimitError,
    TimeoutError,
)
from aiworks.llm.base import BaseLLMProvider

logger = logging.getLogger(__name__)

GEMINI_API_ROOT = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_MODEL = "gemini-2.0-flash"


class GeminiProvider(BaseLLMProvider):
    """Gemini chat completions over httpx.

    The key comes from ``api_key`` or the ``GOOGLE_API_KEY`` environment
    variable and is only required once a request is made.

    Example:
        >>> provider = GeminiProvider(model="gemini-2.0-flash")
        >>> response = await provider.generate("Hello")
    """

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        api_key: str | None = None,
        timeout: float = 60.0,
        root_url: str = GEMINI_API_ROOT,
    ) -> None:
        self._model = model
        self._api_key = api_key or os.environ.get("GOOGLE_API_KEY")
        self._timeout = timeout
        self._root_url = root_url.rstrip("/")
        self._base_url = f"{self._root_url}/openai"

    @classmethod
    def from_settings(cls, settings: Settings) -> GeminiProvider | None:
        """Provider for the configured key, or None when no key is set."""
        if not settings.api_key:
            return None
        return cls(
            model=settings.default_model,
            api_key=settings.api_key,
            timeout=settings.llm_timeout,
        )

    @property
    def model(self) -> str:
        return self._model

    @property
    def provider_name(self) -> str:
        return "gemini"

    def _require_api_key(self) -> str:
        if not self._api_key:
            raise MissingAPIKeyError("gemini")
        return self._api_key

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._require_api_key()}",
            "Content-Type": "application/json",
        }

    def _payload(
        self,
        messages: list[Message],
        temperature: float,
        max_tokens: int,
        model: str,
    ) -> dict[str, Any]:
        return {
            "model": model,
            "messages": [msg.to_payload() for msg in messages],
            "temperature": temperature,
            "max_completion_tokens": max_tokens,
        }

    @contextmanager
    def _translate_errors(self, model: str) -> Iterator[None]:
        """Turn httpx failures into the AIWorks LLM errors."""
        try:
            yield
        except httpx.TimeoutException:
            raise TimeoutError(
                f"Request to Gemini timed out after {self._timeout}s",
                provider="gemini",
                model=model,
                timeout_seconds=self._timeout,
            ) from None
        except httpx.HTTPStatusError as e:
            self._handle_error(e, model)
        except httpx.TransportError as e:
            raise APIError(
                f"Failed to connect to Gemini API at {self._base_url}: {e}",
                provider="gemini",
                model=model,
            ) from e

    async def complete(
        self,
        messages: list[Message],
        *,
        temperature: float = 0.7,
        max_tokens: int = 4096,
        **kwargs: Any,
    ) -> LLMResponse:
        """Generate a completion.

        Raises:
            MissingAPIKeyError: If no API key is configured.
            AuthenticationError: If the key is rejected.
            RateLimitError: If the quota is exhausted.
            APIError: If the API is unreachable or answers with an error.
            TimeoutError: If the request times out.
        """
        model = kwargs.get("model") or self._model
        payload = self._payload(messages, temperature, max_tokens, model)
        headers = self._headers()

        with self._translate_errors(model):
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(
                    f"{self._base_url}/chat/completions", json=payload, headers=headers
                )
                response.raise_for_status()
                data = response.json()

        choices = data.get("choices") or []
        if not choices:
            raise APIError("Gemini API returned no choices", provider="gemini", model=model)
        choice = choices[0]

        return LLMResponse(
            content=(choice.get("message") or {}).get("content") or "",
            model=model,
            usage=Usage.from_payload(data.get("usage")),
            finish_reason=choice.get("finish_reason") or "stop",
            raw_response=data,
        )

    async def stream(
        self,
        messages: list[Message],
        *,
        temperature: float = 0.7,
        max_tokens: int = 4096,
        **kwargs: Any,
    ) -> AsyncIterator[StreamChunk]:
        """Stream a completion as server-sent events.

        Lines that are not ``data:`` events or do not parse as JSON are
        ignored. The stream ends at ``[DONE]``.
        """
        model = kwargs.get("model") or self._model
        payload = self._payload(messages, temperature, max_tokens, model)
        payload["stream"] = True
        headers = self._headers()

        content = ""
        with self._translate_errors(model):
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                async with client.stream(
                    "POST", f"{self._base_url}/chat/completions", json=payload, headers=headers
                ) as response:
                    response.raise_for_status()

                    async for line in response.aiter_lines():
                        event = _parse_event(line)
                        if event is None:
                            continue
                        if event == "[DONE]":
                            break

                        choice = (event.get("choices") or [{}])[0]
                        delta = (choice.get("delta") or {}).get("content") or ""
                        content += delta
                        finish_reason = choice.get("finish_reason")

                        usage = None
                        if finish_reason and "usage" in event:
                            usage = Usage.from_payload(event["usage"])

                        yield StreamChunk(
                            content=content,
                            delta=delta,
                            finish_reason=finish_reason,
                            usage=usage,
                        )

    async def validate_api_key(self) -> bool:
        """Check the configured key by listing the available models.

        Returns False for a rejected key.

        Raises:
            MissingAPIKeyError: If no API key is configured.
            APIError: If the API could not be reached.
        """
        api_key = self._require_api_key()

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.get(f"{self._root_url}/models", params={"key": api_key})
        except httpx.HTTPError as e:
            raise APIError(
                f"API key validation request failed: {e}",
                provider="gemini",
                model=self._model,
            ) from e

        if response.status_code != 200:
            logger.info(f"API key rejected by Gemini: HTTP {response.status_code}")
            return False
        return True

    def _handle_error(self, error: httpx.HTTPStatusError, model: str) -> NoReturn:
        status_code = error.response.status_code
        error_text = error.response.text

        if status_code in (401, 403):
            raise AuthenticationError(
                "Invalid or missing API key. Get a key at https://aistudio.google.com/app/apikey",
                provider="gemini",
            )

        if status_code == 429:
            retry_after = error.response.headers.get("retry-after")
            raise RateLimitError(
                f"Gemini rate limit exceeded: {error_text}",
                provider="gemini",
                model=model,
                retry_after=float(retry_after) if retry_after and retry_after.isdigit() else None,
            )

        raise APIError(
            f"Gemini API error: {status_code} - {error_text}",
            provider="gemini",
            model=model,
            status_code=status_code,
        )


def _parse_event(line: str) -> dict[str, Any] | str | None:
    """Decode one SSE line: a JSON dict, ``"[DONE]"`` or None to skip."""
    if not line.startswith("data:"):
        return None
    data = line[5:].strip()
    if data == "[DONE]":
        return data
    try:
        event = json.loads(data)
    except json.JSONDecodeError:
        return None
    return event if isinstance(event, dict) else None
