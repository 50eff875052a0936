"""API key validation with a time-bounded cache."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable

from aiworks.errors.exceptions import APIError
from aiworks.llm.gemini import GeminiProvider

logger = logging.getLogger(__name__)

# Validated keys are trusted for an hour before being checked again.
DEFAULT_CACHE_TTL = 3600.0
DEFAULT_MAX_ENTRIES = 256


@dataclass
class _CachedResult:
    valid: bool
    checked_at: float


class ApiKeyValidator:
    """Validates Gemini API keys and remembers the outcome.

    Only answers from the API are cached. When the API cannot be reached
    the key is reported invalid and checked again on the next call.

    Example:
        >>> validator = ApiKeyValidator()
        >>> if await validator.validate(key):
        ...     provider = GeminiProvider(api_key=key)
    """

    def __init__(
        self,
        provider_factory: Callable[[str], GeminiProvider] | None = None,
        ttl: float = DEFAULT_CACHE_TTL,
        clock: Callable[[], float] = time.monotonic,
        max_entries: int = DEFAULT_MAX_ENTRIES,
    ) -> None:
        self._provider_factory = provider_factory or (lambda key: GeminiProvider(api_key=key))
        self._ttl = ttl
        self._clock = clock
        self._max_entries = max_entries
        self._cache: dict[str, _CachedResult] = {}

    async def validate(self, api_key: str) -> bool:
        """Return whether the key is accepted by the Gemini API."""
        if not api_key or not api_key.strip():
            return False

        self._prune()
        cached = self._cache.get(api_key)
        if cached:
            return cached.valid

        provider = self._provider_factory(api_key)
        try:
            valid = await provider.validate_api_key()
        except APIError as e:
            logger.warning(f"Could not validate API key: {e}")
            return False
        self._store(api_key, valid)
        return valid

    def register(self, api_key: str, valid: bool = True) -> None:
        """Record a key as already checked."""
        self._prune()
        self._store(api_key, valid)

    def forget(self, api_key: str) -> None:
        """Drop a cached result so the next call re-validates."""
        self._cache.pop(api_key, None)

    def __len__(self) -> int:
        return len(self._cache)

    def _store(self, api_key: str, valid: bool) -> None:
        self._cache.pop(api_key, None)
        while len(self._cache) >= self._max_entries:
            # Dicts keep insertion order, so the first entry is the oldest.
            del self._cache[next(iter(self._cache))]
        self._cache[api_key] = _CachedResult(valid=valid, checked_at=self._clock())

    def _prune(self) -> None:
        now = self._clock()
        expired = [k for k, v in self._cache.items() if now - v.checked_at >= self._ttl]
        for key in expired:
            del self._cache[key]
