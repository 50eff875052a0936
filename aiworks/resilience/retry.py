"""Retry policy for the HTTP requests sent by ``api-call`` nodes.

A request is tried again when the transport fails or when the server
answers with a status in ``retry_statuses``. Once the attempts run out the
last response is returned so the caller can report its status.
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable

import httpx

logger = logging.getLogger(__name__)

# Rate limiting and gateway errors; other statuses are final.
RETRYABLE_STATUS = frozenset({429, 502, 503, 504})


class RetryStrategy(str, Enum):
    """How the wait grows between attempts."""

    FIXED = "fixed"
    LINEAR = "linear"
    EXPONENTIAL = "exponential"


@dataclass(frozen=True)
class RetryPolicy:
    """Retry settings for one api-call node.

    Example:
        >>> policy = RetryPolicy.from_config({"retries": 2, "retry_strategy": "linear"})
        >>> response = await policy.send(lambda: client.get(url))
    """

    max_retries: int = 0
    strategy: RetryStrategy = RetryStrategy.EXPONENTIAL
    base_delay: float = 0.5
    max_delay: float = 10.0
    jitter: float = 0.1
    retry_statuses: frozenset[int] = RETRYABLE_STATUS

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("retries must not be negative")
        if self.base_delay <= 0:
            raise ValueError("retry_delay must be positive")
        if self.max_delay < self.base_delay:
            raise ValueError("max_delay must be >= retry_delay")
        if not 0 <= self.jitter <= 1:
            raise ValueError("jitter must be between 0 and 1")
        try:
            object.__setattr__(self, "strategy", RetryStrategy(self.strategy))
        except ValueError:
            choices = ", ".join(s.value for s in RetryStrategy)
            raise ValueError(
                f"Unknown retry strategy '{self.strategy}'. Choose from: {choices}"
            ) from None

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> RetryPolicy:
        """Read ``retries``, ``retry_strategy`` and ``retry_delay`` from node config.

        Raises:
            ValueError: If a value is malformed.
        """
        try:
            retries = int(config.get("retries", 0))
            base_delay = float(config.get("retry_delay", cls.base_delay))
        except (TypeError, ValueError):
            raise ValueError("retries and retry_delay must be numbers") from None
        return cls(
            max_retries=retries,
            strategy=config.get("retry_strategy", RetryStrategy.EXPONENTIAL),
            base_delay=base_delay,
            max_delay=max(cls.max_delay, base_delay),
        )

    def delay_for(self, attempt: int, retry_after: float | None = None) -> float:
        """Seconds to wait before retry number ``attempt`` (0 is the first retry).

        A server-provided ``Retry-After`` wins over the strategy, still capped
        at ``max_delay``.
        """
        if retry_after is not None:
            return min(retry_after, self.max_delay)

        if self.strategy == RetryStrategy.FIXED:
            delay = self.base_delay
        elif self.strategy == RetryStrategy.LINEAR:
            delay = self.base_delay * (attempt + 1)
        else:
            delay = self.base_delay * (2 ** attempt)
        delay = min(delay, self.max_delay)

        if self.jitter:
            spread = delay * self.jitter
            delay = max(0.0, delay + random.uniform(-spread, spread))
        return delay

    def should_retry(self, response: httpx.Response, attempt: int) -> bool:
        return attempt < self.max_retries and response.status_code in self.retry_statuses

    async def send(self, request: Callable[[], Awaitable[httpx.Response]]) -> httpx.Response:
        """Call ``request`` until it succeeds or the retries are used up.

        Raises:
            httpx.TransportError: If the last attempt failed in transport.
        """
        attempt = 0
        while True:
            try:
                response = await request()
            except httpx.TransportError as e:
                if attempt >= self.max_retries:
                    raise
                logger.debug(f"Attempt {attempt + 1} failed ({e}), retrying")
                await asyncio.sleep(self.delay_for(attempt))
            else:
                if not self.should_retry(response, attempt):
                    return response
                logger.debug(f"Attempt {attempt + 1} got HTTP {response.status_code}, retrying")
                await asyncio.sleep(self.delay_for(attempt, _retry_after(response)))
            attempt += 1


def _retry_after(response: httpx.Response) -> float | None:
    value = response.headers.get("retry-after")
    if isinstance(value, str) and value.strip().isdigit():
        return float(value)
    return None
