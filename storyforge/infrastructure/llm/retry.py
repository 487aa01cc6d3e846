"""Retry with exponential backoff for transient LLM request failures."""

from __future__ import annotations

import asyncio
import os
import random
from collections.abc import Awaitable, Callable
from typing import TypeVar

from dotenv import load_dotenv

from storyforge.infrastructure.llm.base import (
    LLMConnectionError,
    LLMError,
    LLMTimeoutError,
    RateLimitError,
)
from storyforge.utils.logging import get_logger

load_dotenv()

logger = get_logger("infrastructure.llm.retry")

T = TypeVar("T")

RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


def is_retryable_error(exc: BaseException) -> bool:
    """Timeouts, connection failures, rate limits and 5xx gateway errors."""
    if isinstance(exc, (LLMTimeoutError, LLMConnectionError, RateLimitError)):
        return True
    return isinstance(exc, LLMError) and exc.status_code in RETRYABLE_STATUS_CODES


class RetryPolicy:
    """Bounded retry for a single LLM request.

    Each request gets `max_retries` extra attempts after the first. The wait
    before retry n is `initial_delay * 2**(n-1)` plus up to 30% jitter, capped
    at `max_delay`. Only errors passing `is_retryable_error` are retried; the
    last error is re-raised once attempts run out.
    """

    def __init__(
        self,
        max_retries: int | None = None,
        initial_delay: float | None = None,
        max_delay: float = 30.0,
    ):
        if max_retries is None:
            max_retries = int(os.getenv("LLM_MAX_RETRIES", "3"))
        if initial_delay is None:
            initial_delay = float(os.getenv("LLM_RETRY_DELAY", "1.0"))
        if max_retries < 0:
            raise ValueError("max_retries must not be negative")
        self.max_retries = max_retries
        self.initial_delay = initial_delay
        self.max_delay = max_delay

    def delay_for(self, retry_number: int) -> float:
        """Seconds to wait before the given retry (1-based)."""
        delay = self.initial_delay * (2 ** (retry_number - 1))
        return min(delay + random.uniform(0, 0.3 * delay), self.max_delay)

    def should_retry(self, exc: BaseException, attempt: int) -> bool:
        """True if a failure on `attempt` (0-based) earns another try."""
        return attempt < self.max_retries and is_retryable_error(exc)

    async def wait_before_retry(self, exc: BaseException, attempt: int) -> None:
        delay = self.delay_for(attempt + 1)
        logger.warning(
            f"LLM request failed (attempt {attempt + 1}/{self.max_retries + 1}), "
            f"retrying in {delay:.1f}s: {exc}"
        )
        await asyncio.sleep(delay)

    async def execute_with_retry(self, coro_factory: Callable[[], Awaitable[T]]) -> T:
        """Await a fresh coroutine from `coro_factory` until it succeeds or may not retry."""
        attempt = 0
        while True:
            try:
                return await coro_factory()
            except LLMError as exc:
                if not self.should_retry(exc, attempt):
                    raise
                await self.wait_before_retry(exc, attempt)
                attempt += 1
