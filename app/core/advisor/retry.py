"""
Retry Executor — Exponential Backoff for Upstream Calls
=========================================================
Wraps an async operation crossing the process boundary. Client errors
(400/401/403/404) surface immediately; anything else is retried with a
doubling delay until the attempt budget runs out, then surfaces as
RetryExhaustedError carrying the attempt count.

Attempts are strictly sequential: attempt k+1 starts only after attempt k
has resolved. The only bound is max_attempts; callers needing a deadline
must bound the operation itself.

Usage:
  executor = RetryExecutor(RetryConfig.from_settings())
  chart = await executor.run(lambda: client.get_saved_chart(uuid))
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, TypeVar

from .errors import CLIENT_ERROR_STATUSES, RetryExhaustedError

logger = logging.getLogger(__name__)

T = TypeVar("T")
Operation = Callable[[], Awaitable[T]]
Sleep = Callable[[float], Awaitable[Any]]

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_INITIAL_DELAY_MS = 1000

CLIENT_ERROR_MARKERS = tuple(str(s) for s in sorted(CLIENT_ERROR_STATUSES))


@dataclass(frozen=True)
class RetryConfig:
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    initial_delay_ms: int = DEFAULT_INITIAL_DELAY_MS

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")
        if self.initial_delay_ms < 0:
            raise ValueError(f"initial_delay_ms must be >= 0, got {self.initial_delay_ms}")

    @classmethod
    def from_settings(cls, settings: Optional[Any] = None) -> "RetryConfig":
        if settings is None:
            from app.config import settings
        return cls(max_attempts=settings.MAX_RETRIES, initial_delay_ms=settings.RETRY_DELAY)


def is_client_error(error: BaseException) -> bool:
    """True for 400/401/403/404, by status attribute or a status marker in the message."""
    status = getattr(error, "status_code", None)
    if status is not None:
        return status in CLIENT_ERROR_STATUSES
    message = str(error)
    return any(marker in message for marker in CLIENT_ERROR_MARKERS)


class RetryExecutor:

    def __init__(self, config: Optional[RetryConfig] = None, sleep: Sleep = asyncio.sleep):
        self.config = config or RetryConfig()
        self._sleep = sleep

    async def run(self, operation: Operation) -> T:
        delay_ms = self.config.initial_delay_ms
        attempts = self.config.max_attempts

        for attempt in range(1, attempts + 1):
            try:
                return await operation()
            except Exception as e:
                if is_client_error(e):
                    raise
                if attempt == attempts:
                    logger.error(f"Giving up after {attempt} attempts: {e}")
                    raise RetryExhaustedError(attempt, e) from e
                logger.warning(f"Attempt {attempt}/{attempts} failed: {e}; retrying in {delay_ms}ms")
                await self._sleep(delay_ms / 1000)
                delay_ms *= 2


async def with_retry(
    operation: Operation,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    initial_delay_ms: int = DEFAULT_INITIAL_DELAY_MS,
) -> T:
    executor = RetryExecutor(RetryConfig(max_attempts=max_attempts, initial_delay_ms=initial_delay_ms))
    return await executor.run(operation)
