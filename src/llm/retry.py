"""Bounded retry with backoff for async operations."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryError(Exception):
    """Every attempt failed. ``last_error`` holds the final exception."""

    def __init__(self, attempts: int, last_error: BaseException | None) -> None:
        super().__init__(f"Gave up after {attempts} attempt(s): {last_error!r}")
        self.attempts = attempts
        self.last_error = last_error


def linear_backoff(base: float) -> Callable[[int], float]:
    """Delay of ``base * attempt`` seconds after the given failed attempt."""

    def _delay(attempt: int) -> float:
        return base * attempt

    return _delay


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    *,
    max_attempts: int,
    backoff: Callable[[int], float],
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Call *operation* until it succeeds or *max_attempts* is reached.

    Sleeps ``backoff(attempt)`` between attempts, never after the last one.

    Raises:
        RetryError: when every attempt raised.
    """
    if max_attempts < 1:
        msg = "max_attempts must be at least 1"
        raise ValueError(msg)

    last_error: Exception | None = None
    for attempt in range(1, max_attempts + 1):
        try:
            return await operation()
        except Exception as exc:
            last_error = exc
            logger.warning("Attempt %d/%d failed: %s", attempt, max_attempts, exc)
            if attempt < max_attempts:
                await sleep(backoff(attempt))

    raise RetryError(max_attempts, last_error)
