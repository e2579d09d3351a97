"""
Bounded retry with linear backoff for transient fetch failures.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, TypeVar

import structlog

from cratedocs.exceptions import is_transient
from cratedocs.observability import increment

logger = structlog.get_logger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]


def backoff_delay(attempt: int, base_delay: float) -> float:
    """Delay before retry ``attempt`` (1-indexed): base, 2*base, 3*base, ..."""
    return base_delay * attempt


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    max_retries: int = 2,
    base_delay: float = 0.5,
    *,
    sleep: Sleep = asyncio.sleep,
) -> T:
    """
    Run ``operation``, re-invoking it up to ``max_retries`` more times on transient failure.

    Args:
        operation: zero-argument coroutine factory; called once per attempt
        max_retries: additional attempts allowed after the first one
        base_delay: backoff step in seconds
        sleep: awaitable used for the pause between attempts

    Returns:
        The first successful result.

    Raises:
        The last failure once the budget is spent, or any non-transient failure at once.
    """
    attempt = 0
    while True:
        try:
            return await operation()
        except Exception as e:
            if attempt >= max_retries or not is_transient(e):
                raise
            attempt += 1
            delay = backoff_delay(attempt, base_delay)
            logger.info("Retrying request", attempt=attempt, max_retries=max_retries, delay=delay, error=str(e))
            increment("fetch_retries_total")
            await sleep(delay)
