"""Bounded exponential backoff for transient provider errors."""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from sourcelens.errors import ProviderError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 2
    base_delay: float = 1.0
    max_delay: float = 20.0


def _is_retryable(exc: Exception) -> bool:
    return isinstance(exc, ProviderError) and exc.retryable


async def with_retry(
    coro_factory: Callable[[], Awaitable[T]],
    policy: RetryPolicy = RetryPolicy(),
) -> T:
    """Execute an async callable, retrying transient provider errors.

    Args:
        coro_factory: Zero-arg callable that returns a fresh awaitable each attempt.
        policy: Attempt limit and delay bounds.

    Returns:
        The result of the first successful call.

    Raises:
        The last exception if all attempts are exhausted or it is non-retryable.
    """
    attempts = max(policy.max_attempts, 1)
    for attempt in range(attempts):
        try:
            return await coro_factory()
        except Exception as exc:
            if not _is_retryable(exc) or attempt == attempts - 1:
                raise
            delay = min(policy.base_delay * (2 ** attempt) + random.random(), policy.max_delay)
            logger.warning(
                "Retry %d/%d after %.1fs: %s", attempt + 1, attempts, delay, exc,
            )
            await asyncio.sleep(delay)
    raise RuntimeError("unreachable")
