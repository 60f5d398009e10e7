"""Bounded retry with backoff for async calls."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def exponential_backoff(base: float) -> Callable[[int], float]:
    """Delay doubling per failed attempt: ``base``, ``2 * base``, ``4 * base`` ..."""

    def delay(attempt: int) -> float:
        return base * (2 ** (attempt - 1))

    return delay


@dataclass(frozen=True)
class RetryPolicy:
    """When and how often to retry.

    ``backoff`` receives the 1-based number of the attempt that just failed
    and returns the delay in seconds before the next one.
    """

    max_attempts: int
    retry_predicate: Callable[[BaseException], bool]
    backoff: Callable[[int], float]

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    *,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Run ``operation`` until it succeeds or the policy gives up.

    Exceptions the predicate rejects propagate immediately. After the last
    attempt the most recent exception is re-raised unchanged.
    """

    attempt = 1
    while True:
        try:
            return await operation()
        except Exception as exc:
            if attempt >= policy.max_attempts or not policy.retry_predicate(exc):
                raise
            delay = policy.backoff(attempt)
            logger.warning(
                "Retrying after transient failure",
                extra={
                    "attempt": attempt,
                    "max_attempts": policy.max_attempts,
                    "delay_seconds": delay,
                    "error_type": type(exc).__name__,
                },
            )
            await sleep(delay)
            attempt += 1
