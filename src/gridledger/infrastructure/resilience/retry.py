# Copyright (c) Gridledger.
# SPDX-License-Identifier: MIT
"""Retry utilities (async) with jittered exponential backoff."""

from __future__ import annotations

import asyncio
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Configuration for retry attempts."""

    total: int  # retries after the first attempt
    base: float  # base backoff seconds
    cap: float  # max backoff seconds
    jitter: bool = True  # full jitter when True

    def backoff(self, attempt: int) -> float:
        """Sleep before retry number ``attempt + 1``."""
        delay = min(self.cap, self.base * (2**attempt))
        if self.jitter:
            delay = random.uniform(0, delay)  # noqa: S311
        return delay


async def retry_async(
    fn: Callable[[], Awaitable[T]],
    *,
    policy: RetryPolicy,
    retry_on: Callable[[Exception], bool],
    on_retry: Callable[[int, Exception], None] | None = None,
) -> T:
    """Run ``fn`` until it succeeds or the retry budget is spent.

    Args:
        fn: Zero-arg async function to execute.
        policy: Retry count and backoff shape.
        retry_on: Returns True for exceptions worth retrying.
        on_retry: Optional hook called with ``(attempt, exc)`` before sleeping.

    Returns:
        The return value of ``fn``.

    Raises:
        The last exception once retries are exhausted, or immediately for a
        non-retryable exception.
    """
    attempt = 0
    while True:
        try:
            return await fn()
        except Exception as exc:  # noqa: BLE001
            if attempt >= policy.total or not retry_on(exc):
                raise
            if on_retry is not None:
                on_retry(attempt, exc)
        await asyncio.sleep(policy.backoff(attempt))
        attempt += 1
