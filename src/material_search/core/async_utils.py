"""
Async Utilities for concurrent collection searches.

Python 3.12+ features used:
- asyncio.TaskGroup for structured concurrency (3.11+)
- asyncio.timeout context manager (3.11+)
- Type parameter syntax for generic functions
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from typing import TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


# =============================================================================
# Parallel Execution with TaskGroup (Python 3.11+)
# =============================================================================

async def gather_with_errors(
    *coros: Awaitable[T],
    return_exceptions: bool = False,
) -> list[T | Exception]:
    """
    Execute coroutines in parallel using TaskGroup.

    Results are returned in the order the coroutines were given, whatever
    order they complete in.

    Args:
        *coros: Coroutines to execute
        return_exceptions: If True, return exceptions instead of raising

    Returns:
        List of results (or exceptions if return_exceptions=True)

    Example:
        in_stock, catalog = await gather_with_errors(
            search("in_stock"),
            search("full_catalog"),
            return_exceptions=True,
        )
    """
    if return_exceptions:
        results: list[T | Exception | None] = [None] * len(coros)

        async def safe_run(coro: Awaitable[T], index: int) -> None:
            try:
                results[index] = await coro
            except Exception as e:
                results[index] = e

        async with asyncio.TaskGroup() as tg:
            for i, coro in enumerate(coros):
                tg.create_task(safe_run(coro, i))
        return results  # type: ignore[return-value]

    # Fail fast on any exception
    async with asyncio.TaskGroup() as tg:
        tasks = [tg.create_task(coro) for coro in coros]
    return [task.result() for task in tasks]


async def timeout_with_fallback(
    coro: Awaitable[T],
    timeout: float,
    fallback: T,
) -> T:
    """
    Execute coroutine with timeout, returning fallback on timeout.

    Example:
        count = await timeout_with_fallback(backend.count("stock"), 2.0, 0)
    """
    try:
        async with asyncio.timeout(timeout):
            return await coro
    except TimeoutError:
        logger.warning(f"Operation timed out after {timeout}s, using fallback")
        return fallback
