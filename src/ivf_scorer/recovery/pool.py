"""
Chunked Task Pool
=================

Bounded-concurrency execution for per-frame recognition work.

Items are processed in fixed-size chunks. All tasks of a chunk run
concurrently; the next chunk starts only after every task of the
current chunk has settled. A failing task never cancels its siblings.

Results are returned in input order regardless of completion order;
failed tasks leave None in their slot.
"""

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, Sequence, TypeVar


logger = logging.getLogger(__name__)


T = TypeVar("T")
R = TypeVar("R")


async def chunked_gather(
    items: Sequence[T],
    fn: Callable[[T, int], Awaitable[R]],
    chunk_size: int = 1,
) -> List[Optional[R]]:
    """
    Run `fn(item, index)` over items, `chunk_size` at a time.

    Args:
        items: Inputs, processed in order
        fn: Coroutine function receiving the item and its input index
        chunk_size: Maximum concurrent tasks

    Returns:
        One result per input; None where the task raised
    """
    chunk_size = max(1, chunk_size)
    results: List[Optional[R]] = [None] * len(items)

    for start in range(0, len(items), chunk_size):
        chunk = items[start:start + chunk_size]
        outcomes = await asyncio.gather(
            *(fn(item, start + offset) for offset, item in enumerate(chunk)),
            return_exceptions=True,
        )
        for offset, outcome in enumerate(outcomes):
            if isinstance(outcome, Exception):
                logger.error(f"Task {start + offset}/{len(items)} failed: {outcome!r}")
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                results[start + offset] = outcome

    return results
