"""Sequential batches of concurrent async calls.

Items are split into batches of at most ``batch_size``. The calls inside a
batch run concurrently under an ``asyncio.TaskGroup``; the next batch starts
only after the whole previous batch has completed. Results come back in input
order regardless of completion order.
"""

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, TypeVar

from scrobblecharts.config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")
R = TypeVar("R")


def chunked(items: Sequence[T], size: int) -> list[Sequence[T]]:
    """Split items into consecutive slices of at most size elements."""
    if size < 1:
        raise ValueError(f"Batch size must be >= 1, got {size}")
    return [items[i : i + size] for i in range(0, len(items), size)]


async def gather_in_batches(
    items: Sequence[T],
    process_func: Callable[[T], Awaitable[R]],
    batch_size: int,
    logger_instance: Any = None,
) -> list[R]:
    """Run process_func over items, batch by batch.

    The first failing call cancels its batch's siblings and its exception is
    re-raised unchanged; later batches are never started.

    Args:
        items: Items to process
        process_func: Async function applied to each item
        batch_size: Maximum number of concurrent calls per batch
        logger_instance: Logger for batch progress (module logger by default)

    Returns:
        One result per item, in input order
    """
    log = logger_instance or logger
    batches = chunked(items, batch_size)
    results: list[R] = []

    for index, batch in enumerate(batches, start=1):
        log.debug(
            f"Processing batch {index}/{len(batches)}",
            batch_size=len(batch),
            total_items=len(items),
        )
        try:
            async with asyncio.TaskGroup() as tg:
                tasks = [tg.create_task(process_func(item)) for item in batch]
        except ExceptionGroup as eg:
            raise eg.exceptions[0] from None
        results.extend(task.result() for task in tasks)

    return results
