"""Bounded fan-out over fixed-size batches.

Items are split into consecutive batches of ``batch_size``. Every item in
a batch is started together via ``asyncio.gather()`` and the next batch
starts only when the whole current batch has finished, so at most
``batch_size`` workers are ever in flight.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Iterable, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


def chunked(items: Sequence[T], size: int) -> Iterable[Sequence[T]]:
    """Yield consecutive slices of *items* with at most *size* elements."""
    if size < 1:
        raise ValueError(f"batch size must be >= 1, got {size}")
    for start in range(0, len(items), size):
        yield items[start:start + size]


async def run_in_batches(
    items: Sequence[T],
    worker: Callable[[T], Awaitable[R]],
    batch_size: int,
) -> list[R | Exception]:
    """Run *worker* over *items*, one batch at a time.

    Failures are captured per item without aborting the rest of the batch.

    Args:
        items: Inputs, processed in order.
        worker: Async callable applied to each item.
        batch_size: Maximum number of concurrent workers.

    Returns:
        List of results in the same order as *items*. Each element is
        either the worker's return value or the Exception it raised.
    """
    async def _safe(item: T) -> R | Exception:
        try:
            return await worker(item)
        except Exception as exc:
            return exc

    results: list[R | Exception] = []
    batches = list(chunked(items, batch_size))
    for number, batch in enumerate(batches, start=1):
        logger.debug("Batch %d/%d: %d items", number, len(batches), len(batch))
        results.extend(await asyncio.gather(*[_safe(item) for item in batch]))
    return results
