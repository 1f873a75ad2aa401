"""Async Utilities for Guest Scout.

This module provides the async/await patterns shared by the pipeline.

Features:
- Batched concurrent processing with progress reporting
- Retry with exponential backoff
- Sync wrapper for running a coroutine from the CLI
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Optional, Sequence, TypeVar

logger = logging.getLogger(__name__)

# Type variables for generic functions
T = TypeVar("T")
R = TypeVar("R")

ProgressCallback = Callable[[int, int], None]


# =============================================================================
# Sync Wrapper
# =============================================================================


def run_async(coro: Awaitable[T]) -> T:
    """Run an async coroutine synchronously.

    Args:
        coro: Coroutine to run

    Returns:
        Result of the coroutine
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        # No running loop, safe to use asyncio.run
        return asyncio.run(coro)  # type: ignore[arg-type]

    # Already inside a loop; run on a private loop in a worker thread
    import concurrent.futures

    with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
        future = pool.submit(asyncio.run, coro)  # type: ignore[arg-type]
        return future.result()


# =============================================================================
# Batched Concurrent Processing
# =============================================================================


@dataclass
class ProcessingResult(Generic[T, R]):
    """Result of processing a single item."""

    item: T
    success: bool
    result: Optional[R] = None
    error: Optional[BaseException] = None
    duration_ms: float = 0.0


class BatchProcessor:
    """Process items in fixed-size groups with a pause between groups.

    Items inside a group run concurrently; groups run one after another so
    the number of in-flight external calls never exceeds ``batch_size``.
    """

    def __init__(
        self,
        batch_size: int = 5,
        batch_delay: float = 1.0,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        """Initialize the batch processor.

        Args:
            batch_size: Items evaluated concurrently per group
            batch_delay: Seconds to wait between groups
            sleep: Awaitable sleep, replaceable in tests
        """
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        if batch_delay < 0:
            raise ValueError(f"batch_delay cannot be negative, got {batch_delay}")
        self.batch_size = batch_size
        self.batch_delay = batch_delay
        self._sleep = sleep

    async def process(
        self,
        items: Sequence[T],
        process_func: Callable[[T], Awaitable[R]],
        on_progress: Optional[ProgressCallback] = None,
    ) -> list[ProcessingResult[T, R]]:
        """Process every item, reporting progress after each completion.

        Exceptions raised by ``process_func`` are captured in the item's
        ProcessingResult; they never abort the other items.

        Args:
            items: Items to process
            process_func: Async function to process each item
            on_progress: Called with (processed, total) after each item

        Returns:
            ProcessingResults in input order
        """
        total = len(items)
        processed = 0
        results: list[ProcessingResult[T, R]] = []

        async def process_and_report(item: T) -> ProcessingResult[T, R]:
            nonlocal processed
            start = time.perf_counter()
            try:
                value = await process_func(item)
                outcome = ProcessingResult(
                    item=item,
                    success=True,
                    result=value,
                    duration_ms=(time.perf_counter() - start) * 1000,
                )
            except Exception as e:
                outcome = ProcessingResult(
                    item=item,
                    success=False,
                    error=e,
                    duration_ms=(time.perf_counter() - start) * 1000,
                )

            # No suspension point between the increment and the callback
            processed += 1
            if on_progress is not None:
                on_progress(processed, total)
            return outcome

        for start_index in range(0, total, self.batch_size):
            batch = items[start_index : start_index + self.batch_size]
            batch_number = start_index // self.batch_size + 1
            logger.debug(f"Processing batch {batch_number} ({len(batch)} items)")

            results.extend(
                await asyncio.gather(*(process_and_report(item) for item in batch))
            )

            if start_index + self.batch_size < total and self.batch_delay > 0:
                await self._sleep(self.batch_delay)

        return results


# =============================================================================
# Retry
# =============================================================================


async def retry_async(
    func: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    exceptions: tuple[type[Exception], ...] = (Exception,),
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> T:
    """Retry an async function with exponential backoff.

    A caught exception carrying a ``retry_after`` hint (seconds, e.g. from
    a provider's Retry-After header) stretches that attempt's delay, still
    bounded by ``max_delay``.

    Args:
        func: Async function to retry
        max_attempts: Maximum number of attempts
        base_delay: Initial delay between retries
        max_delay: Maximum delay between retries
        exceptions: Exception types to catch and retry
        sleep: Awaitable sleep, replaceable in tests

    Raises:
        The last caught exception if all attempts fail
    """
    for attempt in range(1, max_attempts + 1):
        try:
            return await func()
        except exceptions as e:
            if attempt == max_attempts:
                raise
            delay = base_delay * 2 ** (attempt - 1)
            hint = getattr(e, "retry_after", None)
            if isinstance(hint, (int, float)):
                delay = max(delay, hint)
            delay = min(delay, max_delay)
            logger.warning(
                f"Attempt {attempt}/{max_attempts} failed: {e}. Retrying in {delay:.1f}s"
            )
            await sleep(delay)

    raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")
