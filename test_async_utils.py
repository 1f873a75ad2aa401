"""Tests for batched processing and retry helpers."""

import asyncio

import pytest

from async_utils import BatchProcessor, retry_async, run_async
from error_handling import QuotaExceededError, RetryableError
from testing_fakes import RecordingSleep


def test_batches_run_in_order_with_delay_between():
    sleep = RecordingSleep()
    processor = BatchProcessor(batch_size=5, batch_delay=1.0, sleep=sleep)
    progress = []

    async def double(x):
        return x * 2

    results = asyncio.run(
        processor.process(list(range(12)), double, lambda p, t: progress.append((p, t)))
    )

    assert [r.result for r in results] == [x * 2 for x in range(12)]
    assert all(r.success for r in results)
    assert sleep.delays == [1.0, 1.0]
    assert progress == [(i, 12) for i in range(1, 13)]


def test_single_batch_never_sleeps():
    sleep = RecordingSleep()
    processor = BatchProcessor(batch_size=5, batch_delay=1.0, sleep=sleep)

    async def identity(x):
        return x

    asyncio.run(processor.process([1, 2, 3], identity))
    assert sleep.delays == []


def test_failures_are_captured():
    processor = BatchProcessor(batch_size=2, batch_delay=0)

    async def maybe_fail(x):
        if x == 2:
            raise ValueError("bad item")
        return x

    results = asyncio.run(processor.process([1, 2, 3], maybe_fail))

    assert [r.success for r in results] == [True, False, True]
    assert isinstance(results[1].error, ValueError)
    assert results[1].result is None


def test_invalid_batch_settings():
    with pytest.raises(ValueError):
        BatchProcessor(batch_size=0)
    with pytest.raises(ValueError):
        BatchProcessor(batch_delay=-1)


def test_retry_async_succeeds_after_failures():
    attempts = []

    async def flaky():
        attempts.append(1)
        if len(attempts) < 3:
            raise ConnectionError("try again")
        return "ok"

    sleep = RecordingSleep()
    result = asyncio.run(retry_async(flaky, max_attempts=3, base_delay=1.0, sleep=sleep))
    assert result == "ok"
    assert len(attempts) == 3
    assert sleep.delays == [1.0, 2.0]


def test_retry_async_only_catches_listed_exceptions():
    attempts = []

    async def broken():
        attempts.append(1)
        raise KeyError("not retryable")

    with pytest.raises(KeyError):
        asyncio.run(retry_async(broken, exceptions=(ConnectionError,), sleep=RecordingSleep()))
    assert len(attempts) == 1


def test_run_async_inside_running_loop():
    async def inner():
        return 42

    async def outer():
        return run_async(inner())

    assert run_async(inner()) == 42
    assert asyncio.run(outer()) == 42


def test_retry_async_honors_retry_after_hint():
    sleep = RecordingSleep()

    async def over_quota():
        raise QuotaExceededError(service="google", retry_after=20.0)

    with pytest.raises(QuotaExceededError):
        asyncio.run(
            retry_async(
                over_quota,
                max_attempts=3,
                max_delay=30.0,
                exceptions=(RetryableError,),
                sleep=sleep,
            )
        )
    assert sleep.delays == [20.0, 20.0]
