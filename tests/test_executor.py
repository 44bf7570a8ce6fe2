import asyncio
import gc
from collections.abc import Sequence

import pytest

from pool_sync.exceptions import PoolSyncValueError, TransportError
from pool_sync.executor import RateLimitedExecutor


class ConcurrencyCounter:
    def __init__(self) -> None:
        self.in_flight = 0
        self.max_in_flight = 0

    async def __aenter__(self) -> None:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)

    async def __aexit__(self, *args: object) -> None:
        self.in_flight -= 1


@pytest.mark.parametrize(
    ("max_concurrency", "batch_size"),
    [(0, 10), (10, 0), (-1, 1)],
)
def test_invalid_configuration(max_concurrency: int, batch_size: int):
    with pytest.raises(PoolSyncValueError):
        RateLimitedExecutor(max_concurrency=max_concurrency, batch_size=batch_size)


def test_batches_respect_batch_size():
    executor = RateLimitedExecutor(max_concurrency=1, batch_size=100)
    batches = executor.batches(list(range(237)))
    assert [len(batch) for batch in batches] == [100, 100, 37]
    assert [item for batch in batches for item in batch] == list(range(237))


async def test_map_never_exceeds_concurrency_ceiling():
    executor = RateLimitedExecutor(max_concurrency=20, batch_size=1)
    counter = ConcurrencyCounter()

    async def work(item: int) -> int:
        async with counter:
            await asyncio.sleep(0.001)
            return item * 2

    results = await executor.map(list(range(237)), work)

    assert results == [item * 2 for item in range(237)]
    assert counter.max_in_flight <= 20
    assert counter.in_flight == 0


async def test_map_batches_never_exceeds_concurrency_ceiling():
    executor = RateLimitedExecutor(max_concurrency=20, batch_size=5)
    counter = ConcurrencyCounter()
    seen: list[int] = []

    async def work(batch: Sequence[int]) -> list[str]:
        async with counter:
            assert len(batch) <= 5
            await asyncio.sleep(0.001)
            seen.extend(batch)
            return [f"result-{item}" for item in batch]

    results = await executor.map_batches(list(range(237)), work)

    assert results == [f"result-{item}" for item in range(237)]
    assert sorted(seen) == list(range(237))
    assert counter.max_in_flight <= 20


async def test_empty_input():
    executor = RateLimitedExecutor(max_concurrency=5, batch_size=5)

    async def work(item: int) -> int:
        raise AssertionError

    assert await executor.map([], work) == []
    assert await executor.map_batches([], work) == []


async def test_map_batches_rejects_misaligned_results():
    executor = RateLimitedExecutor(max_concurrency=5, batch_size=5)

    async def work(batch: Sequence[int]) -> list[int]:
        return list(batch)[:-1]

    with pytest.raises(PoolSyncValueError):
        await executor.map_batches(list(range(10)), work)


async def test_transport_error_carries_partial_results():
    executor = RateLimitedExecutor(max_concurrency=1, batch_size=1)

    async def work(item: int) -> int:
        if item == 5:
            raise TransportError(message="connection reset")
        await asyncio.sleep(0 if item < 5 else 1)
        return item * 2

    with pytest.raises(TransportError) as exc_info:
        await executor.map(list(range(10)), work)

    assert exc_info.value.partial_results == {item: item * 2 for item in range(5)}


async def test_failure_cancels_outstanding_calls():
    executor = RateLimitedExecutor(max_concurrency=2, batch_size=1)
    completed: list[int] = []

    async def work(item: int) -> int:
        if item == 0:
            raise TransportError(message="connection reset")
        await asyncio.sleep(10)
        completed.append(item)
        return item

    with pytest.raises(TransportError):
        await asyncio.wait_for(executor.map(list(range(5)), work), timeout=5)

    assert completed == []


async def test_semaphore_released_after_failure():
    executor = RateLimitedExecutor(max_concurrency=1, batch_size=1)

    async def fail(item: int) -> int:
        raise TransportError(message="connection reset")

    async def succeed(item: int) -> int:
        return item

    with pytest.raises(TransportError):
        await executor.map([1, 2, 3], fail)

    assert await asyncio.wait_for(executor.map([1, 2, 3], succeed), timeout=1) == [1, 2, 3]


async def test_item_failures_do_not_abort_siblings():
    executor = RateLimitedExecutor(max_concurrency=3, batch_size=2)

    async def work(batch: Sequence[int]) -> list[int | None]:
        return [None if item % 3 == 0 else item for item in batch]

    results = await executor.map_batches(list(range(7)), work)
    assert results == [None, 1, 2, None, 4, 5, None]


async def test_every_failure_is_retrieved():
    unretrieved: list[dict] = []
    asyncio.get_running_loop().set_exception_handler(
        lambda loop, context: unretrieved.append(context)
    )
    executor = RateLimitedExecutor(max_concurrency=3, batch_size=1)

    async def fail(item: int) -> int:
        raise TransportError(message=f"connection reset on item {item}")

    with pytest.raises(TransportError, match="item 0"):
        await executor.map([0, 1, 2], fail)
    gc.collect()

    assert unretrieved == []
