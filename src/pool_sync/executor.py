import asyncio
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

from pool_sync.exceptions import PoolSyncValueError, TransportError
from pool_sync.logging import logger


class RateLimitedExecutor:
    """
    Runs asynchronous calls with a bound on the number of calls in flight.

    Work is started immediately for every item, but each call must acquire the shared semaphore
    before touching the network, so at most `max_concurrency` calls from all stages using this
    executor are outstanding at any moment.

    If any call raises, the outstanding calls are cancelled and the exception propagates. A
    `TransportError` carries the results obtained before the failure in `partial_results`, keyed
    by the position of the item in the original input.
    """

    def __init__(self, max_concurrency: int, batch_size: int) -> None:
        if max_concurrency < 1:
            raise PoolSyncValueError(message="The concurrency limit must be at least 1.")
        if batch_size < 1:
            raise PoolSyncValueError(message="The batch size must be at least 1.")

        self.max_concurrency = max_concurrency
        self.batch_size = batch_size
        self._semaphore = asyncio.Semaphore(max_concurrency)

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"{self.__class__.__name__}(max_concurrency={self.max_concurrency}, "
            f"batch_size={self.batch_size})"
        )

    def batches[T](self, items: Sequence[T]) -> list[Sequence[T]]:
        return [items[i : i + self.batch_size] for i in range(0, len(items), self.batch_size)]

    async def map[T, R](
        self,
        items: Sequence[T],
        func: Callable[[T], Awaitable[R]],
    ) -> list[R]:
        """
        Run `func(item)` for every item and return the results in input order.
        """

        results: dict[int, Any] = {}

        async def run_one(index: int, item: T) -> None:
            async with self._semaphore:
                results[index] = await func(item)

        await self._run_all([run_one(index, item) for index, item in enumerate(items)], results)
        return [results[index] for index in range(len(items))]

    async def map_batches[T, R](
        self,
        items: Sequence[T],
        func: Callable[[Sequence[T]], Awaitable[Sequence[R]]],
    ) -> list[R]:
        """
        Partition the items into groups of at most `batch_size`, run `func(group)` for every group,
        and return the flattened results aligned with `items`. Each group must return exactly one
        result per item.
        """

        results: dict[int, Any] = {}

        async def run_batch(offset: int, batch: Sequence[T]) -> None:
            async with self._semaphore:
                batch_results = await func(batch)
            if len(batch_results) != len(batch):
                raise PoolSyncValueError(
                    message=f"Batch returned {len(batch_results)} results for {len(batch)} items."
                )
            results.update(zip(range(offset, offset + len(batch)), batch_results, strict=True))

        await self._run_all(
            [
                run_batch(offset, batch)
                for offset, batch in zip(
                    range(0, len(items), self.batch_size),
                    self.batches(items),
                    strict=True,
                )
            ],
            results,
        )
        return [results[index] for index in range(len(items))]

    @staticmethod
    async def _run_all(
        coroutines: list[Awaitable[None]],
        results: dict[int, Any],
    ) -> None:
        if not coroutines:
            return

        tasks = [asyncio.ensure_future(coroutine) for coroutine in coroutines]
        try:
            _, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
        except asyncio.CancelledError:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        if pending:
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

        # Read every exception, not only the first
        failures = [
            exc for task in tasks if not task.cancelled() and (exc := task.exception()) is not None
        ]
        if failures:
            exc = failures[0]
            logger.debug(
                f"Cancelled {len(pending)} outstanding calls after {len(failures)} failures: "
                f"{exc!r}"
            )
            if isinstance(exc, TransportError):
                exc.partial_results = dict(sorted(results.items()))
            raise exc
