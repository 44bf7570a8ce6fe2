import dataclasses
from collections.abc import Iterable

import tqdm
from eth_typing import ChecksumAddress

from pool_sync.cache import SyncCacheSnapshot
from pool_sync.chain import Chain
from pool_sync.config import SyncSettings
from pool_sync.discovery import fetch_pool_addresses
from pool_sync.exceptions import PoolSyncValueError, SyncAborted, SyncDidNotConverge
from pool_sync.executor import RateLimitedExecutor
from pool_sync.logging import logger
from pool_sync.pools.fetchers import get_pool_fetcher
from pool_sync.pools.liquidity import LiquidityEvent
from pool_sync.pools.types import BasePool, PoolType
from pool_sync.population import fetch_liquidity_events, populate_pools, refresh_pools
from pool_sync.types.abstract import AbstractCacheStore, AbstractChainClient, AbstractPoolFetcher
from pool_sync.types.aliases import BlockNumber


@dataclasses.dataclass(slots=True, frozen=True)
class CompletedRange:
    pool_type: PoolType
    start_block: BlockNumber
    end_block: BlockNumber


@dataclasses.dataclass(slots=True, frozen=True)
class SyncResult:
    pools: list[BasePool]
    # The head reached by the run. A pool type not deployed by that block keeps its own watermark
    last_synced_block: BlockNumber
    snapshots: dict[PoolType, SyncCacheSnapshot]


class PoolSync:
    """
    Brings the cached pools for each pool type up to the chain head.

    Each iteration reads the head from the full node, then for every pool type behind the head:
    discovers pools created since its watermark, populates the new pools, refreshes the cached
    pools, and advances the watermark to the head. The loop ends after an iteration where every
    pool type was already at the head, and the snapshots are then saved.

    If any step fails, the run is aborted with `SyncAborted` and no snapshot is saved, so the
    caches never reflect a partially processed block range.
    """

    def __init__(
        self,
        pool_types: Iterable[PoolType],
        chain: Chain,
        archive_client: AbstractChainClient,
        full_client: AbstractChainClient,
        cache_store: AbstractCacheStore,
        settings: SyncSettings | None = None,
        *,
        show_progress: bool = False,
    ) -> None:
        if settings is None:
            settings = SyncSettings()

        self.chain = chain
        self.archive_client = archive_client
        self.full_client = full_client
        self.cache_store = cache_store
        self.settings = settings
        self.show_progress = show_progress

        self.fetchers: dict[PoolType, AbstractPoolFetcher] = {
            pool_type: get_pool_fetcher(pool_type) for pool_type in pool_types
        }
        if not self.fetchers:
            raise PoolSyncValueError(message="At least one pool type must be provided.")
        for fetcher in self.fetchers.values():
            # Raises UnsupportedNetwork before any network activity
            fetcher.factory_address(chain)

        self.executor = RateLimitedExecutor(
            max_concurrency=settings.rate_limit,
            batch_size=settings.batch_size,
        )
        self.last_completed: CompletedRange | None = None

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"{self.__class__.__name__}(chain={self.chain.name}, "
            f"pool_types={[str(pool_type) for pool_type in self.fetchers]})"
        )

    async def sync_pools(self) -> SyncResult:
        # Work on copies so an aborted run cannot leak partial updates to the caller or the store
        snapshots = {
            pool_type: self.cache_store.load(pool_type=pool_type, chain=self.chain).model_copy(
                deep=True
            )
            for pool_type in self.fetchers
        }
        self.last_completed = None

        try:
            last_synced_block = await self._sync_until_converged(snapshots)
        except SyncDidNotConverge:
            raise
        except Exception as exc:
            logger.error(f"Sync aborted on {self.chain.name}: {type(exc).__name__}: {exc}")
            raise SyncAborted(cause=exc, last_completed=self.last_completed) from exc

        for snapshot in snapshots.values():
            self.cache_store.save(snapshot=snapshot, chain=self.chain)

        return SyncResult(
            pools=[pool for snapshot in snapshots.values() for pool in snapshot.pools],
            last_synced_block=last_synced_block,
            snapshots=snapshots,
        )

    async def _sync_until_converged(
        self,
        snapshots: dict[PoolType, SyncCacheSnapshot],
    ) -> BlockNumber:
        iterations = 0

        while True:
            max_iterations = self.settings.max_iterations
            if max_iterations is not None and iterations >= max_iterations:
                raise SyncDidNotConverge(iterations=iterations)
            iterations += 1

            head = await self.full_client.current_block_height()
            logger.debug(f"Iteration {iterations}: {self.chain.name} head is block {head}")

            # Mint/Burn events are shared by all concentrated liquidity pool types
            liquidity_event_cache: dict[
                tuple[BlockNumber, BlockNumber], dict[ChecksumAddress, list[LiquidityEvent]]
            ] = {}

            work_done = False
            for pool_type, snapshot in tqdm.tqdm(
                snapshots.items(),
                desc=f"Syncing to block {head}",
                bar_format="{desc}: {percentage:3.1f}% |{bar}| {n_fmt}/{total_fmt}",
                leave=False,
                disable=not self.show_progress,
            ):
                if snapshot.last_synced_block >= head:
                    continue

                fetcher = self.fetchers[pool_type]
                start_block = (
                    fetcher.deployment_block(self.chain)
                    if snapshot.is_first_sync
                    else snapshot.last_synced_block + 1
                )
                if start_block > head:
                    logger.warning(
                        f"{pool_type} is not deployed on {self.chain.name} until block "
                        f"{start_block}, after the head at block {head}. Its cache stays at block "
                        f"{snapshot.last_synced_block}."
                    )
                    continue

                work_done = True
                await self._sync_range(
                    snapshot=snapshot,
                    fetcher=fetcher,
                    start_block=start_block,
                    end_block=head,
                    liquidity_event_cache=liquidity_event_cache,
                )
                self.last_completed = CompletedRange(
                    pool_type=pool_type,
                    start_block=start_block,
                    end_block=head,
                )

            if not work_done:
                logger.info(f"All pool types are synced to {self.chain.name} block {head}")
                return head

    async def _sync_range(
        self,
        snapshot: SyncCacheSnapshot,
        fetcher: AbstractPoolFetcher,
        start_block: BlockNumber,
        end_block: BlockNumber,
        liquidity_event_cache: dict[
            tuple[BlockNumber, BlockNumber], dict[ChecksumAddress, list[LiquidityEvent]]
        ],
    ) -> None:
        """
        Process one block range for one pool type. The snapshot is only modified after every read
        for the range has succeeded.
        """

        logger.info(f"Syncing {fetcher.pool_type} pools for blocks {start_block}-{end_block}")

        discovery = await fetch_pool_addresses(
            pool_type=fetcher.pool_type,
            chain=self.chain,
            start_block=start_block,
            end_block=end_block,
            client=self.archive_client,
            fetcher=fetcher,
            executor=self.executor,
            known_addresses=snapshot.pool_addresses,
            max_blocks_per_request=self.settings.max_blocks_per_request,
        )

        liquidity_events = None
        if fetcher.state_layout().tracks_liquidity_events:
            if (start_block, end_block) not in liquidity_event_cache:
                liquidity_event_cache[start_block, end_block] = await fetch_liquidity_events(
                    client=self.archive_client,
                    executor=self.executor,
                    start_block=start_block,
                    end_block=end_block,
                    max_blocks_per_request=self.settings.max_blocks_per_request,
                )
            liquidity_events = liquidity_event_cache[start_block, end_block]

        # The new pools and the cached pools are disjoint, so each liquidity event is applied once
        refreshed_pools = await refresh_pools(
            pools=snapshot.pools,
            client=self.full_client,
            fetcher=fetcher,
            executor=self.executor,
            block_number=end_block,
            liquidity_events=liquidity_events,
        )
        new_pools = await populate_pools(
            addresses=discovery.addresses,
            client=self.full_client,
            fetcher=fetcher,
            executor=self.executor,
            block_number=end_block,
            liquidity_events=liquidity_events,
        )

        snapshot.pools = refreshed_pools  # type: ignore[assignment]
        snapshot.merge_pools(new_pools)
        snapshot.last_synced_block = end_block
        snapshot.is_first_sync = False

        logger.info(
            f"{fetcher.pool_type}: {len(new_pools)} new pools, {len(snapshot.pools)} total, "
            f"synced to block {end_block}"
        )
