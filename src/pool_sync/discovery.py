import dataclasses
from collections.abc import Collection

from eth_typing import ChecksumAddress
from web3.types import LogReceipt

from pool_sync.chain import Chain
from pool_sync.exceptions import DecodeError, PoolSyncValueError
from pool_sync.executor import RateLimitedExecutor
from pool_sync.functions import block_spans
from pool_sync.logging import logger
from pool_sync.pools.types import PoolType
from pool_sync.types.abstract import AbstractChainClient, AbstractPoolFetcher
from pool_sync.types.aliases import BlockNumber


@dataclasses.dataclass(slots=True, frozen=True)
class DiscoveryResult:
    # Newly discovered pool addresses, deduplicated, in the order their creation logs were emitted
    addresses: list[ChecksumAddress]
    logs_seen: int
    dropped: int


async def fetch_pool_addresses(
    pool_type: PoolType,
    chain: Chain,
    start_block: BlockNumber,
    end_block: BlockNumber,
    client: AbstractChainClient,
    fetcher: AbstractPoolFetcher,
    executor: RateLimitedExecutor,
    known_addresses: Collection[ChecksumAddress] = (),
    max_blocks_per_request: int = 5_000,
) -> DiscoveryResult:
    """
    Find the pools created by the protocol's factory in the inclusive block range.

    Creation logs that fail to decode are dropped and counted. Addresses already present in
    `known_addresses` are excluded.
    """

    if start_block > end_block:
        raise PoolSyncValueError(
            message=f"Start block {start_block} is after end block {end_block}."
        )

    factory_address = fetcher.factory_address(chain)
    topics = [fetcher.creation_event_topic()]

    async def fetch_span(span: tuple[BlockNumber, BlockNumber]) -> list[LogReceipt]:
        span_start, span_end = span
        return await client.get_logs(
            address=factory_address,
            topics=topics,
            start_block=span_start,
            end_block=span_end,
        )

    span_logs = await executor.map(
        list(block_spans(start_block, end_block, max_blocks_per_request)),
        fetch_span,
    )
    logs = sorted(
        (log for logs in span_logs for log in logs),
        key=lambda log: (log["blockNumber"], log["logIndex"]),
    )

    known = set(known_addresses)
    addresses: dict[ChecksumAddress, None] = {}
    dropped = 0
    for log in logs:
        try:
            pool_address = fetcher.decode_creation_log(log)
        except DecodeError as exc:
            dropped += 1
            logger.debug(f"Dropped {pool_type} creation log: {exc}")
            continue
        if pool_address not in known:
            addresses.setdefault(pool_address, None)

    if dropped:
        logger.warning(f"Dropped {dropped} undecodable {pool_type} creation logs")
    logger.info(
        f"Found {len(addresses)} new {pool_type} pools in blocks {start_block}-{end_block} "
        f"({len(logs)} creation logs)"
    )

    return DiscoveryResult(
        addresses=list(addresses),
        logs_seen=len(logs),
        dropped=dropped,
    )
