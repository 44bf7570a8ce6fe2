"""
Batched state reads that turn discovered pool addresses into validated pool records, and refresh the
mutable state of pools already in the cache.
"""

from collections.abc import Mapping, Sequence
from typing import Any

import pydantic
from eth_typing import ChecksumAddress
from web3.types import LogReceipt

from pool_sync.exceptions import DecodeError
from pool_sync.executor import RateLimitedExecutor
from pool_sync.functions import block_spans
from pool_sync.logging import logger
from pool_sync.pools.layout import FieldRead
from pool_sync.pools.liquidity import (
    BURN_EVENT_TOPIC,
    MINT_EVENT_TOPIC,
    LiquidityEvent,
    group_liquidity_events,
)
from pool_sync.pools.types import BasePool, TokenInfo
from pool_sync.types.abstract import AbstractChainClient, AbstractPoolFetcher
from pool_sync.types.aliases import BlockNumber
from pool_sync.types.concrete import CallFailure

type FieldValues = dict[str, tuple[Any, ...]]


async def read_fields(
    addresses: Sequence[ChecksumAddress],
    reads: Sequence[FieldRead],
    client: AbstractChainClient,
    executor: RateLimitedExecutor,
    block_number: BlockNumber,
) -> list[FieldValues | CallFailure]:
    """
    Execute every read against every address. The result for an address is the mapping of field
    name to decoded values, or the first failure among its reads.
    """

    results: list[FieldValues | CallFailure] = [{} for _ in addresses]

    for read in reads:

        async def call_batch(
            batch: Sequence[ChecksumAddress],
            read: FieldRead = read,
        ) -> list[tuple[Any, ...] | CallFailure]:
            return await client.batch_call(
                addresses=batch,
                method=read.method,
                block_identifier=block_number,
            )

        read_results = await executor.map_batches(addresses, call_batch)
        for i, result in enumerate(read_results):
            current = results[i]
            if isinstance(current, CallFailure):
                continue
            if isinstance(result, CallFailure):
                results[i] = result
            else:
                current[read.name] = result

    return results


def _token_info(address: ChecksumAddress, fields: FieldValues) -> TokenInfo:
    (name,) = fields["name"]
    (decimals,) = fields["decimals"]

    if isinstance(name, bytes):
        # bytes32 name, right-padded with null bytes
        name = name.decode("utf-8", errors="ignore").strip("\x00")

    return TokenInfo(address=address, name=name, decimals=decimals)


async def fetch_token_info(
    token_addresses: Sequence[ChecksumAddress],
    client: AbstractChainClient,
    fetcher: AbstractPoolFetcher,
    executor: RateLimitedExecutor,
    block_number: BlockNumber,
) -> dict[ChecksumAddress, TokenInfo]:
    """
    Read the metadata for each token. Tokens whose reads fail or return invalid values are omitted
    from the result.
    """

    tokens: dict[ChecksumAddress, TokenInfo] = {}
    token_results = await read_fields(
        addresses=token_addresses,
        reads=fetcher.state_layout().token_reads,
        client=client,
        executor=executor,
        block_number=block_number,
    )

    for token_address, result in zip(token_addresses, token_results, strict=True):
        if isinstance(result, CallFailure):
            logger.debug(f"Token {token_address} is unavailable: {result.reason}")
            continue
        try:
            tokens[token_address] = _token_info(token_address, result)
        except (ValueError, pydantic.ValidationError) as exc:
            logger.debug(f"Token {token_address} has invalid metadata: {exc}")

    return tokens


async def populate_pools(
    addresses: Sequence[ChecksumAddress],
    client: AbstractChainClient,
    fetcher: AbstractPoolFetcher,
    executor: RateLimitedExecutor,
    block_number: BlockNumber,
    liquidity_events: Mapping[ChecksumAddress, Sequence[LiquidityEvent]] | None = None,
) -> list[BasePool]:
    """
    Build a pool record for each address from state read at `block_number`.

    A pool is excluded if any of its reads fail, if any of its tokens cannot be read, or if the
    values do not validate. The result preserves the order of `addresses` for included pools.
    """

    if not addresses:
        return []

    if liquidity_events is None:
        liquidity_events = {}

    layout = fetcher.state_layout()
    pool_results = await read_fields(
        addresses=addresses,
        reads=layout.pool_reads,
        client=client,
        executor=executor,
        block_number=block_number,
    )

    excluded = 0
    readable_pools: dict[ChecksumAddress, tuple[FieldValues, tuple[ChecksumAddress, ...]]] = {}
    for pool_address, result in zip(addresses, pool_results, strict=True):
        if isinstance(result, CallFailure):
            logger.debug(f"Excluded {fetcher.pool_type} pool {pool_address}: {result.reason}")
            excluded += 1
            continue
        try:
            readable_pools[pool_address] = (result, fetcher.token_addresses(result))
        except (DecodeError, ValueError) as exc:
            logger.debug(f"Excluded {fetcher.pool_type} pool {pool_address}: {exc}")
            excluded += 1

    token_addresses = list(
        dict.fromkeys(
            token_address
            for _, pool_token_addresses in readable_pools.values()
            for token_address in pool_token_addresses
        )
    )
    tokens = await fetch_token_info(
        token_addresses=token_addresses,
        client=client,
        fetcher=fetcher,
        executor=executor,
        block_number=block_number,
    )

    pools: list[BasePool] = []
    for pool_address, (fields, pool_token_addresses) in readable_pools.items():
        if any(token_address not in tokens for token_address in pool_token_addresses):
            logger.debug(f"Excluded {fetcher.pool_type} pool {pool_address}: token unavailable")
            excluded += 1
            continue
        try:
            pool = fetcher.build_pool(
                address=pool_address,
                fields=fields,
                tokens=[tokens[token_address] for token_address in pool_token_addresses],
                block_number=block_number,
                liquidity_events=liquidity_events.get(pool_address, ()),
            )
        except (DecodeError, pydantic.ValidationError) as exc:
            logger.debug(f"Excluded {fetcher.pool_type} pool {pool_address}: {exc}")
            excluded += 1
            continue
        pools.append(pool)

    if excluded:
        logger.warning(
            f"Excluded {excluded} of {len(addresses)} {fetcher.pool_type} pools with unreadable "
            "or invalid state"
        )
    logger.info(f"Populated {len(pools)} {fetcher.pool_type} pools at block {block_number}")

    return pools


async def refresh_pools(
    pools: Sequence[BasePool],
    client: AbstractChainClient,
    fetcher: AbstractPoolFetcher,
    executor: RateLimitedExecutor,
    block_number: BlockNumber,
    liquidity_events: Mapping[ChecksumAddress, Sequence[LiquidityEvent]] | None = None,
) -> list[BasePool]:
    """
    Re-read the mutable state of existing pools at `block_number` and apply any liquidity events.

    A pool whose reads fail keeps its previous state, including its `state_block`. The result is
    aligned with `pools`.
    """

    if not pools:
        return []

    if liquidity_events is None:
        liquidity_events = {}

    pool_results = await read_fields(
        addresses=[pool.address for pool in pools],
        reads=fetcher.state_layout().mutable_reads,
        client=client,
        executor=executor,
        block_number=block_number,
    )

    stale = 0
    refreshed: list[BasePool] = []
    for pool, result in zip(pools, pool_results, strict=True):
        fields = None if isinstance(result, CallFailure) else result
        events = liquidity_events.get(pool.address, ())
        try:
            updated_pool = fetcher.update_pool(
                pool=pool,
                fields=fields,
                block_number=block_number,
                liquidity_events=events,
            )
        except (DecodeError, pydantic.ValidationError) as exc:
            logger.debug(f"Could not refresh {fetcher.pool_type} pool {pool.address}: {exc}")
            fields = None
            updated_pool = pool

        if fields is None:
            stale += 1
        refreshed.append(updated_pool)

    if stale:
        logger.warning(
            f"{stale} of {len(pools)} {fetcher.pool_type} pools could not be refreshed and keep "
            "their previous state"
        )
    logger.info(f"Refreshed {len(pools) - stale} {fetcher.pool_type} pools at block {block_number}")

    return refreshed


async def fetch_liquidity_events(
    client: AbstractChainClient,
    executor: RateLimitedExecutor,
    start_block: BlockNumber,
    end_block: BlockNumber,
    max_blocks_per_request: int = 5_000,
) -> dict[ChecksumAddress, list[LiquidityEvent]]:
    """
    Fetch all Mint and Burn events emitted in the inclusive block range, grouped by pool address.
    """

    topics = [[MINT_EVENT_TOPIC, BURN_EVENT_TOPIC]]

    async def fetch_span(span: tuple[BlockNumber, BlockNumber]) -> list[LogReceipt]:
        span_start, span_end = span
        return await client.get_logs(
            address=None,
            topics=topics,
            start_block=span_start,
            end_block=span_end,
        )

    span_logs = await executor.map(
        list(block_spans(start_block, end_block, max_blocks_per_request)),
        fetch_span,
    )
    events = group_liquidity_events(log for logs in span_logs for log in logs)
    logger.info(
        f"Fetched liquidity events for {len(events)} pools in blocks {start_block}-{end_block}"
    )
    return events
