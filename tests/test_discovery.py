import pytest
from fakes import FakeChainClient, make_address, make_v2_pair_created_log

from pool_sync.chain import Chain
from pool_sync.discovery import fetch_pool_addresses
from pool_sync.exceptions import PoolSyncValueError
from pool_sync.executor import RateLimitedExecutor
from pool_sync.pools.fetchers import get_pool_fetcher
from pool_sync.pools.types import PoolType

FETCHER = get_pool_fetcher(PoolType.UNISWAP_V2)
FACTORY = FETCHER.factory_address(Chain.BASE)
TOKEN0 = make_address(0x1000)
TOKEN1 = make_address(0x2000)


def pair_log(pool_id: int, block_number: int, log_index: int = 0, factory: str = FACTORY):
    return make_v2_pair_created_log(
        factory=factory,  # type: ignore[arg-type]
        pool=make_address(pool_id),
        token0=TOKEN0,
        token1=TOKEN1,
        block_number=block_number,
        log_index=log_index,
    )


@pytest.fixture
def executor() -> RateLimitedExecutor:
    return RateLimitedExecutor(max_concurrency=4, batch_size=10)


async def discover(client, executor, start_block=0, end_block=100, **kwargs):
    return await fetch_pool_addresses(
        pool_type=PoolType.UNISWAP_V2,
        chain=Chain.BASE,
        start_block=start_block,
        end_block=end_block,
        client=client,
        fetcher=FETCHER,
        executor=executor,
        **kwargs,
    )


async def test_discovers_addresses_in_log_order(executor: RateLimitedExecutor):
    client = FakeChainClient(
        logs=[
            pair_log(3, block_number=80),
            pair_log(1, block_number=10, log_index=5),
            pair_log(2, block_number=10, log_index=7),
        ]
    )

    result = await discover(client, executor)

    assert result.addresses == [make_address(1), make_address(2), make_address(3)]
    assert result.logs_seen == 3
    assert result.dropped == 0


async def test_discovery_is_idempotent(executor: RateLimitedExecutor):
    client = FakeChainClient(logs=[pair_log(i, block_number=i * 7) for i in range(1, 15)])

    first = await discover(client, executor, max_blocks_per_request=9)
    second = await discover(client, executor, max_blocks_per_request=9)

    assert first.addresses == second.addresses
    assert len(first.addresses) == 14


async def test_deduplicates_and_excludes_known_addresses(executor: RateLimitedExecutor):
    client = FakeChainClient(
        logs=[
            pair_log(1, block_number=10),
            pair_log(2, block_number=20),
            pair_log(1, block_number=30),
            pair_log(3, block_number=40),
        ]
    )

    result = await discover(client, executor, known_addresses={make_address(3)})

    assert result.addresses == [make_address(1), make_address(2)]


async def test_ignores_logs_outside_range_and_from_other_factories(
    executor: RateLimitedExecutor,
):
    client = FakeChainClient(
        logs=[
            pair_log(1, block_number=5),
            pair_log(2, block_number=50),
            pair_log(3, block_number=150),
            pair_log(4, block_number=60, factory=make_address(0xDEAD)),
        ]
    )

    result = await discover(client, executor, start_block=10, end_block=100)

    assert result.addresses == [make_address(2)]


async def test_undecodable_logs_are_dropped_and_counted(executor: RateLimitedExecutor):
    malformed = pair_log(9, block_number=15)
    malformed["topics"] = malformed["topics"][:2]  # type: ignore[index]
    truncated = pair_log(8, block_number=16)
    truncated["data"] = b"\x00" * 16  # type: ignore[typeddict-item]

    client = FakeChainClient(logs=[pair_log(1, block_number=10), malformed, truncated])

    result = await discover(client, executor)

    assert result.addresses == [make_address(1)]
    assert result.logs_seen == 3
    assert result.dropped == 2


async def test_range_is_split_into_spans(executor: RateLimitedExecutor):
    client = FakeChainClient()

    await discover(client, executor, start_block=0, end_block=100, max_blocks_per_request=10)

    spans = sorted((start, end) for _, start, end in client.get_logs_calls)
    assert len(spans) == 11
    assert spans[0] == (0, 9)
    assert spans[-1] == (100, 100)
    assert all(address == FACTORY for address, _, _ in client.get_logs_calls)


async def test_single_block_range(executor: RateLimitedExecutor):
    client = FakeChainClient(logs=[pair_log(1, block_number=42)])

    result = await discover(client, executor, start_block=42, end_block=42)

    assert result.addresses == [make_address(1)]


async def test_start_after_end_raises(executor: RateLimitedExecutor):
    with pytest.raises(PoolSyncValueError):
        await discover(FakeChainClient(), executor, start_block=101, end_block=100)
