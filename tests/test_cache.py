import json

import pytest
from fakes import make_address

from pool_sync.cache import JsonCacheStore, SyncCacheSnapshot, cache_file_name
from pool_sync.chain import Chain
from pool_sync.exceptions import CacheCorrupted, CacheWriteError, PoolSyncValueError
from pool_sync.pools.types import (
    ConcentratedLiquidityPool,
    ConstantProductPool,
    LiquidityAtTick,
    MultiAssetPool,
    PoolType,
    TokenInfo,
)

WETH = TokenInfo(address=make_address(0x4200), name="Wrapped Ether", decimals=18)
USDC = TokenInfo(address=make_address(0x833589), name="USD Coin", decimals=6)
WBTC = TokenInfo(address=make_address(0x2260), name="Wrapped BTC", decimals=8)


def v2_pool(n: int, reserves: int = 1_000, state_block: int = 100) -> ConstantProductPool:
    return ConstantProductPool(
        address=make_address(n),
        pool_type=PoolType.UNISWAP_V2,
        tokens=(WETH, USDC),
        state_block=state_block,
        reserves_token0=reserves,
        reserves_token1=reserves * 2,
    )


def test_cache_file_name():
    assert cache_file_name(PoolType.UNISWAP_V3, Chain.BASE) == "base_uniswap_v3_cache.json"


def test_missing_file_gives_fresh_snapshot(tmp_path):
    store = JsonCacheStore(tmp_path)
    snapshot = store.load(pool_type=PoolType.UNISWAP_V2, chain=Chain.ETHEREUM)

    assert snapshot.last_synced_block == 0
    assert snapshot.is_first_sync is True
    assert snapshot.pools == []
    assert store.list_snapshots() == []


def test_round_trip_all_pool_families(tmp_path):
    store = JsonCacheStore(tmp_path)

    v3_snapshot = SyncCacheSnapshot(
        chain=Chain.BASE,
        pool_type=PoolType.UNISWAP_V3,
        last_synced_block=12_345,
        is_first_sync=False,
        pools=[
            ConcentratedLiquidityPool(
                address=make_address(0xC001),
                pool_type=PoolType.UNISWAP_V3,
                tokens=(WETH, USDC),
                state_block=12_345,
                fee=500,
                tick_spacing=10,
                sqrt_price_x96=2**96,
                tick=-201_000,
                liquidity=10**20,
                tick_data={
                    -887_270: LiquidityAtTick(liquidity_net=10**20, liquidity_gross=10**20),
                    887_270: LiquidityAtTick(liquidity_net=-(10**20), liquidity_gross=10**20),
                },
            )
        ],
    )
    curve_snapshot = SyncCacheSnapshot(
        chain=Chain.BASE,
        pool_type=PoolType.CURVE_TRICRYPTO,
        last_synced_block=12_345,
        is_first_sync=False,
        pools=[
            MultiAssetPool(
                address=make_address(0xD001),
                pool_type=PoolType.CURVE_TRICRYPTO,
                tokens=(USDC, WBTC, WETH),
                state_block=12_345,
                balances=(10**12, 10**8, 2**255),
            )
        ],
    )

    for snapshot in (v3_snapshot, curve_snapshot):
        store.save(snapshot=snapshot, chain=Chain.BASE)
        loaded = store.load(pool_type=snapshot.pool_type, chain=Chain.BASE)
        assert loaded == snapshot

    assert sorted(store.list_snapshots()) == [
        (Chain.BASE, PoolType.CURVE_TRICRYPTO),
        (Chain.BASE, PoolType.UNISWAP_V3),
    ]


def test_save_replaces_previous_snapshot(tmp_path):
    store = JsonCacheStore(tmp_path)
    snapshot = SyncCacheSnapshot.fresh(pool_type=PoolType.UNISWAP_V2, chain=Chain.ETHEREUM)
    store.save(snapshot=snapshot, chain=Chain.ETHEREUM)

    snapshot.merge_pools([v2_pool(1)])
    snapshot.last_synced_block = 100
    store.save(snapshot=snapshot, chain=Chain.ETHEREUM)

    loaded = store.load(pool_type=PoolType.UNISWAP_V2, chain=Chain.ETHEREUM)
    assert loaded.last_synced_block == 100
    assert len(loaded.pools) == 1
    assert not list(tmp_path.glob("*.tmp"))


def test_corrupt_file_raises(tmp_path):
    store = JsonCacheStore(tmp_path)
    store.file_path(PoolType.UNISWAP_V2, Chain.ETHEREUM).write_text("{not json")

    with pytest.raises(CacheCorrupted):
        store.load(pool_type=PoolType.UNISWAP_V2, chain=Chain.ETHEREUM)


def test_file_for_another_pool_type_raises(tmp_path):
    store = JsonCacheStore(tmp_path)
    snapshot = SyncCacheSnapshot.fresh(pool_type=PoolType.SUSHISWAP_V2, chain=Chain.ETHEREUM)
    store.file_path(PoolType.UNISWAP_V2, Chain.ETHEREUM).write_text(snapshot.model_dump_json())

    with pytest.raises(CacheCorrupted):
        store.load(pool_type=PoolType.UNISWAP_V2, chain=Chain.ETHEREUM)


def test_duplicate_addresses_in_file_raise(tmp_path):
    store = JsonCacheStore(tmp_path)
    snapshot = SyncCacheSnapshot.fresh(pool_type=PoolType.UNISWAP_V2, chain=Chain.ETHEREUM)
    contents = json.loads(snapshot.model_dump_json())
    pool = json.loads(v2_pool(1).model_dump_json())
    contents["pools"] = [pool, pool]
    store.file_path(PoolType.UNISWAP_V2, Chain.ETHEREUM).write_text(json.dumps(contents))

    with pytest.raises(CacheCorrupted):
        store.load(pool_type=PoolType.UNISWAP_V2, chain=Chain.ETHEREUM)


def test_save_rejects_chain_mismatch(tmp_path):
    store = JsonCacheStore(tmp_path)
    snapshot = SyncCacheSnapshot.fresh(pool_type=PoolType.UNISWAP_V2, chain=Chain.ETHEREUM)

    with pytest.raises(PoolSyncValueError):
        store.save(snapshot=snapshot, chain=Chain.BASE)


def test_unwritable_directory_raises(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("")
    store = JsonCacheStore(blocker / "cache")

    with pytest.raises(CacheWriteError):
        store.save(
            snapshot=SyncCacheSnapshot.fresh(pool_type=PoolType.UNISWAP_V2, chain=Chain.BASE),
            chain=Chain.BASE,
        )


def test_remove(tmp_path):
    store = JsonCacheStore(tmp_path)
    snapshot = SyncCacheSnapshot.fresh(pool_type=PoolType.UNISWAP_V2, chain=Chain.BASE)
    store.save(snapshot=snapshot, chain=Chain.BASE)

    assert store.remove(pool_type=PoolType.UNISWAP_V2, chain=Chain.BASE) is True
    assert store.remove(pool_type=PoolType.UNISWAP_V2, chain=Chain.BASE) is False
    assert store.list_snapshots() == []


def test_merge_replaces_by_address():
    snapshot = SyncCacheSnapshot.fresh(pool_type=PoolType.UNISWAP_V2, chain=Chain.ETHEREUM)
    snapshot.merge_pools([v2_pool(1), v2_pool(2)])
    snapshot.merge_pools([v2_pool(2, reserves=5, state_block=150), v2_pool(3)])
    snapshot.merge_pools([v2_pool(3)])

    assert [pool.address for pool in snapshot.pools] == [
        make_address(1),
        make_address(2),
        make_address(3),
    ]
    assert snapshot.pools[1].state_block == 150
    assert snapshot.pool_addresses == {make_address(1), make_address(2), make_address(3)}


def test_merge_rejects_other_pool_types():
    snapshot = SyncCacheSnapshot.fresh(pool_type=PoolType.SUSHISWAP_V2, chain=Chain.ETHEREUM)
    with pytest.raises(PoolSyncValueError):
        snapshot.merge_pools([v2_pool(1)])


def test_multi_asset_pool_requires_one_balance_per_token():
    with pytest.raises(ValueError, match="balances"):
        MultiAssetPool(
            address=make_address(0xD001),
            pool_type=PoolType.CURVE_TRICRYPTO,
            tokens=(USDC, WBTC, WETH),
            state_block=1,
            balances=(1, 2),
        )
