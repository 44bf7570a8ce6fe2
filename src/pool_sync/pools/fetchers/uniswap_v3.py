from collections.abc import Mapping, Sequence
from typing import Any

from eth_typing import ChecksumAddress

from pool_sync.checksum_cache import get_checksum_address
from pool_sync.exceptions import DecodeError
from pool_sync.pools.deployments import (
    ALIENBASE_V3_FACTORIES,
    PANCAKESWAP_V3_FACTORIES,
    SUSHISWAP_V3_FACTORIES,
    UNISWAP_V3_FACTORIES,
)
from pool_sync.pools.fetchers.base import FactoryLogFetcher, single_value
from pool_sync.pools.layout import FieldRead, StateLayout
from pool_sync.pools.liquidity import LiquidityEvent, apply_liquidity_events
from pool_sync.pools.types import (
    BasePool,
    ConcentratedLiquidityPool,
    PoolFamily,
    PoolType,
    TokenInfo,
)
from pool_sync.types.aliases import BlockNumber
from pool_sync.types.concrete import MethodCall

UNISWAP_V3_POOL_LAYOUT = StateLayout(
    pool_reads=(
        FieldRead(
            name="token0",
            method=MethodCall(function_prototype="token0()", return_types=("address",)),
        ),
        FieldRead(
            name="token1",
            method=MethodCall(function_prototype="token1()", return_types=("address",)),
        ),
        FieldRead(
            name="fee",
            method=MethodCall(function_prototype="fee()", return_types=("uint24",)),
        ),
        FieldRead(
            name="tick_spacing",
            method=MethodCall(function_prototype="tickSpacing()", return_types=("int24",)),
        ),
        # Only the leading price and tick members are decoded, since forks append different
        # trailing members to slot0
        FieldRead(
            name="slot0",
            method=MethodCall(function_prototype="slot0()", return_types=("uint160", "int24")),
            mutable=True,
        ),
        FieldRead(
            name="liquidity",
            method=MethodCall(function_prototype="liquidity()", return_types=("uint128",)),
            mutable=True,
        ),
    ),
    tracks_liquidity_events=True,
)


class UniswapV3PoolFetcher(FactoryLogFetcher):
    """
    Fetcher for Uniswap V3 and forks sharing its factory event and pool interface.
    """

    family = PoolFamily.CONCENTRATED_LIQUIDITY

    CREATION_EVENT_TOPIC_COUNT = 4  # topic0, token0, token1, fee
    CREATION_EVENT_DATA_TYPES = ("int24", "address")  # tick spacing, pool
    CREATION_EVENT_POOL_INDEX = 1

    def creation_event_signature(self) -> str:
        return "PoolCreated(address,address,uint24,int24,address)"

    def state_layout(self) -> StateLayout:
        return UNISWAP_V3_POOL_LAYOUT

    def token_addresses(self, fields: Mapping[str, tuple[Any, ...]]) -> tuple[ChecksumAddress, ...]:
        return (
            get_checksum_address(single_value(fields, "token0")),
            get_checksum_address(single_value(fields, "token1")),
        )

    @staticmethod
    def _mutable_state(fields: Mapping[str, tuple[Any, ...]]) -> dict[str, int]:
        try:
            sqrt_price_x96, tick = fields["slot0"]
        except (KeyError, ValueError):
            raise DecodeError(message="slot0 is missing or has an unexpected shape") from None
        return {
            "sqrt_price_x96": sqrt_price_x96,
            "tick": tick,
            "liquidity": single_value(fields, "liquidity"),
        }

    def build_pool(
        self,
        address: ChecksumAddress,
        fields: Mapping[str, tuple[Any, ...]],
        tokens: Sequence[TokenInfo],
        block_number: BlockNumber,
        liquidity_events: Sequence[LiquidityEvent] = (),
    ) -> ConcentratedLiquidityPool:
        return ConcentratedLiquidityPool(
            address=address,
            pool_type=self.pool_type,
            tokens=tuple(tokens),
            state_block=block_number,
            fee=single_value(fields, "fee"),
            tick_spacing=single_value(fields, "tick_spacing"),
            tick_data=apply_liquidity_events({}, liquidity_events),
            **self._mutable_state(fields),
        )

    def update_pool(
        self,
        pool: BasePool,
        fields: Mapping[str, tuple[Any, ...]] | None,
        block_number: BlockNumber,
        liquidity_events: Sequence[LiquidityEvent] = (),
    ) -> BasePool:
        assert isinstance(pool, ConcentratedLiquidityPool)

        changes: dict[str, Any] = {}
        if liquidity_events:
            changes["tick_data"] = apply_liquidity_events(pool.tick_data, liquidity_events)
        if fields is not None:
            changes.update(state_block=block_number, **self._mutable_state(fields))

        return pool.updated(**changes) if changes else pool


class UniswapV3Fetcher(UniswapV3PoolFetcher):
    pool_type = PoolType.UNISWAP_V3
    deployments = UNISWAP_V3_FACTORIES


class SushiswapV3Fetcher(UniswapV3PoolFetcher):
    pool_type = PoolType.SUSHISWAP_V3
    deployments = SUSHISWAP_V3_FACTORIES


class PancakeswapV3Fetcher(UniswapV3PoolFetcher):
    pool_type = PoolType.PANCAKESWAP_V3
    deployments = PANCAKESWAP_V3_FACTORIES


class AlienBaseV3Fetcher(UniswapV3PoolFetcher):
    pool_type = PoolType.ALIENBASE_V3
    deployments = ALIENBASE_V3_FACTORIES
