from collections.abc import Mapping, Sequence
from typing import Any

from eth_typing import ChecksumAddress

from pool_sync.checksum_cache import get_checksum_address
from pool_sync.exceptions import DecodeError
from pool_sync.pools.deployments import (
    ALIENBASE_V2_FACTORIES,
    PANCAKESWAP_V2_FACTORIES,
    SUSHISWAP_V2_FACTORIES,
    UNISWAP_V2_FACTORIES,
)
from pool_sync.pools.fetchers.base import FactoryLogFetcher, single_value
from pool_sync.pools.layout import FieldRead, StateLayout
from pool_sync.pools.liquidity import LiquidityEvent
from pool_sync.pools.types import BasePool, ConstantProductPool, PoolFamily, PoolType, TokenInfo
from pool_sync.types.aliases import BlockNumber
from pool_sync.types.concrete import MethodCall

UNISWAP_V2_POOL_LAYOUT = StateLayout(
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
            name="reserves",
            method=MethodCall(
                function_prototype="getReserves()",
                return_types=("uint112", "uint112", "uint32"),
            ),
            mutable=True,
        ),
    ),
)


class UniswapV2PoolFetcher(FactoryLogFetcher):
    """
    Fetcher for Uniswap V2 and forks sharing its factory event and pair interface.
    """

    family = PoolFamily.CONSTANT_PRODUCT

    CREATION_EVENT_TOPIC_COUNT = 3  # topic0, token0, token1
    CREATION_EVENT_DATA_TYPES = ("address", "uint256")  # pair, pair count
    CREATION_EVENT_POOL_INDEX = 0

    def creation_event_signature(self) -> str:
        return "PairCreated(address,address,address,uint256)"

    def state_layout(self) -> StateLayout:
        return UNISWAP_V2_POOL_LAYOUT

    def token_addresses(self, fields: Mapping[str, tuple[Any, ...]]) -> tuple[ChecksumAddress, ...]:
        return (
            get_checksum_address(single_value(fields, "token0")),
            get_checksum_address(single_value(fields, "token1")),
        )

    @staticmethod
    def _reserves(fields: Mapping[str, tuple[Any, ...]]) -> dict[str, int]:
        try:
            reserves_token0, reserves_token1, _ = fields["reserves"]
        except (KeyError, ValueError):
            raise DecodeError(message="Reserves are missing or have an unexpected shape") from None
        return {"reserves_token0": reserves_token0, "reserves_token1": reserves_token1}

    def build_pool(
        self,
        address: ChecksumAddress,
        fields: Mapping[str, tuple[Any, ...]],
        tokens: Sequence[TokenInfo],
        block_number: BlockNumber,
        liquidity_events: Sequence[LiquidityEvent] = (),
    ) -> ConstantProductPool:
        return ConstantProductPool(
            address=address,
            pool_type=self.pool_type,
            tokens=tuple(tokens),
            state_block=block_number,
            **self._reserves(fields),
        )

    def update_pool(
        self,
        pool: BasePool,
        fields: Mapping[str, tuple[Any, ...]] | None,
        block_number: BlockNumber,
        liquidity_events: Sequence[LiquidityEvent] = (),
    ) -> BasePool:
        if fields is None:
            return pool
        return pool.updated(state_block=block_number, **self._reserves(fields))


class UniswapV2Fetcher(UniswapV2PoolFetcher):
    pool_type = PoolType.UNISWAP_V2
    deployments = UNISWAP_V2_FACTORIES


class SushiswapV2Fetcher(UniswapV2PoolFetcher):
    pool_type = PoolType.SUSHISWAP_V2
    deployments = SUSHISWAP_V2_FACTORIES


class PancakeswapV2Fetcher(UniswapV2PoolFetcher):
    pool_type = PoolType.PANCAKESWAP_V2
    deployments = PANCAKESWAP_V2_FACTORIES


class AlienBaseV2Fetcher(UniswapV2PoolFetcher):
    pool_type = PoolType.ALIENBASE_V2
    deployments = ALIENBASE_V2_FACTORIES
