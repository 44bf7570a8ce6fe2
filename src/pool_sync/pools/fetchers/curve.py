from collections.abc import Mapping, Sequence
from typing import Any

from eth_typing import ChecksumAddress

from pool_sync.checksum_cache import get_checksum_address
from pool_sync.pools.deployments import CURVE_TRICRYPTO_FACTORIES
from pool_sync.pools.fetchers.base import FactoryLogFetcher, single_value
from pool_sync.pools.layout import FieldRead, StateLayout
from pool_sync.pools.liquidity import LiquidityEvent
from pool_sync.pools.types import BasePool, MultiAssetPool, PoolFamily, PoolType, TokenInfo
from pool_sync.types.aliases import BlockNumber
from pool_sync.types.concrete import MethodCall

TRICRYPTO_COIN_COUNT = 3

CURVE_TRICRYPTO_POOL_LAYOUT = StateLayout(
    pool_reads=(
        *(
            FieldRead(
                name=f"coin{i}",
                method=MethodCall(
                    function_prototype="coins(uint256)",
                    function_arguments=(i,),
                    return_types=("address",),
                ),
            )
            for i in range(TRICRYPTO_COIN_COUNT)
        ),
        *(
            FieldRead(
                name=f"balance{i}",
                method=MethodCall(
                    function_prototype="balances(uint256)",
                    function_arguments=(i,),
                    return_types=("uint256",),
                ),
                mutable=True,
            )
            for i in range(TRICRYPTO_COIN_COUNT)
        ),
    ),
)


class CurveTricryptoPoolFetcher(FactoryLogFetcher):
    """
    Fetcher for pools deployed by the Curve Tricrypto-NG factory.
    """

    pool_type = PoolType.CURVE_TRICRYPTO
    family = PoolFamily.MULTI_ASSET
    deployments = CURVE_TRICRYPTO_FACTORIES

    # The deployment event has no indexed arguments
    CREATION_EVENT_TOPIC_COUNT = 1
    CREATION_EVENT_DATA_TYPES = (
        "address",  # pool
        "string",  # name
        "string",  # symbol
        "address",  # weth
        "address[3]",  # coins
        "address",  # math
        "bytes32",  # salt
        "uint256",  # packed_precisions
        "uint256",  # packed_A_gamma
        "uint256",  # packed_fee_params
        "uint256",  # packed_rebalancing_params
        "uint256",  # packed_prices
        "address",  # deployer
    )
    CREATION_EVENT_POOL_INDEX = 0

    def creation_event_signature(self) -> str:
        return (
            "TricryptoPoolDeployed(address,string,string,address,address[3],address,bytes32,"
            "uint256,uint256,uint256,uint256,uint256,address)"
        )

    def state_layout(self) -> StateLayout:
        return CURVE_TRICRYPTO_POOL_LAYOUT

    def token_addresses(self, fields: Mapping[str, tuple[Any, ...]]) -> tuple[ChecksumAddress, ...]:
        return tuple(
            get_checksum_address(single_value(fields, f"coin{i}"))
            for i in range(TRICRYPTO_COIN_COUNT)
        )

    @staticmethod
    def _balances(fields: Mapping[str, tuple[Any, ...]]) -> tuple[int, ...]:
        return tuple(single_value(fields, f"balance{i}") for i in range(TRICRYPTO_COIN_COUNT))

    def build_pool(
        self,
        address: ChecksumAddress,
        fields: Mapping[str, tuple[Any, ...]],
        tokens: Sequence[TokenInfo],
        block_number: BlockNumber,
        liquidity_events: Sequence[LiquidityEvent] = (),
    ) -> MultiAssetPool:
        return MultiAssetPool(
            address=address,
            pool_type=self.pool_type,
            tokens=tuple(tokens),
            state_block=block_number,
            balances=self._balances(fields),
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
        return pool.updated(state_block=block_number, balances=self._balances(fields))
