import enum
from typing import Annotated, Any, Literal, Self

import pydantic
from eth_typing import ChecksumAddress

from pool_sync.types.aliases import BlockNumber, Tick
from pool_sync.validation.evm_values import (
    ValidatedAddress,
    ValidatedInt24,
    ValidatedInt128,
    ValidatedUint8,
    ValidatedUint24,
    ValidatedUint112,
    ValidatedUint128,
    ValidatedUint160,
    ValidatedUint256,
)


class PoolFamily(enum.StrEnum):
    CONSTANT_PRODUCT = "constant_product"
    CONCENTRATED_LIQUIDITY = "concentrated_liquidity"
    MULTI_ASSET = "multi_asset"


class PoolType(enum.StrEnum):
    """
    Supported pool protocols. Each value identifies one factory contract layout and creation event
    schema.
    """

    UNISWAP_V2 = "uniswap_v2"
    SUSHISWAP_V2 = "sushiswap_v2"
    PANCAKESWAP_V2 = "pancakeswap_v2"
    ALIENBASE_V2 = "alienbase_v2"
    UNISWAP_V3 = "uniswap_v3"
    SUSHISWAP_V3 = "sushiswap_v3"
    PANCAKESWAP_V3 = "pancakeswap_v3"
    ALIENBASE_V3 = "alienbase_v3"
    CURVE_TRICRYPTO = "curve_tricrypto"


class TokenInfo(pydantic.BaseModel, frozen=True):
    address: ValidatedAddress
    name: str
    decimals: ValidatedUint8


class LiquidityAtTick(pydantic.BaseModel, frozen=True):
    liquidity_net: ValidatedInt128
    liquidity_gross: ValidatedUint128


class BasePool(pydantic.BaseModel, frozen=True):
    """
    Attributes shared by every pool record. The address is unique within a (chain, pool type)
    snapshot.
    """

    address: ValidatedAddress
    pool_type: PoolType
    tokens: tuple[TokenInfo, ...]
    state_block: BlockNumber

    @property
    def token_addresses(self) -> tuple[ChecksumAddress, ...]:
        return tuple(token.address for token in self.tokens)

    def updated(self, **changes: Any) -> Self:
        """
        Return a validated copy of the record with the given fields replaced.
        """

        return self.model_validate(self.model_dump() | changes)


class ConstantProductPool(BasePool, frozen=True):
    family: Literal["constant_product"] = "constant_product"
    reserves_token0: ValidatedUint112
    reserves_token1: ValidatedUint112


class ConcentratedLiquidityPool(BasePool, frozen=True):
    family: Literal["concentrated_liquidity"] = "concentrated_liquidity"
    fee: ValidatedUint24
    tick_spacing: ValidatedInt24
    sqrt_price_x96: ValidatedUint160
    tick: ValidatedInt24
    liquidity: ValidatedUint128
    tick_data: dict[Tick, LiquidityAtTick] = pydantic.Field(default_factory=dict)


class MultiAssetPool(BasePool, frozen=True):
    family: Literal["multi_asset"] = "multi_asset"
    balances: tuple[ValidatedUint256, ...]

    @pydantic.model_validator(mode="after")
    def one_balance_per_token(self) -> "MultiAssetPool":
        if len(self.balances) != len(self.tokens):
            msg = f"Expected {len(self.tokens)} balances, got {len(self.balances)}"
            raise ValueError(msg)
        return self


Pool = Annotated[
    ConstantProductPool | ConcentratedLiquidityPool | MultiAssetPool,
    pydantic.Field(discriminator="family"),
]
