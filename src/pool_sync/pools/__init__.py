from pool_sync.pools.deployments import FactoryDeployment
from pool_sync.pools.layout import FieldRead, StateLayout
from pool_sync.pools.liquidity import LiquidityEvent, apply_liquidity_events
from pool_sync.pools.types import (
    BasePool,
    ConcentratedLiquidityPool,
    ConstantProductPool,
    LiquidityAtTick,
    MultiAssetPool,
    Pool,
    PoolFamily,
    PoolType,
    TokenInfo,
)

__all__ = (
    "BasePool",
    "ConcentratedLiquidityPool",
    "ConstantProductPool",
    "FactoryDeployment",
    "FieldRead",
    "LiquidityAtTick",
    "LiquidityEvent",
    "MultiAssetPool",
    "Pool",
    "PoolFamily",
    "PoolType",
    "StateLayout",
    "TokenInfo",
    "apply_liquidity_events",
)
