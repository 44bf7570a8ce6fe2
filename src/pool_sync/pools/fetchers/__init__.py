from pool_sync.exceptions import UnsupportedProtocol
from pool_sync.pools.fetchers.curve import CurveTricryptoPoolFetcher
from pool_sync.pools.fetchers.uniswap_v2 import (
    AlienBaseV2Fetcher,
    PancakeswapV2Fetcher,
    SushiswapV2Fetcher,
    UniswapV2Fetcher,
    UniswapV2PoolFetcher,
)
from pool_sync.pools.fetchers.uniswap_v3 import (
    AlienBaseV3Fetcher,
    PancakeswapV3Fetcher,
    SushiswapV3Fetcher,
    UniswapV3Fetcher,
    UniswapV3PoolFetcher,
)
from pool_sync.pools.types import PoolType
from pool_sync.types.abstract import AbstractPoolFetcher

POOL_FETCHERS: dict[PoolType, AbstractPoolFetcher] = {
    PoolType.UNISWAP_V2: UniswapV2Fetcher(),
    PoolType.SUSHISWAP_V2: SushiswapV2Fetcher(),
    PoolType.PANCAKESWAP_V2: PancakeswapV2Fetcher(),
    PoolType.ALIENBASE_V2: AlienBaseV2Fetcher(),
    PoolType.UNISWAP_V3: UniswapV3Fetcher(),
    PoolType.SUSHISWAP_V3: SushiswapV3Fetcher(),
    PoolType.PANCAKESWAP_V3: PancakeswapV3Fetcher(),
    PoolType.ALIENBASE_V3: AlienBaseV3Fetcher(),
    PoolType.CURVE_TRICRYPTO: CurveTricryptoPoolFetcher(),
}


def get_pool_fetcher(pool_type: PoolType | str) -> AbstractPoolFetcher:
    """
    Get the fetcher for a pool type. Raises `UnsupportedProtocol` if no fetcher is registered.
    """

    try:
        return POOL_FETCHERS[PoolType(pool_type)]
    except (KeyError, ValueError):
        raise UnsupportedProtocol(pool_type=str(pool_type)) from None


__all__ = (
    "POOL_FETCHERS",
    "AlienBaseV2Fetcher",
    "AlienBaseV3Fetcher",
    "CurveTricryptoPoolFetcher",
    "PancakeswapV2Fetcher",
    "PancakeswapV3Fetcher",
    "SushiswapV2Fetcher",
    "SushiswapV3Fetcher",
    "UniswapV2Fetcher",
    "UniswapV2PoolFetcher",
    "UniswapV3Fetcher",
    "UniswapV3PoolFetcher",
    "get_pool_fetcher",
)
