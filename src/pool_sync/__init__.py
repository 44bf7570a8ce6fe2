from . import exceptions, pools
from .checksum_cache import get_checksum_address
from .cache import JsonCacheStore, SyncCacheSnapshot
from .chain import Chain
from .config import RetrySettings, Settings, SyncSettings
from .connection import Web3ChainClient, get_web3_client_pair
from .executor import RateLimitedExecutor
from .logging import logger
from .pools import PoolType
from .pools.fetchers import POOL_FETCHERS, get_pool_fetcher
from .sync import CompletedRange, PoolSync, SyncResult
from .version import __version__

__all__ = (
    "POOL_FETCHERS",
    "Chain",
    "CompletedRange",
    "JsonCacheStore",
    "PoolSync",
    "PoolType",
    "RateLimitedExecutor",
    "RetrySettings",
    "Settings",
    "SyncCacheSnapshot",
    "SyncResult",
    "SyncSettings",
    "Web3ChainClient",
    "__version__",
    "exceptions",
    "get_checksum_address",
    "get_pool_fetcher",
    "get_web3_client_pair",
    "logger",
    "pools",
)
