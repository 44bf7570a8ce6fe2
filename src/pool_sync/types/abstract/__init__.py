from .cache_store import AbstractCacheStore
from .chain_client import AbstractChainClient
from .pool_fetcher import AbstractPoolFetcher

__all__ = (
    "AbstractCacheStore",
    "AbstractChainClient",
    "AbstractPoolFetcher",
)
