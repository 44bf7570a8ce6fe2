from pool_sync.types.abstract import AbstractCacheStore, AbstractChainClient, AbstractPoolFetcher
from pool_sync.types.concrete import CallFailure, CallResult, MethodCall

__all__ = (
    "AbstractCacheStore",
    "AbstractChainClient",
    "AbstractPoolFetcher",
    "CallFailure",
    "CallResult",
    "MethodCall",
)
