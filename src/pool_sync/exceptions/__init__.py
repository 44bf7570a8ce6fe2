from pool_sync.exceptions.base import PoolSyncError, PoolSyncValueError
from pool_sync.exceptions.cache import CacheCorrupted, CacheError, CacheReadError, CacheWriteError
from pool_sync.exceptions.connection import (
    ChainClientError,
    ChainMismatch,
    NotConnected,
    RequestTimeout,
    TransportError,
)
from pool_sync.exceptions.fetching import DecodeError, FetchingError, LogFetchingTimeout
from pool_sync.exceptions.registry import RegistryError, UnsupportedNetwork, UnsupportedProtocol
from pool_sync.exceptions.sync import SyncAborted, SyncDidNotConverge, SyncError

from . import cache, connection, fetching, registry, sync

__all__ = (
    "CacheCorrupted",
    "CacheError",
    "CacheReadError",
    "CacheWriteError",
    "ChainClientError",
    "ChainMismatch",
    "DecodeError",
    "FetchingError",
    "LogFetchingTimeout",
    "NotConnected",
    "PoolSyncError",
    "PoolSyncValueError",
    "RegistryError",
    "RequestTimeout",
    "SyncAborted",
    "SyncDidNotConverge",
    "SyncError",
    "TransportError",
    "UnsupportedNetwork",
    "UnsupportedProtocol",
    "cache",
    "connection",
    "fetching",
    "registry",
    "sync",
)
