"""
Exceptions defined here are raised by the pool fetcher registry and its fetchers.
"""

from typing import TYPE_CHECKING

from pool_sync.exceptions.base import PoolSyncError

if TYPE_CHECKING:
    from pool_sync.chain import Chain
    from pool_sync.pools.types import PoolType


class RegistryError(PoolSyncError):
    """
    Exception raised inside registries.
    """


class UnsupportedNetwork(RegistryError):
    """
    Raised when a pool fetcher has no factory deployment on the requested chain.
    """

    def __init__(self, pool_type: "PoolType", chain: "Chain") -> None:
        self.pool_type = pool_type
        self.chain = chain
        super().__init__(message=f"{pool_type} has no known factory deployment on {chain.name}.")


class UnsupportedProtocol(RegistryError):
    """
    Raised when no pool fetcher is registered for the requested pool type.
    """

    def __init__(self, pool_type: object) -> None:
        self.pool_type = pool_type
        super().__init__(message=f"No pool fetcher is registered for {pool_type!r}.")
