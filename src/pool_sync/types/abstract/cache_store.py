import abc
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pool_sync.cache import SyncCacheSnapshot
    from pool_sync.chain import Chain
    from pool_sync.pools.types import PoolType


class AbstractCacheStore(abc.ABC):
    """
    Persistence for sync snapshots, keyed by (pool type, chain).
    """

    @abc.abstractmethod
    def load(self, pool_type: "PoolType", chain: "Chain") -> "SyncCacheSnapshot":
        """
        Load the snapshot, or return a fresh one (watermark 0, first sync) if none was saved.
        """

    @abc.abstractmethod
    def save(self, snapshot: "SyncCacheSnapshot", chain: "Chain") -> None: ...
