from collections.abc import Iterable
from pathlib import Path

import pydantic
from eth_typing import ChecksumAddress

from pool_sync.chain import Chain
from pool_sync.exceptions import (
    CacheCorrupted,
    CacheReadError,
    CacheWriteError,
    PoolSyncValueError,
)
from pool_sync.logging import logger
from pool_sync.pools.types import BasePool, Pool, PoolType
from pool_sync.types.abstract import AbstractCacheStore
from pool_sync.types.aliases import BlockNumber


class SyncCacheSnapshot(pydantic.BaseModel):
    """
    The persisted sync progress for one (pool type, chain) pair: every pool discovered so far and
    the last block for which discovery and population completed.
    """

    chain: Chain
    pool_type: PoolType
    last_synced_block: BlockNumber = pydantic.Field(default=0, ge=0)
    is_first_sync: bool = True
    pools: list[Pool] = pydantic.Field(default_factory=list)

    @pydantic.model_validator(mode="after")
    def validate_pools(self) -> "SyncCacheSnapshot":
        addresses = [pool.address for pool in self.pools]
        if len(addresses) != len(set(addresses)):
            msg = "Pool addresses are not unique"
            raise ValueError(msg)
        if any(pool.pool_type != self.pool_type for pool in self.pools):
            msg = f"All pools must have pool type {self.pool_type}"
            raise ValueError(msg)
        return self

    @classmethod
    def fresh(cls, pool_type: PoolType, chain: Chain) -> "SyncCacheSnapshot":
        return cls(chain=chain, pool_type=pool_type)

    @property
    def pool_addresses(self) -> set[ChecksumAddress]:
        return {pool.address for pool in self.pools}

    def merge_pools(self, pools: Iterable[BasePool]) -> None:
        """
        Merge pools into the snapshot. A pool with an address already in the snapshot replaces the
        existing record in place; other pools are appended in order.
        """

        merged: dict[ChecksumAddress, BasePool] = {pool.address: pool for pool in self.pools}
        for pool in pools:
            if pool.pool_type != self.pool_type:
                raise PoolSyncValueError(
                    message=(
                        f"Cannot merge a {pool.pool_type} pool into a {self.pool_type} snapshot."
                    )
                )
            merged[pool.address] = pool
        self.pools = list(merged.values())  # type: ignore[arg-type]


def cache_file_name(pool_type: PoolType, chain: Chain) -> str:
    return f"{chain.name.lower()}_{pool_type}_cache.json"


class JsonCacheStore(AbstractCacheStore):
    """
    Stores each snapshot as a JSON document in the cache directory. Writes go to a temporary file
    that replaces the previous document, so a failed write never leaves a truncated cache behind.
    """

    def __init__(self, path: Path) -> None:
        self.path = path.expanduser()

    def __repr__(self) -> str:  # pragma: no cover
        return f"{self.__class__.__name__}(path={self.path})"

    def file_path(self, pool_type: PoolType, chain: Chain) -> Path:
        return self.path / cache_file_name(pool_type, chain)

    def load(self, pool_type: PoolType, chain: Chain) -> SyncCacheSnapshot:
        cache_file = self.file_path(pool_type, chain)

        if not cache_file.exists():
            logger.debug(f"No cache at {cache_file}, starting a first sync for {pool_type}")
            return SyncCacheSnapshot.fresh(pool_type=pool_type, chain=chain)

        try:
            contents = cache_file.read_bytes()
        except OSError as exc:
            raise CacheReadError(path=cache_file) from exc

        try:
            snapshot = SyncCacheSnapshot.model_validate_json(contents)
        except pydantic.ValidationError as exc:
            raise CacheCorrupted(path=cache_file, reason=str(exc)) from exc

        if snapshot.pool_type != pool_type or snapshot.chain != chain:
            raise CacheCorrupted(
                path=cache_file,
                reason=(
                    f"expected a {pool_type} snapshot for {chain.name}, found a "
                    f"{snapshot.pool_type} snapshot for {snapshot.chain.name}"
                ),
            )

        logger.debug(
            f"Loaded {len(snapshot.pools)} {pool_type} pools synced to block "
            f"{snapshot.last_synced_block} from {cache_file}"
        )
        return snapshot

    def save(self, snapshot: SyncCacheSnapshot, chain: Chain) -> None:
        if snapshot.chain != chain:
            raise PoolSyncValueError(
                message=f"Cannot save a {snapshot.chain.name} snapshot as {chain.name}."
            )

        cache_file = self.file_path(snapshot.pool_type, chain)
        temp_file = cache_file.with_suffix(".json.tmp")
        try:
            self.path.mkdir(parents=True, exist_ok=True)
            temp_file.write_text(snapshot.model_dump_json())
            temp_file.replace(cache_file)
        except OSError as exc:
            raise CacheWriteError(path=cache_file) from exc

        logger.debug(
            f"Saved {len(snapshot.pools)} {snapshot.pool_type} pools synced to block "
            f"{snapshot.last_synced_block} to {cache_file}"
        )

    def list_snapshots(self) -> list[tuple[Chain, PoolType]]:
        """
        Get the (chain, pool type) pairs with a cache file in the cache directory.
        """

        found: list[tuple[Chain, PoolType]] = []
        for chain in Chain:
            for pool_type in PoolType:
                if self.file_path(pool_type, chain).exists():
                    found.append((chain, pool_type))
        return found

    def remove(self, pool_type: PoolType, chain: Chain) -> bool:
        """
        Delete the cache file. Returns `False` if there was nothing to delete.
        """

        cache_file = self.file_path(pool_type, chain)
        try:
            cache_file.unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            raise CacheWriteError(path=cache_file) from exc
        return True
