"""
Exceptions raised by cache stores.

A missing cache is not an error. A cache that exists but cannot be read, cannot be written, or does
not validate is surfaced to the caller and never silently replaced.
"""

from pathlib import Path

from pool_sync.exceptions.base import PoolSyncError


class CacheError(PoolSyncError):
    """
    Base exception for cache persistence errors.
    """


class CacheReadError(CacheError):
    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(message=f"Could not read the cache file at {path}.")


class CacheWriteError(CacheError):
    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(message=f"Could not write the cache file at {path}.")


class CacheCorrupted(CacheError):
    """
    Raised when a cache file exists but its contents are invalid.
    """

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(message=f"The cache file at {path} is corrupt: {reason}")
