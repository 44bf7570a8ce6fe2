"""
Data fetching exceptions for the pool_sync package.

This module contains exceptions related to log retrieval and the decoding of logs and call results.
"""

from pool_sync.exceptions.base import PoolSyncError
from pool_sync.exceptions.connection import TransportError


class FetchingError(PoolSyncError):
    """
    Base exception for data fetching errors.
    """


class DecodeError(FetchingError):
    """
    Raised when a log or call result does not match the expected shape. Stages recover from this
    error by dropping the offending item.
    """


class LogFetchingTimeout(TransportError):
    """
    Raised when log fetching operations fail after multiple retry attempts.
    """

    def __init__(self, max_retries: int) -> None:
        self.max_retries = max_retries
        super().__init__(message=f"Timed out fetching logs after {max_retries} tries.")
