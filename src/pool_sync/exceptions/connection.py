"""
Connection-related exceptions for the pool_sync package.

This module contains exceptions raised by chain clients when a node cannot be reached, a request
exceeds its deadline, or the node answers with an error.
"""

from typing import Any

from pool_sync.exceptions.base import PoolSyncError


class ChainClientError(PoolSyncError):
    """
    Base exception for chain client errors.
    """


class NotConnected(ChainClientError):
    """
    Raised when a Web3 instance does not report a live connection.
    """

    def __init__(self, endpoint: str | None = None) -> None:
        self.endpoint = endpoint
        message = "Web3 instance is not connected."
        if endpoint is not None:
            message = f"Web3 instance at {endpoint} is not connected."
        super().__init__(message=message)


class ChainMismatch(ChainClientError):
    """
    Raised when an endpoint reports a chain ID different from the one it was configured for.
    """

    def __init__(self, expected: int, actual: int) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(
            message=f"The endpoint reports chain ID {actual}, expected chain ID {expected}."
        )


class TransportError(ChainClientError):
    """
    Raised when a call to a node fails at the transport level (unreachable host, dropped
    connection, timeout, or an error response to a non-contract request).

    Results obtained before the failure are attached as `partial_results`, keyed by the position
    of the work item in the original request. Callers decide whether partial progress is usable.
    """

    def __init__(self, message: str, partial_results: dict[int, Any] | None = None) -> None:
        self.partial_results: dict[int, Any] = partial_results if partial_results else {}
        super().__init__(message=message)


class RequestTimeout(TransportError):
    """
    Raised when a chain client request does not complete before its deadline.
    """

    def __init__(self, request: str, timeout_seconds: float) -> None:
        self.request = request
        self.timeout_seconds = timeout_seconds
        super().__init__(
            message=f"Timed out after {timeout_seconds} seconds waiting for {request}."
        )
