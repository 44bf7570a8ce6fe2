from typing import TYPE_CHECKING

from pool_sync.exceptions.base import PoolSyncError

if TYPE_CHECKING:
    from pool_sync.sync import CompletedRange


class SyncError(PoolSyncError):
    """
    Exception raised by the sync orchestrator.
    """


class SyncAborted(SyncError):
    """
    Raised when a sync run fails. No cache snapshot from the failed run has been persisted, so
    re-running is always safe.

    The underlying error is available as `cause` (and `__cause__`). The last protocol range that
    completed in memory before the failure is available as `last_completed`, or `None` if no range
    completed.
    """

    def __init__(self, cause: BaseException, last_completed: "CompletedRange | None") -> None:
        self.cause = cause
        self.last_completed = last_completed

        cause_message = getattr(cause, "message", None) or str(cause)
        message = f"Sync aborted by {type(cause).__name__}: {cause_message}"
        if last_completed is None:
            message += " No protocol range completed."
        else:
            message += (
                f" Last completed range: {last_completed.pool_type} "
                f"blocks {last_completed.start_block}-{last_completed.end_block}."
            )
        super().__init__(message=message)


class SyncDidNotConverge(SyncError):
    """
    Raised when the chain head outpaces synchronization for more than the configured number of
    iterations.
    """

    def __init__(self, iterations: int) -> None:
        self.iterations = iterations
        super().__init__(
            message=f"Sync did not reach the chain head after {iterations} iterations."
        )
