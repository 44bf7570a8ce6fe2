import enum

from pool_sync.exceptions import PoolSyncValueError


class Chain(enum.IntEnum):
    """
    Supported networks, valued by their EVM chain ID.
    """

    ETHEREUM = 1
    BASE = 8453
    ARBITRUM = 42161

    @classmethod
    def from_name(cls, name: str) -> "Chain":
        try:
            return cls[name.upper()]
        except KeyError:
            raise PoolSyncValueError(message=f"Unknown chain {name!r}") from None
