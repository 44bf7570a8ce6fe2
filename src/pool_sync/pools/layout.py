import dataclasses

from pool_sync.types.concrete import MethodCall


@dataclasses.dataclass(slots=True, frozen=True)
class FieldRead:
    """
    A single named value read from a contract. Mutable fields are re-read when refreshing known
    pools; immutable fields are read once when the pool is first populated.
    """

    name: str
    method: MethodCall
    mutable: bool = False


TOKEN_NAME = FieldRead(
    name="name",
    method=MethodCall(
        function_prototype="name()",
        return_types=("string",),
        alternate_return_types=("bytes32",),
    ),
)
TOKEN_DECIMALS = FieldRead(
    name="decimals",
    method=MethodCall(
        function_prototype="decimals()",
        return_types=("uint256",),
    ),
)


@dataclasses.dataclass(slots=True, frozen=True)
class StateLayout:
    """
    The typed read layout for a pool family: reads executed against each pool contract, reads
    executed against each token, and whether Mint/Burn liquidity events must be replayed to track
    the pool's tick data.
    """

    pool_reads: tuple[FieldRead, ...]
    token_reads: tuple[FieldRead, ...] = (TOKEN_NAME, TOKEN_DECIMALS)
    tracks_liquidity_events: bool = False

    def __post_init__(self) -> None:
        names = [read.name for read in self.pool_reads]
        if len(names) != len(set(names)):
            msg = f"Duplicate field names in layout: {names}"
            raise ValueError(msg)

    @property
    def mutable_reads(self) -> tuple[FieldRead, ...]:
        return tuple(read for read in self.pool_reads if read.mutable)
