from collections.abc import Iterator, Sequence
from typing import Any

import eth_abi.abi
from eth_utils.crypto import keccak
from hexbytes import HexBytes

from pool_sync.exceptions import PoolSyncValueError


def encode_function_calldata(
    function_prototype: str, function_arguments: Sequence[Any] | None
) -> bytes:
    """
    Encode the calldata to execute a call to the given function prototype, with ordered arguments.
    The resulting bytes array will include the 4-byte function selector, followed by the
    ABI-encoded arguments.
    """

    if function_arguments is None:
        function_arguments = ()

    return keccak(text=function_prototype)[:4] + eth_abi.abi.encode(
        types=extract_argument_types_from_function_prototype(function_prototype),
        args=function_arguments,
    )


def extract_argument_types_from_function_prototype(function_prototype: str) -> list[str]:
    """
    Extract the argument types from the function prototype.

    e.g. the argument types for the prototype 'function(address,uint256)' are ['address','uint256']
    """

    if function_args := function_prototype[
        function_prototype.find("(") + 1 : function_prototype.find(")") :
    ]:
        return function_args.split(",")

    return []


def event_topic(event_signature: str) -> HexBytes:
    """
    Get the topic hash (topic0) for an event signature, e.g.
    'PairCreated(address,address,address,uint256)'.
    """

    return HexBytes(keccak(text=event_signature))


def block_spans(
    start_block: int,
    end_block: int,
    max_span: int,
) -> Iterator[tuple[int, int]]:
    """
    Split the inclusive block range into consecutive inclusive spans of at most `max_span` blocks.
    """

    if end_block < start_block:
        raise PoolSyncValueError(message="End block cannot be earlier than start block.")
    if max_span < 1:
        raise PoolSyncValueError(message="The block span must be at least 1.")

    span_start = start_block
    while span_start <= end_block:
        span_end = min(end_block, span_start + max_span - 1)
        yield span_start, span_end
        span_start = span_end + 1


def _increase_working_span(
    working_span: int,
    percent: int,
    ceiling: int,
) -> int:
    """
    Increase the working span by the given percentage, not to exceed the given ceiling.
    """

    return min(
        ceiling,
        int(
            working_span + working_span * (percent / 100),
        ),
    )


def _reduce_working_span(
    working_span: int,
    percent: int,
) -> int:
    """
    Reduce the working span by the given percentage, not to fall below 1.
    """

    return max(
        1,
        int(
            working_span - working_span * (percent / 100),
        ),
    )
