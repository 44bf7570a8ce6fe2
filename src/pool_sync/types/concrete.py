import dataclasses
from typing import Any

from eth_typing import ChecksumAddress

from pool_sync.functions import encode_function_calldata


@dataclasses.dataclass(slots=True, frozen=True)
class MethodCall:
    """
    A read-only contract call: the function prototype, its positional arguments, and the ABI types
    used to decode the returned data.

    If decoding with `return_types` fails and `alternate_return_types` is provided, the alternate
    types are tried before the call is reported as a failure (e.g. `name()` returning `bytes32`
    instead of `string` for some older tokens).
    """

    function_prototype: str
    return_types: tuple[str, ...]
    function_arguments: tuple[Any, ...] = ()
    alternate_return_types: tuple[str, ...] | None = None

    @property
    def calldata(self) -> bytes:
        return encode_function_calldata(
            function_prototype=self.function_prototype,
            function_arguments=self.function_arguments,
        )


@dataclasses.dataclass(slots=True, frozen=True)
class CallFailure:
    """
    Marks a single failed item in a batched call. Returned in place of the decoded values so one
    failure does not affect sibling items.
    """

    address: ChecksumAddress
    reason: str


type CallResult = tuple[Any, ...] | CallFailure
