import abc
from collections.abc import Sequence

from eth_typing import ChecksumAddress
from hexbytes import HexBytes
from web3.types import LogReceipt

from pool_sync.types.aliases import BlockNumber
from pool_sync.types.concrete import CallResult, MethodCall


class AbstractChainClient(abc.ABC):
    """
    The node operations required by the sync stages.

    Implementations raise `TransportError` (or a subclass) when the node cannot be reached or a
    request exceeds its deadline. Item-level failures inside `batch_call` are returned as
    `CallFailure` values instead of being raised.
    """

    @abc.abstractmethod
    async def current_block_height(self) -> BlockNumber: ...

    @abc.abstractmethod
    async def get_logs(
        self,
        address: ChecksumAddress | Sequence[ChecksumAddress] | None,
        topics: Sequence[HexBytes | Sequence[HexBytes] | None],
        start_block: BlockNumber,
        end_block: BlockNumber,
    ) -> list[LogReceipt]:
        """
        Get all logs emitted by `address` (any address if `None`) matching the topic filter, for the
        inclusive block range.
        """

    @abc.abstractmethod
    async def batch_call(
        self,
        addresses: Sequence[ChecksumAddress],
        method: MethodCall,
        block_identifier: BlockNumber | None = None,
    ) -> list[CallResult]:
        """
        Call `method` on every address and return the decoded results in input order.
        """

    async def close(self) -> None:
        """
        Release any connections held by the client.
        """
