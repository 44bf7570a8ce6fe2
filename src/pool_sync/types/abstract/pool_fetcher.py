import abc
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any, ClassVar

from eth_typing import ChecksumAddress
from hexbytes import HexBytes
from web3.types import LogReceipt

from pool_sync.exceptions import UnsupportedNetwork
from pool_sync.functions import event_topic
from pool_sync.types.aliases import BlockNumber

if TYPE_CHECKING:
    from pool_sync.chain import Chain
    from pool_sync.pools.deployments import FactoryDeployment
    from pool_sync.pools.layout import StateLayout
    from pool_sync.pools.liquidity import LiquidityEvent
    from pool_sync.pools.types import BasePool, PoolFamily, PoolType, TokenInfo


class AbstractPoolFetcher(abc.ABC):
    """
    Protocol-specific knowledge needed to discover pools from factory logs and to build pool records
    from batched contract reads.

    Fetchers are stateless and shared between concurrent stages.
    """

    pool_type: ClassVar["PoolType"]
    family: ClassVar["PoolFamily"]
    deployments: ClassVar[Mapping["Chain", "FactoryDeployment"]]

    def __repr__(self) -> str:  # pragma: no cover
        return f"{self.__class__.__name__}(pool_type={self.pool_type})"

    def supports(self, chain: "Chain") -> bool:
        return chain in self.deployments

    def factory_address(self, chain: "Chain") -> ChecksumAddress:
        try:
            return self.deployments[chain].address
        except KeyError:
            raise UnsupportedNetwork(pool_type=self.pool_type, chain=chain) from None

    def deployment_block(self, chain: "Chain") -> BlockNumber:
        try:
            return self.deployments[chain].deployment_block
        except KeyError:
            raise UnsupportedNetwork(pool_type=self.pool_type, chain=chain) from None

    def creation_event_topic(self) -> HexBytes:
        return event_topic(self.creation_event_signature())

    @abc.abstractmethod
    def creation_event_signature(self) -> str: ...

    @abc.abstractmethod
    def decode_creation_log(self, log: LogReceipt) -> ChecksumAddress:
        """
        Extract the pool address from a factory creation log. Raises `DecodeError` if the log does
        not match the expected event.
        """

    @abc.abstractmethod
    def state_layout(self) -> "StateLayout": ...

    @abc.abstractmethod
    def token_addresses(self, fields: Mapping[str, tuple[Any, ...]]) -> tuple[ChecksumAddress, ...]:
        """
        Get the ordered token addresses from the decoded pool reads.
        """

    @abc.abstractmethod
    def build_pool(
        self,
        address: ChecksumAddress,
        fields: Mapping[str, tuple[Any, ...]],
        tokens: Sequence["TokenInfo"],
        block_number: BlockNumber,
        liquidity_events: Sequence["LiquidityEvent"] = (),
    ) -> "BasePool":
        """
        Build a validated pool record. Raises `pydantic.ValidationError` or `DecodeError` if the
        fields are malformed.
        """

    @abc.abstractmethod
    def update_pool(
        self,
        pool: "BasePool",
        fields: Mapping[str, tuple[Any, ...]] | None,
        block_number: BlockNumber,
        liquidity_events: Sequence["LiquidityEvent"] = (),
    ) -> "BasePool":
        """
        Return a copy of the pool with refreshed mutable state. If `fields` is `None` the mutable
        reads failed and only the liquidity events are applied.
        """
