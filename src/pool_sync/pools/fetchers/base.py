from collections.abc import Mapping
from typing import Any

from eth_abi.abi import decode as abi_decode
from eth_abi.exceptions import DecodingError
from eth_typing import ChecksumAddress
from hexbytes import HexBytes
from web3.types import LogReceipt

from pool_sync.checksum_cache import get_checksum_address
from pool_sync.exceptions import DecodeError
from pool_sync.types.abstract import AbstractPoolFetcher


class FactoryLogFetcher(AbstractPoolFetcher):
    """
    Decodes the pool address from a factory creation log, checking topic0 and the topic count
    before decoding the non-indexed data.
    """

    # Number of topics on the creation event, including topic0
    CREATION_EVENT_TOPIC_COUNT: int
    # Types of the non-indexed creation event arguments
    CREATION_EVENT_DATA_TYPES: tuple[str, ...]
    # Position of the pool address in the decoded data
    CREATION_EVENT_POOL_INDEX: int

    def decode_creation_log(self, log: LogReceipt) -> ChecksumAddress:
        topics = [HexBytes(topic) for topic in log["topics"]]

        if len(topics) != self.CREATION_EVENT_TOPIC_COUNT:
            raise DecodeError(
                message=f"Expected {self.CREATION_EVENT_TOPIC_COUNT} topics, found {len(topics)}"
            )
        if topics[0] != self.creation_event_topic():
            raise DecodeError(message=f"Unexpected event topic {topics[0].to_0x_hex()}")

        try:
            decoded = abi_decode(self.CREATION_EVENT_DATA_TYPES, HexBytes(log["data"]))
        except DecodingError as exc:
            raise DecodeError(message=f"Could not decode creation event data: {exc}") from exc

        return get_checksum_address(decoded[self.CREATION_EVENT_POOL_INDEX])


def single_value(fields: Mapping[str, tuple[Any, ...]], name: str) -> Any:
    """
    Get the only value returned by a field read.
    """

    try:
        (value,) = fields[name]
    except (KeyError, ValueError):
        raise DecodeError(message=f"Field {name!r} is missing or has an unexpected shape") from None
    return value
