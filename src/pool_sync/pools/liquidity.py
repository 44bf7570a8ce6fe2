"""
Liquidity event handling for concentrated liquidity pools.

Mint and Burn events are replayed in (block number, log index) order to maintain the net and gross
liquidity recorded at each initialized tick.
"""

import dataclasses
from collections import defaultdict
from collections.abc import Iterable, Mapping

from eth_abi.abi import decode as abi_decode
from eth_abi.exceptions import DecodingError
from eth_typing import ChecksumAddress
from hexbytes import HexBytes
from web3.types import LogReceipt

from pool_sync.checksum_cache import get_checksum_address
from pool_sync.exceptions import DecodeError
from pool_sync.functions import event_topic
from pool_sync.logging import logger
from pool_sync.pools.types import LiquidityAtTick
from pool_sync.types.aliases import BlockNumber, Liquidity, Tick

MINT_EVENT_SIGNATURE = "Mint(address,address,int24,int24,uint128,uint256,uint256)"
BURN_EVENT_SIGNATURE = "Burn(address,int24,int24,uint128,uint256,uint256)"
MINT_EVENT_TOPIC = event_topic(MINT_EVENT_SIGNATURE)
BURN_EVENT_TOPIC = event_topic(BURN_EVENT_SIGNATURE)


@dataclasses.dataclass(slots=True, frozen=True)
class LiquidityEvent:
    block_number: BlockNumber
    log_index: int
    tick_lower: Tick
    tick_upper: Tick
    # positive for Mint, negative for Burn
    liquidity_delta: Liquidity


def decode_liquidity_event(log: LogReceipt) -> tuple[ChecksumAddress, LiquidityEvent]:
    """
    Decode a Mint or Burn log into the emitting pool address and its liquidity change.
    """

    topics = [HexBytes(topic) for topic in log["topics"]]
    if len(topics) != 4:
        raise DecodeError(message=f"Expected 4 topics, found {len(topics)}")

    try:
        (tick_lower,) = abi_decode(["int24"], topics[2])
        (tick_upper,) = abi_decode(["int24"], topics[3])
        if topics[0] == MINT_EVENT_TOPIC:
            _, amount, _, _ = abi_decode(
                ["address", "uint128", "uint256", "uint256"], HexBytes(log["data"])
            )
            liquidity_delta = amount
        elif topics[0] == BURN_EVENT_TOPIC:
            amount, _, _ = abi_decode(["uint128", "uint256", "uint256"], HexBytes(log["data"]))
            liquidity_delta = -amount
        else:
            raise DecodeError(message=f"Unknown liquidity event topic {topics[0].to_0x_hex()}")
    except DecodingError as exc:
        raise DecodeError(message=f"Could not decode liquidity event: {exc}") from exc

    return get_checksum_address(log["address"]), LiquidityEvent(
        block_number=log["blockNumber"],
        log_index=log["logIndex"],
        tick_lower=tick_lower,
        tick_upper=tick_upper,
        liquidity_delta=liquidity_delta,
    )


def group_liquidity_events(
    logs: Iterable[LogReceipt],
) -> dict[ChecksumAddress, list[LiquidityEvent]]:
    """
    Decode Mint and Burn logs and group them by pool, each group sorted by block number and log
    index. Logs that fail to decode are dropped.
    """

    events: dict[ChecksumAddress, list[LiquidityEvent]] = defaultdict(list)
    dropped = 0
    for log in logs:
        try:
            pool_address, event = decode_liquidity_event(log)
        except DecodeError:
            dropped += 1
            continue
        events[pool_address].append(event)

    if dropped:
        logger.warning(f"Dropped {dropped} liquidity logs that could not be decoded")

    for pool_events in events.values():
        pool_events.sort(key=lambda event: (event.block_number, event.log_index))

    return dict(events)


def apply_liquidity_events(
    tick_data: Mapping[Tick, LiquidityAtTick],
    events: Iterable[LiquidityEvent],
) -> dict[Tick, LiquidityAtTick]:
    """
    Return a new tick mapping with the events applied. Ticks with no remaining gross liquidity are
    removed.

    The events must be ordered and must not include any event already reflected in `tick_data`.
    """

    net: dict[Tick, int] = {tick: info.liquidity_net for tick, info in tick_data.items()}
    gross: dict[Tick, int] = {tick: info.liquidity_gross for tick, info in tick_data.items()}

    for event in events:
        for tick, net_sign in ((event.tick_lower, 1), (event.tick_upper, -1)):
            net[tick] = net.get(tick, 0) + net_sign * event.liquidity_delta
            gross[tick] = gross.get(tick, 0) + event.liquidity_delta

    return {
        tick: LiquidityAtTick(liquidity_net=net[tick], liquidity_gross=gross[tick])
        for tick in sorted(gross)
        if gross[tick] != 0
    }
