import pytest
from eth_abi.abi import encode as abi_encode
from fakes import make_address, make_v2_pair_created_log, make_v3_pool_created_log
from hexbytes import HexBytes
from web3.types import LogReceipt

from pool_sync.chain import Chain
from pool_sync.exceptions import DecodeError, UnsupportedNetwork, UnsupportedProtocol
from pool_sync.pools.fetchers import POOL_FETCHERS, get_pool_fetcher
from pool_sync.pools.types import PoolFamily, PoolType, TokenInfo

TOKEN0 = make_address(0x1000)
TOKEN1 = make_address(0x2000)
TOKEN2 = make_address(0x3000)
POOL = make_address(0xABC)


def test_every_pool_type_has_a_fetcher():
    assert set(POOL_FETCHERS) == set(PoolType)
    for pool_type, fetcher in POOL_FETCHERS.items():
        assert fetcher.pool_type == pool_type
        assert fetcher.deployments
        assert get_pool_fetcher(pool_type) is fetcher
        assert get_pool_fetcher(str(pool_type)) is fetcher


def test_unknown_pool_type():
    with pytest.raises(UnsupportedProtocol):
        get_pool_fetcher("uniswap_v9")


@pytest.mark.parametrize(
    ("pool_type", "family"),
    [
        (PoolType.UNISWAP_V2, PoolFamily.CONSTANT_PRODUCT),
        (PoolType.PANCAKESWAP_V2, PoolFamily.CONSTANT_PRODUCT),
        (PoolType.SUSHISWAP_V3, PoolFamily.CONCENTRATED_LIQUIDITY),
        (PoolType.ALIENBASE_V3, PoolFamily.CONCENTRATED_LIQUIDITY),
        (PoolType.CURVE_TRICRYPTO, PoolFamily.MULTI_ASSET),
    ],
)
def test_pool_families(pool_type: PoolType, family: PoolFamily):
    assert get_pool_fetcher(pool_type).family == family


def test_known_factory_addresses():
    assert get_pool_fetcher(PoolType.UNISWAP_V2).factory_address(Chain.ETHEREUM) == (
        "0x5C69bEe701ef814a2B6a3EDD4B1652CB9cc5aA6f"
    )
    assert get_pool_fetcher(PoolType.UNISWAP_V3).factory_address(Chain.ETHEREUM) == (
        "0x1F98431c8aD98523631AE4a59f267346ea31F984"
    )
    assert get_pool_fetcher(PoolType.UNISWAP_V2).deployment_block(Chain.ETHEREUM) == 10_000_835


def test_alienbase_is_only_deployed_on_base():
    for pool_type in (PoolType.ALIENBASE_V2, PoolType.ALIENBASE_V3):
        fetcher = get_pool_fetcher(pool_type)
        assert fetcher.supports(Chain.BASE)
        assert not fetcher.supports(Chain.ETHEREUM)
        with pytest.raises(UnsupportedNetwork) as exc_info:
            fetcher.factory_address(Chain.ETHEREUM)
        assert exc_info.value.chain == Chain.ETHEREUM
        with pytest.raises(UnsupportedNetwork):
            fetcher.deployment_block(Chain.ARBITRUM)


def test_creation_event_topics():
    assert get_pool_fetcher(PoolType.UNISWAP_V2).creation_event_topic() == HexBytes(
        "0x0d3648bd0f6ba80134a33ba9275ac585d9d315f0ad8355cddefde31afa28d0e9"
    )
    assert get_pool_fetcher(PoolType.UNISWAP_V3).creation_event_topic() == HexBytes(
        "0x783cca1c0412dd0d695e784568c96da2e9c22ff989357a2e8b1d9b2b4e6b7118"
    )


def test_decode_v2_creation_log():
    fetcher = get_pool_fetcher(PoolType.SUSHISWAP_V2)
    log = make_v2_pair_created_log(
        factory=fetcher.factory_address(Chain.BASE),
        pool=POOL,
        token0=TOKEN0,
        token1=TOKEN1,
        block_number=1,
    )
    assert fetcher.decode_creation_log(log) == POOL


def test_decode_v3_creation_log():
    fetcher = get_pool_fetcher(PoolType.UNISWAP_V3)
    log = make_v3_pool_created_log(
        factory=fetcher.factory_address(Chain.BASE),
        pool=POOL,
        token0=TOKEN0,
        token1=TOKEN1,
        block_number=1,
    )
    assert fetcher.decode_creation_log(log) == POOL


def test_decode_rejects_mismatched_event():
    v2_fetcher = get_pool_fetcher(PoolType.UNISWAP_V2)
    v3_log = make_v3_pool_created_log(
        factory=v2_fetcher.factory_address(Chain.BASE),
        pool=POOL,
        token0=TOKEN0,
        token1=TOKEN1,
        block_number=1,
    )
    with pytest.raises(DecodeError):
        v2_fetcher.decode_creation_log(v3_log)

    v2_log = make_v2_pair_created_log(
        factory=v2_fetcher.factory_address(Chain.BASE),
        pool=POOL,
        token0=TOKEN0,
        token1=TOKEN1,
        block_number=1,
    )
    v2_log["topics"][0] = HexBytes(b"\x01" * 32)  # type: ignore[index]
    with pytest.raises(DecodeError):
        v2_fetcher.decode_creation_log(v2_log)


def test_decode_tricrypto_creation_log():
    fetcher = get_pool_fetcher(PoolType.CURVE_TRICRYPTO)
    data = abi_encode(
        [
            "address",
            "string",
            "string",
            "address",
            "address[3]",
            "address",
            "bytes32",
            "uint256",
            "uint256",
            "uint256",
            "uint256",
            "uint256",
            "address",
        ],
        [
            POOL,
            "TricryptoUSDC",
            "crvUSDCWETH",
            TOKEN2,
            [TOKEN0, TOKEN1, TOKEN2],
            make_address(0xF00),
            b"\x00" * 32,
            1,
            2,
            3,
            4,
            5,
            make_address(0xD00),
        ],
    )
    log = LogReceipt(  # type: ignore[typeddict-item]
        address=fetcher.factory_address(Chain.ETHEREUM),
        blockNumber=1,
        logIndex=0,
        topics=[fetcher.creation_event_topic()],
        data=HexBytes(data),
    )
    assert fetcher.decode_creation_log(log) == POOL


def test_state_layouts():
    v2_layout = get_pool_fetcher(PoolType.UNISWAP_V2).state_layout()
    assert [read.name for read in v2_layout.mutable_reads] == ["reserves"]
    assert not v2_layout.tracks_liquidity_events

    v3_layout = get_pool_fetcher(PoolType.PANCAKESWAP_V3).state_layout()
    assert [read.name for read in v3_layout.mutable_reads] == ["slot0", "liquidity"]
    assert v3_layout.tracks_liquidity_events

    curve_layout = get_pool_fetcher(PoolType.CURVE_TRICRYPTO).state_layout()
    assert [read.method.function_arguments for read in curve_layout.pool_reads] == [
        (0,),
        (1,),
        (2,),
        (0,),
        (1,),
        (2,),
    ]
    assert [read.name for read in curve_layout.mutable_reads] == [
        "balance0",
        "balance1",
        "balance2",
    ]


def test_build_and_update_tricrypto_pool():
    fetcher = get_pool_fetcher(PoolType.CURVE_TRICRYPTO)
    fields = {
        "coin0": (TOKEN0,),
        "coin1": (TOKEN1,),
        "coin2": (TOKEN2,),
        "balance0": (10,),
        "balance1": (20,),
        "balance2": (30,),
    }
    assert fetcher.token_addresses(fields) == (TOKEN0, TOKEN1, TOKEN2)

    tokens = [
        TokenInfo(address=address, name=f"Token {i}", decimals=18)
        for i, address in enumerate((TOKEN0, TOKEN1, TOKEN2))
    ]
    pool = fetcher.build_pool(address=POOL, fields=fields, tokens=tokens, block_number=100)
    assert pool.balances == (10, 20, 30)  # type: ignore[attr-defined]

    updated = fetcher.update_pool(
        pool=pool,
        fields={"balance0": (11,), "balance1": (21,), "balance2": (31,)},
        block_number=150,
    )
    assert updated.balances == (11, 21, 31)  # type: ignore[attr-defined]
    assert updated.state_block == 150
    assert pool.state_block == 100

    assert fetcher.update_pool(pool=pool, fields=None, block_number=150) is pool


def test_missing_field_raises_decode_error():
    fetcher = get_pool_fetcher(PoolType.UNISWAP_V2)
    with pytest.raises(DecodeError):
        fetcher.token_addresses({"token0": (TOKEN0,)})
