from pool_sync.chain import Chain
from pool_sync.config import Settings
from pool_sync.connection.web3_client import Web3ChainClient, decode_call_result
from pool_sync.exceptions import PoolSyncValueError


async def get_web3_client_pair(
    chain: Chain,
    settings: Settings,
    *,
    optimize: bool = True,
) -> tuple[Web3ChainClient, Web3ChainClient]:
    """
    Connect the archive and full node clients configured for the chain. If no full node endpoint is
    configured, the archive endpoint serves both roles.
    """

    try:
        endpoints = settings.rpc[chain]
    except KeyError:
        raise PoolSyncValueError(
            message=f"Chain ID {chain} does not have an RPC defined in the configuration."
        ) from None

    archive_client = await Web3ChainClient.connect(
        endpoint=str(endpoints.archive),
        chain=chain,
        settings=settings.sync,
        optimize=optimize,
    )
    if endpoints.full is None:
        return archive_client, archive_client

    full_client = await Web3ChainClient.connect(
        endpoint=str(endpoints.full),
        chain=chain,
        settings=settings.sync,
        optimize=optimize,
    )
    return archive_client, full_client


__all__ = (
    "Web3ChainClient",
    "decode_call_result",
    "get_web3_client_pair",
)
