import asyncio

import click

from pool_sync.cache import JsonCacheStore
from pool_sync.chain import Chain
from pool_sync.cli import cli
from pool_sync.cli.cache import CHAIN_NAMES, POOL_TYPE_NAMES
from pool_sync.config import Settings
from pool_sync.connection import get_web3_client_pair
from pool_sync.exceptions import PoolSyncError
from pool_sync.pools.types import PoolType
from pool_sync.sync import PoolSync, SyncResult


@cli.command("sync")
@click.option(
    "--chain",
    "chain_name",
    type=click.Choice(CHAIN_NAMES, case_sensitive=False),
    required=True,
    help="The network to synchronize.",
)
@click.option(
    "--protocol",
    "protocols",
    type=click.Choice(POOL_TYPE_NAMES),
    multiple=True,
    required=True,
    help="A pool type to synchronize. May be repeated.",
)
@click.option(
    "--rate-limit",
    "rate_limit",
    type=click.IntRange(min=1),
    default=None,
    help="The maximum number of concurrent node requests (overrides the configuration).",
)
@click.option(
    "--max-iterations",
    "max_iterations",
    type=click.IntRange(min=1),
    default=None,
    help="Stop with an error if the chain head is not reached after this many iterations.",
)
@click.pass_obj
def sync(
    settings: Settings,
    chain_name: str,
    protocols: tuple[str, ...],
    rate_limit: int | None,
    max_iterations: int | None,
) -> None:
    """
    Discover new pools and refresh cached pool state up to the current chain head.
    """

    chain = Chain.from_name(chain_name)
    pool_types = [PoolType(protocol) for protocol in protocols]

    overrides = {
        key: value
        for key, value in (("rate_limit", rate_limit), ("max_iterations", max_iterations))
        if value is not None
    }
    settings = settings.model_copy(update={"sync": settings.sync.model_copy(update=overrides)})

    async def run_sync() -> SyncResult:
        archive_client, full_client = await get_web3_client_pair(chain=chain, settings=settings)
        try:
            pool_sync = PoolSync(
                pool_types=pool_types,
                chain=chain,
                archive_client=archive_client,
                full_client=full_client,
                cache_store=JsonCacheStore(settings.cache.path),
                settings=settings.sync,
                show_progress=True,
            )
            return await pool_sync.sync_pools()
        finally:
            await archive_client.close()
            if full_client is not archive_client:
                await full_client.close()

    try:
        result = asyncio.run(run_sync())
    except PoolSyncError as exc:
        raise click.ClickException(exc.message) from exc

    for pool_type, snapshot in result.snapshots.items():
        click.echo(f"{pool_type}: {len(snapshot.pools)} pools")
    click.echo(f"Synced {len(result.pools)} pools to block {result.last_synced_block}")
