import click

from pool_sync.cache import JsonCacheStore
from pool_sync.chain import Chain
from pool_sync.cli import cli
from pool_sync.config import Settings
from pool_sync.exceptions import CacheError
from pool_sync.pools.types import PoolType

CHAIN_NAMES = [chain.name.lower() for chain in Chain]
POOL_TYPE_NAMES = [pool_type.value for pool_type in PoolType]


@cli.group()
def cache() -> None:
    """
    Pool cache commands
    """


@cache.command("show")
@click.pass_obj
def cache_show(settings: Settings) -> None:
    """
    Show the pool count and last synced block for each cached pool type.
    """

    store = JsonCacheStore(settings.cache.path)
    snapshots = store.list_snapshots()
    if not snapshots:
        click.echo(f"No pool caches found at {store.path}.")
        return

    for chain, pool_type in snapshots:
        try:
            snapshot = store.load(pool_type=pool_type, chain=chain)
        except CacheError as exc:
            click.echo(f"{chain.name.lower()} {pool_type}: {exc.message}")
            continue
        click.echo(
            f"{chain.name.lower()} {pool_type}: {len(snapshot.pools)} pools, "
            f"synced to block {snapshot.last_synced_block}"
        )


@cache.command("reset")
@click.option(
    "--chain",
    "chain_name",
    type=click.Choice(CHAIN_NAMES, case_sensitive=False),
    required=True,
    help="The network of the cache to remove.",
)
@click.option(
    "--protocol",
    "protocols",
    type=click.Choice(POOL_TYPE_NAMES),
    multiple=True,
    help="The pool type of the cache to remove. May be repeated. Removes all if omitted.",
)
@click.option(
    "--force",
    is_flag=True,
    default=False,
    help="Skip confirmation prompt",
)
@click.pass_obj
def cache_reset(
    settings: Settings,
    chain_name: str,
    protocols: tuple[str, ...],
    *,
    force: bool,
) -> None:
    """
    Remove cached pools so the next sync starts from the factory deployment.
    """

    chain = Chain.from_name(chain_name)
    pool_types = [PoolType(protocol) for protocol in protocols] or list(PoolType)
    store = JsonCacheStore(settings.cache.path)

    if force or click.confirm(
        f"The {chain.name.lower()} caches for {', '.join(pool_types)} will be removed. "
        "Do you want to proceed?",
        default=False,
    ):
        for pool_type in pool_types:
            try:
                removed = store.remove(pool_type=pool_type, chain=chain)
            except CacheError as exc:
                raise click.ClickException(exc.message) from exc
            if removed:
                click.echo(f"Removed the {chain.name.lower()} {pool_type} cache.")
    else:
        raise click.Abort
