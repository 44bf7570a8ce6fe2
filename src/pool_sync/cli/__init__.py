from pathlib import Path

import click

from pool_sync.config import CONFIG_FILE, get_settings
from pool_sync.version import __version__


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=CONFIG_FILE,
    show_default=True,
    help="The configuration file to use.",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Path) -> None:
    ctx.obj = get_settings(config_path)


from . import cache, config, sync  # noqa: F401, E402
