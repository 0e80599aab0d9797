"""Initialize project command."""

import click

from ..db import get_cache_path, get_data_dir, get_db_path, init_cache, init_db
from .base import async_command, echo_info, echo_success, get_settings


@click.command()
@click.pass_context
@async_command
async def init(ctx: click.Context):
    """Initialize the wellness-pass data directory.

    This creates the client document store and the local cache that holds
    the form in progress and any changes made while offline.
    """
    data_dir = get_data_dir(get_settings(ctx).data_dir)

    echo_info(f"Initializing wellness-pass in {data_dir}")

    await init_db(get_db_path(data_dir))
    echo_success("Client store initialized")

    init_cache(get_cache_path(data_dir))
    echo_success("Local cache initialized")

    click.echo()
    click.echo("wellness-pass is ready to use!")
    click.echo()
    click.echo("Next steps:")
    click.echo("  1. Fill in a pass:")
    click.echo("     wellness-pass form edit")
    click.echo()
    click.echo("  2. Save it:")
    click.echo("     wellness-pass save")
