"""Offline queue commands."""

from datetime import datetime

import click

from .base import (
    async_command,
    echo_error,
    echo_info,
    echo_success,
    echo_warning,
    ensure_initialized,
    format_table,
    open_service,
)


@click.group()
@click.pass_context
def sync(ctx):
    """Inspect and replay changes made while offline."""
    ensure_initialized(ctx)


@sync.command()
@click.pass_context
@async_command
async def status(ctx):
    """Show changes waiting to be synced."""
    service = await open_service(ctx, load_roster=False)
    items = service.queue.load()
    if not items:
        echo_info("Nothing waiting to sync")
        return

    rows = []
    for position, item in enumerate(items, start=1):
        queued = datetime.fromtimestamp(item.timestamp / 1000).strftime("%Y-%m-%d %H:%M")
        rows.append([str(position), item.action.value, item.client_id or "(new)", queued])

    click.echo()
    click.echo(format_table(["#", "Action", "Client", "Queued"], rows))
    click.echo()
    click.echo(f"Total: {len(items)} pending change(s)")


@sync.command()
@click.pass_context
@async_command
async def run(ctx):
    """Replay pending changes against the store."""
    service = await open_service(ctx, load_roster=False)
    if not service.is_online:
        echo_error("Cannot sync while offline")
        ctx.exit(1)

    # open_service already replayed; run once more for anything left over
    result = await service.sync()
    remaining = len(service.queue)
    if remaining:
        echo_warning(f"{remaining} change(s) still pending: {result.error or 'sync stopped'}")
        ctx.exit(1)
    echo_success("All changes synced")
