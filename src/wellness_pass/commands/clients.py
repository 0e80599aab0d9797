"""Client management commands."""

from datetime import date, datetime

import click

from ..errors import (
    ActionNotAllowedError,
    ClientNotFoundError,
    OfflineOperationError,
    StoreError,
)
from ..models.client import ClientRecord
from ..services.client_listing import (
    ClientSort,
    ClientsView,
    filter_clients,
    group_by_coach,
    latest_appointment,
)
from ..services.wellness import RETENTION_DAYS
from ..utils.dates import format_client_date
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


def _client_rows(clients: list[ClientRecord]) -> list[list[str]]:
    rows = []
    for client in clients:
        name = client.display_name
        if client.pending:
            name += " (pending sync)"
        rows.append([
            client.id,
            name[:30] + "..." if len(name) > 30 else name,
            client.phone or "-",
            client.email or "-",
            client.coach or "-",
            format_client_date(client.date) or "-",
        ])
    return rows


HEADERS = ["ID", "Name", "Phone", "Email", "Coach", "Date"]


@click.group()
@click.pass_context
def clients(ctx):
    """Manage saved clients.

    Commands for listing, deleting and restoring clients, and for
    emptying the recycle bin.
    """
    ensure_initialized(ctx)


@clients.command(name="list")
@click.option(
    "--view",
    "-v",
    type=click.Choice([v.value for v in ClientsView]),
    default=ClientsView.ALL.value,
    show_default=True,
)
@click.option(
    "--sort",
    "-s",
    type=click.Choice([s.value for s in ClientSort]),
    default=ClientSort.UPDATED_AT_DESC.value,
    show_default=True,
)
@click.option("--search", "-q", default="", help="Filter by phone, email, name, coach or rating")
@click.option(
    "--date",
    "on_date",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    help="Day shown by --view byDate (YYYY-MM-DD)",
)
@click.pass_context
@async_command
async def list_clients(ctx, view: str, sort: str, search: str, on_date: datetime | None):
    """List clients."""
    service = await open_service(ctx)
    view_ = ClientsView(view)
    source = (
        service.deleted_clients()
        if view_ == ClientsView.RECYCLE_BIN
        else service.visible_clients()
    )
    selected: date | None = on_date.date() if on_date else None
    listed = filter_clients(
        source, view=view_, search=search, sort=ClientSort(sort), selected_date=selected
    )

    if not listed:
        echo_info("No clients found.")
        return

    click.echo()
    if view_ == ClientsView.BY_COACH:
        for coach, coach_clients in group_by_coach(listed).items():
            click.echo(click.style(coach, bold=True))
            click.echo(format_table(HEADERS, _client_rows(coach_clients)))
            click.echo()
    else:
        click.echo(format_table(HEADERS, _client_rows(listed)))
        click.echo()
    click.echo(f"Total: {len(listed)} client(s)")
    if not service.is_online:
        echo_warning("Offline: showing the last synced roster")


@clients.command()
@click.argument("client_id")
@click.pass_context
@async_command
async def show(ctx, client_id: str):
    """Show details of a client."""
    service = await open_service(ctx)
    client = service.roster.get(client_id)
    if client is None or not service.session.can_access(client):
        echo_error(f"Client {client_id} not found")
        ctx.exit(1)

    click.echo()
    click.echo("=" * 60)
    click.echo(f"Client: {client.display_name} (ID: {client.id})")
    click.echo("=" * 60)
    click.echo(f"Phone: {client.phone or '-'}")
    click.echo(f"Email: {client.email or '-'}")
    click.echo(f"Coach: {client.coach or '-'}")
    click.echo(f"Date: {format_client_date(client.date) or '-'}")
    if client.is_deleted:
        click.echo(click.style("In recycle bin", fg="yellow"))

    click.echo()
    click.echo("Evaluation:")
    for key, value in client.evaluation.to_dict().items():
        click.echo(f"  {key}: {value.capitalize() if value else '-'}")

    latest = latest_appointment(client.appointments)
    click.echo()
    click.echo("Latest appointment:")
    if latest is None:
        click.echo("  (none recorded)")
    else:
        for key, value in latest.to_dict().items():
            if value:
                click.echo(f"  {key}: {value}")


async def _run_client_action(ctx, action, success: str) -> None:
    try:
        await action()
    except ClientNotFoundError as e:
        echo_error(str(e))
        ctx.exit(1)
    except (ActionNotAllowedError, OfflineOperationError) as e:
        echo_error(str(e))
        ctx.exit(1)
    except StoreError as e:
        echo_error(f"Store error: {e}")
        ctx.exit(1)
    echo_success(success)


@clients.command()
@click.argument("client_id")
@click.option("--force", "-f", is_flag=True, help="Skip confirmation")
@click.pass_context
@async_command
async def delete(ctx, client_id: str, force: bool):
    """Move a client to the recycle bin."""
    service = await open_service(ctx)
    client = service.roster.get(client_id)
    if client is not None and not force:
        click.echo(f"Client: {client.display_name}")
        if not click.confirm("Move this client to the recycle bin?"):
            echo_info("Cancelled")
            return
    suffix = "" if service.is_online else " (offline)"
    await _run_client_action(
        ctx, lambda: service.delete_client(client_id), f"Client deleted{suffix}."
    )


@clients.command()
@click.argument("client_id")
@click.pass_context
@async_command
async def restore(ctx, client_id: str):
    """Restore a client from the recycle bin."""
    service = await open_service(ctx)
    suffix = "" if service.is_online else " (offline)"
    await _run_client_action(
        ctx, lambda: service.restore_client(client_id), f"Client restored{suffix}."
    )


@clients.command(name="restore-all")
@click.pass_context
@async_command
async def restore_all(ctx):
    """Restore every client in the recycle bin."""
    service = await open_service(ctx)
    try:
        count = await service.restore_all_deleted()
    except StoreError as e:
        echo_error(f"Store error: {e}")
        ctx.exit(1)
    if not count:
        echo_info("Recycle bin is empty")
        return
    echo_success(f"{count} client(s) restored")


@clients.command(name="undo-delete")
@click.pass_context
@async_command
async def undo_delete(ctx):
    """Undo the last delete (within 5 minutes)."""
    service = await open_service(ctx)
    try:
        client = await service.undo_delete()
    except StoreError as e:
        echo_error(f"Store error: {e}")
        ctx.exit(1)
    if client is None:
        echo_info("Nothing to undo")
        return
    echo_success(f"Delete undone: {client.display_name}")


@clients.command(name="empty-bin")
@click.option("--force", "-f", is_flag=True, help="Skip confirmation")
@click.pass_context
@async_command
async def empty_bin(ctx, force: bool):
    """Permanently delete everything in the recycle bin."""
    service = await open_service(ctx)
    deleted = service.deleted_clients()
    if not deleted:
        echo_info("Recycle bin is empty")
        return
    if not force and not click.confirm(
        f"Permanently delete {len(deleted)} client(s)? This cannot be undone"
    ):
        echo_info("Cancelled")
        return
    try:
        count = await service.empty_recycle_bin()
    except OfflineOperationError as e:
        echo_error(str(e))
        ctx.exit(1)
    except StoreError as e:
        echo_error(f"Store error: {e}")
        ctx.exit(1)
    echo_success(f"Recycle bin emptied ({count} client(s))")


@clients.command()
@click.option(
    "--days",
    type=int,
    default=RETENTION_DAYS,
    show_default=True,
    help="Keep clients deleted within this many days",
)
@click.pass_context
@async_command
async def purge(ctx, days: int):
    """Permanently delete clients that sat in the recycle bin too long."""
    service = await open_service(ctx, load_roster=False)
    try:
        count = await service.purge_expired_deletions(retention_days=days)
    except (OfflineOperationError, ActionNotAllowedError) as e:
        echo_error(str(e))
        ctx.exit(1)
    echo_success(f"Purged {count} client(s) deleted more than {days} day(s) ago")
