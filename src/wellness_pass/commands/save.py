"""Save command."""

import click

from ..errors import OfflineOperationError, StoreError
from ..services.wellness import SaveStatus, WellnessService
from .base import (
    async_command,
    echo_error,
    echo_info,
    echo_success,
    echo_warning,
    ensure_initialized,
    open_service,
)
from .form_editor import DuplicateChoice, ask_duplicate_choice


async def run_save(
    ctx: click.Context, service: WellnessService, force: bool, on_duplicate: str
) -> None:
    """Save the form, resolving a possible duplicate."""
    try:
        result = await service.save(skip_duplicate_check=force)
    except OfflineOperationError as e:
        echo_error(str(e))
        ctx.exit(1)
    except StoreError as e:
        echo_error(f"Failed to save client: {e}")
        ctx.exit(1)

    if result.status == SaveStatus.DUPLICATE:
        if on_duplicate == "ask":
            choice = await ask_duplicate_choice(result.duplicate)
        else:
            echo_warning(result.message)
            choice = DuplicateChoice(on_duplicate)

        if choice == DuplicateChoice.OPEN_EXISTING:
            try:
                service.open_client_in_form(result.duplicate.match.id)
            except OfflineOperationError as e:
                echo_error(f"{e}; it can be opened once it syncs")
                ctx.exit(1)
            echo_info(f"Opened existing client {result.duplicate.match.display_name}")
            return
        if choice == DuplicateChoice.CANCEL:
            echo_info("Cancelled")
            return
        try:
            result = await service.save(skip_duplicate_check=True)
        except StoreError as e:
            echo_error(f"Failed to save client: {e}")
            ctx.exit(1)

    if result.status == SaveStatus.QUEUED:
        echo_warning(result.message)
    else:
        echo_success(f"{result.message} (ID: {result.client_id})")


@click.command()
@click.option("--force", "-f", is_flag=True, help="Skip the duplicate check")
@click.option(
    "--on-duplicate",
    type=click.Choice(["ask", "open", "continue", "cancel"]),
    default="ask",
    show_default=True,
    help="What to do when the client looks like a duplicate",
)
@click.pass_context
@async_command
async def save(ctx, force: bool, on_duplicate: str):
    """Save the current form as a client.

    New clients are checked against existing ones by phone, email and,
    when neither is given, by name. While offline the save is queued and
    synced on the next online run.
    """
    ensure_initialized(ctx)
    service = await open_service(ctx)
    await run_save(ctx, service, force=force, on_duplicate=on_duplicate)
