"""Shared CLI utilities."""

import asyncio
from dataclasses import dataclass
from functools import wraps
from pathlib import Path

import click

from ..db import get_db_path
from ..services.roster import CoachSession
from ..services.wellness import AppContext, WellnessService


@dataclass
class CliSettings:
    """Global options shared by every command."""

    data_dir: Path | None = None
    online: bool = True
    session: CoachSession | None = None


def async_command(f):
    """Decorator to run async Click commands."""

    @wraps(f)
    def wrapper(*args, **kwargs):
        return asyncio.run(f(*args, **kwargs))

    return wrapper


def get_settings(ctx: click.Context) -> CliSettings:
    """Get the global options stored by the main group."""
    obj = ctx.find_object(CliSettings)
    return obj if obj is not None else CliSettings()


def ensure_initialized(ctx: click.Context) -> None:
    """Ensure the database is initialized."""
    db_path = get_db_path(get_settings(ctx).data_dir)
    if not db_path.exists():
        click.echo(
            click.style("Error: ", fg="red")
            + "Project not initialized. Run 'wellness-pass init' first."
        )
        ctx.exit(1)


async def open_service(ctx: click.Context, load_roster: bool = True) -> WellnessService:
    """Build the service for this invocation.

    Pending offline changes are replayed first when online, and the roster
    is refreshed from the store.
    """
    settings = get_settings(ctx)
    context = AppContext.create(
        data_dir=settings.data_dir,
        online=settings.online,
        session=settings.session,
    )
    service = WellnessService(context)
    result = await service.start()
    if result is not None and result.applied:
        echo_info(f"Synced {result.applied} offline change(s)")
    if load_roster and service.is_online:
        await service.load_clients()
    return service


def echo_success(message: str) -> None:
    """Print a success message."""
    click.echo(click.style("[OK] ", fg="green") + message)


def echo_error(message: str) -> None:
    """Print an error message."""
    click.echo(click.style("[ERROR] ", fg="red") + message)


def echo_info(message: str) -> None:
    """Print an info message."""
    click.echo(click.style("[INFO] ", fg="blue") + message)


def echo_warning(message: str) -> None:
    """Print a warning message."""
    click.echo(click.style("[WARN] ", fg="yellow") + message)


def format_table(headers: list[str], rows: list[list[str]], padding: int = 2) -> str:
    """Format data as a simple table."""
    if not rows:
        return ""

    # Calculate column widths
    widths = [len(h) for h in headers]
    for row in rows:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(str(cell)))

    lines = []
    lines.append("".join(h.ljust(widths[i] + padding) for i, h in enumerate(headers)))
    lines.append("".join("-" * w + " " * padding for w in widths))
    for row in rows:
        lines.append("".join(str(cell).ljust(widths[i] + padding) for i, cell in enumerate(row)))

    return "\n".join(line.rstrip() for line in lines)
