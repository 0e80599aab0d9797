"""CLI entry point for wellness-pass."""

import logging
from pathlib import Path

import click

from . import __version__
from .commands import clients, form, init, save, serve, sync
from .commands.base import CliSettings
from .services.roster import CoachSession, Role
from .services.wellness import DEFAULT_COACH_ID


@click.group()
@click.version_option(version=__version__, prog_name="wellness-pass")
@click.option("--offline", is_flag=True, help="Work offline; changes are queued for later sync")
@click.option("--admin", is_flag=True, help="Act as an admin (see every coach's clients)")
@click.option("--coach-id", default=DEFAULT_COACH_ID, show_default=True, help="Coach account id")
@click.option("--coach-name", default="", help="Coach display name")
@click.option(
    "--data-dir",
    type=click.Path(file_okay=False, path_type=Path),
    envvar="WELLNESS_PASS_DATA_DIR",
    help="Directory holding the client store and local cache",
)
@click.option("--verbose", is_flag=True, help="Show info logging")
@click.pass_context
def main(ctx, offline, admin, coach_id, coach_name, data_dir, verbose):
    """wellness-pass: client intake for wellness coaches.

    Fill in a client's wellness pass, save it, and manage saved clients.
    Changes made with --offline are queued and replayed in order the next
    time a command runs online.

    Example usage:

        # Initialize the project
        wellness-pass init

        # Fill in the form
        wellness-pass form page2 name "Ana Pop"
        wellness-pass form set phone 0722000000
        wellness-pass form appointment 1 weight 72.5

        # Save it and list clients
        wellness-pass save
        wellness-pass clients list --view today
    """
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    ctx.obj = CliSettings(
        data_dir=data_dir,
        online=not offline,
        session=CoachSession(
            role=Role.ADMIN if admin else Role.COACH,
            coach_id=coach_id,
            coach_name=coach_name,
        ),
    )


# Register commands
main.add_command(init)
main.add_command(form)
main.add_command(save)
main.add_command(clients)
main.add_command(sync)
main.add_command(serve)


def run():
    """Run the CLI."""
    main()


if __name__ == "__main__":
    run()
