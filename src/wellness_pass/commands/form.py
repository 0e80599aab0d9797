"""Form editing commands."""

import click

from ..errors import ClientNotFoundError, InvalidFieldError, WellnessError
from ..models.form_state import (
    APPOINTMENT_COUNT,
    APPOINTMENT_FIELDS,
    CONTACT_FIELDS,
    EVALUATION_FIELDS,
    PAGE2_FIELDS,
    FormState,
    Rating,
)
from ..services.wellness import WellnessService
from .base import (
    async_command,
    echo_error,
    echo_info,
    echo_success,
    ensure_initialized,
    format_table,
    open_service,
)
from .form_editor import InteractiveFormEditor
from .save import run_save


def print_form(form: FormState, show_all: bool = False) -> None:
    """Print the form in a readable layout."""
    page2 = form.page2_data
    click.echo()
    click.echo(click.style(f"Client: {page2.name or '(no name)'}", bold=True))
    click.echo("=" * 50)
    click.echo(f"Client ID: {form.client_id or '(new, unsaved)'}")
    click.echo(f"Coach: {page2.coach or '-'}")
    click.echo(f"Date: {page2.date or '-'}")
    click.echo(f"Age: {page2.age or '-'}")
    click.echo(f"Phone: {form.phone or '-'}")
    click.echo(f"Email: {form.email or '-'}")

    click.echo()
    click.echo(click.style("Evaluation:", bold=True))
    for key, value in form.evaluation.to_dict().items():
        click.echo(f"  {key}: {value.capitalize() if value else '-'}")

    headers = ["#", *APPOINTMENT_FIELDS]
    rows = []
    for number, appointment in enumerate(form.appointments, start=1):
        if appointment.is_blank and not show_all:
            continue
        rows.append([str(number), *(v or "-" for v in appointment.to_dict().values())])

    click.echo()
    click.echo(click.style("Appointments:", bold=True))
    if rows:
        click.echo(format_table(headers, rows))
    else:
        click.echo("  (none recorded)")


def _apply(service: WellnessService, change) -> None:
    try:
        changed = change()
    except InvalidFieldError as e:
        echo_error(str(e))
        raise click.exceptions.Exit(1)
    if changed:
        echo_success("Form updated")
    else:
        echo_info("No change")


@click.group()
@click.pass_context
def form(ctx):
    """View and edit the pass being filled in.

    The form is kept in the local cache between runs.
    """
    ensure_initialized(ctx)


@form.command()
@click.option("--all", "show_all", is_flag=True, help="Show blank appointments too")
@click.pass_context
@async_command
async def show(ctx, show_all: bool):
    """Show the current form."""
    service = await open_service(ctx, load_roster=False)
    print_form(service.form, show_all=show_all)


@form.command(name="set")
@click.argument("field", type=click.Choice(CONTACT_FIELDS))
@click.argument("value")
@click.pass_context
@async_command
async def set_contact(ctx, field: str, value: str):
    """Set the client's phone or email."""
    service = await open_service(ctx, load_roster=False)
    _apply(service, lambda: service.update_contact(field, value.strip()))


@form.command()
@click.argument("field", type=click.Choice(PAGE2_FIELDS))
@click.argument("value")
@click.pass_context
@async_command
async def page2(ctx, field: str, value: str):
    """Set a header field (date, name, coach, age)."""
    service = await open_service(ctx, load_roster=False)
    _apply(service, lambda: service.update_page2(field, value.strip()))


@form.command()
@click.argument("number", type=click.IntRange(1, APPOINTMENT_COUNT))
@click.argument("field", type=click.Choice(list(APPOINTMENT_FIELDS)))
@click.argument("value")
@click.pass_context
@async_command
async def appointment(ctx, number: int, field: str, value: str):
    """Record one measurement for appointment NUMBER (1-26)."""
    service = await open_service(ctx, load_roster=False)
    _apply(service, lambda: service.update_appointment(number - 1, field, value.strip()))


@form.command()
@click.argument("field", type=click.Choice(list(EVALUATION_FIELDS)))
@click.argument("rating", type=click.Choice([r.value for r in Rating] + ["none"]))
@click.pass_context
@async_command
async def rate(ctx, field: str, rating: str):
    """Set an evaluation rating ("none" clears it)."""
    service = await open_service(ctx, load_roster=False)
    value = "" if rating == "none" else rating
    _apply(service, lambda: service.update_evaluation(field, value))


@form.command()
@click.pass_context
@async_command
async def today(ctx):
    """Set the pass date to today."""
    service = await open_service(ctx, load_roster=False)
    _apply(service, service.set_today_date)


@form.command()
@click.pass_context
@async_command
async def clear(ctx):
    """Start a blank form (the coach is kept)."""
    service = await open_service(ctx, load_roster=False)
    _apply(service, service.clear)


@form.command(name="open")
@click.argument("client_id")
@click.pass_context
@async_command
async def open_client(ctx, client_id: str):
    """Load an existing client into the form."""
    service = await open_service(ctx)
    try:
        loaded = service.open_client_in_form(client_id)
    except ClientNotFoundError:
        echo_error(f"Client {client_id} not found")
        ctx.exit(1)
    except WellnessError as e:
        echo_error(str(e))
        ctx.exit(1)
    echo_success(f"Opened {loaded.page2_data.name or client_id}")


@form.command()
@click.pass_context
@async_command
async def edit(ctx):
    """Edit the form interactively (with undo/redo)."""
    service = await open_service(ctx)
    print_form(service.form)
    click.echo()
    wants_save = await InteractiveFormEditor(service).run()
    if wants_save:
        await run_save(ctx, service, force=False, on_duplicate="ask")
