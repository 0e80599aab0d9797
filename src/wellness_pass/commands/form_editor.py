"""Interactive form editing via questionnaire prompts."""

from enum import Enum

import click
import questionary
from questionary import Style

from ..errors import InvalidFieldError
from ..models.form_state import (
    APPOINTMENT_COUNT,
    APPOINTMENT_FIELDS,
    EVALUATION_FIELDS,
    PAGE2_FIELDS,
    Rating,
)
from ..services.duplicates import DuplicateMatch
from ..services.wellness import WellnessService
from ..utils.dates import format_client_date

# Custom style for prompts
custom_style = Style(
    [
        ("qmark", "fg:#2e7d32 bold"),
        ("question", "bold"),
        ("answer", "fg:#f57c00 bold"),
        ("pointer", "fg:#2e7d32 bold"),
        ("highlighted", "fg:#2e7d32 bold"),
        ("selected", "fg:#cc5454"),
        ("separator", "fg:#cc5454"),
        ("instruction", ""),
        ("text", ""),
    ]
)


class DuplicateChoice(str, Enum):
    OPEN_EXISTING = "open"
    CONTINUE = "continue"
    CANCEL = "cancel"


async def ask_duplicate_choice(duplicate: DuplicateMatch) -> DuplicateChoice:
    """Ask what to do about a possible duplicate client."""
    match = duplicate.match
    click.echo()
    click.echo(click.style(duplicate.describe(), fg="yellow", bold=True))
    click.echo(
        f"  {match.display_name} | Coach: {match.coach or '-'} | "
        f"Date: {format_client_date(match.date) or '-'}"
    )
    choice = await questionary.select(
        "How do you want to continue?",
        choices=[
            questionary.Choice("Open existing client", DuplicateChoice.OPEN_EXISTING),
            questionary.Choice("Continue anyway", DuplicateChoice.CONTINUE),
            questionary.Choice("Cancel", DuplicateChoice.CANCEL),
        ],
        style=custom_style,
    ).ask_async()
    return choice or DuplicateChoice.CANCEL


class InteractiveFormEditor:
    """Menu-driven editor for the current pass.

    Undo and redo work for the length of the editing session.
    """

    def __init__(self, service: WellnessService):
        self.service = service

    async def run(self) -> bool:
        """Edit until the user saves or quits.

        Returns:
            True if the user asked to save
        """
        actions = {
            "contact": self._edit_contact,
            "page2": self._edit_page2,
            "appointment": self._edit_appointment,
            "rating": self._edit_rating,
            "today": self._set_today,
        }
        while True:
            history = self.service.history
            action = await questionary.select(
                "What would you like to do?",
                choices=[
                    questionary.Choice("Edit phone / email", "contact"),
                    questionary.Choice("Edit client header (name, coach, date, age)", "page2"),
                    questionary.Choice("Enter appointment measurements", "appointment"),
                    questionary.Choice("Set an evaluation rating", "rating"),
                    questionary.Choice("Set date to today", "today"),
                    questionary.Choice("Undo", "undo", disabled=None if history.can_undo else "nothing to undo"),
                    questionary.Choice("Redo", "redo", disabled=None if history.can_redo else "nothing to redo"),
                    questionary.Choice("Clear form", "clear"),
                    questionary.Choice("Save and exit", "save"),
                    questionary.Choice("Exit", "quit"),
                ],
                style=custom_style,
            ).ask_async()

            if action in (None, "quit"):
                return False
            if action == "save":
                return True
            if action == "undo":
                self.service.undo()
            elif action == "redo":
                self.service.redo()
            elif action == "clear":
                self.service.clear()
            else:
                try:
                    await actions[action]()
                except InvalidFieldError as e:
                    click.echo(click.style(str(e), fg="red"))

    async def _edit_contact(self) -> None:
        form = self.service.form
        phone = await questionary.text("Phone:", default=form.phone, style=custom_style).ask_async()
        if phone is not None:
            self.service.update_contact("phone", phone.strip())
        email = await questionary.text("Email:", default=form.email, style=custom_style).ask_async()
        if email is not None:
            self.service.update_contact("email", email.strip())

    async def _edit_page2(self) -> None:
        for key in PAGE2_FIELDS:
            current = getattr(self.service.form.page2_data, key)
            value = await questionary.text(
                f"{key.capitalize()}:", default=current, style=custom_style
            ).ask_async()
            if value is None:
                return
            self.service.update_page2(key, value.strip())

    async def _edit_appointment(self) -> None:
        number = await questionary.text(
            f"Appointment number (1-{APPOINTMENT_COUNT}):",
            validate=lambda text: text.isdigit() and 1 <= int(text) <= APPOINTMENT_COUNT,
            style=custom_style,
        ).ask_async()
        if number is None:
            return
        index = int(number) - 1
        for key, attr in APPOINTMENT_FIELDS.items():
            current = getattr(self.service.form.appointments[index], attr)
            value = await questionary.text(
                f"{key}:", default=current, style=custom_style
            ).ask_async()
            if value is None:
                return
            self.service.update_appointment(index, key, value.strip())

    async def _edit_rating(self) -> None:
        key = await questionary.select(
            "Which evaluation?", choices=list(EVALUATION_FIELDS), style=custom_style
        ).ask_async()
        if key is None:
            return
        rating = await questionary.select(
            "Rating:",
            choices=[questionary.Choice(r.value.capitalize(), r.value) for r in Rating]
            + [questionary.Choice("(none)", "")],
            style=custom_style,
        ).ask_async()
        if rating is not None:
            self.service.update_evaluation(key, rating)

    async def _set_today(self) -> None:
        self.service.set_today_date()
