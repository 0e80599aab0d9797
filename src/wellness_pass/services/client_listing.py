"""Filtering, searching and sorting of the client roster."""

from collections.abc import Iterable
from datetime import date, datetime, timezone
from enum import Enum

from ..models.client import ClientRecord
from ..models.form_state import Appointment
from ..utils.dates import parse_client_date, week_range


class ClientsView(str, Enum):
    ALL = "all"
    TODAY = "today"
    THIS_WEEK = "thisWeek"
    THIS_MONTH = "thisMonth"
    BY_DATE = "byDate"
    BY_COACH = "byCoach"
    RECYCLE_BIN = "recycleBin"


class ClientSort(str, Enum):
    UPDATED_AT_DESC = "updatedAtDesc"
    NAME_ASC = "nameAsc"
    NAME_DESC = "nameDesc"
    DATE_ASC = "dateAsc"
    DATE_DESC = "dateDesc"
    COACH_ASC = "coachAsc"


_EPOCH = datetime.fromtimestamp(0, tz=timezone.utc)


def _in_view(client: ClientRecord, view: ClientsView, today: date, selected: date | None) -> bool:
    if view in (ClientsView.ALL, ClientsView.BY_COACH, ClientsView.RECYCLE_BIN):
        return True
    parsed = parse_client_date(client.date)
    if parsed is None:
        return False
    if view == ClientsView.TODAY:
        return parsed == today
    if view == ClientsView.THIS_WEEK:
        start, end = week_range(today)
        return start.date() <= parsed <= end.date()
    if view == ClientsView.THIS_MONTH:
        return (parsed.year, parsed.month) == (today.year, today.month)
    if view == ClientsView.BY_DATE:
        return selected is not None and parsed == selected
    return True


def matches_search(client: ClientRecord, query: str) -> bool:
    """Case-insensitive substring search over the listed fields."""
    needle = query.strip().lower()
    if not needle:
        return True
    haystack = [
        client.phone,
        client.email,
        client.client_name,
        client.coach,
        client.date,
        *client.evaluation.to_dict().values(),
    ]
    return any(needle in value.lower() for value in haystack if value)


def _sort_by_date(clients: list[ClientRecord], descending: bool) -> list[ClientRecord]:
    dated = [c for c in clients if parse_client_date(c.date) is not None]
    undated = [c for c in clients if parse_client_date(c.date) is None]
    dated.sort(key=lambda c: parse_client_date(c.date), reverse=descending)
    return dated + undated


def sort_clients(clients: Iterable[ClientRecord], sort: ClientSort) -> list[ClientRecord]:
    """Sort clients. Clients without a parseable date go last in date sorts."""
    items = list(clients)
    if sort == ClientSort.NAME_ASC:
        return sorted(items, key=lambda c: c.client_name.lower())
    if sort == ClientSort.NAME_DESC:
        return sorted(items, key=lambda c: c.client_name.lower(), reverse=True)
    if sort == ClientSort.DATE_ASC:
        return _sort_by_date(items, descending=False)
    if sort == ClientSort.DATE_DESC:
        return _sort_by_date(items, descending=True)
    if sort == ClientSort.COACH_ASC:
        return sorted(items, key=lambda c: c.coach.lower())
    return sorted(items, key=lambda c: c.updated_at or _EPOCH, reverse=True)


def filter_clients(
    clients: Iterable[ClientRecord],
    view: ClientsView = ClientsView.ALL,
    search: str = "",
    sort: ClientSort = ClientSort.UPDATED_AT_DESC,
    selected_date: date | None = None,
    today: date | None = None,
) -> list[ClientRecord]:
    """Apply a view, a search query and a sort order.

    Args:
        clients: Clients already scoped to the session (active ones, or the
            recycle bin for ``ClientsView.RECYCLE_BIN``)
        view: Which date window to show
        search: Free-text query
        sort: Sort order
        selected_date: Day shown by ``ClientsView.BY_DATE``
        today: Reference day, defaults to the current date

    Returns:
        The matching clients in display order
    """
    today = today or date.today()
    visible = [c for c in clients if _in_view(c, view, today, selected_date)]
    visible = [c for c in visible if matches_search(c, search)]
    return sort_clients(visible, sort)


def group_by_coach(clients: Iterable[ClientRecord]) -> dict[str, list[ClientRecord]]:
    """Group clients under their coach name, coaches in alphabetical order."""
    groups: dict[str, list[ClientRecord]] = {}
    for client in clients:
        groups.setdefault(client.coach.strip() or "Unassigned", []).append(client)
    return {coach: groups[coach] for coach in sorted(groups, key=str.lower)}


def latest_appointment(appointments: Iterable[Appointment]) -> Appointment | None:
    """The last appointment with any measurement filled in."""
    for appointment in reversed(list(appointments)):
        if not appointment.is_blank:
            return appointment
    return None
