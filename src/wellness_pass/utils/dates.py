"""Date helpers for the DD-Month-YYYY format used on passes."""

import calendar
import re
from datetime import date, datetime, time, timedelta

CLIENT_DATE_PATTERN = re.compile(r"^(\d{2})-([A-Za-z]+)-(\d{4})$")

MONTHS = {name.lower(): index for index, name in enumerate(calendar.month_name) if name}


def to_title_case(value: str) -> str:
    """Capitalize each space-separated word."""
    return " ".join(part[0].upper() + part[1:] for part in value.lower().split(" ") if part)


def format_date_to_display(value: date) -> str:
    """Format a date as DD-Month-YYYY, e.g. 07-March-2026."""
    return f"{value.day:02d}-{calendar.month_name[value.month]}-{value.year}"


def parse_client_date(value: str | None) -> date | None:
    """Parse a DD-Month-YYYY string. Anything else gives None."""
    if not value:
        return None
    match = CLIENT_DATE_PATTERN.match(str(value).strip())
    if not match:
        return None
    day, month_name, year = match.groups()
    month = MONTHS.get(month_name.lower())
    if month is None:
        return None
    try:
        return date(int(year), month, int(day))
    except ValueError:
        return None


def format_client_date(value: str | None) -> str:
    """Normalize the month capitalization of a stored date."""
    if not value:
        return ""
    trimmed = str(value).strip()
    match = CLIENT_DATE_PATTERN.match(trimmed)
    if not match:
        return trimmed
    day, month, year = match.groups()
    return f"{day}-{to_title_case(month)}-{year}"


def week_range(value: date) -> tuple[datetime, datetime]:
    """Monday 00:00 to Sunday 23:59:59.999999 of the week containing ``value``."""
    start = value - timedelta(days=value.weekday())
    end = start + timedelta(days=6)
    return datetime.combine(start, time.min), datetime.combine(end, time.max)
