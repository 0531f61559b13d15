"""
Pure date arithmetic shared by the week generator, slot overlap checks and
roadmap labels.

All ranges are half-open: ``[start, end)``.
"""

import re
from datetime import date, datetime, timedelta
from typing import Optional, Union

from stagebook.core.exceptions import InvalidRange

_ISO_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_FR_RE = re.compile(r"^(\d{2})/(\d{2})/(\d{4})$")

_MONTHS_FR = (
    "janvier", "février", "mars", "avril", "mai", "juin",
    "juillet", "août", "septembre", "octobre", "novembre", "décembre",
)

EMPTY_LABEL = "—"


def parse_date(value: Union[str, date]) -> date:
    """
    Parse ``YYYY-MM-DD`` or ``DD/MM/YYYY`` into a date.

    Raises InvalidRange for blank input, unknown formats and impossible days.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    raw = str(value or "").strip()
    match = _FR_RE.match(raw)
    if match:
        day, month, year = match.groups()
        raw = f"{year}-{month}-{day}"
    if not _ISO_RE.match(raw):
        raise InvalidRange(
            "Dates invalides : format attendu YYYY-MM-DD ou DD/MM/YYYY.",
            details={"value": str(value)},
        )
    try:
        return date.fromisoformat(raw)
    except ValueError:
        raise InvalidRange(
            "Dates invalides : ce jour n'existe pas.",
            details={"value": str(value)},
        ) from None


def add_days(day: date, days: int) -> date:
    return day + timedelta(days=days)


def to_sunday(day: date) -> date:
    """Preceding-or-same Sunday."""
    # date.weekday(): Monday=0 .. Sunday=6
    return day - timedelta(days=(day.weekday() + 1) % 7)


def to_next_sunday(day: date) -> date:
    """Following-or-same Sunday."""
    return day + timedelta(days=(6 - day.weekday()) % 7)


def is_sunday(day: date) -> bool:
    return day.weekday() == 6


def ranges_overlap(start_a: date, end_a: date, start_b: date, end_b: date) -> bool:
    return start_a < end_b and start_b < end_a


def format_iso(day: date) -> str:
    return day.isoformat()


def format_localized(day: Optional[date]) -> str:
    """French long form, e.g. ``05 janvier 2025``."""
    if day is None:
        return EMPTY_LABEL
    return f"{day.day:02d} {_MONTHS_FR[day.month - 1]} {day.year}"


def format_range(start: date, end: date) -> str:
    return f"{format_iso(start)} → {format_iso(end)}"
