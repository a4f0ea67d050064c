"""
Calendar helpers working on the planner's DD.MM.YYYY date notation.

Weekday tokens are fixed German abbreviations, independent of the locale.
"""

from datetime import date, timedelta
from typing import List

WEEKDAY_ABBREVIATIONS = ["Mo", "Di", "Mi", "Do", "Fr", "Sa", "So"]


def parse_date(value: str) -> date:
    """Parse a "DD.MM.YYYY" string.

    Raises:
        ValueError: If the string is not in day.month.year form
    """
    parts = str(value).strip().split(".")
    if len(parts) != 3 or not all(p.strip().isdigit() for p in parts):
        raise ValueError(f"Expected a date in DD.MM.YYYY format, got: {value!r}")
    day, month, year = (int(p) for p in parts)
    return date(year, month, day)


def format_date(value: date) -> str:
    """Format a date as "DD.MM.YYYY"."""
    return f"{value.day:02d}.{value.month:02d}.{value.year:04d}"


def as_date(value: date | str) -> date:
    """Accept either a date or its DD.MM.YYYY text form."""
    if isinstance(value, date):
        return value
    return parse_date(value)


def add_days(value: date, days: int) -> date:
    return value + timedelta(days=days)


def previous_day(value: date | str) -> date:
    return add_days(as_date(value), -1)


def weekday_abbreviation(value: date | str) -> str:
    """German two-letter weekday token used in staff work-day lists."""
    return WEEKDAY_ABBREVIATIONS[as_date(value).weekday()]


def monday_of(value: date | str) -> date:
    """Monday of the week containing the date (Sunday belongs to the week before)."""
    day = as_date(value)
    return day - timedelta(days=day.weekday())


def week_dates(value: date | str) -> List[date]:
    """The seven consecutive dates of the week, starting Monday."""
    monday = monday_of(value)
    return [monday + timedelta(days=k) for k in range(7)]


def time_to_minutes(value: str) -> int:
    """Convert "HH:MM" to minutes after midnight.

    A "+1" suffix (e.g. "07:00+1") denotes the following day.
    """
    text = value.strip()
    offset = 0
    if text.endswith("+1"):
        text = text[:-2]
        offset = 24 * 60
    hours, _, minutes = text.partition(":")
    return int(hours) * 60 + int(minutes or 0) + offset
