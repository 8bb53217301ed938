"""
Conversions between wall-clock ``HH:MM`` strings and minutes since midnight.

Every interval computation in the engine runs on integer minutes; strings only
exist at the edges (input schema, storage, display).

Days use a single convention throughout: 0 = Sunday ... 6 = Saturday.
"""

import re
from datetime import datetime

MINUTES_PER_DAY = 24 * 60

DAYS_IN_WEEK = 7

TIME_PATTERN = r"^([01]\d|2[0-3]):([0-5]\d)$"

DAY_NAMES = [
    "Sunday",
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
]


def time_to_minutes(value: str) -> int:
    """Convert a well-formed ``HH:MM`` string to minutes since midnight."""
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def is_valid_time(value: str) -> bool:
    """Check a string against the 24-hour ``HH:MM`` pattern."""
    return isinstance(value, str) and re.fullmatch(TIME_PATTERN, value) is not None


def minutes_to_time(minutes: int) -> str:
    """Convert minutes since midnight back to a zero-padded ``HH:MM`` string."""
    hours, mins = divmod(minutes, 60)
    return f"{hours:02d}:{mins:02d}"


def day_name(day_of_week: int) -> str:
    """Return the English name for a day index, or ``Unknown``."""
    if 0 <= day_of_week < DAYS_IN_WEEK:
        return DAY_NAMES[day_of_week]
    return "Unknown"


def parse_day(value: str) -> int:
    """
    Resolve a day given as index, full name or three-letter abbreviation.

    Raises:
        ValueError: If the value names no day.
    """
    text = value.strip().lower()

    if text.isdigit():
        day = int(text)
        if 0 <= day < DAYS_IN_WEEK:
            return day
        raise ValueError(f"Day index must be between 0 (Sunday) and 6 (Saturday), got {day}")

    for index, name in enumerate(DAY_NAMES):
        if text in (name.lower(), name[:3].lower()):
            return index

    raise ValueError(f"Unknown day: '{value}'")


def day_of_week_for(moment: datetime) -> int:
    """Map a datetime (stdlib or pendulum) onto the Sunday-based day index."""
    # isoweekday(): Monday=1 ... Sunday=7
    return moment.isoweekday() % DAYS_IN_WEEK


def format_slot(slot) -> str:
    """Format a slot for display, e.g. ``Monday: 09:00 - 11:00``."""
    return f"{day_name(slot.day_of_week)}: {slot.start_time} - {slot.end_time}"
