"""Deadline parsing and relative offset arithmetic.

Deadlines are written in notes as `YYYY-MM-DD HH:mm` or `YYYY-MM-DD` and are
interpreted in the user's configured fixed UTC offset. Offsets such as `-7d`
or `2h` shift a base instant for recurring presets.
"""

import re
from datetime import datetime, timedelta, timezone, tzinfo

_DEADLINE_RE = re.compile(r"([0-9]{4})-([0-9]{2})-([0-9]{2})(?: ([0-9]{2}):([0-9]{2}))?")
_OFFSET_RE = re.compile(r"([+-]?[0-9]+)([wdhm])")

_UNITS = {"w": "weeks", "d": "days", "h": "hours", "m": "minutes"}


def timezone_for(offset_hours: float) -> tzinfo:
    """Fixed-offset timezone for a UTC offset in hours (e.g. 3 or 5.5)."""
    return timezone(timedelta(hours=offset_hours))


def parse_deadline(value: object, tz: tzinfo = timezone.utc) -> datetime | None:
    """Strictly parse a deadline string. Returns None on any mismatch.

    A bare date is midnight of that day. Anything beyond the two accepted
    formats (trailing text, single-digit fields, impossible dates) is invalid.
    """
    if not isinstance(value, str):
        return None
    match = _DEADLINE_RE.fullmatch(value)
    if match is None:
        return None
    year, month, day, hour, minute = match.groups()
    try:
        return datetime(
            int(year),
            int(month),
            int(day),
            int(hour or 0),
            int(minute or 0),
            tzinfo=tz,
        )
    except ValueError:
        return None


def apply_offset(base: datetime, token: str) -> datetime:
    """Shift base by the first `[sign]digits unit` found in token.

    Tokens without a match, and shifts that leave the representable date
    range, leave base unchanged.
    """
    match = _OFFSET_RE.search(token)
    if match is None:
        return base
    amount, unit = match.groups()
    try:
        return base + timedelta(**{_UNITS[unit]: int(amount)})
    except (OverflowError, ValueError):
        return base


def format_minute(moment: datetime) -> str:
    """Render an instant the way deadlines are written: `YYYY-MM-DD HH:mm`."""
    return moment.strftime("%Y-%m-%d %H:%M")
