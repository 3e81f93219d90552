"""
Field coercers: raw CSV cell strings to typed values.

All coercers are total for the "absent" case: blank or missing input gives
None, never an exception. The only coercer that raises is the timestamp
parser, and only for non-empty text it cannot read, so a blank field and a
garbage field stay distinguishable.
"""

import re
from collections.abc import Iterable
from datetime import datetime
from decimal import Decimal, InvalidOperation

from dateutil import parser as date_parser

_MONEY_NOISE = re.compile(r"[^0-9.\-]")

DEFAULT_TRUTHY = ("1", "true")

# dateutil fills missing parts from its default; two defaults that differ in
# every date part expose cells lacking a year, month or day
_FILL_DEFAULTS = (datetime(2000, 1, 1), datetime(2001, 2, 2))

# Postgres INTEGER range
INT_MAX = 2**31 - 1


def maybe_null(raw: str | None) -> str | None:
    """Trim whitespace; empty becomes None."""
    if raw is None:
        return None
    value = raw.strip()
    return value or None


def _finite_decimal(text: str) -> Decimal | None:
    if not text:
        return None
    try:
        value = Decimal(text)
    except (InvalidOperation, ValueError):
        return None
    return value if value.is_finite() else None


def parse_money(raw: str | None) -> Decimal | None:
    """
    Parse a currency string into a Decimal.

    Every character that is not a digit, "." or "-" is stripped first, so
    "$1,234.50" reads as 1234.50. Anything that still does not parse is
    absent, which callers must not treat as zero.

    Args:
        raw: Cell text, e.g. "$9.73"

    Returns:
        Finite Decimal, or None
    """
    if raw is None:
        return None
    return _finite_decimal(_MONEY_NOISE.sub("", raw))


def parse_number(raw: str | None) -> Decimal | None:
    """Parse a plain numeric cell (durations, rates) without stripping."""
    value = maybe_null(raw)
    if value is None:
        return None
    return _finite_decimal(value)


def parse_int(raw: str | None) -> int | None:
    """Integral part of a numeric cell, or None when absent or out of INTEGER range."""
    value = parse_number(raw)
    if value is None or value.adjusted() > 9:
        return None
    result = int(value)
    return result if -INT_MAX - 1 <= result <= INT_MAX else None


def parse_flag(raw: str | None, truthy: Iterable[str] = DEFAULT_TRUTHY) -> bool:
    """
    Parse a flag cell.

    True iff the trimmed cell equals one of the platform's truthy sentinels;
    everything else, including a missing cell, is False.
    """
    if raw is None:
        return False
    return raw.strip() in tuple(truthy)


def parse_flexible_timestamp(
    raw: str | None,
    formats: Iterable[str] = (),
) -> datetime | None:
    """
    Parse a timestamp cell.

    The platform's documented formats are tried first with strptime, then
    dateutil's generic parser. Timezones are not normalized. A
    generic parse must supply year, month and day; a missing time of day
    reads as midnight.

    Args:
        raw: Cell text, e.g. "03-01-2025 01:47 AM"
        formats: strptime formats to try before generic parsing

    Returns:
        Parsed datetime, or None for blank input

    Raises:
        ValueError: If the cell is non-empty and cannot be parsed
    """
    value = maybe_null(raw)
    if value is None:
        return None

    for fmt in formats:
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue

    try:
        parsed = [date_parser.parse(value, default=default) for default in _FILL_DEFAULTS]
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Unrecognized timestamp {value!r}") from e
    if parsed[0] != parsed[1]:
        raise ValueError(f"Incomplete timestamp {value!r}: year, month and day are required")
    return parsed[0]


def join_date_time(date_part: str | None, time_part: str | None) -> str | None:
    """
    Join separate date and time cells with a space.

    A time without a date is not a usable timestamp, so it yields None.
    """
    date_value = maybe_null(date_part)
    if date_value is None:
        return None
    time_value = maybe_null(time_part)
    return f"{date_value} {time_value}" if time_value else date_value
