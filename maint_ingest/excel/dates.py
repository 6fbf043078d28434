from __future__ import annotations

import logging
import re
from collections.abc import Callable
from datetime import UTC, date, datetime, timedelta
from typing import Any

import pandas as pd

from ..errors import UnparseableDateWarning

"""Spreadsheet cell -> canonical timestamp string.

Accepted inputs:

- spreadsheet serial numbers (day 1 = 1900-01-01, with the 1900 leap-year
  quirk of the spreadsheet ecosystem kept: serial 60 is the phantom
  1900-02-29, so serials from 61 on line up with the dates spreadsheets show)
- ISO-8601 strings (date or date-time, optional offset or ``Z``)
- three-part ``M/D/Y`` or ``M-D-Y`` strings (``Y/M/D`` when the first part
  has four digits), optionally followed by an ``HH:MM[:SS]`` time
- datetime objects handed over by the workbook reader

Output is always ``YYYY-MM-DDTHH:MM:SS.mmmZ`` in UTC, or ``""``. Nothing here
raises for bad input: an unreadable value produces an
``UnparseableDateWarning`` for the caller's sink and an empty string.
"""

__all__ = [
    "normalize_date",
    "to_iso_timestamp",
    "serial_to_datetime",
    "calculate_next_date",
    "MAX_SERIAL",
]

logger = logging.getLogger(__name__)

WarningSink = Callable[[UnparseableDateWarning], None]

# 9999-12-31, the last day spreadsheets can represent.
MAX_SERIAL = 2958465

_SPLIT_RE = re.compile(r"[-/]")
_TIME_RE = re.compile(r"(\d{1,2}):(\d{2})(?::(\d{2}))?")
_PHANTOM_LEAP_SERIAL = 60


def to_iso_timestamp(value: datetime) -> str:
    """Render ``value`` as ``YYYY-MM-DDTHH:MM:SS.mmmZ``; naive values are taken as UTC."""
    if value.tzinfo is not None:
        value = value.astimezone(UTC).replace(tzinfo=None)
    return f"{value:%Y-%m-%dT%H:%M:%S}.{value.microsecond // 1000:03d}Z"


def serial_to_datetime(serial: float) -> datetime:
    """Convert a spreadsheet serial to a naive datetime.

    Raises:
        ValueError: serial outside 1..MAX_SERIAL
    """
    if serial < 1 or serial >= MAX_SERIAL + 1:
        raise ValueError(f"serial out of range: {serial}")
    base = datetime(1899, 12, 30) if serial > _PHANTOM_LEAP_SERIAL else datetime(1899, 12, 31)
    return base + timedelta(days=float(serial))


def _parse_iso(text: str) -> datetime | None:
    candidate = text[:-1] + "+00:00" if text.endswith(("Z", "z")) else text
    try:
        return datetime.fromisoformat(candidate)
    except ValueError:
        return None


def _parse_time(text: str) -> timedelta | None:
    m = _TIME_RE.fullmatch(text)
    if m is None:
        return None
    hours, minutes, seconds = int(m.group(1)), int(m.group(2)), int(m.group(3) or 0)
    if hours > 23 or minutes > 59 or seconds > 59:
        return None
    return timedelta(hours=hours, minutes=minutes, seconds=seconds)


def _parse_three_part(text: str) -> datetime | None:
    date_part, offset = text, timedelta()
    head, sep, tail = text.rpartition(" ")
    if sep and ":" in tail:
        time_offset = _parse_time(tail)
        if time_offset is None:
            return None
        date_part, offset = head, time_offset
    parts = [p.strip() for p in _SPLIT_RE.split(date_part)]
    if len(parts) != 3 or not all(p.isdigit() for p in parts):
        return None
    if len(parts[0]) == 4:
        year, month, day = (int(p) for p in parts)
    else:
        month, day, year = (int(p) for p in parts)
        if len(parts[2]) <= 2:
            year += 2000
    try:
        return datetime(year, month, day) + offset
    except ValueError:
        return None


def _parse(value: Any) -> datetime | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, (int, float)):
        try:
            return serial_to_datetime(value)
        except (ValueError, OverflowError):
            return None
    if isinstance(value, str):
        text = value.strip()
        return _parse_iso(text) or _parse_three_part(text)
    return None


def _is_absent(value: Any) -> bool:
    if value is None or value is False:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (int, float)) and not isinstance(value, bool) and value == 0:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _log_warning(warning: UnparseableDateWarning) -> None:
    logger.warning(str(warning))


def normalize_date(value: Any, on_unparseable: WarningSink | None = None) -> str:
    """Return the canonical timestamp for a cell value, or ``""``.

    Empty cells (``None``, NaN, blank strings, ``0``) give ``""`` silently.
    Anything else that cannot be read gives ``""`` and one
    ``UnparseableDateWarning`` passed to ``on_unparseable`` (logged at WARN
    when no sink is given).
    """
    if _is_absent(value):
        return ""
    parsed = _parse(value)
    if parsed is None:
        (on_unparseable or _log_warning)(UnparseableDateWarning(value))
        return ""
    return to_iso_timestamp(parsed)


def calculate_next_date(last_date: str, frequency: str) -> str:
    """Next due date after ``last_date`` for a ``quarterly`` or ``yearly`` schedule.

    Returns ``""`` (and logs) when the date is empty or unreadable or the
    frequency is unknown.
    """
    if not last_date:
        return ""
    parsed = _parse(last_date)
    if parsed is None:
        logger.error(f"cannot calculate next date: invalid date {last_date!r}")
        return ""
    freq = frequency.strip().lower()
    if freq == "quarterly":
        offset = pd.DateOffset(months=3)
    elif freq == "yearly":
        offset = pd.DateOffset(years=1)
    else:
        logger.error(f"cannot calculate next date: unknown frequency {frequency!r}")
        return ""
    return to_iso_timestamp((pd.Timestamp(parsed) + offset).to_pydatetime())
