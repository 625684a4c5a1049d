"""Calendar date parsing, formatting and iteration helpers."""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta
from typing import Iterator

from stay_window.models import DISPLAY_DATE_FORMAT, ISO_DATE_FORMAT, ParseError

ONE_DAY = timedelta(days=1)

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_date(text: str) -> date:
    """Parse an ISO calendar date.

    Args:
        text: Date string in the form "YYYY-MM-DD". Surrounding whitespace is ignored.

    Returns:
        Naive calendar date.

    Raises:
        ParseError: If the text is not a valid calendar date in that exact form.
    """

    if not isinstance(text, str):
        raise ParseError(f"Expected a date string, got {type(text).__name__}")
    s = text.strip()
    if not _ISO_DATE_RE.match(s):
        raise ParseError(f"Invalid date: {text!r}. Use YYYY-MM-DD (e.g. 2024-04-01)")
    try:
        return datetime.strptime(s, ISO_DATE_FORMAT).date()
    except ValueError as exc:
        raise ParseError(f"Invalid date: {text!r}. Use YYYY-MM-DD (e.g. 2024-04-01)") from exc


def format_date(d: date) -> str:
    """Format as "YYYY-MM-DD", the persisted form."""

    return d.strftime(ISO_DATE_FORMAT)


def format_display(d: date) -> str:
    """Format as "DD/MM/YYYY" for people."""

    return d.strftime(DISPLAY_DATE_FORMAT)


def add_days(d: date, n: int) -> date:
    return d + timedelta(days=n)


def days_between(start: date, end: date) -> int:
    """Inclusive day count of [start, end]; 0 when end is before start."""

    return max(0, (end - start).days + 1)


def iter_days(start: date, end: date) -> Iterator[date]:
    """Yield every day in [start, end], ascending. Empty when end < start."""

    cur = start
    while cur <= end:
        yield cur
        cur += ONE_DAY


def month_start(d: date) -> date:
    return d.replace(day=1)


def month_end(d: date) -> date:
    next_month = (d.replace(day=28) + timedelta(days=4)).replace(day=1)
    return next_month - ONE_DAY


def iter_months(start: date, end: date) -> Iterator[date]:
    """Yield the first day of every calendar month overlapping [start, end]."""

    cur = month_start(start)
    while cur <= end:
        yield cur
        cur = month_end(cur) + ONE_DAY
