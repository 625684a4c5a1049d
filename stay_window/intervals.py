"""Interval normalization and rolling-window usage."""

from __future__ import annotations

from dataclasses import replace
from datetime import date, timedelta
from typing import Iterable, Sequence

from stay_window.dateutils import ONE_DAY, days_between
from stay_window.models import WINDOW_DAYS, Trip


def normalize(trips: Iterable[Trip]) -> list[Trip]:
    """Collapse trips into the minimal sorted, non-overlapping, non-adjacent form.

    Trips that overlap or touch (one ends the day before the next starts) are
    merged; a single empty day between two trips keeps them apart. A merged
    trip keeps the id of the earliest trip of its run.

    Args:
        trips: Trips in any order, possibly overlapping.

    Returns:
        New list covering exactly the same days.
    """

    ordered = sorted(trips, key=lambda t: (t.entry_date, t.exit_date))
    if not ordered:
        return []

    merged: list[Trip] = []
    cur = ordered[0]
    for t in ordered[1:]:
        if t.entry_date <= cur.exit_date + ONE_DAY:
            if t.exit_date > cur.exit_date:
                cur = replace(cur, exit_date=t.exit_date)
        else:
            merged.append(cur)
            cur = t
    merged.append(cur)
    return merged


def window_bounds(reference: date, window_days: int = WINDOW_DAYS) -> tuple[date, date]:
    """Return the inclusive rolling window [reference - (window_days - 1), reference]."""

    return reference - timedelta(days=window_days - 1), reference


def used_days(trips: Sequence[Trip], reference: date, window_days: int = WINDOW_DAYS) -> int:
    """Count presence days inside the rolling window ending on ``reference``.

    The trips must already be normalized; overlapping trips are counted twice.

    Args:
        trips: Normalized trips.
        reference: Last day of the window.
        window_days: Window length in days.

    Returns:
        Presence days in the window, between 0 and ``window_days``.
    """

    w_start, w_end = window_bounds(reference, window_days)
    total = 0
    for t in trips:
        total += days_between(max(t.entry_date, w_start), min(t.exit_date, w_end))
    return total
