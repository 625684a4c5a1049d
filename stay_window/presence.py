"""Conversion between per-day presence sets and trip lists, and the edits built on it.

Every edit expands the current trips into a set of days, changes the set and
collapses it back into a brand new trip list. Trips are never patched in place.
"""

from __future__ import annotations

from datetime import date
from typing import Iterable

from stay_window.dateutils import ONE_DAY, iter_days
from stay_window.models import Trip


def expand(trips: Iterable[Trip]) -> set[date]:
    """Return every day covered by any of the trips."""

    days: set[date] = set()
    for t in trips:
        days.update(iter_days(t.entry_date, t.exit_date))
    return days


def collapse(days: Iterable[date]) -> list[Trip]:
    """Run-length encode days into trips of consecutive days, each with a fresh id."""

    ordered = sorted(set(days))
    if not ordered:
        return []

    trips: list[Trip] = []
    run_start = run_end = ordered[0]
    for d in ordered[1:]:
        if d == run_end + ONE_DAY:
            run_end = d
            continue
        trips.append(Trip(run_start, run_end))
        run_start = run_end = d
    trips.append(Trip(run_start, run_end))
    return trips


def toggle_presence(trips: Iterable[Trip], day: date) -> list[Trip]:
    """Flip presence on one day and return the regenerated trip list."""

    days = expand(trips)
    if day in days:
        days.remove(day)
    else:
        days.add(day)
    return collapse(days)


def add_range(trips: Iterable[Trip], start: date, end: date) -> list[Trip]:
    """Mark every day between start and end as present.

    The two endpoints may come in either order (e.g. the order a range was
    picked on a calendar).
    """

    lo, hi = min(start, end), max(start, end)
    days = expand(trips)
    days.update(iter_days(lo, hi))
    return collapse(days)
