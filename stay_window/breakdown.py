"""Per-month usage histogram and violation days over the rolling window."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Sequence

from stay_window.dateutils import iter_days, iter_months, month_end
from stay_window.intervals import normalize, used_days, window_bounds
from stay_window.models import MAX_STAY_DAYS, WINDOW_DAYS, Trip


@dataclass(frozen=True, slots=True)
class MonthCount:
    """Presence days counted in one month, restricted to the window.

    Attributes:
        month: First day of the calendar month.
        count: Presence days in the part of the month inside the window.
    """

    month: date
    count: int

    @property
    def days_in_month(self) -> int:
        return month_end(self.month).day


@dataclass(frozen=True, slots=True)
class BreakdownResult:
    """Read-only view of the window ending on ``reference``."""

    reference: date
    window_start: date
    monthly: list[MonthCount]
    violations: list[date]

    @property
    def total(self) -> int:
        return sum(m.count for m in self.monthly)


def _is_present(trips: Sequence[Trip], day: date) -> bool:
    return any(t.contains(day) for t in trips)


def breakdown(
    trips: Sequence[Trip],
    reference: date,
    *,
    max_days: int = MAX_STAY_DAYS,
    window_days: int = WINDOW_DAYS,
) -> BreakdownResult:
    """Build the monthly histogram and list the violation days of the window.

    A violation day is a presence day inside the window whose own rolling
    window holds more than ``max_days`` presence days.

    Args:
        trips: Trips in any form; they are normalized first.
        reference: Last day of the window.

    Returns:
        BreakdownResult with months and violation days ascending.
    """

    merged = normalize(trips)
    w_start, w_end = window_bounds(reference, window_days)

    monthly: list[MonthCount] = []
    for month in iter_months(w_start, w_end):
        lo = max(month, w_start)
        hi = min(month_end(month), w_end)
        count = sum(1 for d in iter_days(lo, hi) if _is_present(merged, d))
        monthly.append(MonthCount(month=month, count=count))

    violations = [
        d
        for d in iter_days(w_start, w_end)
        if _is_present(merged, d) and used_days(merged, d, window_days) > max_days
    ]
    return BreakdownResult(reference=reference, window_start=w_start, monthly=monthly, violations=violations)
