"""Stay simulation and planning on top of the rolling-window usage."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Final, Sequence

from stay_window.dateutils import ONE_DAY, add_days, iter_days
from stay_window.intervals import normalize, used_days
from stay_window.models import MAX_STAY_DAYS, WINDOW_DAYS, InvalidRangeError, Trip

STATUS_OK: Final[str] = "ok"
STATUS_WARNING: Final[str] = "warning"
STATUS_LIMIT: Final[str] = "limit"

# remaining days at or below which the dashboard warns
WARNING_REMAINING_DAYS: Final[int] = 10


@dataclass(frozen=True, slots=True)
class CheckStayResult:
    """Outcome of simulating one candidate trip.

    Attributes:
        allowed: True if no day of the trip exceeds the limit.
        violation_date: First day of the trip on which the limit is exceeded.
        used_on_exit: Usage on the exit day when allowed; usage on the
            violation day otherwise.
    """

    allowed: bool
    violation_date: date | None
    used_on_exit: int
    max_days: int = MAX_STAY_DAYS

    @property
    def remaining_after(self) -> int:
        return max(0, self.max_days - self.used_on_exit)


@dataclass(frozen=True, slots=True)
class MaxStayResult:
    """Longest safe trip from a fixed entry date.

    ``until_date`` is the last day of that trip, which is the day before the
    entry when ``max_days`` is 0.
    """

    max_days: int
    until_date: date


@dataclass(frozen=True, slots=True)
class WindowStatus:
    """Dashboard figures for one reference date."""

    reference: date
    used: int
    remaining: int
    percent: int
    level: str
    present_on_reference: bool
    next_stay: MaxStayResult


def check_stay(
    trips: Sequence[Trip],
    entry: date,
    exit: date,
    *,
    max_days: int = MAX_STAY_DAYS,
    window_days: int = WINDOW_DAYS,
) -> CheckStayResult:
    """Check whether a candidate trip keeps usage within the limit on every day.

    The candidate is merged into the existing history first, then usage is
    evaluated for each day of the trip in order; the first day over the limit
    stops the scan. Usage is not monotonic across a whole history (old
    presence leaves the window while new presence enters), so every day has
    to be checked, not just the exit day.

    Args:
        trips: Existing trips in any form.
        entry: First day of the candidate trip.
        exit: Last day of the candidate trip.
        max_days: Allowed presence days per window.
        window_days: Rolling window length.

    Returns:
        CheckStayResult.

    Raises:
        InvalidRangeError: If exit is before entry.
    """

    candidate = Trip(entry, exit, id="candidate")
    combined = normalize([*trips, candidate])

    for day in iter_days(entry, exit):
        used = used_days(combined, day, window_days)
        if used > max_days:
            return CheckStayResult(allowed=False, violation_date=day, used_on_exit=used, max_days=max_days)

    return CheckStayResult(
        allowed=True,
        violation_date=None,
        used_on_exit=used_days(combined, exit, window_days),
        max_days=max_days,
    )


def max_safe_stay(
    trips: Sequence[Trip],
    entry: date,
    *,
    max_days: int = MAX_STAY_DAYS,
    window_days: int = WINDOW_DAYS,
) -> MaxStayResult:
    """Find the longest trip starting on ``entry`` that check_stay accepts.

    For a fixed entry date, making the trip one day longer only adds presence
    to windows ending on or after the new day, so once a length fails every
    longer one fails too and the search stops there. A single trip can never
    be longer than ``max_days``.
    """

    safe = 0
    for length in range(1, max_days + 1):
        res = check_stay(trips, entry, add_days(entry, length - 1), max_days=max_days, window_days=window_days)
        if not res.allowed:
            break
        safe = length
    return MaxStayResult(max_days=safe, until_date=add_days(entry, safe - 1))


def window_status(
    trips: Sequence[Trip],
    reference: date,
    *,
    max_days: int = MAX_STAY_DAYS,
    window_days: int = WINDOW_DAYS,
) -> WindowStatus:
    """Summarize usage on ``reference`` and what can still be planned from the next day."""

    merged = normalize(trips)
    used = used_days(merged, reference, window_days)
    remaining = max(0, max_days - used)
    if remaining == 0:
        level = STATUS_LIMIT
    elif remaining <= WARNING_REMAINING_DAYS:
        level = STATUS_WARNING
    else:
        level = STATUS_OK
    return WindowStatus(
        reference=reference,
        used=used,
        remaining=remaining,
        percent=round(used * 100 / max_days),
        level=level,
        present_on_reference=any(t.contains(reference) for t in merged),
        next_stay=max_safe_stay(merged, reference + ONE_DAY, max_days=max_days, window_days=window_days),
    )


def next_available_entry(
    trips: Sequence[Trip],
    start: date,
    horizon_days: int = 365,
    *,
    max_days: int = MAX_STAY_DAYS,
    window_days: int = WINDOW_DAYS,
) -> date | None:
    """Return the first day from ``start`` on which at least one day of stay is allowed.

    Only ``horizon_days`` days are searched; None means nothing was found in that span.
    """

    merged = normalize(trips)
    for offset in range(horizon_days):
        day = add_days(start, offset)
        if check_stay(merged, day, day, max_days=max_days, window_days=window_days).allowed:
            return day
    return None


def extend_exit(entry: date, exit: date, days: int) -> date:
    """Move a planned exit date ``days`` further out.

    Extensions are cumulative: a valid exit (on or after the entry) is pushed
    by ``days``. An exit before the entry is not a trip yet, so the extension
    starts from the entry instead.

    Raises:
        InvalidRangeError: If days is negative.
    """

    if days < 0:
        raise InvalidRangeError(f"Cannot extend a trip by a negative number of days: {days}")
    base = exit if exit >= entry else entry
    return base + timedelta(days=days)
