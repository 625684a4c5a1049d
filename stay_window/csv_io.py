"""CSV input/output for trip lists."""

from __future__ import annotations

import csv
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from stay_window.dateutils import format_date, parse_date
from stay_window.models import ProfileError, StayWindowError, Trip

logger = logging.getLogger(__name__)

_ENTRY_COLUMNS = ("entryDate", "entry_date", "start", "Start", "from", "From")
_EXIT_COLUMNS = ("exitDate", "exit_date", "end", "End", "to", "To")


@dataclass(frozen=True, slots=True)
class CsvSummary:
    """Quick summary of CSV parsing."""

    rows_total: int
    rows_parsed: int
    rows_skipped: int
    fieldnames: Sequence[str]


def _pick_column(fieldnames: Sequence[str], candidates: Sequence[str]) -> str | None:
    for name in candidates:
        if name in fieldnames:
            return name
    return None


def load_trips_csv(csv_path: str | Path) -> tuple[list[Trip], CsvSummary]:
    """Load trips from a headered CSV.

    Args:
        csv_path: CSV with an entry column (entryDate/start/from) and an exit
            column (exitDate/end/to), dates as YYYY-MM-DD.

    Returns:
        (trips, summary). Rows with malformed dates or exit before entry are
        skipped and counted in the summary.

    Raises:
        ProfileError: If the file is not UTF-8 or the entry/exit columns cannot
            be found.
    """

    p = Path(csv_path)
    rows_total = 0
    trips: list[Trip] = []

    try:
        with p.open("r", encoding="utf-8", newline="") as f:
            reader = csv.DictReader(f)
            fieldnames = tuple(reader.fieldnames or ())
            entry_col = _pick_column(fieldnames, _ENTRY_COLUMNS)
            exit_col = _pick_column(fieldnames, _EXIT_COLUMNS)
            if entry_col is None or exit_col is None:
                raise ProfileError(f"CSV must have entryDate/exitDate (or start/end) columns, got: {list(fieldnames)}")

            for row in reader:
                rows_total += 1
                try:
                    trips.append(Trip(parse_date(row[entry_col] or ""), parse_date(row[exit_col] or "")))
                except StayWindowError as exc:
                    logger.debug("Skipping CSV row %d: %s", rows_total, exc)
                    continue
    except UnicodeDecodeError as exc:
        raise ProfileError(f"CSV is not UTF-8 text: {p}") from exc

    summary = CsvSummary(
        rows_total=rows_total,
        rows_parsed=len(trips),
        rows_skipped=rows_total - len(trips),
        fieldnames=fieldnames,
    )
    if summary.rows_skipped > 0:
        logger.warning("Skipped %s malformed row(s) in %s", summary.rows_skipped, p)
    return trips, summary


def write_trips_csv(trips: Sequence[Trip], out_path: str | Path) -> None:
    """Write trips to CSV for editing in a spreadsheet."""

    p = Path(out_path)
    with p.open("w", encoding="utf-8", newline="") as f:
        w = csv.DictWriter(f, fieldnames=["id", "entryDate", "exitDate", "days"])
        w.writeheader()
        for t in trips:
            w.writerow(
                {
                    "id": t.id,
                    "entryDate": format_date(t.entry_date),
                    "exitDate": format_date(t.exit_date),
                    "days": t.days,
                }
            )
