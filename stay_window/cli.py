"""Command-line interface for stay_window.

Run:
    python -m stay_window status
    python -m stay_window add-range 2024-03-01 2024-03-10
    python -m stay_window check --entry 2024-07-01 --length 30
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from datetime import date
from typing import Callable, Sequence

from stay_window.breakdown import breakdown
from stay_window.csv_io import load_trips_csv, write_trips_csv
from stay_window.dateutils import add_days, format_date, format_display, parse_date
from stay_window.intervals import window_bounds
from stay_window.models import MAX_STAY_DAYS, InvalidRangeError, ProfileSnapshot, StayWindowError, Trip
from stay_window.planner import check_stay, extend_exit, max_safe_stay, next_available_entry, window_status
from stay_window.presence import add_range, collapse, expand, toggle_presence
from stay_window.profiles import (
    active_profile,
    add_profile,
    clear_trips,
    edit_active_trips,
    remove_profile,
    rename_profile,
    select_profile,
)
from stay_window.storage import JsonProfileRepository, export_snapshot, import_snapshot

logger = logging.getLogger(__name__)

DEFAULT_DATA_PATH = "profiles.json"
DATA_PATH_ENV = "STAY_WINDOW_DATA"


def _date_or_today(text: str | None) -> date:
    return parse_date(text) if text else date.today()


def _load(args: argparse.Namespace) -> tuple[JsonProfileRepository, ProfileSnapshot]:
    """Load the data file and apply a one-off --profile selection."""

    repo = JsonProfileRepository(args.data)
    snapshot = repo.load()
    if args.profile:
        snapshot = select_profile(snapshot, args.profile)
    return repo, snapshot


def _save_edit(
    args: argparse.Namespace,
    edit: Callable[[ProfileSnapshot], ProfileSnapshot],
) -> ProfileSnapshot:
    """Load, edit and save. A --profile selection does not change the saved active profile."""

    repo = JsonProfileRepository(args.data)
    original = repo.load()
    snapshot = select_profile(original, args.profile) if args.profile else original
    edited = edit(snapshot)
    if args.profile and edited.active_profile_id == args.profile:
        edited = select_profile(edited, original.active_profile_id)
    repo.save(edited)
    return edited


def _print_trips(snapshot: ProfileSnapshot) -> None:
    profile = active_profile(snapshot)
    print(f"### {profile.name} ({len(profile.trips)} trip(s))")
    for i, t in enumerate(profile.trips, start=1):
        print(f"{i:>3}. {format_date(t.entry_date)} to {format_date(t.exit_date)}  ({t.days} days)")


def _cmd_status(args: argparse.Namespace) -> int:
    _, snapshot = _load(args)
    profile = active_profile(snapshot)
    ref = _date_or_today(args.date)
    st = window_status(profile.trips, ref)
    w_start, w_end = window_bounds(ref)

    print(f"### {profile.name}")
    print(f"window={format_display(w_start)} .. {format_display(w_end)}")
    print(f"used={st.used}/{MAX_STAY_DAYS} ({st.percent}%), remaining={st.remaining}, status={st.level}")
    print(f"present_on_reference={'yes' if st.present_on_reference else 'no'}")
    if st.next_stay.max_days > 0:
        print(
            f"From {format_display(add_days(ref, 1))} you can stay {st.next_stay.max_days} days "
            f"(until {format_display(st.next_stay.until_date)})."
        )
    else:
        nxt = next_available_entry(profile.trips, add_days(ref, 1))
        when = format_display(nxt) if nxt else "not within a year"
        print(f"No stay possible from {format_display(add_days(ref, 1))}; next possible entry: {when}.")
    return 0


def _cmd_check(args: argparse.Namespace) -> int:
    _, snapshot = _load(args)
    profile = active_profile(snapshot)
    entry = parse_date(args.entry)
    if args.length is not None:
        if args.length < 1:
            raise InvalidRangeError(f"Trip length must be at least 1 day, got {args.length}")
        exit_ = add_days(entry, args.length - 1)
    else:
        exit_ = parse_date(args.exit) if args.exit else entry
    for days in args.extend or ():
        exit_ = extend_exit(entry, exit_, days)

    res = check_stay(profile.trips, entry, exit_)
    length = (exit_ - entry).days + 1
    print(f"Trip {format_display(entry)} to {format_display(exit_)} ({length} days)")
    if res.allowed:
        print(f"Allowed: YES. {res.remaining_after} day(s) remaining after this trip.")
        return 0
    print(
        f"Allowed: NO. The limit is exceeded on {format_display(res.violation_date)} "
        f"({res.used_on_exit} days in the window)."
    )
    return 2


def _cmd_max_stay(args: argparse.Namespace) -> int:
    _, snapshot = _load(args)
    profile = active_profile(snapshot)
    entry = parse_date(args.entry)
    res = max_safe_stay(profile.trips, entry)
    if res.max_days == 0:
        print(f"No day can be added on {format_display(entry)}.")
    else:
        print(f"Entering on {format_display(entry)} you can stay {res.max_days} days (until {format_display(res.until_date)}).")
    return 0


def _cmd_breakdown(args: argparse.Namespace) -> int:
    _, snapshot = _load(args)
    profile = active_profile(snapshot)
    ref = _date_or_today(args.date)
    res = breakdown(profile.trips, ref)

    if args.json:
        payload = {
            "reference": format_date(res.reference),
            "windowStart": format_date(res.window_start),
            "monthly": [{"month": m.month.strftime("%Y-%m"), "count": m.count} for m in res.monthly],
            "violations": [format_date(d) for d in res.violations],
        }
        print(json.dumps(payload, ensure_ascii=False, indent=2))
        return 0

    print(f"### 180-day window {format_display(res.window_start)} .. {format_display(res.reference)}")
    for m in res.monthly:
        print(f"{m.month.strftime('%b %Y'):<9} {m.count:>3}/{m.days_in_month}")
    print(f"total={res.total}")
    if res.violations:
        print(f"### Over the limit on {len(res.violations)} day(s)")
        for d in res.violations:
            print(f"- {format_display(d)}")
    return 0


def _cmd_toggle(args: argparse.Namespace) -> int:
    day = parse_date(args.date)
    snapshot = _save_edit(args, lambda s: edit_active_trips(s, lambda trips: toggle_presence(trips, day)))
    if args.profile:
        snapshot = select_profile(snapshot, args.profile)
    _print_trips(snapshot)
    return 0


def _cmd_add_range(args: argparse.Namespace) -> int:
    start = parse_date(args.start)
    end = parse_date(args.end)
    snapshot = _save_edit(args, lambda s: edit_active_trips(s, lambda trips: add_range(trips, start, end)))
    if args.profile:
        snapshot = select_profile(snapshot, args.profile)
    _print_trips(snapshot)
    return 0


def _cmd_clear(args: argparse.Namespace) -> int:
    _save_edit(args, clear_trips)
    print("Cleared all trips.")
    return 0


def _cmd_trips(args: argparse.Namespace) -> int:
    _, snapshot = _load(args)
    _print_trips(snapshot)
    return 0


def _cmd_profiles_list(args: argparse.Namespace) -> int:
    repo = JsonProfileRepository(args.data)
    snapshot = repo.load()
    for p in snapshot.profiles:
        marker = "*" if p.id == snapshot.active_profile_id else " "
        print(f"{marker} {p.id}  {p.name}  trips={len(p.trips)}")
    return 0


def _cmd_profiles_add(args: argparse.Namespace) -> int:
    repo = JsonProfileRepository(args.data)
    snapshot = add_profile(repo.load(), args.name)
    repo.save(snapshot)
    print(f"Added profile {snapshot.active_profile_id} ({args.name.strip()}) and made it active.")
    return 0


def _cmd_profiles_remove(args: argparse.Namespace) -> int:
    repo = JsonProfileRepository(args.data)
    repo.save(remove_profile(repo.load(), args.id))
    print(f"Removed profile {args.id}.")
    return 0


def _cmd_profiles_use(args: argparse.Namespace) -> int:
    repo = JsonProfileRepository(args.data)
    repo.save(select_profile(repo.load(), args.id))
    print(f"Active profile: {args.id}")
    return 0


def _cmd_profiles_rename(args: argparse.Namespace) -> int:
    repo = JsonProfileRepository(args.data)
    repo.save(rename_profile(repo.load(), args.id, args.name))
    print(f"Renamed profile {args.id} to {args.name.strip()}.")
    return 0


def _cmd_export(args: argparse.Namespace) -> int:
    repo = JsonProfileRepository(args.data)
    out = export_snapshot(repo.load(), args.out)
    print(f"Exported: {out}")
    return 0


def _cmd_import(args: argparse.Namespace) -> int:
    snapshot = import_snapshot(args.file)
    JsonProfileRepository(args.data).save(snapshot)
    print(f"Imported {len(snapshot.profiles)} profile(s) from {args.file}")
    return 0


def _cmd_import_csv(args: argparse.Namespace) -> int:
    trips, summary = load_trips_csv(args.csv)

    def merge(current: Sequence[Trip]) -> list[Trip]:
        days = expand(trips) if args.replace else expand([*current, *trips])
        return collapse(days)

    _save_edit(args, lambda s: edit_active_trips(s, merge))
    print(f"rows={summary.rows_total}, imported={summary.rows_parsed}, skipped={summary.rows_skipped}")
    return 0


def _cmd_export_csv(args: argparse.Namespace) -> int:
    _, snapshot = _load(args)
    write_trips_csv(active_profile(snapshot).trips, args.out)
    print(f"Exported: {args.out}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build CLI parser."""

    p = argparse.ArgumentParser(prog="stay_window", description="90/180-day rolling window stay calculator")
    p.add_argument(
        "--data",
        type=str,
        default=os.environ.get(DATA_PATH_ENV, DEFAULT_DATA_PATH),
        help=f"Profiles JSON file (default: ${DATA_PATH_ENV} or {DEFAULT_DATA_PATH})",
    )
    p.add_argument("--profile", type=str, default=None, help="Profile id to use for this command only")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_st = sub.add_parser("status", help="Days used and remaining in the window ending on a date")
    p_st.add_argument("--date", type=str, default=None, help="Reference date YYYY-MM-DD (default: today)")
    p_st.set_defaults(func=_cmd_status)

    p_ck = sub.add_parser("check", help="Check whether a planned trip stays within 90/180")
    p_ck.add_argument("--entry", type=str, required=True, help="Entry date YYYY-MM-DD")
    g = p_ck.add_mutually_exclusive_group()
    g.add_argument("--exit", type=str, default=None, help="Exit date YYYY-MM-DD (default: entry date)")
    g.add_argument("--length", type=int, default=None, help="Trip length in days, counting entry and exit")
    p_ck.add_argument(
        "--extend",
        type=int,
        action="append",
        default=None,
        help="Push the exit date N days further; may be repeated and adds up",
    )
    p_ck.set_defaults(func=_cmd_check)

    p_mx = sub.add_parser("max-stay", help="Longest safe stay for an entry date")
    p_mx.add_argument("--entry", type=str, required=True, help="Entry date YYYY-MM-DD")
    p_mx.set_defaults(func=_cmd_max_stay)

    p_bd = sub.add_parser("breakdown", help="Per-month usage and violation days in the window")
    p_bd.add_argument("--date", type=str, default=None, help="Reference date YYYY-MM-DD (default: today)")
    p_bd.add_argument("--json", action="store_true", help="Print JSON instead of text")
    p_bd.set_defaults(func=_cmd_breakdown)

    p_tg = sub.add_parser("toggle", help="Mark or unmark one presence day")
    p_tg.add_argument("date", type=str, help="Date YYYY-MM-DD")
    p_tg.set_defaults(func=_cmd_toggle)

    p_ar = sub.add_parser("add-range", help="Mark every day between two dates (either order)")
    p_ar.add_argument("start", type=str, help="Date YYYY-MM-DD")
    p_ar.add_argument("end", type=str, help="Date YYYY-MM-DD")
    p_ar.set_defaults(func=_cmd_add_range)

    p_cl = sub.add_parser("clear", help="Remove every trip of the profile")
    p_cl.set_defaults(func=_cmd_clear)

    p_tr = sub.add_parser("trips", help="List trips of the profile")
    p_tr.set_defaults(func=_cmd_trips)

    p_pf = sub.add_parser("profiles", help="Manage profiles")
    pf_sub = p_pf.add_subparsers(dest="profiles_cmd", required=True)
    pf_ls = pf_sub.add_parser("list", help="List profiles (* marks the active one)")
    pf_ls.set_defaults(func=_cmd_profiles_list)
    pf_add = pf_sub.add_parser("add", help="Create a profile and make it active")
    pf_add.add_argument("name", type=str)
    pf_add.set_defaults(func=_cmd_profiles_add)
    pf_rm = pf_sub.add_parser("remove", help="Delete a profile")
    pf_rm.add_argument("id", type=str)
    pf_rm.set_defaults(func=_cmd_profiles_remove)
    pf_use = pf_sub.add_parser("use", help="Make a profile active")
    pf_use.add_argument("id", type=str)
    pf_use.set_defaults(func=_cmd_profiles_use)
    pf_mv = pf_sub.add_parser("rename", help="Rename a profile")
    pf_mv.add_argument("id", type=str)
    pf_mv.add_argument("name", type=str)
    pf_mv.set_defaults(func=_cmd_profiles_rename)

    p_ex = sub.add_parser("export", help="Export all profiles to a portable JSON file")
    p_ex.add_argument("--out", type=str, required=True, help="Output JSON path")
    p_ex.set_defaults(func=_cmd_export)

    p_im = sub.add_parser("import", help="Replace all profiles with an exported JSON file")
    p_im.add_argument("--file", type=str, required=True, help="Exported JSON path")
    p_im.set_defaults(func=_cmd_import)

    p_ic = sub.add_parser("import-csv", help="Add trips from a CSV (entryDate,exitDate) to the profile")
    p_ic.add_argument("--csv", type=str, required=True, help="Input CSV path")
    p_ic.add_argument("--replace", action="store_true", help="Replace existing trips instead of merging")
    p_ic.set_defaults(func=_cmd_import_csv)

    p_ec = sub.add_parser("export-csv", help="Write the profile's trips to CSV")
    p_ec.add_argument("--out", type=str, default="trips.csv", help="Output CSV path")
    p_ec.set_defaults(func=_cmd_export_csv)

    return p


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint."""

    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        return int(args.func(args))
    except (StayWindowError, OSError) as exc:
        logger.debug("Command %s failed", args.cmd, exc_info=True)
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
