from __future__ import annotations

import json
from datetime import date, timedelta
from pathlib import Path

import streamlit as st

from stay_window.breakdown import breakdown
from stay_window.dateutils import format_date, format_display
from stay_window.models import MAX_STAY_DAYS, ProfileSnapshot, StayWindowError
from stay_window.planner import (
    STATUS_LIMIT,
    STATUS_WARNING,
    check_stay,
    extend_exit,
    max_safe_stay,
    next_available_entry,
    window_status,
)
from stay_window.presence import add_range, toggle_presence
from stay_window.profiles import (
    active_profile,
    add_profile,
    clear_trips,
    edit_active_trips,
    remove_profile,
    select_profile,
)
from stay_window.storage import JsonProfileRepository, export_payload, snapshot_from_bytes


def _save(repo: JsonProfileRepository, snapshot: ProfileSnapshot) -> None:
    repo.save(snapshot)
    st.rerun()


def _sidebar(repo: JsonProfileRepository, snapshot: ProfileSnapshot) -> date:
    profile = active_profile(snapshot)
    ids = [p.id for p in snapshot.profiles]
    names = {p.id: p.name for p in snapshot.profiles}

    st.subheader("Profile")
    chosen = st.selectbox("Active profile", ids, index=ids.index(profile.id), format_func=lambda i: names[i])
    if chosen != profile.id:
        _save(repo, select_profile(snapshot, chosen))

    new_name = st.text_input("New profile name", value="", placeholder="e.g. Spouse, Child")
    if st.button("Add profile", use_container_width=True) and new_name:
        try:
            _save(repo, add_profile(snapshot, new_name))
        except StayWindowError as exc:
            st.error(str(exc))

    if len(snapshot.profiles) > 1:
        with st.expander("Delete this profile", expanded=False):
            if st.button(f"Yes, delete {profile.name}", type="primary"):
                _save(repo, remove_profile(snapshot, profile.id))

    st.subheader("Reference date")
    return st.date_input("Check date", value=date.today())


def _dashboard(snapshot: ProfileSnapshot, ref: date) -> None:
    trips = active_profile(snapshot).trips
    status = window_status(trips, ref)

    st.subheader("Dashboard")
    c1, c2, c3 = st.columns(3)
    c1.metric("Days used", f"{status.used}/{MAX_STAY_DAYS}", f"{status.percent}%", delta_color="off")
    c2.metric("Days remaining", str(status.remaining))
    c3.metric("Present on check date", "yes" if status.present_on_reference else "no")
    st.progress(min(1.0, status.used / MAX_STAY_DAYS))

    if status.level == STATUS_LIMIT:
        st.error("The 90-day limit is reached for this window.")
    elif status.level == STATUS_WARNING:
        st.warning("Close to the 90-day limit.")

    start = ref + timedelta(days=1)
    if status.next_stay.max_days > 0:
        st.info(
            f"Entering on {format_display(start)} you can stay {status.next_stay.max_days} days "
            f"(until {format_display(status.next_stay.until_date)})."
        )
    else:
        nxt = next_available_entry(trips, start)
        st.info(f"Next possible entry: {format_display(nxt) if nxt else 'not within a year'}.")


def _editor(repo: JsonProfileRepository, snapshot: ProfileSnapshot) -> None:
    profile = active_profile(snapshot)
    st.subheader("Presence days")

    c1, c2 = st.columns(2)
    with c1:
        day = st.date_input("Day", value=date.today(), key="toggle_day")
        if st.button("Toggle day", use_container_width=True):
            _save(repo, edit_active_trips(snapshot, lambda trips: toggle_presence(trips, day)))
    with c2:
        picked = st.date_input("Range", value=(date.today(), date.today()), key="range_days")
        if st.button("Add range", use_container_width=True):
            if isinstance(picked, tuple) and len(picked) == 2:
                start, end = picked
                _save(repo, edit_active_trips(snapshot, lambda trips: add_range(trips, start, end)))
            else:
                st.error("Pick both the first and the last day of the range.")

    rows = [
        {"entry": format_date(t.entry_date), "exit": format_date(t.exit_date), "days": t.days}
        for t in profile.trips
    ]
    st.dataframe(rows, use_container_width=True, height=240)
    if profile.trips and st.button("Clear all trips"):
        _save(repo, clear_trips(snapshot))


def _trip_checker(snapshot: ProfileSnapshot) -> None:
    trips = active_profile(snapshot).trips
    st.subheader("Trip checker")

    today = date.today()
    if "plan_entry" not in st.session_state:
        st.session_state.plan_entry = today + timedelta(days=7)
        st.session_state.plan_exit = today + timedelta(days=14)

    c1, c2 = st.columns(2)
    entry = c1.date_input("Entry", key="plan_entry")
    exit_ = c2.date_input("Exit", key="plan_exit")

    def _extend(days: int) -> None:
        st.session_state.plan_exit = extend_exit(st.session_state.plan_entry, st.session_state.plan_exit, days)

    b1, b2, b3 = st.columns(3)
    b1.button("+7 days", on_click=_extend, args=(7,), use_container_width=True)
    b2.button("+30 days", on_click=_extend, args=(30,), use_container_width=True)
    b3.button("+90 days", on_click=_extend, args=(90,), use_container_width=True)

    if exit_ < entry:
        st.error("Exit date cannot be before entry date.")
        return

    res = check_stay(trips, entry, exit_)
    length = (exit_ - entry).days + 1
    if res.allowed:
        st.success(f"{length} days trip is allowed. {res.remaining_after} days remaining after this trip.")
    else:
        st.error(
            f"{length} days trip is not allowed: limit exceeded on {format_display(res.violation_date)} "
            f"({res.used_on_exit} days in the window)."
        )

    best = max_safe_stay(trips, entry)
    st.caption(f"Longest safe stay from {format_display(entry)}: {best.max_days} days.")


def _window_breakdown(snapshot: ProfileSnapshot, ref: date) -> None:
    res = breakdown(active_profile(snapshot).trips, ref)
    st.subheader("180-day window breakdown")
    st.caption(f"{format_display(res.window_start)} to {format_display(res.reference)}")

    if res.violations:
        st.error(f"Over the limit on {len(res.violations)} day(s):")
        st.write(", ".join(format_display(d) for d in res.violations))

    rows = [
        {"month": m.month.strftime("%B %Y"), "days": m.count, "of": m.days_in_month} for m in res.monthly
    ]
    st.dataframe(rows, use_container_width=True)


def _import_export(repo: JsonProfileRepository, snapshot: ProfileSnapshot) -> None:
    st.subheader("Backup")
    st.download_button(
        "Export JSON",
        data=json.dumps(export_payload(snapshot), ensure_ascii=False, indent=2),
        file_name=f"stay-window-{date.today().isoformat()}.json",
        mime="application/json",
    )

    uploaded = st.file_uploader("Import JSON", type=["json"])
    if uploaded is not None and st.button("Replace all profiles with this file"):
        try:
            imported = snapshot_from_bytes(uploaded.getvalue(), uploaded.name)
        except StayWindowError as exc:
            st.error(f"Failed to import: {exc}")
            return
        _save(repo, imported)


def main() -> None:
    st.set_page_config(page_title="90/180 stay calculator", layout="wide")
    st.title("90/180-day stay calculator")

    with st.sidebar:
        data_path = st.text_input("Data file", value="profiles.json")
        repo = JsonProfileRepository(Path(data_path))
        snapshot = repo.load()
        ref = _sidebar(repo, snapshot)

    _dashboard(snapshot, ref)
    left, right = st.columns(2)
    with left:
        _editor(repo, snapshot)
    with right:
        _trip_checker(snapshot)
    _window_breakdown(snapshot, ref)
    _import_export(repo, snapshot)

    st.caption(
        "For travel planning only; not legal advice. Border authorities decide on entry."
    )


if __name__ == "__main__":
    main()
