from __future__ import annotations

from conftest import d, trip

from stay_window.intervals import normalize
from stay_window.models import Trip
from stay_window.presence import add_range, collapse, expand, toggle_presence


def test_toggle_sequence():
    trips: list[Trip] = []
    trips = toggle_presence(trips, d("2024-05-10"))
    trips = toggle_presence(trips, d("2024-05-11"))
    assert trips == [trip("2024-05-10", "2024-05-11")]

    trips = toggle_presence(trips, d("2024-05-10"))
    assert trips == [trip("2024-05-11", "2024-05-11")]


def test_toggle_last_day_empties_list():
    assert toggle_presence([trip("2024-05-10", "2024-05-10")], d("2024-05-10")) == []


def test_toggle_middle_day_splits_trip():
    trips = toggle_presence([trip("2024-05-01", "2024-05-05")], d("2024-05-03"))
    assert trips == [trip("2024-05-01", "2024-05-02"), trip("2024-05-04", "2024-05-05")]


def test_toggle_gap_day_joins_trips():
    trips = [trip("2024-05-01", "2024-05-02"), trip("2024-05-04", "2024-05-05")]
    assert toggle_presence(trips, d("2024-05-03")) == [trip("2024-05-01", "2024-05-05")]


def test_add_range_accepts_either_order():
    forward = add_range([], d("2024-07-01"), d("2024-07-03"))
    backward = add_range([], d("2024-07-03"), d("2024-07-01"))
    assert forward == backward == [trip("2024-07-01", "2024-07-03")]


def test_add_range_merges_with_existing_trips():
    existing = [trip("2024-07-01", "2024-07-02"), trip("2024-07-10", "2024-07-12")]
    assert add_range(existing, d("2024-07-03"), d("2024-07-09")) == [trip("2024-07-01", "2024-07-12")]


def test_add_range_single_day():
    assert add_range([], d("2024-07-01"), d("2024-07-01")) == [trip("2024-07-01", "2024-07-01")]


def test_expand_counts_every_day():
    days = expand([trip("2024-02-28", "2024-03-01"), trip("2024-02-29", "2024-02-29")])
    assert days == {d("2024-02-28"), d("2024-02-29"), d("2024-03-01")}


def test_collapse_expand_matches_normalize():
    trips = [
        trip("2024-04-05", "2024-04-15"),
        trip("2024-04-01", "2024-04-10"),
        trip("2024-04-16", "2024-04-16"),
        trip("2024-05-01", "2024-05-01"),
        trip("2023-12-31", "2024-01-01"),
    ]
    assert collapse(expand(trips)) == normalize(trips)


def test_collapse_is_idempotent():
    once = collapse([d("2024-01-03"), d("2024-01-01"), d("2024-01-02"), d("2024-01-09")])
    assert once == [trip("2024-01-01", "2024-01-03"), trip("2024-01-09", "2024-01-09")]
    assert collapse(expand(once)) == once


def test_collapse_assigns_fresh_ids():
    original = Trip(d("2024-01-01"), d("2024-01-02"), id="keep-me")
    (rebuilt,) = toggle_presence(toggle_presence([original], d("2024-01-03")), d("2024-01-03"))
    assert rebuilt == original
    assert rebuilt.id != "keep-me"


def test_edits_do_not_mutate_input():
    trips = [trip("2024-01-01", "2024-01-02")]
    toggle_presence(trips, d("2024-01-05"))
    add_range(trips, d("2024-02-01"), d("2024-02-03"))
    assert trips == [trip("2024-01-01", "2024-01-02")]


def test_collapse_empty():
    assert collapse([]) == []
