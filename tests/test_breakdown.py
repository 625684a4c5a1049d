from __future__ import annotations

from datetime import timedelta

from conftest import d, trip

from stay_window.breakdown import breakdown


def test_monthly_histogram_without_violations():
    trips = [trip("2024-01-01", "2024-01-10"), trip("2024-03-30", "2024-04-02")]
    res = breakdown(trips, d("2024-06-28"))

    assert res.window_start == d("2024-01-01")
    assert [m.month for m in res.monthly] == [
        d("2024-01-01"),
        d("2024-02-01"),
        d("2024-03-01"),
        d("2024-04-01"),
        d("2024-05-01"),
        d("2024-06-01"),
    ]
    assert [m.count for m in res.monthly] == [10, 0, 2, 2, 0, 0]
    assert res.total == 14
    assert res.violations == []


def test_month_counts_are_clipped_to_window():
    # window for 2024-06-30 starts on 2024-01-03
    res = breakdown([trip("2023-12-20", "2024-01-10")], d("2024-06-30"))
    assert res.window_start == d("2024-01-03")
    assert res.monthly[0].month == d("2024-01-01")
    assert res.monthly[0].count == 8
    assert res.monthly[0].days_in_month == 31


def test_violation_days_are_listed():
    # 101 days of presence starting 2024-01-01: day 91 is 2024-03-31
    res = breakdown([trip("2024-01-01", "2024-04-10")], d("2024-04-30"))

    assert res.window_start == d("2023-11-03")
    assert len(res.monthly) == 6
    assert [m.count for m in res.monthly] == [0, 0, 31, 29, 31, 10]
    assert res.violations == [d("2024-03-31") + timedelta(days=i) for i in range(11)]


def test_overlapping_input_is_not_double_counted():
    trips = [trip("2024-01-01", "2024-03-01"), trip("2024-02-01", "2024-03-30")]
    res = breakdown(trips, d("2024-03-30"))
    assert res.total == 90
    assert res.violations == []


def test_empty_history():
    res = breakdown([], d("2024-03-15"))
    assert res.total == 0
    assert res.violations == []
    assert res.monthly[-1].month == d("2024-03-01")
