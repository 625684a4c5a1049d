from __future__ import annotations

import time
from datetime import date

import pytest

from stay_window.models import Trip


def d(text: str) -> date:
    return date.fromisoformat(text)


def trip(entry: str, exit: str) -> Trip:
    return Trip(d(entry), d(exit))


@pytest.fixture
def data_path(tmp_path):
    return tmp_path / "profiles.json"


@pytest.fixture
def local_tz(monkeypatch):
    """Switch the process time zone, e.g. ``local_tz("EET-2")`` for UTC+2."""

    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is not available on this platform")

    def use(name: str) -> None:
        monkeypatch.setenv("TZ", name)
        time.tzset()

    yield use
    monkeypatch.undo()
    time.tzset()
