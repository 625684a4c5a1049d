from __future__ import annotations

import json

from conftest import trip

from stay_window.cli import main
from stay_window.profiles import active_profile
from stay_window.storage import JsonProfileRepository


def run(data_path, *argv):
    return main(["--data", str(data_path), *argv])


def test_add_range_and_status(data_path, capsys):
    assert run(data_path, "add-range", "2024-01-10", "2024-01-01") == 0
    assert active_profile(JsonProfileRepository(data_path).load()).trips == (trip("2024-01-01", "2024-01-10"),)

    capsys.readouterr()
    assert run(data_path, "status", "--date", "2024-01-10") == 0
    out = capsys.readouterr().out
    assert "used=10/90" in out
    assert "remaining=80" in out
    assert "present_on_reference=yes" in out
    assert "you can stay 80 days" in out


def test_toggle(data_path, capsys):
    run(data_path, "toggle", "2024-05-10")
    run(data_path, "toggle", "2024-05-11")
    run(data_path, "toggle", "2024-05-10")
    assert active_profile(JsonProfileRepository(data_path).load()).trips == (trip("2024-05-11", "2024-05-11"),)
    assert "2024-05-11 to 2024-05-11" in capsys.readouterr().out


def test_check_exit_codes(data_path, capsys):
    run(data_path, "add-range", "2024-01-01", "2024-02-29")
    capsys.readouterr()

    assert run(data_path, "check", "--entry", "2024-03-10", "--length", "30") == 0
    assert "Allowed: YES" in capsys.readouterr().out

    assert run(data_path, "check", "--entry", "2024-03-10", "--exit", "2024-04-09") == 2
    out = capsys.readouterr().out
    assert "Allowed: NO" in out
    assert "09/04/2024" in out


def test_check_extend_is_cumulative(data_path, capsys):
    assert run(data_path, "check", "--entry", "2024-01-01", "--extend", "7", "--extend", "7") == 0
    assert "01/01/2024 to 15/01/2024 (15 days)" in capsys.readouterr().out


def test_max_stay(data_path, capsys):
    assert run(data_path, "max-stay", "--entry", "2024-06-01") == 0
    assert "you can stay 90 days (until 29/08/2024)" in capsys.readouterr().out


def test_breakdown_json(data_path, capsys):
    run(data_path, "add-range", "2024-01-01", "2024-04-10")
    capsys.readouterr()
    assert run(data_path, "breakdown", "--date", "2024-04-30", "--json") == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["windowStart"] == "2023-11-03"
    assert payload["monthly"][2] == {"month": "2024-01", "count": 31}
    assert payload["violations"][0] == "2024-03-31"
    assert len(payload["violations"]) == 11


def test_profiles_and_one_off_selection(data_path, capsys):
    assert run(data_path, "profiles", "add", "Child") == 0
    snap = JsonProfileRepository(data_path).load()
    child_id = snap.active_profile_id

    assert run(data_path, "profiles", "use", "default") == 0
    assert run(data_path, "--profile", child_id, "toggle", "2024-05-10") == 0

    snap = JsonProfileRepository(data_path).load()
    assert snap.active_profile_id == "default"
    assert active_profile(snap).trips == ()
    child = next(p for p in snap.profiles if p.id == child_id)
    assert child.trips == (trip("2024-05-10", "2024-05-10"),)

    capsys.readouterr()
    run(data_path, "profiles", "list")
    out = capsys.readouterr().out
    assert "* default" in out
    assert "Child" in out


def test_errors_are_reported(data_path, capsys):
    assert run(data_path, "toggle", "2024-13-01") == 1
    assert "error: Invalid date" in capsys.readouterr().err

    assert run(data_path, "check", "--entry", "2024-05-02", "--exit", "2024-05-01") == 1
    assert run(data_path, "profiles", "remove", "default") == 1
    assert "last profile" in capsys.readouterr().err


def test_export_import_roundtrip(data_path, tmp_path, capsys):
    run(data_path, "add-range", "2024-01-01", "2024-01-05")
    backup = tmp_path / "backup.json"
    assert run(data_path, "export", "--out", str(backup)) == 0

    run(data_path, "clear")
    assert active_profile(JsonProfileRepository(data_path).load()).trips == ()

    assert run(data_path, "import", "--file", str(backup)) == 0
    assert active_profile(JsonProfileRepository(data_path).load()).trips == (trip("2024-01-01", "2024-01-05"),)


def test_import_csv_merges(data_path, tmp_path, capsys):
    run(data_path, "add-range", "2024-01-01", "2024-01-05")
    csv_path = tmp_path / "trips.csv"
    csv_path.write_text("entryDate,exitDate\n2024-01-06,2024-01-08\n2024-03-01,2024-03-01\n", encoding="utf-8")
    assert run(data_path, "import-csv", "--csv", str(csv_path)) == 0
    assert active_profile(JsonProfileRepository(data_path).load()).trips == (
        trip("2024-01-01", "2024-01-08"),
        trip("2024-03-01", "2024-03-01"),
    )

    out_csv = tmp_path / "out.csv"
    assert run(data_path, "export-csv", "--out", str(out_csv)) == 0
    assert "2024-01-01,2024-01-08,8" in out_csv.read_text(encoding="utf-8")


def test_non_utf8_data_file_recovers(data_path, capsys):
    data_path.write_bytes(b"\xff\xfe")
    assert run(data_path, "status", "--date", "2024-01-10") == 0
    assert "used=0/90" in capsys.readouterr().out
    assert data_path.with_suffix(".json.broken").read_bytes() == b"\xff\xfe"


def test_non_utf8_import_is_an_error(data_path, tmp_path, capsys):
    bad = tmp_path / "bad.json"
    bad.write_bytes(b"\xff\xfe")
    assert run(data_path, "import", "--file", str(bad)) == 1
    assert "error: Not a UTF-8" in capsys.readouterr().err

    bad_csv = tmp_path / "bad.csv"
    bad_csv.write_bytes(b"entryDate,exitDate\n\xff,\xfe\n")
    assert run(data_path, "import-csv", "--csv", str(bad_csv)) == 1
    assert "error: CSV is not UTF-8" in capsys.readouterr().err
