"""JSON persistence of profile snapshots.

The engine never touches storage. Hosts (CLI, Streamlit app) receive a
ProfileRepository and call load() / save() around each edit.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, date, datetime
from pathlib import Path
from typing import Any, Protocol

from stay_window.dateutils import format_date, parse_date
from stay_window.models import (
    MAX_PROFILES,
    ParseError,
    Profile,
    ProfileError,
    ProfileSnapshot,
    StayWindowError,
    Trip,
    default_snapshot,
    new_id,
)
from stay_window.presence import collapse

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1


class ProfileRepository(Protocol):
    """Where a host keeps its profiles between runs."""

    def load(self) -> ProfileSnapshot: ...

    def save(self, snapshot: ProfileSnapshot) -> None: ...


def snapshot_to_dict(snapshot: ProfileSnapshot) -> dict[str, Any]:
    """Convert a snapshot to the portable JSON structure (camelCase keys, ISO dates)."""

    return {
        "version": SNAPSHOT_VERSION,
        "activeProfileId": snapshot.active_profile_id,
        "profiles": [
            {
                "id": p.id,
                "name": p.name,
                "trips": [
                    {"id": t.id, "entryDate": format_date(t.entry_date), "exitDate": format_date(t.exit_date)}
                    for t in p.trips
                ],
            }
            for p in snapshot.profiles
        ],
    }


def _trip_from_dict(raw: Any) -> Trip:
    if not isinstance(raw, dict):
        raise ProfileError(f"Trip must be an object, got {raw!r}")
    try:
        entry_raw = raw["entryDate"]
        exit_raw = raw["exitDate"]
    except KeyError as exc:
        raise ProfileError(f"Trip is missing field {exc}: {raw!r}") from exc
    trip_id = raw.get("id") or new_id()
    return Trip(parse_date(entry_raw), parse_date(exit_raw), id=str(trip_id))


def _profile_from_dict(raw: Any) -> Profile:
    if not isinstance(raw, dict):
        raise ProfileError(f"Profile must be an object, got {raw!r}")
    profile_id = raw.get("id")
    if not isinstance(profile_id, str) or not profile_id:
        raise ProfileError(f"Profile is missing an id: {raw!r}")
    trips_raw = raw.get("trips", [])
    if not isinstance(trips_raw, list):
        raise ProfileError(f"Profile {profile_id!r} trips must be a list")
    return Profile(
        id=profile_id,
        name=str(raw.get("name", "") or profile_id),
        trips=tuple(_trip_from_dict(t) for t in trips_raw),
    )


def _legacy_day(raw: Any) -> date:
    """Calendar day of one legacy ``selectedDates`` entry.

    The old export wrote local midnights as UTC timestamps
    ("2024-05-09T22:00:00.000Z" for 10 May at UTC+2), so offset-aware values
    are converted back to local time before taking the date.
    """

    s = str(raw).strip()
    if "T" not in s:
        return parse_date(s)
    try:
        dt = datetime.fromisoformat(s.replace("Z", "+00:00"))
    except ValueError as exc:
        raise ParseError(f"Invalid timestamp {s!r} in selectedDates") from exc
    if dt.tzinfo is not None:
        dt = dt.astimezone()
    return dt.date()


def _legacy_snapshot(selected_dates: Any) -> ProfileSnapshot:
    """Build a snapshot from the old single-profile export (a flat list of timestamps)."""

    if not isinstance(selected_dates, list):
        raise ProfileError("selectedDates must be a list")
    days = [_legacy_day(s) for s in selected_dates]
    base = default_snapshot()
    profile = Profile(id=base.active_profile_id, name=base.profiles[0].name, trips=tuple(collapse(days)))
    return ProfileSnapshot(profiles=(profile,), active_profile_id=profile.id)


def snapshot_from_dict(data: Any) -> ProfileSnapshot:
    """Parse the JSON structure written by snapshot_to_dict.

    The legacy format ``{"selectedDates": [...]}`` is accepted as well.

    Raises:
        ProfileError: If the document structure is invalid.
        ParseError: If a date is malformed.
        InvalidRangeError: If a trip exits before it enters.
    """

    if not isinstance(data, dict):
        raise ProfileError("Profile document must be a JSON object")
    if "profiles" not in data and "selectedDates" in data:
        return _legacy_snapshot(data["selectedDates"])

    profiles_raw = data.get("profiles")
    if not isinstance(profiles_raw, list) or not profiles_raw:
        raise ProfileError("Profile document must contain a non-empty 'profiles' list")
    if len(profiles_raw) > MAX_PROFILES:
        raise ProfileError(f"At most {MAX_PROFILES} profiles are allowed, document has {len(profiles_raw)}")
    profiles = tuple(_profile_from_dict(p) for p in profiles_raw)

    ids = [p.id for p in profiles]
    if len(set(ids)) != len(ids):
        raise ProfileError("Profile ids must be unique")

    active_id = data.get("activeProfileId")
    if active_id not in ids:
        active_id = profiles[0].id
    return ProfileSnapshot(profiles=profiles, active_profile_id=active_id)


def _write_json_atomic(path: Path, payload: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
    tmp.replace(path)


class JsonProfileRepository:
    """Profiles persisted as a single JSON file.

    A missing or empty file loads as the default snapshot. A file that cannot
    be read back is moved aside to ``<name>.broken`` and also replaced by the
    default snapshot, so auto-save never blocks the user.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> ProfileSnapshot:
        if not self._path.exists():
            logger.debug("No data file at %s, starting fresh", self._path)
            return default_snapshot()
        raw = self._path.read_bytes()
        if not raw.strip():
            return default_snapshot()
        try:
            snapshot = snapshot_from_dict(json.loads(raw.decode("utf-8")))
        except (UnicodeDecodeError, json.JSONDecodeError, StayWindowError) as exc:
            backup = self._path.with_suffix(self._path.suffix + ".broken")
            backup.write_bytes(raw)
            logger.warning("Data file %s is unreadable (%s); saved a copy to %s", self._path, exc, backup)
            return default_snapshot()
        logger.debug("Loaded %d profile(s) from %s", len(snapshot.profiles), self._path)
        return snapshot

    def save(self, snapshot: ProfileSnapshot) -> None:
        """Persist the snapshot (write to a temp file, then replace)."""

        _write_json_atomic(self._path, snapshot_to_dict(snapshot))
        logger.debug("Saved %d profile(s) to %s", len(snapshot.profiles), self._path)


def export_payload(snapshot: ProfileSnapshot) -> dict[str, Any]:
    """Snapshot structure stamped with the export time (UTC)."""

    return snapshot_to_dict(snapshot) | {"exportedAt": datetime.now(UTC).isoformat()}


def export_snapshot(snapshot: ProfileSnapshot, out_path: str | Path) -> Path:
    """Write a portable copy of the snapshot, stamped with the export time."""

    p = Path(out_path)
    _write_json_atomic(p, export_payload(snapshot))
    return p


def snapshot_from_bytes(raw: bytes, source: str = "upload") -> ProfileSnapshot:
    """Parse an exported document.

    Unlike JsonProfileRepository.load, errors are raised to the caller.

    Raises:
        ProfileError: If the bytes are not UTF-8 JSON or the structure is invalid.
    """

    try:
        data = json.loads(raw.decode("utf-8"))
    except UnicodeDecodeError as exc:
        raise ProfileError(f"Not a UTF-8 text file: {source}") from exc
    except json.JSONDecodeError as exc:
        raise ProfileError(f"Not a JSON file: {source}") from exc
    return snapshot_from_dict(data)


def import_snapshot(in_path: str | Path) -> ProfileSnapshot:
    """Read a file written by export_snapshot (or the legacy export)."""

    p = Path(in_path)
    return snapshot_from_bytes(p.read_bytes(), str(p))
