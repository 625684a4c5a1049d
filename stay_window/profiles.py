"""Profile management on immutable snapshots."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable, Sequence

from stay_window.models import MAX_PROFILES, Profile, ProfileError, ProfileSnapshot, Trip, new_id

logger = logging.getLogger(__name__)

TripEdit = Callable[[Sequence[Trip]], Sequence[Trip]]


def active_profile(snapshot: ProfileSnapshot) -> Profile:
    """Return the selected profile, or the first one if the selection is stale."""

    if not snapshot.profiles:
        raise ProfileError("Snapshot has no profiles")
    for p in snapshot.profiles:
        if p.id == snapshot.active_profile_id:
            return p
    return snapshot.profiles[0]


def get_profile(snapshot: ProfileSnapshot, profile_id: str) -> Profile:
    for p in snapshot.profiles:
        if p.id == profile_id:
            return p
    raise ProfileError(f"Unknown profile: {profile_id!r}")


def add_profile(snapshot: ProfileSnapshot, name: str) -> ProfileSnapshot:
    """Create an empty profile and select it.

    Raises:
        ProfileError: If the name is blank or the profile limit is reached.
    """

    name = name.strip()
    if not name:
        raise ProfileError("Profile name cannot be empty")
    if len(snapshot.profiles) >= MAX_PROFILES:
        raise ProfileError(f"At most {MAX_PROFILES} profiles are allowed")
    profile = Profile(id=new_id(), name=name)
    logger.debug("Added profile %s (%s)", profile.id, name)
    return ProfileSnapshot(profiles=(*snapshot.profiles, profile), active_profile_id=profile.id)


def remove_profile(snapshot: ProfileSnapshot, profile_id: str) -> ProfileSnapshot:
    """Delete a profile. The last remaining profile cannot be removed.

    If the removed profile was selected, the first remaining profile becomes active.
    """

    get_profile(snapshot, profile_id)
    if len(snapshot.profiles) <= 1:
        raise ProfileError("Cannot remove the last profile")
    remaining = tuple(p for p in snapshot.profiles if p.id != profile_id)
    active_id = snapshot.active_profile_id
    if active_id == profile_id:
        active_id = remaining[0].id
    logger.debug("Removed profile %s", profile_id)
    return ProfileSnapshot(profiles=remaining, active_profile_id=active_id)


def select_profile(snapshot: ProfileSnapshot, profile_id: str) -> ProfileSnapshot:
    get_profile(snapshot, profile_id)
    return replace(snapshot, active_profile_id=profile_id)


def rename_profile(snapshot: ProfileSnapshot, profile_id: str, name: str) -> ProfileSnapshot:
    name = name.strip()
    if not name:
        raise ProfileError("Profile name cannot be empty")
    get_profile(snapshot, profile_id)
    profiles = tuple(replace(p, name=name) if p.id == profile_id else p for p in snapshot.profiles)
    return replace(snapshot, profiles=profiles)


def edit_active_trips(snapshot: ProfileSnapshot, edit: TripEdit) -> ProfileSnapshot:
    """Replace the active profile's whole trip list with ``edit(current_trips)``.

    Example:
        edit_active_trips(snap, lambda trips: toggle_presence(trips, day))
    """

    target = active_profile(snapshot)
    new_trips = tuple(edit(target.trips))
    profiles = tuple(replace(p, trips=new_trips) if p.id == target.id else p for p in snapshot.profiles)
    return replace(snapshot, profiles=profiles)


def clear_trips(snapshot: ProfileSnapshot) -> ProfileSnapshot:
    return edit_active_trips(snapshot, lambda _trips: ())
