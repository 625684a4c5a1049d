"""Data models for trips, profiles and the persisted snapshot."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date
from typing import Final

MAX_STAY_DAYS: Final[int] = 90
WINDOW_DAYS: Final[int] = 180
MAX_PROFILES: Final[int] = 20

DEFAULT_PROFILE_ID: Final[str] = "default"
DEFAULT_PROFILE_NAME: Final[str] = "Me"

ISO_DATE_FORMAT: Final[str] = "%Y-%m-%d"
DISPLAY_DATE_FORMAT: Final[str] = "%d/%m/%Y"


class StayWindowError(ValueError):
    """Base class for every error raised by stay_window."""


class ParseError(StayWindowError):
    """A date string is not a well-formed calendar date."""


class InvalidRangeError(StayWindowError):
    """An interval ends before it starts."""


class ProfileError(StayWindowError):
    """A profile operation or a profile document is invalid."""


def new_id() -> str:
    """Fresh identity for trips and profiles."""

    return str(uuid.uuid4())


@dataclass(frozen=True, slots=True)
class Trip:
    """A continuous presence interval, inclusive of both entry and exit day.

    Attributes:
        entry_date: First day inside the zone.
        exit_date: Last day inside the zone.
        id: Opaque identity. Not part of equality: two trips are equal when
            they cover the same days.
    """

    entry_date: date
    exit_date: date
    id: str = field(default_factory=new_id, compare=False)

    def __post_init__(self) -> None:
        if self.exit_date < self.entry_date:
            raise InvalidRangeError(
                f"Trip exit date {self.exit_date.isoformat()} is before entry date {self.entry_date.isoformat()}"
            )

    @property
    def days(self) -> int:
        """Number of presence days, counting both ends."""

        return (self.exit_date - self.entry_date).days + 1

    def contains(self, day: date) -> bool:
        return self.entry_date <= day <= self.exit_date


@dataclass(frozen=True, slots=True)
class Profile:
    """A traveller with the trips recorded for them."""

    id: str
    name: str
    trips: tuple[Trip, ...] = ()


@dataclass(frozen=True, slots=True)
class ProfileSnapshot:
    """Every profile plus the id of the one currently selected."""

    profiles: tuple[Profile, ...]
    active_profile_id: str


def default_snapshot() -> ProfileSnapshot:
    """The state of a fresh installation: one empty profile."""

    profile = Profile(id=DEFAULT_PROFILE_ID, name=DEFAULT_PROFILE_NAME)
    return ProfileSnapshot(profiles=(profile,), active_profile_id=profile.id)
