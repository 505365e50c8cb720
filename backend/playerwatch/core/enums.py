"""Shared enumerations used across features."""

from enum import Enum


class FriendListStatus(str, Enum):
    """Non-list outcome of a friend list lookup.

    Kept distinct from an empty list: a private profile is not an account
    without friends.
    """

    PRIVATE = "private"


class MutationStatus(str, Enum):
    """Outcome of a tracker mutation."""

    OK = "ok"
    CONFLICT = "conflict"
    TRACKER_NOT_FOUND = "tracker_not_found"
    PLAYER_NOT_FOUND = "player_not_found"
    INVALID_INPUT = "invalid_input"
    NO_STEAM_ID = "no_steam_id"
    FAILED = "failed"


class PersonaState(int, Enum):
    """Steam persona states as reported by GetPlayerSummaries."""

    OFFLINE = 0
    ONLINE = 1
    BUSY = 2
    AWAY = 3
    SNOOZE = 4
    LOOKING_TO_TRADE = 5
    LOOKING_TO_PLAY = 6

    @classmethod
    def from_value(cls, value: object) -> "PersonaState":
        """Map a raw API value to a state, unknown values become OFFLINE."""
        try:
            return cls(int(value))  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return cls.OFFLINE
