"""Pydantic schemas for social graph reports.

Reports are request scoped and never persisted.
"""

from typing import List

from pydantic import BaseModel, Field

UNKNOWN_NAME = "Unknown"


class FriendWithBans(BaseModel):
    """A friend carrying at least one ban."""

    steam_id: str
    name: str = UNKNOWN_NAME
    vac_bans: int = 0
    game_bans: int = 0
    community_banned: bool = False
    days_since_last_ban: int = 0


class BanReport(BaseModel):
    """Friends of an account that carry bans, most recent ban first."""

    is_private: bool = False
    total_friends: int = 0
    friends_with_bans: List[FriendWithBans] = Field(default_factory=list)

    @classmethod
    def private(cls) -> "BanReport":
        return cls(is_private=True)


class FriendOnServer(BaseModel):
    """A friend whose name appears in the server roster."""

    steam_id: str
    name: str


class PresenceReport(BaseModel):
    """Friends of an account currently on the monitored server."""

    is_private: bool = False
    friends_on_server: List[FriendOnServer] = Field(default_factory=list)

    @classmethod
    def private(cls) -> "PresenceReport":
        return cls(is_private=True)


class ScrapeReport(BaseModel):
    """Both reports for one tracked player."""

    steam_id: str
    player_name: str
    bans: BanReport
    presence: PresenceReport

    @property
    def is_private(self) -> bool:
        return self.bans.is_private or self.presence.is_private
