"""Tracker domain models.

A tracker is a named watchlist of players tied to one game server. Trackers
of one scope (a Discord guild) are persisted together as an
``InstanceState``.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

PLACEHOLDER_NAME = "Loading..."


class Player(BaseModel):
    """A tracked player.

    Identified within its tracker by ``steam_id`` when set, otherwise by
    ``battlemetrics_id``.
    """

    name: str = PLACEHOLDER_NAME
    steam_id: Optional[str] = None
    battlemetrics_id: Optional[str] = None
    discord_id: Optional[str] = None

    @property
    def needs_name(self) -> bool:
        """Whether the name is still the placeholder."""
        return self.name == PLACEHOLDER_NAME

    @property
    def identity_key(self) -> Optional[tuple[str, str]]:
        """Key used for duplicate detection, ``None`` when no id is set."""
        if self.steam_id:
            return ("steam", self.steam_id)
        if self.battlemetrics_id:
            return ("battlemetrics", self.battlemetrics_id)
        return None


class Tracker(BaseModel):
    """A watchlist of players on one server."""

    tracker_id: str
    name: str
    battlemetrics_id: Optional[str] = None
    server_id: Optional[str] = Field(
        None, description="Derived server key in the form ip-port"
    )
    server_name: Optional[str] = None
    clan_tag: Optional[str] = None
    base_location: Optional[str] = None
    notes: Optional[str] = None
    players: List[Player] = Field(default_factory=list)

    def player_at(self, index: int) -> Optional[Player]:
        """Player at ``index`` or ``None`` when out of range."""
        if 0 <= index < len(self.players):
            return self.players[index]
        return None


class InstanceState(BaseModel):
    """Persisted state of one scope."""

    trackers: Dict[str, Tracker] = Field(default_factory=dict)
