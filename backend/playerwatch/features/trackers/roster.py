"""Cached server rosters from the server monitoring service.

The polling job that refreshes rosters is external; the tracker core only
reads them. A ``RosterRegistry`` is created once and injected wherever a
roster is needed.
"""

from typing import Dict, Iterable, List, Mapping, Optional

import structlog

from playerwatch.core.battlemetrics.models import ServerInfo

logger = structlog.get_logger(__name__)


class RosterCache:
    """Last-known names of the players on one monitored server."""

    def __init__(
        self,
        server_id: str,
        players: Optional[Mapping[str, str]] = None,
        server: Optional[ServerInfo] = None,
    ):
        self.server_id = server_id
        self.server = server
        self._players: Dict[str, str] = dict(players or {})

    def __len__(self) -> int:
        return len(self._players)

    def __contains__(self, player_id: object) -> bool:
        return player_id in self._players

    def name_for(self, player_id: str) -> Optional[str]:
        """Cached name of ``player_id``."""
        return self._players.get(player_id)

    def current_names(self) -> List[str]:
        """Names of every cached player."""
        return list(self._players.values())

    def find_id_by_name(self, name: str) -> Optional[str]:
        """First player id whose cached name equals ``name`` exactly."""
        for player_id, cached_name in self._players.items():
            if cached_name == name:
                return player_id
        return None

    def replace_players(self, players: Mapping[str, str]) -> None:
        """Swap in a fresh roster snapshot."""
        self._players = dict(players)

    def set_server(self, server: ServerInfo) -> None:
        self.server = server


class RosterRegistry:
    """Rosters keyed by monitoring server id."""

    def __init__(self, rosters: Iterable[RosterCache] = ()):
        self._rosters: Dict[str, RosterCache] = {
            roster.server_id: roster for roster in rosters
        }

    def get(self, server_id: Optional[str]) -> Optional[RosterCache]:
        """Roster of ``server_id``; ``None`` for unknown or missing ids."""
        if not server_id:
            return None
        return self._rosters.get(server_id)

    def register(self, roster: RosterCache) -> RosterCache:
        """Add a roster, replacing any previous one for the same server."""
        self._rosters[roster.server_id] = roster
        logger.debug(
            "Roster registered", server_id=roster.server_id, players=len(roster)
        )
        return roster

    def remove(self, server_id: str) -> None:
        self._rosters.pop(server_id, None)

    def names_for(self, server_id: Optional[str]) -> List[str]:
        """Current names on ``server_id``, empty when no roster is cached."""
        roster = self.get(server_id)
        return roster.current_names() if roster else []
