"""Player identifier classification and duplicate rules.

Users paste ids in whatever form they have them: a SteamID64, a BattleMetrics
player id, or both joined by ``/`` in either order. The two kinds are told
apart by length alone: a token is a SteamID64 iff it has exactly
``STEAMID64_LENGTH`` characters.

Duplicate rule: within one tracker a player is identified by its SteamID64
when it has one, otherwise by its BattleMetrics id among players that have no
SteamID64.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Union

import structlog

from playerwatch.core.steam_api.constants import STEAMID64_LENGTH
from .models import PLACEHOLDER_NAME, Player, Tracker
from .roster import RosterCache

logger = structlog.get_logger(__name__)

ID_SEPARATOR = "/"


@dataclass(frozen=True)
class ParsedIdentity:
    """Ids extracted from one token or line."""

    steam_id: Optional[str] = None
    battlemetrics_id: Optional[str] = None

    @property
    def key(self) -> Optional[tuple[str, str]]:
        """Duplicate detection key, same shape as ``Player.identity_key``."""
        if self.steam_id:
            return ("steam", self.steam_id)
        if self.battlemetrics_id:
            return ("battlemetrics", self.battlemetrics_id)
        return None

    @property
    def is_empty(self) -> bool:
        return self.key is None


@dataclass(frozen=True)
class Insertion:
    """A player appended to a tracker."""

    index: int
    player: Player

    @property
    def needs_name_fetch(self) -> bool:
        return self.player.name == PLACEHOLDER_NAME


@dataclass(frozen=True)
class Conflict:
    """The id is already tracked at ``existing_index``."""

    existing_index: int


class IdentityResolver:
    """Classifies ids and applies the duplicate rule to tracker mutations."""

    def __init__(
        self, steam_id_length: int = STEAMID64_LENGTH, separator: str = ID_SEPARATOR
    ):
        self.steam_id_length = steam_id_length
        self.separator = separator

    def is_steam_id(self, token: str) -> bool:
        return len(token) == self.steam_id_length

    def classify(self, token: str) -> ParsedIdentity:
        """Classify a single token by its length alone.

        The token is not trimmed; callers pass it already stripped.
        """
        if not token.strip():
            return ParsedIdentity()
        if self.is_steam_id(token):
            return ParsedIdentity(steam_id=token)
        return ParsedIdentity(battlemetrics_id=token)

    def parse_combined(self, line: str) -> ParsedIdentity:
        """Parse ``steam/bm``, ``bm/steam`` or a single token.

        When neither of two tokens has SteamID64 length only the first one is
        kept, as a BattleMetrics id.
        """
        if self.separator not in line:
            return self.classify(line)

        parts = [part.strip() for part in line.split(self.separator)]
        parts = [part for part in parts if part]
        if not parts:
            return ParsedIdentity()
        if len(parts) == 1:
            return self.classify(parts[0])

        first, second = parts[0], parts[1]
        if self.is_steam_id(first):
            return ParsedIdentity(steam_id=first, battlemetrics_id=second)
        if self.is_steam_id(second):
            return ParsedIdentity(steam_id=second, battlemetrics_id=first)
        return ParsedIdentity(battlemetrics_id=first)

    def parse_bulk(
        self, text: str, existing_players: Iterable[Player] = ()
    ) -> List[ParsedIdentity]:
        """Parse newline separated entries, dropping blanks and duplicates.

        Entries already tracked, and repeats within ``text``, are dropped;
        the first occurrence wins.
        """
        seen = {
            player.identity_key
            for player in existing_players
            if player.identity_key is not None
        }
        entries: List[ParsedIdentity] = []
        for line in text.splitlines():
            line = line.strip()
            if not line:
                continue
            parsed = self.parse_combined(line)
            if parsed.key is None:
                logger.debug("Skipping bulk entry without id", line=line)
                continue
            if parsed.key in seen:
                logger.debug("Skipping duplicate bulk entry", line=line)
                continue
            seen.add(parsed.key)
            entries.append(parsed)
        return entries

    @staticmethod
    def find_index(players: Sequence[Player], parsed: ParsedIdentity) -> Optional[int]:
        """Index of the player sharing ``parsed``'s identity key."""
        key = parsed.key
        if key is None:
            return None
        for index, player in enumerate(players):
            if player.identity_key == key:
                return index
        return None

    def add_player(
        self,
        tracker: Tracker,
        token: str,
        discord_id: Optional[str] = None,
        roster: Optional[RosterCache] = None,
    ) -> Union[Insertion, Conflict, None]:
        """Classify ``token`` and append it to ``tracker``.

        Returns ``None`` when the token is blank.
        """
        return self.add_parsed(tracker, self.classify(token), discord_id, roster)

    def add_parsed(
        self,
        tracker: Tracker,
        parsed: ParsedIdentity,
        discord_id: Optional[str] = None,
        roster: Optional[RosterCache] = None,
    ) -> Union[Insertion, Conflict, None]:
        """Append a parsed identity to ``tracker`` unless it is already tracked.

        The name is taken from the roster when the BattleMetrics id is cached,
        otherwise the player starts with the placeholder name.
        """
        if parsed.is_empty:
            return None

        existing = self.find_index(tracker.players, parsed)
        if existing is not None:
            return Conflict(existing_index=existing)

        name = PLACEHOLDER_NAME
        if parsed.battlemetrics_id and roster is not None:
            name = roster.name_for(parsed.battlemetrics_id) or PLACEHOLDER_NAME

        player = Player(
            name=name,
            steam_id=parsed.steam_id,
            battlemetrics_id=parsed.battlemetrics_id,
            discord_id=discord_id,
        )
        tracker.players.append(player)
        return Insertion(index=len(tracker.players) - 1, player=player)

    def remove_player(self, tracker: Tracker, token: str) -> int:
        """Remove players matching ``token``; returns how many were removed."""
        parsed = self.classify(token)
        if parsed.key is None:
            return 0
        remaining = [p for p in tracker.players if p.identity_key != parsed.key]
        removed = len(tracker.players) - len(remaining)
        tracker.players = remaining
        return removed
