"""Protocol definitions for the capabilities consumed by the tracker core.

Implementations live in the client packages (Steam, BattleMetrics), in the
persistence layer, or with the collaborators that embed this package (the
Discord dispatch and rendering layers).
"""

from typing import Dict, List, Optional, Protocol, Union
from abc import abstractmethod

from playerwatch.core.battlemetrics.models import ServerInfo
from playerwatch.core.enums import FriendListStatus
from playerwatch.features.social_graph.models import BanRecord, PlayerSummary
from playerwatch.features.trackers.models import InstanceState


class SummaryLookup(Protocol):
    """Batched profile lookup (at most 100 ids per call)."""

    @abstractmethod
    async def lookup_summaries(self, steam_ids: List[str]) -> Dict[str, PlayerSummary]:
        """Map each resolvable id to its summary."""
        ...


class FriendLookup(Protocol):
    """Friend list lookup for one account."""

    @abstractmethod
    async def lookup_friends(
        self, steam_id: str
    ) -> Union[List[str], FriendListStatus]:
        """Friend ids, or ``FriendListStatus.PRIVATE`` when access is denied."""
        ...


class BanLookup(Protocol):
    """Batched ban registry lookup (at most 100 ids per call)."""

    @abstractmethod
    async def lookup_bans(self, steam_ids: List[str]) -> Dict[str, BanRecord]:
        """Map each known id to its ban record."""
        ...


class MonitoringNameLookup(Protocol):
    """Single-id player name lookup on the server monitoring service."""

    @abstractmethod
    async def lookup_name(self, player_id: str) -> Optional[str]:
        """Current name of the player, ``None`` when unknown."""
        ...


class MonitoringServerLookup(Protocol):
    """Server lookup on the server monitoring service."""

    @abstractmethod
    async def lookup_server(self, server_id: str) -> Optional[ServerInfo]:
        """Name and address of the server, ``None`` when unknown."""
        ...


class MemberDirectory(Protocol):
    """Resolves a member name typed by a user to a Discord user id."""

    @abstractmethod
    async def find_member_id(self, scope: str, query: str) -> Optional[str]:
        """Id of the member whose username or display name equals ``query``."""
        ...


class InstanceStore(Protocol):
    """Per-scope state persistence with read-your-write consistency."""

    @abstractmethod
    async def get(self, scope: str) -> InstanceState:
        """Current state of ``scope``; an empty state when none is stored."""
        ...

    @abstractmethod
    async def put(self, scope: str, state: InstanceState) -> None:
        """Replace the stored state of ``scope``."""
        ...


class Notifier(Protocol):
    """Presentation layer hook called after a tracker changed."""

    @abstractmethod
    async def rerender(self, scope: str, tracker_id: str) -> None:
        """Redraw the tracker message."""
        ...
