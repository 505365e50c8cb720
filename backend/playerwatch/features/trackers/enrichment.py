"""Background name resolution for newly added players.

Players are inserted with the placeholder name so the caller can answer
immediately. The pipeline then resolves names:

- SteamID64 players: one batched summaries lookup for all of them; the
  resolved name is also used to backfill a missing BattleMetrics id from the
  tracker's roster (exact, case-sensitive match).
- BattleMetrics-only players: one name lookup per player.

Failures leave the placeholder in place; nothing is retried. Results are
written through the tracker's write queue against freshly loaded state, and
dropped when the tracker or player no longer exists.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, List, Optional, Sequence

import structlog

from playerwatch.core.batch import BatchClient
from playerwatch.core.error_handling import call_external
from .models import PLACEHOLDER_NAME, Player, Tracker
from .roster import RosterRegistry
from .writer import TrackerWriteQueue

if TYPE_CHECKING:
    from playerwatch.protocols import (
        InstanceStore,
        MonitoringNameLookup,
        Notifier,
        SummaryLookup,
    )

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class PendingName:
    """A player inserted with the placeholder name."""

    index: int
    steam_id: Optional[str]
    battlemetrics_id: Optional[str]

    @classmethod
    def from_player(cls, index: int, player: Player) -> "PendingName":
        return cls(
            index=index,
            steam_id=player.steam_id,
            battlemetrics_id=player.battlemetrics_id,
        )

    @property
    def key(self) -> Optional[tuple[str, str]]:
        if self.steam_id:
            return ("steam", self.steam_id)
        if self.battlemetrics_id:
            return ("battlemetrics", self.battlemetrics_id)
        return None


@dataclass(frozen=True)
class ResolvedName:
    pending: PendingName
    name: str


def locate_player(tracker: Tracker, pending: PendingName) -> Optional[int]:
    """Current index of the pending player.

    The recorded index is trusted only while the player there still carries
    the same identity; otherwise the player is searched by identity.
    """
    player = tracker.player_at(pending.index)
    if player is not None and player.identity_key == pending.key:
        return pending.index
    for index, candidate in enumerate(tracker.players):
        if candidate.identity_key == pending.key:
            return index
    return None


class EnrichmentPipeline:
    """Resolves placeholder names of newly inserted players."""

    def __init__(
        self,
        instance_store: "InstanceStore",
        writer: TrackerWriteQueue,
        summaries: "SummaryLookup",
        monitoring_names: "MonitoringNameLookup",
        rosters: RosterRegistry,
        notifier: Optional["Notifier"] = None,
        batch_client: Optional[BatchClient] = None,
        timeout: Optional[float] = 10.0,
    ):
        self._store = instance_store
        self._writer = writer
        self._summaries = summaries
        self._monitoring_names = monitoring_names
        self._rosters = rosters
        self._notifier = notifier
        self._batch = batch_client or BatchClient(timeout=timeout)
        self._timeout = timeout

    async def enrich(
        self, scope: str, tracker_id: str, pending: Sequence[PendingName]
    ) -> int:
        """Resolve names for ``pending`` and write them back.

        :returns: Number of players updated
        """
        steam_pending = [p for p in pending if p.steam_id]
        monitoring_pending = [p for p in pending if not p.steam_id and p.battlemetrics_id]
        if not steam_pending and not monitoring_pending:
            return 0

        resolved: List[ResolvedName] = []
        resolved.extend(await self._resolve_steam_names(steam_pending))
        resolved.extend(await self._resolve_monitoring_names(monitoring_pending))

        if not resolved:
            logger.info(
                "No names resolved, placeholders kept",
                scope=scope,
                tracker_id=tracker_id,
                pending=len(pending),
            )
            return 0

        updated = await self._writer.submit(
            scope, tracker_id, lambda: self._apply(scope, tracker_id, resolved)
        )
        if updated:
            await self._rerender(scope, tracker_id)

        logger.info(
            "Player names resolved",
            scope=scope,
            tracker_id=tracker_id,
            pending=len(pending),
            resolved=len(resolved),
            updated=updated,
        )
        return updated

    async def _resolve_steam_names(
        self, pending: Sequence[PendingName]
    ) -> List[ResolvedName]:
        if not pending:
            return []
        summaries = await self._batch.run(
            [p.steam_id for p in pending if p.steam_id],
            self._summaries.lookup_summaries,
            operation="fetch player names",
        )
        resolved = []
        for item in pending:
            summary = summaries.get(item.steam_id) if item.steam_id else None
            if summary is not None and summary.display_name:
                resolved.append(ResolvedName(pending=item, name=summary.display_name))
        return resolved

    async def _resolve_monitoring_names(
        self, pending: Sequence[PendingName]
    ) -> List[ResolvedName]:
        resolved = []
        for item in pending:
            if not item.battlemetrics_id:
                continue
            name = await call_external(
                "fetch BattleMetrics player name",
                self._monitoring_names.lookup_name(item.battlemetrics_id),
                default=None,
                timeout=self._timeout,
                battlemetrics_id=item.battlemetrics_id,
            )
            if name:
                resolved.append(ResolvedName(pending=item, name=name))
        return resolved

    async def _apply(
        self, scope: str, tracker_id: str, resolved: Sequence[ResolvedName]
    ) -> int:
        """Write resolved names into the current state of the tracker."""
        state = await self._store.get(scope)
        tracker = state.trackers.get(tracker_id)
        if tracker is None:
            logger.info(
                "Tracker removed before names resolved",
                scope=scope,
                tracker_id=tracker_id,
            )
            return 0

        roster = self._rosters.get(tracker.battlemetrics_id)
        updated = 0
        for item in resolved:
            index = locate_player(tracker, item.pending)
            if index is None:
                logger.debug(
                    "Player removed before name resolved",
                    scope=scope,
                    tracker_id=tracker_id,
                    index=item.pending.index,
                )
                continue

            player = tracker.players[index]
            player.name = item.name
            if player.steam_id and not player.battlemetrics_id and roster is not None:
                found = roster.find_id_by_name(item.name)
                if found:
                    player.battlemetrics_id = found
            updated += 1

        if updated:
            await self._store.put(scope, state)
        return updated

    async def _rerender(self, scope: str, tracker_id: str) -> None:
        if self._notifier is None:
            return
        await call_external(
            "rerender tracker",
            self._notifier.rerender(scope, tracker_id),
            default=None,
            timeout=self._timeout,
            scope=scope,
            tracker_id=tracker_id,
        )


def pending_names(insertions: Dict[int, Player]) -> List[PendingName]:
    """Pending entries for inserted players still carrying the placeholder."""
    return [
        PendingName.from_player(index, player)
        for index, player in insertions.items()
        if player.name == PLACEHOLDER_NAME
    ]
