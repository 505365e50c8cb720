"""Tracker store: the entry point for every tracker mutation.

Thin orchestration layer:
- Validation and duplicate checks are delegated to ``IdentityResolver``
- Every read-modify-write runs on the scope's ``TrackerWriteQueue``
- The caller gets its answer as soon as the change is persisted; name
  resolution and server lookups continue on background tasks
- No operation raises: outcomes are reported as ``MutationResult``
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Awaitable, Callable, Dict, Optional, Set, Tuple

import structlog

from playerwatch.core.enums import MutationStatus
from playerwatch.core.error_handling import call_external
from playerwatch.core.logging import request_context
from .enrichment import EnrichmentPipeline, PendingName, pending_names
from .identity import Conflict, IdentityResolver, Insertion
from .models import Player, Tracker
from .roster import RosterRegistry
from .schemas import MutationResult, PlayerEdit, ScrapeResult, TrackerEdit
from .writer import TrackerWriteQueue

if TYPE_CHECKING:
    from playerwatch.core.battlemetrics.models import ServerInfo
    from playerwatch.features.social_graph.service import SocialGraphScraper
    from playerwatch.protocols import (
        InstanceStore,
        MemberDirectory,
        MonitoringServerLookup,
        Notifier,
    )

logger = structlog.get_logger(__name__)

# A change returns its result and whether the state must be written back
Change = Callable[[Tracker], Tuple[MutationResult, bool]]


class TrackerStore:
    """Owns trackers and players of every scope."""

    def __init__(
        self,
        instance_store: "InstanceStore",
        *,
        resolver: Optional[IdentityResolver] = None,
        enrichment: Optional[EnrichmentPipeline] = None,
        scraper: Optional["SocialGraphScraper"] = None,
        rosters: Optional[RosterRegistry] = None,
        writer: Optional[TrackerWriteQueue] = None,
        notifier: Optional["Notifier"] = None,
        server_lookup: Optional["MonitoringServerLookup"] = None,
        member_directory: Optional["MemberDirectory"] = None,
        timeout: Optional[float] = 10.0,
    ):
        """Initialize the store with its collaborators.

        :param instance_store: Persistence of per-scope state
        :param resolver: Id classification and duplicate rules
        :param enrichment: Background name resolution, disabled when ``None``
        :param scraper: Social graph reports for ``scrape_player``
        :param rosters: Cached server rosters
        :param writer: Write queue; must be shared with ``enrichment``
        :param notifier: Presentation layer re-render hook
        :param server_lookup: BattleMetrics server lookup for tracker edits
        :param member_directory: Discord member lookup for player edits
        :param timeout: Seconds allowed per external call
        """
        self._store = instance_store
        self._resolver = resolver or IdentityResolver()
        self._enrichment = enrichment
        self._scraper = scraper
        self._rosters = rosters or RosterRegistry()
        self._writer = writer or TrackerWriteQueue()
        self._notifier = notifier
        self._server_lookup = server_lookup
        self._member_directory = member_directory
        self._timeout = timeout

        self._background: Set[asyncio.Task] = set()
        self._requested_servers: Dict[Tuple[str, str], str] = {}

    # Queries

    async def get_tracker(self, scope: str, tracker_id: str) -> Optional[Tracker]:
        """Current state of a tracker, ``None`` when it does not exist."""
        state = await self._store.get(scope)
        return state.trackers.get(tracker_id)

    # Tracker lifecycle

    async def create_tracker(self, scope: str, tracker: Tracker) -> MutationResult:
        """Store a new tracker; CONFLICT when the id is taken."""

        async def run() -> MutationResult:
            state = await self._store.get(scope)
            if tracker.tracker_id in state.trackers:
                return MutationResult.failed(MutationStatus.CONFLICT)
            state.trackers[tracker.tracker_id] = tracker.model_copy(deep=True)
            await self._store.put(scope, state)
            return MutationResult(status=MutationStatus.OK, tracker=tracker)

        result = await self._submit(scope, tracker.tracker_id, run)
        if result.ok:
            logger.info("Tracker created", scope=scope, tracker_id=tracker.tracker_id)
        return result

    async def delete_tracker(self, scope: str, tracker_id: str) -> MutationResult:
        """Remove a tracker with all its players."""

        async def run() -> MutationResult:
            state = await self._store.get(scope)
            tracker = state.trackers.pop(tracker_id, None)
            if tracker is None:
                return MutationResult.failed(MutationStatus.TRACKER_NOT_FOUND)
            await self._store.put(scope, state)
            return MutationResult(status=MutationStatus.OK, tracker=tracker)

        result = await self._submit(scope, tracker_id, run)
        if result.ok:
            self._requested_servers.pop((scope, tracker_id), None)
            logger.info("Tracker deleted", scope=scope, tracker_id=tracker_id)
        return result

    # Player mutations

    async def add_player(
        self,
        scope: str,
        tracker_id: str,
        token: str,
        discord_id: Optional[str] = None,
    ) -> MutationResult:
        """Add one player by SteamID64 or BattleMetrics id.

        The player is stored immediately; a missing name is resolved in the
        background.
        """
        token = token.strip()
        if not token:
            return MutationResult.failed(MutationStatus.INVALID_INPUT)

        def change(tracker: Tracker) -> Tuple[MutationResult, bool]:
            roster = self._rosters.get(tracker.battlemetrics_id)
            outcome = self._resolver.add_player(
                tracker, token, discord_id=discord_id or None, roster=roster
            )
            if isinstance(outcome, Conflict):
                return (
                    MutationResult.failed(
                        MutationStatus.CONFLICT, index=outcome.existing_index
                    ),
                    False,
                )
            if outcome is None:
                return MutationResult.failed(MutationStatus.INVALID_INPUT), False
            return (
                MutationResult(
                    status=MutationStatus.OK,
                    index=outcome.index,
                    indices=[outcome.index],
                    player=outcome.player,
                ),
                True,
            )

        with request_context(scope, tracker_id):
            result = await self._mutate(scope, tracker_id, change)
            if not result.ok:
                logger.info("Player not added", status=result.status.value, token=token)
                return result

            logger.info("Player added", index=result.index, token=token)
            await self._rerender(scope, tracker_id)
            if result.player is not None and result.player.needs_name:
                self._schedule_enrichment(
                    scope,
                    tracker_id,
                    [PendingName.from_player(result.index, result.player)],
                )
            return result

    async def bulk_add_players(
        self, scope: str, tracker_id: str, text: str
    ) -> MutationResult:
        """Add every new id of a newline separated list in one write."""
        if not text.strip():
            return MutationResult.failed(MutationStatus.INVALID_INPUT)

        inserted: Dict[int, Player] = {}

        def change(tracker: Tracker) -> Tuple[MutationResult, bool]:
            roster = self._rosters.get(tracker.battlemetrics_id)
            for parsed in self._resolver.parse_bulk(text, tracker.players):
                outcome = self._resolver.add_parsed(tracker, parsed, roster=roster)
                if isinstance(outcome, Insertion):
                    inserted[outcome.index] = outcome.player.model_copy()
            result = MutationResult(status=MutationStatus.OK, indices=list(inserted))
            return result, bool(inserted)

        with request_context(scope, tracker_id):
            result = await self._mutate(scope, tracker_id, change)
            if not result.ok:
                return result

            logger.info("Bulk added players", added=len(result.indices))
            if not result.indices:
                return result

            await self._rerender(scope, tracker_id)
            pending = pending_names(inserted)
            if pending:
                self._schedule_enrichment(scope, tracker_id, pending)
            return result

    async def remove_player(
        self, scope: str, tracker_id: str, token: str
    ) -> MutationResult:
        """Remove the player matching ``token``; no match is not an error."""
        token = token.strip()
        if not token:
            return MutationResult.failed(MutationStatus.INVALID_INPUT)

        def change(tracker: Tracker) -> Tuple[MutationResult, bool]:
            removed = self._resolver.remove_player(tracker, token)
            return MutationResult(status=MutationStatus.OK, removed=removed), removed > 0

        with request_context(scope, tracker_id):
            result = await self._mutate(scope, tracker_id, change)
            if result.ok and result.removed:
                logger.info("Player removed", token=token, removed=result.removed)
                await self._rerender(scope, tracker_id)
            return result

    async def remove_player_at(
        self, scope: str, tracker_id: str, index: int
    ) -> MutationResult:
        """Remove the player at ``index`` as seen when the write runs."""

        def change(tracker: Tracker) -> Tuple[MutationResult, bool]:
            player = tracker.player_at(index)
            if player is None:
                return MutationResult.failed(MutationStatus.PLAYER_NOT_FOUND, index), False
            del tracker.players[index]
            return (
                MutationResult(
                    status=MutationStatus.OK, index=index, removed=1, player=player
                ),
                True,
            )

        with request_context(scope, tracker_id):
            result = await self._mutate(scope, tracker_id, change)
            if result.ok:
                logger.info("Player removed", index=index, name=result.player.name)
                await self._rerender(scope, tracker_id)
            return result

    async def edit_player(
        self, scope: str, tracker_id: str, index: int, edit: PlayerEdit
    ) -> MutationResult:
        """Replace the ids of the player at ``index``; empty values clear."""
        discord_id = await self._resolve_discord_id(scope, edit.discord_id.strip())
        steam_id = edit.steam_id.strip() or None
        battlemetrics_id = edit.battlemetrics_id.strip() or None

        def change(tracker: Tracker) -> Tuple[MutationResult, bool]:
            player = tracker.player_at(index)
            if player is None:
                return MutationResult.failed(MutationStatus.PLAYER_NOT_FOUND, index), False

            candidate = player.model_copy(
                update={"steam_id": steam_id, "battlemetrics_id": battlemetrics_id}
            )
            key = candidate.identity_key
            if key is not None:
                for other_index, other in enumerate(tracker.players):
                    if other_index != index and other.identity_key == key:
                        return (
                            MutationResult.failed(MutationStatus.CONFLICT, other_index),
                            False,
                        )

            player.steam_id = steam_id
            player.battlemetrics_id = battlemetrics_id
            player.discord_id = discord_id
            return MutationResult(status=MutationStatus.OK, index=index, player=player), True

        with request_context(scope, tracker_id):
            result = await self._mutate(scope, tracker_id, change)
            if result.ok:
                logger.info("Player edited", index=index)
                await self._rerender(scope, tracker_id)
            return result

    async def edit_tracker(
        self, scope: str, tracker_id: str, edit: TrackerEdit
    ) -> MutationResult:
        """Apply the tracker form.

        Text fields change immediately. A new BattleMetrics server id is
        looked up in the background and only stored once the server is known.
        """
        new_server_id = edit.battlemetrics_id.strip()
        server_changed = False

        def change(tracker: Tracker) -> Tuple[MutationResult, bool]:
            nonlocal server_changed
            tracker.name = edit.name
            tracker.clan_tag = edit.clan_tag.strip()
            tracker.base_location = edit.base_location.strip() or None
            tracker.notes = edit.notes.strip() or None

            if new_server_id != (tracker.battlemetrics_id or ""):
                if new_server_id:
                    server_changed = True
                else:
                    tracker.battlemetrics_id = None
                    tracker.server_id = None
                    tracker.server_name = None
            return MutationResult(status=MutationStatus.OK, tracker=tracker), True

        with request_context(scope, tracker_id):
            result = await self._mutate(scope, tracker_id, change)
            if not result.ok:
                return result

            logger.info("Tracker edited", server_changed=server_changed)
            await self._rerender(scope, tracker_id)
            if server_changed:
                self._requested_servers[(scope, tracker_id)] = new_server_id
                self._spawn(
                    self._switch_server(scope, tracker_id, new_server_id),
                    name=f"server-{scope}-{tracker_id}",
                )
            else:
                self._requested_servers.pop((scope, tracker_id), None)
            return result

    # Reports

    async def scrape_player(
        self, scope: str, tracker_id: str, index: int
    ) -> ScrapeResult:
        """Ban and presence reports for the player at ``index``."""
        with request_context(scope, tracker_id):
            tracker = await call_external(
                "load tracker", self.get_tracker(scope, tracker_id), default=None
            )
            if tracker is None:
                return ScrapeResult(status=MutationStatus.TRACKER_NOT_FOUND)
            player = tracker.player_at(index)
            if player is None:
                return ScrapeResult(status=MutationStatus.PLAYER_NOT_FOUND)
            if not player.steam_id:
                return ScrapeResult(status=MutationStatus.NO_STEAM_ID)
            if self._scraper is None:
                logger.warning("Scrape requested without a configured scraper")
                return ScrapeResult(status=MutationStatus.FAILED)

            roster_names = self._rosters.names_for(tracker.battlemetrics_id)
            report = await call_external(
                "scrape player friends",
                self._scraper.scrape(player.steam_id, roster_names, player.name),
                default=None,
                steam_id=player.steam_id,
            )
            if report is None:
                return ScrapeResult(status=MutationStatus.FAILED)

            logger.info(
                "Player scraped",
                steam_id=player.steam_id,
                is_private=report.is_private,
                friends_with_bans=len(report.bans.friends_with_bans),
                friends_on_server=len(report.presence.friends_on_server),
            )
            return ScrapeResult(status=MutationStatus.OK, report=report)

    # Background work

    async def drain(self) -> None:
        """Wait for all background work, including work it schedules."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)
        await self._writer.join()

    async def aclose(self) -> None:
        await self.drain()

    @property
    def pending_tasks(self) -> int:
        return len(self._background)

    def _schedule_enrichment(
        self, scope: str, tracker_id: str, pending: list[PendingName]
    ) -> None:
        if self._enrichment is None:
            logger.debug("Name enrichment disabled", pending=len(pending))
            return
        self._spawn(
            self._enrichment.enrich(scope, tracker_id, pending),
            name=f"enrich-{scope}-{tracker_id}",
        )

    def _spawn(self, coro: Awaitable, name: str) -> None:
        task = asyncio.create_task(self._run_background(coro, name), name=name)
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    @staticmethod
    async def _run_background(coro: Awaitable, name: str) -> None:
        try:
            await coro
        except Exception as error:
            logger.error(
                "Background task failed",
                task=name,
                error=str(error),
                error_type=type(error).__name__,
            )

    async def _switch_server(self, scope: str, tracker_id: str, server_id: str) -> None:
        """Resolve a BattleMetrics server and attach it to the tracker."""
        server = await self._find_server(server_id)
        if server is None:
            logger.info("BattleMetrics server not found", server_id=server_id)
            return

        def change(tracker: Tracker) -> Tuple[MutationResult, bool]:
            if self._requested_servers.get((scope, tracker_id)) != server_id:
                # A later edit asked for another server
                return MutationResult.failed(MutationStatus.CONFLICT), False
            tracker.battlemetrics_id = server_id
            tracker.server_id = server.server_key
            tracker.server_name = server.name
            return MutationResult(status=MutationStatus.OK, tracker=tracker), True

        result = await self._mutate(scope, tracker_id, change)
        if result.ok:
            self._requested_servers.pop((scope, tracker_id), None)
            logger.info("Tracker server updated", server_id=server_id, server=server.name)
            await self._rerender(scope, tracker_id)

    async def _find_server(self, server_id: str) -> Optional["ServerInfo"]:
        roster = self._rosters.get(server_id)
        if roster is not None and roster.server is not None:
            return roster.server
        if self._server_lookup is None:
            return None
        return await call_external(
            "fetch BattleMetrics server",
            self._server_lookup.lookup_server(server_id),
            default=None,
            timeout=self._timeout,
            server_id=server_id,
        )

    # Helpers

    async def _resolve_discord_id(self, scope: str, value: str) -> Optional[str]:
        """Numeric values are ids; anything else is looked up as a member name."""
        if not value:
            return None
        if value.isdigit():
            return value
        if self._member_directory is None:
            return None
        return await call_external(
            "find Discord member",
            self._member_directory.find_member_id(scope, value),
            default=None,
            timeout=self._timeout,
            query=value,
        )

    async def _mutate(
        self, scope: str, tracker_id: str, change: Change
    ) -> MutationResult:
        """Apply ``change`` to the freshly loaded tracker and persist it."""

        async def run() -> MutationResult:
            state = await self._store.get(scope)
            tracker = state.trackers.get(tracker_id)
            if tracker is None:
                return MutationResult.failed(MutationStatus.TRACKER_NOT_FOUND)
            result, dirty = change(tracker)
            if dirty:
                await self._store.put(scope, state)
            return result

        return await self._submit(scope, tracker_id, run)

    async def _submit(
        self,
        scope: str,
        tracker_id: str,
        run: Callable[[], Awaitable[MutationResult]],
    ) -> MutationResult:
        try:
            return await self._writer.submit(scope, tracker_id, run)
        except Exception as error:
            logger.error(
                "Tracker write failed",
                scope=scope,
                tracker_id=tracker_id,
                error=str(error),
                error_type=type(error).__name__,
            )
            return MutationResult.failed(MutationStatus.FAILED)

    async def _rerender(self, scope: str, tracker_id: str) -> None:
        if self._notifier is None:
            return
        await call_external(
            "rerender tracker",
            self._notifier.rerender(scope, tracker_id),
            default=None,
            timeout=self._timeout,
        )
