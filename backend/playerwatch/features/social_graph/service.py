"""Social graph scraper: ban and server presence reports for one account.

Both reports start from the account's friend list. A private friend list is
reported as such rather than as an account without friends. Lookups are
batched through ``BatchClient``; a failed chunk only removes its own friends
from the result.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, List, Optional, Sequence, Union

import structlog

from playerwatch.core.batch import BatchClient
from playerwatch.core.enums import FriendListStatus
from playerwatch.core.error_handling import call_external
from .schemas import (
    UNKNOWN_NAME,
    BanReport,
    FriendOnServer,
    FriendWithBans,
    PresenceReport,
    ScrapeReport,
)

if TYPE_CHECKING:
    from playerwatch.protocols import BanLookup, FriendLookup, SummaryLookup

logger = structlog.get_logger(__name__)


class SocialGraphScraper:
    """Cross-references an account's friends with bans and a server roster."""

    def __init__(
        self,
        friends: "FriendLookup",
        summaries: "SummaryLookup",
        bans: "BanLookup",
        batch_client: Optional[BatchClient] = None,
        timeout: Optional[float] = 10.0,
    ):
        """
        Initialize scraper with the identity capabilities.

        :param friends: Friend list capability
        :param summaries: Batched profile capability
        :param bans: Batched ban registry capability
        :param batch_client: Chunking client (defaults to 100 ids per chunk)
        :param timeout: Seconds allowed for the friend list call
        """
        self._friends = friends
        self._summaries = summaries
        self._bans = bans
        self._batch = batch_client or BatchClient(timeout=timeout)
        self._timeout = timeout

    async def get_friend_list(
        self, steam_id: str
    ) -> Union[List[str], FriendListStatus]:
        """Friend ids of ``steam_id``, or ``FriendListStatus.PRIVATE``.

        A failed lookup degrades to an empty list.
        """
        result = await call_external(
            "fetch friend list",
            self._friends.lookup_friends(steam_id),
            default=[],
            timeout=self._timeout,
            steam_id=steam_id,
        )
        if result is FriendListStatus.PRIVATE:
            return result
        return list(result or [])

    async def compute_ban_report(self, steam_id: str) -> BanReport:
        """Friends with VAC, game or community bans, most recent ban first.

        Names are only resolved for the banned subset.
        """
        friends = await self.get_friend_list(steam_id)
        if friends is FriendListStatus.PRIVATE:
            return BanReport.private()

        report = BanReport(total_friends=len(friends))
        if not friends:
            return report

        ban_records = await self._batch.run(
            friends, self._bans.lookup_bans, operation="fetch friend bans"
        )
        banned = [
            ban_records[friend_id]
            for friend_id in friends
            if friend_id in ban_records and ban_records[friend_id].has_bans
        ]
        if not banned:
            logger.debug("No banned friends", steam_id=steam_id, friends=len(friends))
            return report

        summaries = await self._batch.run(
            [record.steam_id for record in banned],
            self._summaries.lookup_summaries,
            operation="fetch banned friend names",
        )

        entries = [
            FriendWithBans(
                steam_id=record.steam_id,
                name=(
                    summaries[record.steam_id].display_name
                    if record.steam_id in summaries
                    else UNKNOWN_NAME
                ),
                vac_bans=record.vac_bans,
                game_bans=record.game_bans,
                community_banned=record.community_banned,
                days_since_last_ban=record.days_since_last_ban,
            )
            for record in banned
        ]
        entries.sort(key=lambda entry: entry.days_since_last_ban)
        report.friends_with_bans = entries

        logger.info(
            "Ban report computed",
            steam_id=steam_id,
            total_friends=report.total_friends,
            friends_with_bans=len(entries),
        )
        return report

    async def compute_presence_report(
        self, steam_id: str, roster_names: Sequence[str]
    ) -> PresenceReport:
        """Friends whose display name matches a roster name, ignoring case."""
        friends = await self.get_friend_list(steam_id)
        if friends is FriendListStatus.PRIVATE:
            return PresenceReport.private()

        report = PresenceReport()
        if not friends or not roster_names:
            return report

        summaries = await self._batch.run(
            friends, self._summaries.lookup_summaries, operation="fetch friend names"
        )
        on_server = {name.lower() for name in roster_names}
        report.friends_on_server = [
            FriendOnServer(steam_id=friend_id, name=summaries[friend_id].display_name)
            for friend_id in friends
            if friend_id in summaries
            and summaries[friend_id].display_name.lower() in on_server
        ]

        logger.info(
            "Presence report computed",
            steam_id=steam_id,
            friends=len(friends),
            friends_on_server=len(report.friends_on_server),
        )
        return report

    async def scrape(
        self, steam_id: str, roster_names: Sequence[str], player_name: str = ""
    ) -> ScrapeReport:
        """Compute both reports concurrently."""
        bans, presence = await asyncio.gather(
            self.compute_ban_report(steam_id),
            self.compute_presence_report(steam_id, roster_names),
        )
        return ScrapeReport(
            steam_id=steam_id,
            player_name=player_name or steam_id,
            bans=bans,
            presence=presence,
        )
