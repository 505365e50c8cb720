"""
Steam API Gateway - Anti-Corruption Layer for the identity capabilities.

Translates Steam Web API DTOs (Steam's field names, PascalCase ban fields) to
the domain values used by the tracker core, and implements the summary,
friend and ban lookup capabilities on top of ``SteamAPIClient``.

Missing credentials disable the gateway: every lookup returns an empty result
without touching the network.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, List, Optional, Union
import structlog

from playerwatch.core.enums import FriendListStatus, PersonaState
from playerwatch.core.steam_api.errors import AuthenticationError
from .models import BanRecord, PlayerSummary

if TYPE_CHECKING:
    from playerwatch.core.steam_api.client import SteamAPIClient
    from playerwatch.core.steam_api.models import PlayerBansDTO, PlayerSummaryDTO

logger = structlog.get_logger(__name__)


def summary_from_dto(dto: "PlayerSummaryDTO") -> PlayerSummary:
    """Map a GetPlayerSummaries entry to a domain summary."""
    return PlayerSummary(
        steam_id=dto.steamid,
        display_name=dto.personaname,
        persona_state=PersonaState.from_value(dto.personastate),
        profile_url=dto.profileurl,
        avatar=dto.avatarfull,
        game_id=dto.gameid or None,
        game_extra_info=dto.gameextrainfo or None,
        last_log_off=dto.lastlogoff or None,
    )


def ban_record_from_dto(dto: "PlayerBansDTO") -> BanRecord:
    """Map a GetPlayerBans entry to a domain ban record."""
    return BanRecord(
        steam_id=dto.steam_id,
        vac_banned=dto.vac_banned,
        vac_bans=dto.number_of_vac_bans,
        game_bans=dto.number_of_game_bans,
        community_banned=dto.community_banned,
        days_since_last_ban=dto.days_since_last_ban,
        economy_ban=dto.economy_ban,
    )


class SteamGateway:
    """
    Anti-Corruption Layer for Steam Web API integration.

    Client errors propagate, except the 401 a private friend list produces,
    which becomes ``FriendListStatus.PRIVATE``. Callers in the core isolate
    the remaining failures.
    """

    def __init__(self, steam_client: Optional["SteamAPIClient"]):
        """
        Initialize gateway with Steam API client.

        :param steam_client: Low-level client, ``None`` when no API key is configured
        """
        self._client = steam_client

    @property
    def enabled(self) -> bool:
        return self._client is not None

    async def lookup_summaries(self, steam_ids: List[str]) -> Dict[str, PlayerSummary]:
        if self._client is None or not steam_ids:
            if self._client is None:
                logger.debug("Steam lookups disabled, skipping summaries")
            return {}

        dtos = await self._client.get_player_summaries(steam_ids)
        return {dto.steamid: summary_from_dto(dto) for dto in dtos}

    async def lookup_friends(
        self, steam_id: str
    ) -> Union[List[str], FriendListStatus]:
        if self._client is None:
            logger.debug("Steam lookups disabled, skipping friend list")
            return []

        try:
            friend_list = await self._client.get_friend_list(steam_id)
        except AuthenticationError:
            logger.info("Friend list is private", steam_id=steam_id)
            return FriendListStatus.PRIVATE
        return friend_list.friend_ids

    async def lookup_bans(self, steam_ids: List[str]) -> Dict[str, BanRecord]:
        if self._client is None or not steam_ids:
            return {}

        dtos = await self._client.get_player_bans(steam_ids)
        return {dto.steam_id: ban_record_from_dto(dto) for dto in dtos}
