"""Pydantic models for Steam Web API response data."""

from typing import Optional, List
from pydantic import BaseModel, Field, ConfigDict


class PlayerSummaryDTO(BaseModel):
    """Entry of ``response.players`` from GetPlayerSummaries."""

    steamid: str
    personaname: str
    personastate: int = 0
    profileurl: Optional[str] = None
    avatarfull: Optional[str] = None
    gameid: Optional[str] = None
    gameextrainfo: Optional[str] = None
    lastlogoff: Optional[int] = None

    model_config = ConfigDict(extra="ignore")


class FriendDTO(BaseModel):
    """Entry of ``friendslist.friends`` from GetFriendList."""

    steamid: str
    relationship: Optional[str] = None
    friend_since: Optional[int] = None

    model_config = ConfigDict(extra="ignore")


class PlayerBansDTO(BaseModel):
    """Entry of ``players`` from GetPlayerBans."""

    steam_id: str = Field(..., alias="SteamId")
    community_banned: bool = Field(False, alias="CommunityBanned")
    vac_banned: bool = Field(False, alias="VACBanned")
    number_of_vac_bans: int = Field(0, alias="NumberOfVACBans")
    days_since_last_ban: int = Field(0, alias="DaysSinceLastBan")
    number_of_game_bans: int = Field(0, alias="NumberOfGameBans")
    economy_ban: str = Field("none", alias="EconomyBan")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class FriendListDTO(BaseModel):
    """Parsed GetFriendList response."""

    steam_id: str
    friends: List[FriendDTO] = Field(default_factory=list)

    @property
    def friend_ids(self) -> List[str]:
        """Friend SteamID64s in API order."""
        return [friend.steamid for friend in self.friends]
