"""Domain values returned by the identity capabilities."""

from typing import Optional

from pydantic import BaseModel, ConfigDict

from playerwatch.core.enums import PersonaState


class PlayerSummary(BaseModel):
    """Public profile data of one Steam account."""

    steam_id: str
    display_name: str
    persona_state: PersonaState = PersonaState.OFFLINE
    profile_url: Optional[str] = None
    avatar: Optional[str] = None
    game_id: Optional[str] = None
    game_extra_info: Optional[str] = None
    last_log_off: Optional[int] = None

    model_config = ConfigDict(frozen=True)

    @property
    def is_in_game(self) -> bool:
        return self.game_id is not None


class BanRecord(BaseModel):
    """Ban registry entry of one Steam account."""

    steam_id: str
    vac_banned: bool = False
    vac_bans: int = 0
    game_bans: int = 0
    community_banned: bool = False
    days_since_last_ban: int = 0
    economy_ban: str = "none"

    model_config = ConfigDict(frozen=True)

    @property
    def has_bans(self) -> bool:
        """Whether the account carries any VAC, game or community ban."""
        return self.vac_banned or self.game_bans > 0 or self.community_banned
