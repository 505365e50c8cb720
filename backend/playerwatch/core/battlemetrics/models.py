"""Pydantic models for BattleMetrics API response data."""

from typing import Optional

from pydantic import BaseModel, ConfigDict


class ServerInfo(BaseModel):
    """Attributes of a BattleMetrics server resource."""

    server_id: str
    name: str
    ip: Optional[str] = None
    port: Optional[int] = None

    model_config = ConfigDict(frozen=True)

    @property
    def server_key(self) -> Optional[str]:
        """Key used to match the server to a game connection: ``ip-port``."""
        if self.ip is None or self.port is None:
            return None
        return f"{self.ip}-{self.port}"
