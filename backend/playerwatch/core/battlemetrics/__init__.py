"""BattleMetrics client package."""

from .client import BattlemetricsClient, BattlemetricsError
from .models import ServerInfo

__all__ = ["BattlemetricsClient", "BattlemetricsError", "ServerInfo"]
