"""
Steam Web API client package.

Provides an httpx client for the ISteamUser endpoints used to resolve player
names, friend lists and ban records.
"""

from .client import SteamAPIClient
from .constants import STEAMID64_LENGTH, STEAM_BATCH_SIZE, SteamEndpoints
from .errors import (
    SteamAPIError,
    RateLimitError,
    AuthenticationError,
    ForbiddenError,
    NotFoundError,
    BadRequestError,
    ServiceUnavailableError,
    MalformedResponseError,
)
from .models import PlayerSummaryDTO, PlayerBansDTO, FriendListDTO, FriendDTO

__all__ = [
    "SteamAPIClient",
    "STEAMID64_LENGTH",
    "STEAM_BATCH_SIZE",
    "SteamEndpoints",
    "SteamAPIError",
    "RateLimitError",
    "AuthenticationError",
    "ForbiddenError",
    "NotFoundError",
    "BadRequestError",
    "ServiceUnavailableError",
    "MalformedResponseError",
    "PlayerSummaryDTO",
    "PlayerBansDTO",
    "FriendListDTO",
    "FriendDTO",
]
