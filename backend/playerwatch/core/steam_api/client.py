"""Steam Web API HTTP client with error mapping and authentication."""

import asyncio
from typing import Optional, Dict, Any, List, Sequence
import httpx
import structlog
from pydantic import ValidationError

from .constants import SteamEndpoints, STEAM_BATCH_SIZE, DEFAULT_TIMEOUT_SECONDS
from .errors import (
    SteamAPIError,
    RateLimitError,
    AuthenticationError,
    ForbiddenError,
    NotFoundError,
    ServiceUnavailableError,
    BadRequestError,
    MalformedResponseError,
)
from .models import PlayerSummaryDTO, PlayerBansDTO, FriendListDTO, FriendDTO

logger = structlog.get_logger(__name__)


class SteamAPIClient:
    """Steam Web API client.

    Requests are single-attempt: transient failures are raised to the caller,
    which decides how to degrade.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.steampowered.com",
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize Steam API client.

        Args:
            api_key: Steam Web API key
            base_url: API root, overridable for tests
            timeout: Total seconds allowed per request
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

        # HTTP session
        self.session: Optional[httpx.AsyncClient] = None
        self._session_lock = asyncio.Lock()

    async def __aenter__(self):
        """Async context manager entry."""
        await self.start_session()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object | None,
    ) -> None:
        """Async context manager exit."""
        await self.close()

    async def start_session(self) -> None:
        """Start the httpx session."""
        if self.session is None or self.session.is_closed:
            async with self._session_lock:
                if self.session is None or self.session.is_closed:
                    self.session = httpx.AsyncClient(
                        base_url=self.base_url,
                        headers={"User-Agent": "playerwatch/1.0"},
                        timeout=httpx.Timeout(self.timeout),
                        transport=self._transport,
                    )
                    logger.info(
                        "Steam API client session started",
                        base_url=self.base_url,
                        api_key_prefix="[REDACTED]" if self.api_key else "None",
                    )

    async def close(self) -> None:
        """Close the httpx session."""
        if self.session and not self.session.is_closed:
            await self.session.aclose()
            logger.info("Steam API client session closed")

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        """Raise specific SteamAPIError subclass for non-200 responses."""
        status = response.status_code
        if status == 200:
            return
        if status == 400:
            raise BadRequestError("Invalid request parameters", status_code=status)
        if status == 401:
            raise AuthenticationError("Unauthorized", status_code=status)
        if status == 403:
            raise ForbiddenError("Access forbidden", status_code=status)
        if status == 404:
            raise NotFoundError("Resource not found", status_code=status)
        if status == 429:
            retry_after = response.headers.get("Retry-After")
            raise RateLimitError(
                "Rate limit exceeded",
                status_code=status,
                retry_after=float(retry_after) if retry_after else None,
            )
        if status == 503:
            raise ServiceUnavailableError("Service unavailable", status_code=status)
        raise SteamAPIError(f"Unexpected status {status}", status_code=status)

    async def _get(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """Issue a GET request and return the decoded JSON object."""
        await self.start_session()
        if self.session is None:
            raise SteamAPIError("Session not initialized")

        try:
            response = await self.session.get(
                path, params={"key": self.api_key, **params}
            )
        except httpx.TimeoutException as e:
            raise asyncio.TimeoutError(str(e)) from e
        except httpx.RequestError as e:
            raise SteamAPIError(f"Request failed: {e}") from e

        self._raise_for_status(response)

        try:
            data = response.json()
        except ValueError as e:
            raise MalformedResponseError(
                "Response is not valid JSON", status_code=response.status_code
            ) from e
        if not isinstance(data, dict):
            raise MalformedResponseError(
                f"Expected JSON object, got {type(data).__name__}",
                status_code=response.status_code,
            )
        return data

    @staticmethod
    def _check_batch(steam_ids: Sequence[str]) -> None:
        if len(steam_ids) > STEAM_BATCH_SIZE:
            raise BadRequestError(
                f"At most {STEAM_BATCH_SIZE} ids per request, got {len(steam_ids)}"
            )

    async def get_player_summaries(
        self, steam_ids: Sequence[str]
    ) -> List[PlayerSummaryDTO]:
        """Get player summaries for up to 100 SteamID64s."""
        if not steam_ids:
            return []
        self._check_batch(steam_ids)

        data = await self._get(
            SteamEndpoints.PLAYER_SUMMARIES, {"steamids": ",".join(steam_ids)}
        )
        players = (data.get("response") or {}).get("players")
        if players is None:
            raise MalformedResponseError("Missing response.players")
        try:
            return [PlayerSummaryDTO(**player) for player in players]
        except (ValidationError, TypeError) as e:
            raise MalformedResponseError(f"Invalid player summary: {e}") from e

    async def get_friend_list(self, steam_id: str) -> FriendListDTO:
        """Get the friend list of one account.

        Raises:
            AuthenticationError: The profile's friend list is private
        """
        data = await self._get(
            SteamEndpoints.FRIEND_LIST, {"steamid": steam_id, "relationship": "friend"}
        )
        friends_list = data.get("friendslist")
        if friends_list is None:
            # Accounts without friends answer with an empty object
            return FriendListDTO(steam_id=steam_id)
        try:
            friends = [FriendDTO(**friend) for friend in friends_list.get("friends", [])]
        except (ValidationError, TypeError, AttributeError) as e:
            raise MalformedResponseError(f"Invalid friend list: {e}") from e
        return FriendListDTO(steam_id=steam_id, friends=friends)

    async def get_player_bans(self, steam_ids: Sequence[str]) -> List[PlayerBansDTO]:
        """Get ban records for up to 100 SteamID64s."""
        if not steam_ids:
            return []
        self._check_batch(steam_ids)

        data = await self._get(
            SteamEndpoints.PLAYER_BANS, {"steamids": ",".join(steam_ids)}
        )
        players = data.get("players")
        if players is None:
            raise MalformedResponseError("Missing players")
        try:
            return [PlayerBansDTO(**player) for player in players]
        except (ValidationError, TypeError) as e:
            raise MalformedResponseError(f"Invalid ban record: {e}") from e
