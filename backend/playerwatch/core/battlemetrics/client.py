"""BattleMetrics HTTP client for player and server lookups."""

import asyncio
from typing import Any, Dict, Optional

import httpx
import structlog

from .models import ServerInfo

logger = structlog.get_logger(__name__)


class BattlemetricsError(Exception):
    """Failed BattleMetrics request."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class BattlemetricsClient:
    """Client for the public BattleMetrics JSON:API.

    Implements the monitoring name and server lookup capabilities. An API
    token is optional; anonymous requests get a lower rate limit.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = "https://api.battlemetrics.com",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self.session: Optional[httpx.AsyncClient] = None
        self._session_lock = asyncio.Lock()

    async def __aenter__(self):
        await self.start_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def start_session(self) -> None:
        """Start the httpx session."""
        if self.session is None or self.session.is_closed:
            async with self._session_lock:
                if self.session is None or self.session.is_closed:
                    headers = {"Accept": "application/json"}
                    if self.api_key:
                        headers["Authorization"] = f"Bearer {self.api_key}"
                    self.session = httpx.AsyncClient(
                        base_url=self.base_url,
                        headers=headers,
                        timeout=httpx.Timeout(self.timeout),
                        transport=self._transport,
                    )

    async def close(self) -> None:
        """Close the httpx session."""
        if self.session and not self.session.is_closed:
            await self.session.aclose()

    async def _get_resource(self, path: str) -> Dict[str, Any]:
        """GET a JSON:API resource and return its ``data`` object."""
        await self.start_session()
        if self.session is None:
            raise BattlemetricsError("Session not initialized")

        try:
            response = await self.session.get(path)
        except httpx.TimeoutException as e:
            raise asyncio.TimeoutError(str(e)) from e
        except httpx.RequestError as e:
            raise BattlemetricsError(f"Request failed: {e}") from e

        if response.status_code != 200:
            raise BattlemetricsError(
                f"Unexpected status {response.status_code}",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise BattlemetricsError("Response is not valid JSON") from e

        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, dict):
            raise BattlemetricsError("Missing data object")
        return data

    async def lookup_name(self, player_id: str) -> Optional[str]:
        """Get the current name of a BattleMetrics player."""
        data = await self._get_resource(f"/players/{player_id}")
        name = (data.get("attributes") or {}).get("name")
        if not name:
            logger.debug("BattleMetrics player has no name", player_id=player_id)
            return None
        return name

    async def lookup_server(self, server_id: str) -> Optional[ServerInfo]:
        """Get name and address of a BattleMetrics server."""
        data = await self._get_resource(f"/servers/{server_id}")
        attributes = data.get("attributes") or {}
        if not attributes.get("name"):
            return None
        port = attributes.get("port")
        return ServerInfo(
            server_id=str(data.get("id", server_id)),
            name=attributes["name"],
            ip=attributes.get("ip"),
            port=int(port) if port is not None else None,
        )
