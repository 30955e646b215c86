"""HTTP session management for the panel API client."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Optional

import aiohttp

from ..http_utils import session_is_open

if TYPE_CHECKING:
    from ..config import ClientSettings

logger = logging.getLogger(__name__)


class SessionManager:
    """Manages HTTP session lifecycle for the panel API."""

    def __init__(self, settings: ClientSettings) -> None:
        self._settings = settings
        self._session: Optional[aiohttp.ClientSession] = None
        self._session_lock = asyncio.Lock()

    async def initialize(self) -> None:
        """Ensure the HTTP session is ready."""
        async with self._session_lock:
            if session_is_open(self._session):
                return

            timeout = aiohttp.ClientTimeout(
                total=self._settings.request_timeout_seconds,
                connect=self._settings.connect_timeout_seconds,
            )
            self._session = aiohttp.ClientSession(timeout=timeout)
            logger.debug("Opened HTTP session for %s", self._settings.base_url)

    async def close(self) -> None:
        """Close the HTTP session if one exists."""
        async with self._session_lock:
            if self._session is not None:
                await self._session.close()
                self._session = None
                logger.debug("Closed HTTP session for %s", self._settings.base_url)

    def get_session(self) -> aiohttp.ClientSession:
        """Get the current session, raising if not initialized."""
        if self._session is None:
            raise RuntimeError("HTTP session not initialized")
        return self._session

    def stream_timeout(self) -> aiohttp.ClientTimeout:
        """Timeout for long-lived event streams: bounded connect, unbounded body."""
        return aiohttp.ClientTimeout(total=None, connect=self._settings.connect_timeout_seconds, sock_read=None)

    def transfer_timeout(self) -> aiohttp.ClientTimeout:
        """Timeout for file transfers: no overall limit, but a stalled socket still fails."""
        return aiohttp.ClientTimeout(
            total=None,
            connect=self._settings.connect_timeout_seconds,
            sock_read=self._settings.request_timeout_seconds,
        )

    @property
    def session(self) -> Optional[aiohttp.ClientSession]:
        """Access the current session without raising if absent."""
        return self._session
