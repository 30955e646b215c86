"""Background process-list refresh worker."""

import asyncio
import logging
from typing import Awaitable, Callable

from ..errors import PanelClientError

logger = logging.getLogger(__name__)


class BackgroundRefreshWorker:
    """Manages the periodic process-list refresh loop."""

    def __init__(
        self,
        refresh_interval_seconds: float,
        perform_refresh: Callable[[], Awaitable[object]],
        shutdown_event: asyncio.Event,
    ):
        self.refresh_interval_seconds = refresh_interval_seconds
        self.perform_refresh = perform_refresh
        self.shutdown_event = shutdown_event

    async def run_refresh_loop(self):
        """Background loop to periodically re-list managed processes."""
        logger.debug("Process refresh loop started")

        while not self.shutdown_event.is_set():
            try:
                await self.perform_refresh()
            except (PanelClientError, ValueError, TypeError):
                logger.exception("Error in process refresh loop: ")

            try:
                await asyncio.wait_for(self.shutdown_event.wait(), timeout=self.refresh_interval_seconds)
                break
            except asyncio.TimeoutError:
                continue

        logger.debug("Process refresh loop stopped")
