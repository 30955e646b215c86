"""
Panel client context.

One :class:`PanelClient` per remote panel. It owns the process registry, the
tracker table, the console subscriptions and the HTTP session, and tears them
down in that order on :meth:`PanelClient.close`.
"""

from __future__ import annotations

import logging
from typing import Optional

from .action_log import ActionLog
from .config import ClientSettings
from .dependencies_factory import ClientDependencies
from .operation_facade import OperationFacade
from .runtime_versions import RuntimeVersionManager
from .session_state_machine import SessionStateMachine
from .stream_multiplexer import StreamMultiplexer
from .tracker_registry import TrackerRegistry

logger = logging.getLogger(__name__)


class PanelClient:
    """Entry point bundling sessions, operations, runtimes and console streams."""

    def __init__(
        self,
        settings: Optional[ClientSettings] = None,
        *,
        dependencies: Optional[ClientDependencies] = None,
    ) -> None:
        self._deps = dependencies or ClientDependencies.create(settings)
        self._closed = False

    @property
    def settings(self) -> ClientSettings:
        return self._deps.settings

    @property
    def api(self):
        return self._deps.api

    @property
    def sessions(self) -> SessionStateMachine:
        return self._deps.sessions

    @property
    def operations(self) -> OperationFacade:
        return self._deps.operations

    @property
    def runtimes(self) -> RuntimeVersionManager:
        return self._deps.runtimes

    @property
    def streams(self) -> StreamMultiplexer:
        return self._deps.streams

    @property
    def trackers(self) -> TrackerRegistry:
        return self._deps.trackers

    @property
    def actions(self) -> ActionLog:
        return self._deps.actions

    @property
    def closed(self) -> bool:
        return self._closed

    async def initialize(self) -> None:
        await self._deps.api.initialize()
        self._closed = False
        logger.info("Panel client ready for %s", self._deps.settings.base_url)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._deps.trackers.shutdown()
        await self._deps.sessions.shutdown()
        await self._deps.streams.close_all()
        await self._deps.api.close()
        logger.info("Panel client closed")

    async def __aenter__(self) -> "PanelClient":
        await self.initialize()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()


__all__ = ["PanelClient"]
