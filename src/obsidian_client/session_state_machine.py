"""
Session state machine for managed processes.

Keeps the authoritative local view of every loaded process, issues lifecycle
commands, and reconciles optimistic status guesses with the remote side through
a per-process poll. Errors from remote calls propagate to the caller and never
touch the last-known-good record.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional

from .data_models.process import ManagedProcess, ProcessStatus
from .remote_api import routes
from .session_state_machine_helpers.poller import Sleeper, StatusPoller
from .session_state_machine_helpers.refresh_worker import BackgroundRefreshWorker
from .session_state_machine_helpers.registry import ProcessListener, ProcessRegistry
from .session_state_machine_helpers.transitions import transition_for
from .stream_multiplexer import StreamMultiplexer

logger = logging.getLogger(__name__)


class SessionStateMachine:
    """Load, command and reconcile managed processes."""

    def __init__(
        self,
        api,
        registry: ProcessRegistry,
        streams: StreamMultiplexer,
        *,
        poll_interval_seconds: float = 1.0,
        refresh_interval_seconds: float = 5.0,
        sleep: Optional[Sleeper] = None,
    ):
        self._api = api
        self._registry = registry
        self._streams = streams
        self._poller = StatusPoller(
            self._fetch_snapshot,
            self._registry.merge,
            interval_seconds=poll_interval_seconds,
            sleep=sleep,
        )
        self._refresh_interval = refresh_interval_seconds
        self._refresh_shutdown: Optional[asyncio.Event] = None
        self._refresh_task: Optional[asyncio.Task] = None

    @property
    def registry(self) -> ProcessRegistry:
        return self._registry

    @property
    def poller(self) -> StatusPoller:
        return self._poller

    @property
    def loaded(self) -> Optional[ManagedProcess]:
        return self._registry.loaded

    def get(self, process_id: str) -> Optional[ManagedProcess]:
        return self._registry.get(process_id)

    def watch(self, listener: ProcessListener) -> Callable[[], None]:
        """Register a listener called with each record after it changes."""
        return self._registry.watch(listener)

    async def _fetch_snapshot(self, process_id: str) -> Mapping[str, Any]:
        snapshot = await self._api.get_json(routes.server(process_id))
        if not isinstance(snapshot, Mapping):
            raise TypeError(f"Unexpected snapshot payload for process {process_id}: {type(snapshot).__name__}")
        return snapshot

    async def load(self, process_id: str) -> ManagedProcess:
        """Fetch *process_id*, merge it and make it the currently loaded process."""
        snapshot = await self._fetch_snapshot(process_id)
        record = self._registry.merge(snapshot)
        self._registry.set_loaded(record.id)
        return record

    async def load_all(self) -> List[ManagedProcess]:
        payload = await self._api.get_json(routes.servers())
        snapshots = payload if isinstance(payload, list) else []
        records = [self._registry.merge(snapshot) for snapshot in snapshots if isinstance(snapshot, Mapping)]
        logger.debug("Listed %d processes", len(records))
        return records

    def unload(self, process_id: Optional[str] = None) -> Optional[ManagedProcess]:
        """Drop a record, its poll and its console subscription."""
        resolved = self._registry.resolve_id(process_id, "unload")
        self._poller.cancel(resolved)
        self._streams.cleanup(resolved)
        return self._registry.remove(resolved)

    async def issue_command(self, command, process_id: Optional[str] = None) -> Optional[ManagedProcess]:
        """Send a lifecycle command, apply its optimistic status and start reconciliation."""
        transition = transition_for(command)
        resolved = self._registry.resolve_id(process_id, transition.command.value)
        await self._api.post_json(routes.lifecycle(resolved, transition.command.value))
        logger.info("Issued %s to process %s", transition.command.value, resolved)
        record = self._registry.mark_optimistic(resolved, transition.optimistic_status)
        self._poller.start(resolved, transition)
        return record

    async def start(self, process_id: Optional[str] = None) -> Optional[ManagedProcess]:
        return await self.issue_command("start", process_id)

    async def stop(self, process_id: Optional[str] = None) -> Optional[ManagedProcess]:
        return await self.issue_command("stop", process_id)

    async def restart(self, process_id: Optional[str] = None) -> Optional[ManagedProcess]:
        return await self.issue_command("restart", process_id)

    async def kill(self, process_id: Optional[str] = None) -> Optional[ManagedProcess]:
        return await self.issue_command("kill", process_id)

    def is_running_like(self, process_id: Optional[str] = None) -> bool:
        resolved = self._registry.resolve_id(process_id, "is_running_like")
        record = self._registry.get(resolved)
        return record is not None and record.is_running_like

    async def get_status(self, process_id: Optional[str] = None) -> ProcessStatus:
        """Fetch only the remote status, without touching the registry."""
        resolved = self._registry.resolve_id(process_id, "get_status")
        snapshot = await self._fetch_snapshot(resolved)
        return ProcessStatus.parse(snapshot.get("status"))

    async def create_process(self, data: Mapping[str, Any]) -> Optional[ManagedProcess]:
        payload = await self._api.put_json(routes.servers(), dict(data))
        if isinstance(payload, Mapping) and payload.get("id") is not None:
            return self._registry.merge(payload)
        await self.load_all()
        return None

    async def update_process(self, changes: Mapping[str, Any], process_id: Optional[str] = None) -> ManagedProcess:
        resolved = self._registry.resolve_id(process_id, "update_process")
        current = self._registry.get(resolved)
        body: Dict[str, Any] = current.to_payload() if current is not None else {"id": resolved}
        body.update(changes)
        await self._api.post_json(routes.server(resolved), body)
        return await self._reload(resolved)

    async def delete_process(self, process_id: Optional[str] = None) -> None:
        resolved = self._registry.resolve_id(process_id, "delete_process")
        await self._api.delete_json(routes.server(resolved))
        logger.info("Deleted process %s", resolved)
        self.unload(resolved)

    async def send_console_input(self, text: str, process_id: Optional[str] = None) -> None:
        resolved = self._registry.resolve_id(process_id, "send_console_input")
        await self._api.post_text(routes.send_command(resolved), text)

    async def _reload(self, process_id: str) -> ManagedProcess:
        snapshot = await self._fetch_snapshot(process_id)
        return self._registry.merge(snapshot)

    def start_refresh_loop(self) -> asyncio.Task:
        if self._refresh_task is not None and not self._refresh_task.done():
            return self._refresh_task
        self._refresh_shutdown = asyncio.Event()
        worker = BackgroundRefreshWorker(self._refresh_interval, self.load_all, self._refresh_shutdown)
        self._refresh_task = asyncio.create_task(worker.run_refresh_loop(), name="process-refresh")
        return self._refresh_task

    async def stop_refresh_loop(self) -> None:
        if self._refresh_task is None:
            return
        if self._refresh_shutdown is not None:
            self._refresh_shutdown.set()
        await asyncio.gather(self._refresh_task, return_exceptions=True)
        self._refresh_task = None
        self._refresh_shutdown = None

    async def shutdown(self) -> None:
        await self.stop_refresh_loop()
        await self._poller.cancel_all()


__all__ = ["SessionStateMachine"]
