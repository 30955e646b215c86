"""
Reconciliation polling after lifecycle commands.

One poll runs per process id. Starting a new poll for an id cancels the
previous one first, so a process is never polled twice concurrently.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

from ..data_models.process import ManagedProcess
from ..errors import PanelClientError
from .transitions import StatusTransition

logger = logging.getLogger(__name__)

SnapshotFetcher = Callable[[str], Awaitable[Mapping[str, Any]]]
SnapshotMerger = Callable[[Mapping[str, Any]], ManagedProcess]
Sleeper = Callable[[float], Awaitable[None]]

POLL_FETCH_ERRORS = (PanelClientError, ValueError, TypeError)


class StatusPoller:
    """Polls a process until its status reaches the command's terminal set."""

    def __init__(
        self,
        fetch_snapshot: SnapshotFetcher,
        merge_snapshot: SnapshotMerger,
        *,
        interval_seconds: float,
        sleep: Optional[Sleeper] = None,
    ) -> None:
        self._fetch_snapshot = fetch_snapshot
        self._merge_snapshot = merge_snapshot
        self._interval = interval_seconds
        self._sleep = sleep or asyncio.sleep
        self._polls: Dict[str, asyncio.Task] = {}

    def is_polling(self, process_id: str) -> bool:
        task = self._polls.get(process_id)
        return task is not None and not task.done()

    def task_for(self, process_id: str) -> Optional[asyncio.Task]:
        return self._polls.get(process_id)

    def start(self, process_id: str, transition: StatusTransition) -> asyncio.Task:
        self.cancel(process_id)
        task = asyncio.create_task(
            self._poll(process_id, transition), name=f"poll-{process_id}-{transition.command.value}"
        )
        self._polls[process_id] = task
        task.add_done_callback(lambda finished, pid=process_id: self._forget(pid, finished))
        logger.debug("Polling %s after %s", process_id, transition.command.value)
        return task

    def cancel(self, process_id: str) -> None:
        task = self._polls.pop(process_id, None)
        if task is not None and not task.done():
            task.cancel()

    async def cancel_all(self) -> None:
        tasks = list(self._polls.values())
        self._polls.clear()
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def _forget(self, process_id: str, finished: asyncio.Task) -> None:
        if self._polls.get(process_id) is finished:
            del self._polls[process_id]

    async def _poll(self, process_id: str, transition: StatusTransition) -> None:
        while True:
            await self._sleep(self._interval)
            try:
                snapshot = await self._fetch_snapshot(process_id)
                record = self._merge_snapshot(snapshot)
            except POLL_FETCH_ERRORS as exc:
                logger.warning("Status poll for %s failed: %s", process_id, exc)
                continue
            if transition.is_terminal(record.status):
                logger.debug(
                    "Poll for %s after %s settled at %s",
                    process_id,
                    transition.command.value,
                    record.status.value,
                )
                return


__all__ = ["POLL_FETCH_ERRORS", "Sleeper", "StatusPoller"]
