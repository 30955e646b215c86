"""
Registry of cancellable long-running operations.

``begin`` allocates an :class:`OperationTracker` synchronously so a caller
holds a cancellable handle before any network I/O happens. ``run`` attaches the
coroutine that does the work; its outcome resolves the tracker exactly once.

Cancellation is cooperative. The tracker stops honoring progress at once, the
operation's remote cancel hook (if any) is awaited, and the tracker resolves as
cancelled when the operation body ends or, failing a remote acknowledgement
within ``cancel_ack_timeout_seconds``, when the body is cancelled locally.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from .errors import PanelClientError
from .tracker_registry_helpers.id_generator import TrackerIdGenerator
from .tracker_registry_helpers.models import (
    OperationCallbacks,
    OperationTracker,
    RemoteCancelled,
    TrackerKind,
)

logger = logging.getLogger(__name__)

RemoteCancel = Callable[[], Awaitable[Any]]


class TrackerRegistry:
    """Owned table of in-flight operation trackers keyed by tracker id."""

    def __init__(self, *, cancel_ack_timeout_seconds: float = 5.0, id_generator: Optional[TrackerIdGenerator] = None):
        self._cancel_ack_timeout = cancel_ack_timeout_seconds
        self._ids = id_generator or TrackerIdGenerator()
        self._trackers: Dict[str, OperationTracker] = {}
        self._tasks: Dict[str, asyncio.Task] = {}
        self._remote_cancels: Dict[str, RemoteCancel] = {}
        self._cancel_tasks: Dict[str, asyncio.Task] = {}

    def __len__(self) -> int:
        return len(self._trackers)

    def __contains__(self, tracker_id: object) -> bool:
        return tracker_id in self._trackers

    def get(self, tracker_id: str) -> Optional[OperationTracker]:
        return self._trackers.get(tracker_id)

    def active(self, process_id: Optional[str] = None) -> List[OperationTracker]:
        trackers = list(self._trackers.values())
        if process_id is None:
            return trackers
        return [tracker for tracker in trackers if tracker.process_id == process_id]

    def begin(
        self,
        kind: TrackerKind,
        process_id: Optional[str] = None,
        callbacks: Optional[OperationCallbacks] = None,
        *,
        label: Optional[str] = None,
    ) -> OperationTracker:
        tracker_id = self._ids.next_id(label or kind.value)
        tracker = OperationTracker(tracker_id, kind, process_id, callbacks or OperationCallbacks(), self)
        self._trackers[tracker_id] = tracker
        logger.debug("Began %s tracker %s for process %s", kind.value, tracker_id, process_id)
        return tracker

    def run(
        self,
        tracker: OperationTracker,
        body: Callable[[OperationTracker], Awaitable[Any]],
        *,
        remote_cancel: Optional[RemoteCancel] = None,
    ) -> asyncio.Task:
        """Schedule *body* for *tracker*; the body's return value becomes the success result."""
        if remote_cancel is not None:
            self._remote_cancels[tracker.tracker_id] = remote_cancel
        task = asyncio.create_task(self._execute(tracker, body), name=f"tracker-{tracker.tracker_id}")
        self._tasks[tracker.tracker_id] = task
        return task

    async def _execute(self, tracker: OperationTracker, body: Callable[[OperationTracker], Awaitable[Any]]) -> None:
        if tracker.is_terminal:
            return
        try:
            result = await body(tracker)
        except asyncio.CancelledError:
            tracker.mark_cancelled()
            return
        except RemoteCancelled:
            logger.info("Remote side cancelled tracker %s", tracker.tracker_id)
            tracker.mark_cancelled()
            return
        except Exception as exc:
            if tracker.cancel_requested:
                logger.debug("Tracker %s ended with %s after cancellation", tracker.tracker_id, exc)
                tracker.mark_cancelled()
                return
            message = str(exc) or type(exc).__name__
            logger.warning("Tracker %s failed: %s", tracker.tracker_id, message)
            tracker.fail(message)
            return
        if tracker.cancel_requested:
            tracker.mark_cancelled()
        else:
            tracker.succeed(result)

    def cancel(self, tracker_id: str) -> bool:
        """Request cancellation of *tracker_id*; unknown or finished trackers are a no-op."""
        tracker = self._trackers.get(tracker_id)
        if tracker is None or not tracker.request_cancel():
            return False
        logger.info("Cancelling tracker %s", tracker_id)
        remote_cancel = self._remote_cancels.get(tracker_id)
        if remote_cancel is None:
            self._suppress(tracker)
            return True
        self._cancel_tasks[tracker_id] = asyncio.create_task(
            self._cancel_remotely(tracker, remote_cancel), name=f"cancel-{tracker_id}"
        )
        return True

    async def _cancel_remotely(self, tracker: OperationTracker, remote_cancel: RemoteCancel) -> None:
        try:
            try:
                await remote_cancel()
            except PanelClientError as exc:
                logger.warning("Remote cancel for tracker %s failed: %s; cancelling locally", tracker.tracker_id, exc)
                self._suppress(tracker)
                return
            try:
                await asyncio.wait_for(tracker.wait(), timeout=self._cancel_ack_timeout)
            except asyncio.TimeoutError:
                logger.warning(
                    "No cancel acknowledgement for tracker %s within %.1fs; cancelling locally",
                    tracker.tracker_id,
                    self._cancel_ack_timeout,
                )
                self._suppress(tracker)
        finally:
            self._cancel_tasks.pop(tracker.tracker_id, None)

    def _suppress(self, tracker: OperationTracker) -> None:
        task = self._tasks.get(tracker.tracker_id)
        if task is not None and not task.done():
            task.cancel()
        tracker.mark_cancelled()

    def release(self, tracker_id: str) -> None:
        """Drop a finished tracker from the table; called by the tracker itself."""
        self._trackers.pop(tracker_id, None)
        self._tasks.pop(tracker_id, None)
        self._remote_cancels.pop(tracker_id, None)

    async def shutdown(self) -> None:
        """Cancel every in-flight operation locally and wait for the tasks to end."""
        tasks = list(self._tasks.values()) + list(self._cancel_tasks.values())
        for tracker in list(self._trackers.values()):
            tracker.request_cancel()
            self._suppress(tracker)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._cancel_tasks.clear()


__all__ = ["RemoteCancel", "TrackerRegistry"]
