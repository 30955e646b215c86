"""Value types for tracked operations."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Optional

from ..progress_aggregator import ProgressState

if TYPE_CHECKING:
    from ..tracker_registry import TrackerRegistry

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ProgressState], None]
SuccessCallback = Callable[[Any], None]
ErrorCallback = Callable[[str], None]
CancelledCallback = Callable[[], None]


class TrackerKind(str, Enum):
    ARCHIVE = "archive"
    EXTRACT = "extract"
    UPLOAD = "upload"
    UPLOAD_URL = "upload_url"
    DOWNLOAD = "download"
    SEARCH = "search"
    RUNTIME_INSTALL = "runtime_install"


class TrackerState(str, Enum):
    RUNNING = "running"
    CANCELLING = "cancelling"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STATES


_TERMINAL_STATES = frozenset({TrackerState.SUCCEEDED, TrackerState.FAILED, TrackerState.CANCELLED})


class RemoteCancelled(Exception):
    """Raised by an operation body when the remote side reports cancellation."""


@dataclass
class OperationCallbacks:
    """Caller-supplied callbacks; exactly one terminal callback fires per tracker."""

    on_progress: Optional[ProgressCallback] = None
    on_success: Optional[SuccessCallback] = None
    on_error: Optional[ErrorCallback] = None
    on_cancelled: Optional[CancelledCallback] = None


def _invoke(name: str, tracker_id: str, callback: Optional[Callable[..., None]], *args: Any) -> None:
    if callback is None:
        return
    try:
        callback(*args)
    except Exception:
        logger.exception("%s callback raised for tracker %s", name, tracker_id)


class OperationTracker:
    """
    Handle for one long-running operation.

    Trackers are allocated synchronously by :class:`TrackerRegistry.begin` and
    resolve exactly once to succeeded, failed or cancelled. Progress reports are
    ignored once cancellation has been requested or a terminal state reached,
    and never go backwards.
    """

    def __init__(
        self,
        tracker_id: str,
        kind: TrackerKind,
        process_id: Optional[str],
        callbacks: OperationCallbacks,
        registry: TrackerRegistry,
    ) -> None:
        self.tracker_id = tracker_id
        self.kind = kind
        self.process_id = process_id
        self.state = TrackerState.RUNNING
        self.result: Any = None
        self.error: Optional[str] = None
        self.last_progress: Optional[ProgressState] = None
        self._callbacks = callbacks
        self._registry = registry
        self._done = asyncio.Event()

    def __repr__(self) -> str:
        return f"OperationTracker({self.tracker_id!r}, kind={self.kind.value}, state={self.state.value})"

    @property
    def is_terminal(self) -> bool:
        return self.state.is_terminal

    @property
    def cancel_requested(self) -> bool:
        return self.state is TrackerState.CANCELLING

    def cancel(self) -> bool:
        """Request cancellation; returns False when nothing was left to cancel."""
        return self._registry.cancel(self.tracker_id)

    async def wait(self) -> TrackerState:
        await self._done.wait()
        return self.state

    def report_progress(self, state: ProgressState) -> None:
        if self.state is not TrackerState.RUNNING:
            return
        if self.last_progress is not None and state.progress < self.last_progress.progress:
            return
        self.last_progress = state
        _invoke("on_progress", self.tracker_id, self._callbacks.on_progress, state)

    def request_cancel(self) -> bool:
        if self.state is not TrackerState.RUNNING:
            return False
        self.state = TrackerState.CANCELLING
        return True

    def succeed(self, result: Any = None) -> bool:
        if self.is_terminal:
            return False
        if self.last_progress is None or self.last_progress.progress < 1.0:
            self.report_progress(ProgressState.complete())
        self.result = result
        self._finish(TrackerState.SUCCEEDED)
        _invoke("on_success", self.tracker_id, self._callbacks.on_success, result)
        return True

    def fail(self, message: str) -> bool:
        if self.is_terminal:
            return False
        self.error = message
        self._finish(TrackerState.FAILED)
        _invoke("on_error", self.tracker_id, self._callbacks.on_error, message)
        return True

    def mark_cancelled(self) -> bool:
        if self.is_terminal:
            return False
        self._finish(TrackerState.CANCELLED)
        _invoke("on_cancelled", self.tracker_id, self._callbacks.on_cancelled)
        return True

    def _finish(self, state: TrackerState) -> None:
        self.state = state
        self._done.set()
        self._registry.release(self.tracker_id)
        logger.debug("Tracker %s finished: %s", self.tracker_id, state.value)


__all__ = [
    "OperationCallbacks",
    "OperationTracker",
    "RemoteCancelled",
    "TrackerKind",
    "TrackerState",
]
