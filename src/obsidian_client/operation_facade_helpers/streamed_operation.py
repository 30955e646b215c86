"""
Runner for operations that report progress over an event stream.

The status stream is opened first so no report is missed, then the optional
start request is sent. The operation resolves on the first terminal signal:
a ``complete`` report, a successful start request (for operations whose
request returns only when the work is done), a remote ``cancelled`` report,
an ``error`` report, or the stream ending early.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, Set

from ..errors import OperationFailedError, PanelClientError, StreamClosedError
from ..progress_aggregator import RatioProgressAggregator
from ..remote_api.sse import EventStream
from ..tracker_registry_helpers.models import OperationTracker, RemoteCancelled
from .signals import SignalInterpreter, SignalKind

logger = logging.getLogger(__name__)

StreamOpener = Callable[[], Awaitable[EventStream]]
StartRequest = Callable[[], Awaitable[Any]]


class StreamedOperation:
    """Drives one tracked operation from its progress stream."""

    def __init__(
        self,
        open_stream: StreamOpener,
        interpret: SignalInterpreter,
        aggregator: RatioProgressAggregator,
        *,
        start: Optional[StartRequest] = None,
        completes_with_request: bool = False,
    ) -> None:
        self._open_stream = open_stream
        self._interpret = interpret
        self._aggregator = aggregator
        self._start = start
        self._completes_with_request = completes_with_request

    async def run(self, tracker: OperationTracker) -> Any:
        stream = await self._open_stream()
        tracker.report_progress(self._aggregator.snapshot())
        events = asyncio.create_task(self._consume(stream, tracker), name=f"{tracker.tracker_id}-events")
        request: Optional[asyncio.Task] = None
        waiting: Set[asyncio.Task] = {events}
        if self._start is not None:
            request = asyncio.create_task(self._start(), name=f"{tracker.tracker_id}-request")
            waiting.add(request)
        try:
            while True:
                done, waiting = await asyncio.wait(waiting, return_when=asyncio.FIRST_COMPLETED)
                if events in done:
                    events.result()
                    if request is not None and request in done:
                        return self._request_outcome(request, tracker)
                    return None
                if request is not None and request in done:
                    outcome = self._request_outcome(request, tracker)
                    request = None
                    if self._completes_with_request and not tracker.cancel_requested:
                        return outcome
        finally:
            for task in waiting:
                task.cancel()
            if waiting:
                await asyncio.gather(*waiting, return_exceptions=True)
            await stream.close()

    @staticmethod
    def _request_outcome(request: asyncio.Task, tracker: OperationTracker) -> Any:
        try:
            return request.result()
        except PanelClientError as exc:
            if tracker.cancel_requested:
                logger.debug("Start request for %s ended after cancellation: %s", tracker.tracker_id, exc)
                return None
            raise

    async def _consume(self, stream: EventStream, tracker: OperationTracker) -> None:
        async for event in stream:
            signal = self._interpret(event)
            if signal.kind is SignalKind.PROGRESS:
                tracker.report_progress(self._aggregator.update(signal.processed, signal.total))
            elif signal.kind is SignalKind.COMPLETE:
                if signal.total is not None or signal.processed:
                    tracker.report_progress(self._aggregator.update(signal.processed, signal.total))
                return
            elif signal.kind is SignalKind.CANCELLED:
                raise RemoteCancelled(tracker.tracker_id)
            elif signal.kind is SignalKind.ERROR:
                raise OperationFailedError(signal.message)
        raise StreamClosedError(stream.path)


__all__ = ["StartRequest", "StreamOpener", "StreamedOperation"]
