"""Delivery loop for one console event stream."""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, FrozenSet

from ..errors import StreamClosedError, StreamError
from ..remote_api.sse import DEFAULT_EVENT, EventStream, ServerSentEvent
from .subscription import StreamSubscription

logger = logging.getLogger(__name__)

StreamOpener = Callable[[str], Awaitable[EventStream]]

CONSOLE_EVENT = "console"
DIAGNOSTIC_EVENTS = frozenset({"open", "error"})


def console_event_names(process_id: str) -> FrozenSet[str]:
    return frozenset({CONSOLE_EVENT, DEFAULT_EVENT, f"server-{process_id}-console"})


def _report_error(subscription: StreamSubscription, error: Exception) -> None:
    subscription.error = error
    if subscription.on_error is None:
        return
    try:
        subscription.on_error(error)
    except Exception:
        logger.exception("on_error callback raised for console of %s", subscription.process_id)


def _as_stream_error(exc: Exception, message: str, path: str) -> StreamError:
    if isinstance(exc, StreamError):
        return exc
    return StreamError(f"{message}: {exc}", path=path)


def _deliver(subscription: StreamSubscription, event: ServerSentEvent, data_events: FrozenSet[str]) -> None:
    if event.event in DIAGNOSTIC_EVENTS:
        logger.debug("Console %s reported %s: %s", subscription.process_id, event.event, event.data)
        return
    if event.event not in data_events:
        logger.debug("Ignoring console event %r for %s", event.event, subscription.process_id)
        return
    try:
        subscription.on_data(event.data)
    except Exception:
        logger.exception("on_data callback raised for console of %s", subscription.process_id)


async def pump_console(subscription: StreamSubscription, open_stream: StreamOpener, path: str) -> None:
    """Open the console stream and deliver its chunks until cancelled or the stream fails."""
    data_events = console_event_names(subscription.process_id)
    try:
        stream = await open_stream(subscription.process_id)
    except Exception as exc:
        logger.warning("Console stream for %s failed to open: %s", subscription.process_id, exc)
        _report_error(subscription, _as_stream_error(exc, "Failed to open console stream", path))
        return

    try:
        async for event in stream:
            if not subscription.active:
                break
            _deliver(subscription, event, data_events)
        else:
            if subscription.active:
                logger.warning("Console stream for %s closed by remote", subscription.process_id)
                _report_error(subscription, StreamClosedError(path))
    except Exception as exc:
        logger.warning("Console stream for %s failed: %s", subscription.process_id, exc)
        _report_error(subscription, _as_stream_error(exc, "Console stream failed", path))
    finally:
        await stream.close()
