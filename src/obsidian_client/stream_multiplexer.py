"""
Console stream multiplexer.

Holds at most one live console subscription per process id. Subscribing again
for the same id tears the previous subscription down before the new stream is
opened, so two callbacks never share or double-consume one process's output.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Dict, Optional, Set

from .remote_api import routes
from .remote_api.sse import EventStream
from .stream_multiplexer_helpers.pump import StreamOpener, pump_console
from .stream_multiplexer_helpers.subscription import DataCallback, ErrorCallback, StreamSubscription

logger = logging.getLogger(__name__)

Unsubscribe = Callable[[], None]


class StreamMultiplexer:
    """Owned table of console subscriptions keyed by process id."""

    def __init__(self, open_stream: StreamOpener):
        self._open_stream = open_stream
        self._subscriptions: Dict[str, StreamSubscription] = {}
        self._closing: Set[asyncio.Task] = set()

    @classmethod
    def for_api(cls, api) -> "StreamMultiplexer":
        async def open_console(process_id: str) -> EventStream:
            return await api.open_event_stream(routes.console(process_id))

        return cls(open_console)

    def subscribe(self, process_id: str, on_data: DataCallback, on_error: Optional[ErrorCallback] = None) -> Unsubscribe:
        """Replace any existing subscription for *process_id* and start streaming."""
        if not process_id:
            raise ValueError("process_id is required to subscribe to a console")
        self.cleanup(process_id)

        subscription = StreamSubscription(process_id=process_id, on_data=on_data, on_error=on_error)
        subscription.task = asyncio.create_task(
            pump_console(subscription, self._open_stream, routes.console(process_id)),
            name=f"console-{process_id}",
        )
        self._subscriptions[process_id] = subscription
        logger.debug("Subscribed to console of %s (generation %d)", process_id, subscription.generation)

        def unsubscribe() -> None:
            current = self._subscriptions.get(process_id)
            if current is subscription:
                self.cleanup(process_id)
            else:
                subscription.cleanup()

        return unsubscribe

    def has_active(self, process_id: str) -> bool:
        return process_id in self._subscriptions

    def subscription_for(self, process_id: str) -> Optional[StreamSubscription]:
        return self._subscriptions.get(process_id)

    def cleanup(self, process_id: str) -> None:
        """Tear down the subscription for *process_id*; a no-op when there is none."""
        subscription = self._subscriptions.pop(process_id, None)
        if subscription is None:
            return
        subscription.cleanup()
        if subscription.task is not None and not subscription.task.done():
            self._closing.add(subscription.task)
            subscription.task.add_done_callback(self._closing.discard)
        logger.debug("Cleaned up console subscription for %s", process_id)

    async def wait_closed(self, process_id: str) -> None:
        """Clean up and wait until the underlying connection is released."""
        subscription = self._subscriptions.get(process_id)
        self.cleanup(process_id)
        if subscription is not None and subscription.task is not None:
            await asyncio.gather(subscription.task, return_exceptions=True)

    async def close_all(self) -> None:
        for process_id in list(self._subscriptions):
            self.cleanup(process_id)
        pending = list(self._closing)
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    def __len__(self) -> int:
        return len(self._subscriptions)


__all__ = ["StreamMultiplexer", "Unsubscribe"]
