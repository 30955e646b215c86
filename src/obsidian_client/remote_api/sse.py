"""
Server-Sent Events decoding on top of aiohttp response streams.

The panel pushes console output, operation progress and runtime install
reports as ``text/event-stream`` responses. :class:`SseDecoder` turns the
line protocol into :class:`ServerSentEvent` values and :class:`EventStream`
owns the HTTP response so callers can release it deterministically.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, AsyncIterator, List, Optional

import aiohttp
import orjson

logger = logging.getLogger(__name__)

DEFAULT_EVENT = "message"


@dataclass(frozen=True)
class ServerSentEvent:
    """One dispatched event from an event stream."""

    event: str
    data: str
    id: Optional[str] = None
    retry: Optional[int] = None

    def json(self) -> Any:
        """Decode the event data as JSON."""
        return orjson.loads(self.data)


class SseDecoder:
    """Incremental decoder for the ``text/event-stream`` line format."""

    def __init__(self) -> None:
        self._event_type = ""
        self._data_lines: List[str] = []
        self._last_event_id: Optional[str] = None
        self._retry: Optional[int] = None

    @property
    def last_event_id(self) -> Optional[str]:
        return self._last_event_id

    def feed_line(self, line: str) -> Optional[ServerSentEvent]:
        """Consume one line (without its terminator); return an event when one is complete."""
        if line == "":
            return self._dispatch()
        if line.startswith(":"):
            return None

        field_name, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]

        if field_name == "event":
            self._event_type = value
        elif field_name == "data":
            self._data_lines.append(value)
        elif field_name == "id":
            if "\0" not in value:
                self._last_event_id = value
        elif field_name == "retry":
            if value.isdigit():
                self._retry = int(value)
        else:
            logger.debug("Ignoring unknown event-stream field %r", field_name)
        return None

    def _dispatch(self) -> Optional[ServerSentEvent]:
        if not self._data_lines:
            self._event_type = ""
            return None
        event = ServerSentEvent(
            event=self._event_type or DEFAULT_EVENT,
            data="\n".join(self._data_lines),
            id=self._last_event_id,
            retry=self._retry,
        )
        self._event_type = ""
        self._data_lines = []
        return event


class EventStream:
    """Async iterator over the events of one open event-stream response."""

    def __init__(self, response: aiohttp.ClientResponse, path: str) -> None:
        self._response = response
        self._path = path
        self._decoder = SseDecoder()
        self._closed = False

    @property
    def path(self) -> str:
        return self._path

    @property
    def closed(self) -> bool:
        return self._closed

    def __aiter__(self) -> AsyncIterator[ServerSentEvent]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[ServerSentEvent]:
        while not self._closed:
            raw = await self._response.content.readline()
            if not raw:
                logger.debug("Event stream %s reached end of body", self._path)
                return
            line = raw.decode("utf-8", errors="replace").rstrip("\r\n")
            event = self._decoder.feed_line(line)
            if event is not None:
                yield event

    async def close(self) -> None:
        """Release the underlying HTTP response; safe to call repeatedly."""
        if self._closed:
            return
        self._closed = True
        self._response.close()
        logger.debug("Closed event stream %s", self._path)

    async def __aenter__(self) -> "EventStream":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()


__all__ = ["DEFAULT_EVENT", "EventStream", "ServerSentEvent", "SseDecoder"]
