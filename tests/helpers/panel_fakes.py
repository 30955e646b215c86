"""Fake panel API, scripted event streams and callback recorders for tests."""

from __future__ import annotations

import asyncio
import inspect
from collections import deque
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Deque, Dict, List, Optional, Tuple

import orjson

from obsidian_client.errors import RemoteRequestError
from obsidian_client.remote_api.sse import ServerSentEvent


_EOF = object()


def sse(event: str, data: Any = None) -> ServerSentEvent:
    """Build an event; non-string data is JSON encoded."""
    if data is None:
        text = ""
    elif isinstance(data, str):
        text = data
    else:
        text = orjson.dumps(data).decode("utf-8")
    return ServerSentEvent(event=event, data=text)


def snapshot(process_id: str, status: str, **fields: Any) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"id": process_id, "status": status, "name": process_id}
    payload.update(fields)
    return payload


async def drain(rounds: int = 10) -> None:
    """Let scheduled tasks run until they block."""
    for _ in range(rounds):
        await asyncio.sleep(0)


class FakeEventStream:
    """Scripted stand-in for an open event stream."""

    def __init__(self, *events: ServerSentEvent, path: str = "/fake/stream", finished: bool = False):
        self.path = path
        self.closed = False
        self.close_calls = 0
        self._queue: "asyncio.Queue[Any]" = asyncio.Queue()
        for event in events:
            self._queue.put_nowait(event)
        if finished:
            self._queue.put_nowait(_EOF)

    def push(self, *events: ServerSentEvent) -> None:
        for event in events:
            self._queue.put_nowait(event)

    def finish(self) -> None:
        """End the stream as if the remote side closed it."""
        self._queue.put_nowait(_EOF)

    def fail(self, error: BaseException) -> None:
        self._queue.put_nowait(error)

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        while not self.closed:
            item = await self._queue.get()
            if item is _EOF or self.closed:
                return
            if isinstance(item, BaseException):
                raise item
            yield item

    async def close(self) -> None:
        self.close_calls += 1
        if self.closed:
            return
        self.closed = True
        self._queue.put_nowait(_EOF)


@dataclass
class RecordedCall:
    method: str
    path: str
    payload: Any = None
    params: Optional[Dict[str, Any]] = None


class FakeRemoteApi:
    """In-memory panel API that records calls and replays scripted responses."""

    def __init__(self):
        self.calls: List[RecordedCall] = []
        self._responses: Dict[Tuple[str, str], Deque[Any]] = {}
        self._streams: Dict[str, Deque[Any]] = {}
        self.uploads: List[Tuple[str, Path, Dict[str, Any]]] = []
        self.download_bodies: Dict[str, List[bytes]] = {}
        self.initialized = False
        self.closed = False

    def respond(self, method: str, path: str, *values: Any) -> None:
        """Script responses for ``method path``; the last value repeats."""
        self._responses[(method.upper(), path)] = deque(values)

    def stream(self, path: str, *streams: Any) -> None:
        """Script the streams (or errors) returned by successive opens of *path*."""
        self._streams[path] = deque(streams)

    def calls_to(self, method: str, path: Optional[str] = None) -> List[RecordedCall]:
        return [call for call in self.calls if call.method == method and (path is None or call.path == path)]

    async def _respond(self, method: str, path: str, payload: Any = None, params: Optional[Dict[str, Any]] = None) -> Any:
        self.calls.append(RecordedCall(method, path, payload, dict(params) if params else None))
        script = self._responses.get((method, path))
        if not script:
            return None
        value = script.popleft() if len(script) > 1 else script[0]
        if isinstance(value, BaseException):
            raise value
        if callable(value):
            value = value(payload)
            if inspect.isawaitable(value):
                value = await value
        return value

    async def initialize(self) -> None:
        self.initialized = True

    async def close(self) -> None:
        self.closed = True

    async def get_json(self, path, params=None):
        return await self._respond("GET", path, params=params)

    async def post_json(self, path, payload=None, *, headers=None):
        return await self._respond("POST", path, payload)

    async def put_json(self, path, payload):
        return await self._respond("PUT", path, payload)

    async def delete_json(self, path, payload=None):
        return await self._respond("DELETE", path, payload)

    async def post_text(self, path, text, *, params=None):
        return await self._respond("POST", path, text, params=params)

    async def get_text(self, path, params=None):
        return await self._respond("GET", path, params=params)

    async def upload_file(self, path, file_path, *, params=None, headers=None, on_chunk=None):
        self.uploads.append((path, Path(file_path), dict(params or {})))
        return await self._respond("POST", path, params=params)

    async def download_to(self, path, destination, *, params=None, on_chunk=None):
        await self._respond("GET", path, params=params)
        chunks = self.download_bodies.get(path, [])
        total = sum(len(chunk) for chunk in chunks if isinstance(chunk, bytes))
        written = 0
        with Path(destination).open("wb") as handle:
            for chunk in chunks:
                if isinstance(chunk, BaseException):
                    raise chunk
                handle.write(chunk)
                written += len(chunk)
                if on_chunk is not None:
                    on_chunk(written, total)
                await asyncio.sleep(0)
        return written

    async def open_event_stream(self, path, params=None):
        self.calls.append(RecordedCall("STREAM", path, None, dict(params) if params else None))
        script = self._streams.get(path)
        if not script:
            raise RemoteRequestError(f"No stream scripted for {path}", path=path, status=404)
        value = script.popleft() if len(script) > 1 else script[0]
        if isinstance(value, BaseException):
            raise value
        return value


class CallbackRecorder:
    """Collects tracker callbacks in arrival order."""

    def __init__(self):
        self.events: List[Tuple[str, Any]] = []
        self.states: List[Any] = []

    def on_progress(self, state) -> None:
        self.states.append(state)
        self.events.append(("progress", state.progress))

    def on_success(self, result) -> None:
        self.events.append(("success", result))

    def on_error(self, message) -> None:
        self.events.append(("error", message))

    def on_cancelled(self) -> None:
        self.events.append(("cancelled", None))

    @property
    def kwargs(self) -> Dict[str, Any]:
        return {
            "on_progress": self.on_progress,
            "on_success": self.on_success,
            "on_error": self.on_error,
            "on_cancelled": self.on_cancelled,
        }

    @property
    def progress(self) -> List[float]:
        return [value for name, value in self.events if name == "progress"]

    @property
    def terminal(self) -> List[Tuple[str, Any]]:
        return [event for event in self.events if event[0] != "progress"]
