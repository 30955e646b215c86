"""Panel HTTP API client."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, AsyncIterator, Callable, Dict, Mapping, Optional

import aiohttp
import orjson

from ..config import ClientSettings
from ..errors import RemoteRequestError
from ..http_utils import is_transport_error, join_url
from .request_executor import RequestExecutor
from .session_manager import SessionManager
from .sse import EventStream

logger = logging.getLogger(__name__)

ChunkCallback = Callable[[int, Optional[int]], None]

_JSON_HEADERS = {"Content-Type": "application/json"}
_EVENT_STREAM_HEADERS = {"Accept": "text/event-stream", "Cache-Control": "no-cache"}


class RemoteApiClient:
    """Async client for the panel's REST and event-stream endpoints."""

    def __init__(
        self,
        settings: ClientSettings,
        *,
        session_manager: Optional[SessionManager] = None,
        executor: Optional[RequestExecutor] = None,
    ) -> None:
        self._settings = settings
        self._session_manager = session_manager or SessionManager(settings)
        self._executor = executor or RequestExecutor(
            self._session_manager,
            settings.max_retries,
            settings.backoff_base_seconds,
            settings.backoff_max_seconds,
        )

    @property
    def settings(self) -> ClientSettings:
        return self._settings

    def url_for(self, path: str) -> str:
        return join_url(self._settings.base_url, path)

    async def initialize(self) -> None:
        await self._session_manager.initialize()

    async def close(self) -> None:
        await self._session_manager.close()

    async def __aenter__(self) -> "RemoteApiClient":
        await self.initialize()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        json_body: Any = None,
        data: Any = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[aiohttp.ClientTimeout] = None,
    ) -> Any:
        """Send one request and return the decoded JSON (or text) body."""
        method_upper = method.upper()
        request_kwargs: Dict[str, Any] = {}
        merged_headers: Dict[str, str] = dict(headers or {})
        if params:
            request_kwargs["params"] = _stringify_params(params)
        if json_body is not None:
            request_kwargs["data"] = orjson.dumps(json_body)
            merged_headers.update(_JSON_HEADERS)
        elif data is not None:
            request_kwargs["data"] = data
        if merged_headers:
            request_kwargs["headers"] = merged_headers
        if timeout is not None:
            request_kwargs["timeout"] = timeout
        logger.debug("%s %s", method_upper, path)
        return await self._executor.execute_request(method_upper, self.url_for(path), request_kwargs, path)

    async def get_json(self, path: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post_json(self, path: str, payload: Any = None, *, headers: Optional[Mapping[str, str]] = None) -> Any:
        return await self.request("POST", path, json_body=payload, headers=headers)

    async def put_json(self, path: str, payload: Any) -> Any:
        return await self.request("PUT", path, json_body=payload)

    async def delete_json(self, path: str, payload: Any = None) -> Any:
        return await self.request("DELETE", path, json_body=payload)

    async def post_text(self, path: str, text: str, *, params: Optional[Mapping[str, Any]] = None) -> Any:
        return await self.request(
            "POST", path, params=params, data=text.encode("utf-8"), headers={"Content-Type": "text/plain"}
        )

    async def get_text(self, path: str, params: Optional[Mapping[str, Any]] = None) -> str:
        """Fetch a body verbatim, without JSON decoding."""
        request_kwargs: Dict[str, Any] = {}
        if params:
            request_kwargs["params"] = _stringify_params(params)
        response = await self._executor.open_response("GET", self.url_for(path), request_kwargs, path)
        try:
            return await response.text()
        finally:
            response.release()

    async def upload_file(
        self,
        path: str,
        file_path: Path,
        *,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
        on_chunk: Optional[ChunkCallback] = None,
    ) -> Any:
        """Stream a local file as the request body."""
        total = file_path.stat().st_size
        merged = {"Content-Type": "application/octet-stream", "Content-Length": str(total)}
        merged.update(headers or {})
        body = _iter_file(file_path, self._settings.transfer_chunk_bytes, total, on_chunk)
        return await self.request(
            "POST", path, params=params, data=body, headers=merged, timeout=self._session_manager.transfer_timeout()
        )

    async def download_to(
        self,
        path: str,
        destination: Path,
        *,
        params: Optional[Mapping[str, Any]] = None,
        on_chunk: Optional[ChunkCallback] = None,
    ) -> int:
        """Stream a response body into *destination*; return the bytes written."""
        request_kwargs: Dict[str, Any] = {"timeout": self._session_manager.transfer_timeout()}
        if params:
            request_kwargs["params"] = _stringify_params(params)
        response = await self._executor.open_response("GET", self.url_for(path), request_kwargs, path)
        written = 0
        total = response.content_length
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            with destination.open("wb") as handle:
                async for chunk in response.content.iter_chunked(self._settings.transfer_chunk_bytes):
                    handle.write(chunk)
                    written += len(chunk)
                    if on_chunk is not None:
                        on_chunk(written, total)
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise RemoteRequestError(
                f"Download of {path} failed after {written} bytes: {exc!r}",
                path=path,
                transient=is_transport_error(exc),
            ) from exc
        finally:
            response.release()
        logger.debug("Downloaded %d bytes from %s to %s", written, path, destination)
        return written

    async def open_event_stream(self, path: str, params: Optional[Mapping[str, Any]] = None) -> EventStream:
        """Open an event-stream response; the caller owns and must close it."""
        request_kwargs: Dict[str, Any] = {
            "headers": dict(_EVENT_STREAM_HEADERS),
            "timeout": self._session_manager.stream_timeout(),
        }
        if params:
            request_kwargs["params"] = _stringify_params(params)
        response = await self._executor.open_response("GET", self.url_for(path), request_kwargs, path)
        logger.debug("Opened event stream %s", path)
        return EventStream(response, path)


def _stringify_params(params: Mapping[str, Any]) -> Dict[str, str]:
    result: Dict[str, str] = {}
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, bool):
            result[key] = "true" if value else "false"
        else:
            result[key] = str(value)
    return result


async def _iter_file(file_path: Path, chunk_bytes: int, total: int, on_chunk: Optional[ChunkCallback]) -> AsyncIterator[bytes]:
    sent = 0
    with file_path.open("rb") as handle:
        while True:
            chunk = handle.read(chunk_bytes)
            if not chunk:
                break
            sent += len(chunk)
            if on_chunk is not None:
                on_chunk(sent, total)
            yield chunk
