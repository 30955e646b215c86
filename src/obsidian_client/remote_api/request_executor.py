"""Request execution logic for the panel API."""

import asyncio
import logging
from typing import Any, Dict, Optional

import aiohttp
import orjson

from ..errors import RemoteRequestError
from ..http_utils import is_retryable_status, is_transport_error

logger = logging.getLogger(__name__)

HTTP_TOO_MANY_REQUESTS = 429
_ERROR_MESSAGE_FIELDS = ("error", "message", "detail")


class RequestExecutor:
    """Execute HTTP requests with bounded retries and error mapping."""

    def __init__(self, session_manager, max_retries, backoff_base, backoff_max):
        self._session_manager = session_manager
        self._max_retries = max_retries
        self._backoff_base = backoff_base
        self._backoff_max = backoff_max

    async def execute_request(self, method_upper: str, url: str, request_kwargs: Dict[str, Any], path: str) -> Any:
        """Execute an HTTP request and return the decoded body."""
        await self._session_manager.initialize()
        session = self._session_manager.get_session()
        return await self._retry_request(session, method_upper, url, request_kwargs, path)

    async def open_response(self, method_upper: str, url: str, request_kwargs: Dict[str, Any], path: str) -> aiohttp.ClientResponse:
        """Open a response whose body the caller consumes and releases."""
        await self._session_manager.initialize()
        session = self._session_manager.get_session()
        try:
            response = await session.request(method_upper, url, **request_kwargs)
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise _transport_error(method_upper, path, exc) from exc
        if response.status >= 300:
            text = await response.text()
            response.release()
            raise _status_error(method_upper, path, response.status, text)
        return response

    async def _retry_request(
        self, session: aiohttp.ClientSession, method_upper: str, url: str, request_kwargs: Dict[str, Any], path: str
    ) -> Any:
        max_attempts = max(1, self._max_retries)
        for attempt in range(1, max_attempts + 1):
            try:
                async with session.request(method_upper, url, **request_kwargs) as response:
                    if response.status == HTTP_TOO_MANY_REQUESTS and attempt < max_attempts:
                        delay = self._compute_retry_delay(attempt)
                        logger.debug("Panel rate limited %s %s (%d/%d); retrying in %.1fs", method_upper, path, attempt, max_attempts, delay)
                        await asyncio.sleep(delay)
                        continue
                    body = await response.read()
                    return _parse_response(method_upper, path, response.status, body)
            except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
                error = _transport_error(method_upper, path, exc)
                if error.transient and attempt < max_attempts:
                    delay = self._compute_retry_delay(attempt)
                    logger.warning("Panel request %s %s failed (%d/%d): %s; retrying in %.1fs", method_upper, path, attempt, max_attempts, exc, delay)
                    await asyncio.sleep(delay)
                    continue
                logger.warning("Panel request %s %s failed after %d attempt(s): %s", method_upper, path, attempt, exc)
                raise error from exc
        raise RemoteRequestError(f"Panel request {method_upper} {path} exhausted {max_attempts} attempts", path=path)

    def _compute_retry_delay(self, attempt: int) -> float:
        if attempt < 1:
            raise TypeError("Retry attempt must be at least 1")
        base_backoff = max(0.0, float(self._backoff_base))
        max_backoff = max(base_backoff, float(self._backoff_max))
        return min(base_backoff * (2 ** (attempt - 1)), max_backoff)


def _transport_error(method_upper: str, path: str, exc: BaseException) -> RemoteRequestError:
    return RemoteRequestError(
        f"Panel request {method_upper} {path} failed: {exc!r}",
        path=path,
        transient=is_transport_error(exc),
    )


def _status_error(method_upper: str, path: str, status: int, text: str) -> RemoteRequestError:
    return RemoteRequestError(
        f"Panel request {method_upper} {path} returned {status}: {extract_error_message(text)}",
        path=path,
        status=status,
        transient=is_retryable_status(status),
    )


def _parse_response(method_upper: str, path: str, status: int, body: bytes) -> Any:
    text = body.decode("utf-8", errors="replace")
    if status >= 300:
        raise _status_error(method_upper, path, status, text)
    if not body.strip():
        return None
    try:
        return orjson.loads(body)
    except orjson.JSONDecodeError:
        return text


def extract_error_message(text: str) -> str:
    """Pull a human-readable message out of an error body."""
    if not text:
        return "no response body"
    try:
        payload = orjson.loads(text)
    except orjson.JSONDecodeError:
        return text.strip()
    if isinstance(payload, dict):
        for field in _ERROR_MESSAGE_FIELDS:
            value: Optional[Any] = payload.get(field)
            if value:
                return str(value)
    if isinstance(payload, str) and payload:
        return payload
    return text.strip()
