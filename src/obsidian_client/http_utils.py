"""URL handling and failure classification for the panel's HTTP API."""

from __future__ import annotations

import asyncio
import socket
from typing import Any, Optional
from urllib.parse import urlsplit

import aiohttp

# Failures where the request may never have reached the panel.
TRANSPORT_ERROR_TYPES = (
    aiohttp.ClientConnectionError,
    aiohttp.ClientPayloadError,
    asyncio.TimeoutError,
    socket.gaierror,
    ConnectionError,
)

RETRYABLE_STATUSES = frozenset({408, 425, 429, 500, 502, 503, 504})


def validate_base_url(base_url: str) -> str:
    """Return *base_url* if it is an absolute http(s) URL, else raise ``ValueError``."""
    parts = urlsplit(base_url)
    if parts.scheme.lower() not in ("http", "https"):
        raise ValueError(f"Unsupported URL scheme in {base_url!r}")
    if not parts.netloc:
        raise ValueError(f"No host in {base_url!r}")
    return base_url


def join_url(base_url: str, path: str) -> str:
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}"


def session_is_open(session: Optional[Any]) -> bool:
    return session is not None and not getattr(session, "closed", True)


def is_transport_error(exc: BaseException) -> bool:
    """True when *exc* is a connectivity failure rather than an answer from the panel."""
    if isinstance(exc, TRANSPORT_ERROR_TYPES):
        return True
    return isinstance(getattr(exc, "os_error", None), OSError)


def is_retryable_status(status: int) -> bool:
    return status in RETRYABLE_STATUSES


__all__ = [
    "RETRYABLE_STATUSES",
    "TRANSPORT_ERROR_TYPES",
    "is_retryable_status",
    "is_transport_error",
    "join_url",
    "session_is_open",
    "validate_base_url",
]
