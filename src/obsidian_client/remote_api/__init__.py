"""Async client for the panel HTTP API."""

from . import routes
from .client import RemoteApiClient
from .request_executor import RequestExecutor
from .session_manager import SessionManager
from .sse import EventStream, ServerSentEvent, SseDecoder

__all__ = [
    "EventStream",
    "RemoteApiClient",
    "RequestExecutor",
    "ServerSentEvent",
    "SessionManager",
    "SseDecoder",
    "routes",
]
