"""Interpretation of operation progress events into uniform signals."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Mapping, Optional

import orjson

from ..progress_aggregator import PERCENT_TOTAL
from ..remote_api.sse import ServerSentEvent

logger = logging.getLogger(__name__)


class SignalKind(str, Enum):
    PROGRESS = "progress"
    COMPLETE = "complete"
    CANCELLED = "cancelled"
    ERROR = "error"
    IGNORE = "ignore"


@dataclass(frozen=True)
class StreamSignal:
    kind: SignalKind
    processed: float = 0.0
    total: Optional[float] = None
    message: str = ""


IGNORE = StreamSignal(SignalKind.IGNORE)

SignalInterpreter = Callable[[ServerSentEvent], StreamSignal]


def _payload(event: ServerSentEvent) -> Optional[Mapping[str, Any]]:
    try:
        payload = event.json()
    except orjson.JSONDecodeError:
        logger.debug("Ignoring non-JSON %s event: %r", event.event, event.data)
        return None
    if not isinstance(payload, Mapping):
        logger.debug("Ignoring non-object %s event: %r", event.event, event.data)
        return None
    return payload


def _number(payload: Mapping[str, Any], key: str) -> float:
    try:
        return float(payload.get(key) or 0)
    except (TypeError, ValueError):
        return 0.0


def _error_message(payload: Mapping[str, Any], fallback: str) -> str:
    for key in ("error", "message", "stacktrace"):
        value = payload.get(key)
        if value:
            return str(value)
    return fallback


def percent_status_signal(event: ServerSentEvent) -> StreamSignal:
    """Archive and extract reports: ``{"progress": <percent>, "status": ...}``."""
    payload = _payload(event)
    if payload is None:
        return IGNORE
    status = str(payload.get("status") or "").lower()
    if status == "cancelled":
        return StreamSignal(SignalKind.CANCELLED)
    if status in ("complete", "completed"):
        return StreamSignal(SignalKind.COMPLETE, PERCENT_TOTAL, PERCENT_TOTAL)
    if status == "error" or payload.get("error"):
        return StreamSignal(SignalKind.ERROR, message=_error_message(payload, "Operation failed"))
    if "progress" in payload:
        return StreamSignal(SignalKind.PROGRESS, _number(payload, "progress"), PERCENT_TOTAL)
    return IGNORE


def upload_status_signal(event: ServerSentEvent) -> StreamSignal:
    """Upload reports: ``{"status": progress|complete|cancelled|error, "bytesUploaded": n}``."""
    payload = _payload(event)
    if payload is None:
        return IGNORE
    status = str(payload.get("status") or "").lower()
    uploaded = _number(payload, "bytesUploaded")
    if status == "progress":
        return StreamSignal(SignalKind.PROGRESS, uploaded)
    if status == "complete":
        return StreamSignal(SignalKind.COMPLETE, uploaded)
    if status == "cancelled":
        return StreamSignal(SignalKind.CANCELLED, uploaded)
    if status == "error":
        return StreamSignal(SignalKind.ERROR, message=_error_message(payload, "Upload failed"))
    return IGNORE


def url_download_signal(event: ServerSentEvent) -> StreamSignal:
    """Remote URL fetch reports use named ``progress``/``complete``/``error`` events."""
    if event.event == "complete":
        return StreamSignal(SignalKind.COMPLETE)
    payload = _payload(event)
    if event.event == "error":
        return StreamSignal(SignalKind.ERROR, message=_error_message(payload or {}, event.data or "Download failed"))
    if event.event == "progress" and payload is not None:
        total = _number(payload, "total")
        if total > 0:
            return StreamSignal(SignalKind.PROGRESS, _number(payload, "downloaded"), total)
        return StreamSignal(SignalKind.PROGRESS, _number(payload, "progress"), 1.0)
    return IGNORE


__all__ = [
    "IGNORE",
    "SignalInterpreter",
    "SignalKind",
    "StreamSignal",
    "percent_status_signal",
    "upload_status_signal",
    "url_download_signal",
]
