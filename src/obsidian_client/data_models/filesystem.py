"""Filesystem entries returned by directory listings and searches."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional


def _timestamp_from_system_time(value: Any) -> Optional[datetime]:
    """Convert ``{secs_since_epoch, nanos_since_epoch}`` or epoch seconds to a datetime."""
    if value is None:
        return None
    if isinstance(value, Mapping):
        seconds = float(value.get("secs_since_epoch") or 0)
        seconds += float(value.get("nanos_since_epoch") or 0) / 1_000_000_000
    else:
        try:
            seconds = float(value)
        except (TypeError, ValueError):
            return None
    return datetime.fromtimestamp(seconds, tz=timezone.utc)


@dataclass(frozen=True)
class FilesystemEntry:
    """A file or directory on the managed process's filesystem."""

    filename: str
    path: str
    size: int = 0
    is_dir: bool = False
    last_modified: Optional[datetime] = None
    created: Optional[datetime] = None

    @classmethod
    def from_listing(cls, payload: Mapping[str, Any]) -> "FilesystemEntry":
        return cls(
            filename=str(payload.get("filename") or ""),
            path=str(payload.get("path") or ""),
            size=int(payload.get("size") or 0),
            is_dir=bool(payload.get("is_dir")),
            last_modified=_timestamp_from_system_time(payload.get("last_modified")),
            created=_timestamp_from_system_time(payload.get("created")),
        )

    @classmethod
    def from_search_result(cls, payload: Mapping[str, Any]) -> "FilesystemEntry":
        # Search results only ever contain files.
        return cls(
            filename=str(payload.get("filename") or ""),
            path=str(payload.get("path") or ""),
            size=int(payload.get("size") or 0),
            is_dir=False,
            last_modified=_timestamp_from_system_time(payload.get("mtime")),
            created=_timestamp_from_system_time(payload.get("ctime")),
        )


@dataclass(frozen=True)
class FilesystemData:
    """Directory listing with its parent path."""

    parent: Optional[str]
    entries: List[FilesystemEntry] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "FilesystemData":
        raw_entries = payload.get("entries") or []
        parent = payload.get("parent")
        return cls(
            parent=str(parent) if parent is not None else None,
            entries=[FilesystemEntry.from_listing(entry) for entry in raw_entries],
        )


__all__ = ["FilesystemData", "FilesystemEntry"]
