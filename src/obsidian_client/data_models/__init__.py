"""Data models shared across the client."""

from .action import ActionRecord
from .filesystem import FilesystemData, FilesystemEntry
from .process import (
    RUNNING_LIKE_STATUSES,
    Confirmed,
    ManagedProcess,
    Optimistic,
    ProcessStatus,
    StatusObservation,
)
from .runtime_version import RuntimeVersion, RuntimeVersionRange

__all__ = [
    "ActionRecord",
    "Confirmed",
    "FilesystemData",
    "FilesystemEntry",
    "ManagedProcess",
    "Optimistic",
    "ProcessStatus",
    "RUNNING_LIKE_STATUSES",
    "RuntimeVersion",
    "RuntimeVersionRange",
    "StatusObservation",
]
