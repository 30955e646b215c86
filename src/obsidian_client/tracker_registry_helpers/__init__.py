"""Helper modules for the tracker registry."""

from .id_generator import TrackerIdGenerator
from .models import (
    OperationCallbacks,
    OperationTracker,
    RemoteCancelled,
    TrackerKind,
    TrackerState,
)

__all__ = [
    "OperationCallbacks",
    "OperationTracker",
    "RemoteCancelled",
    "TrackerIdGenerator",
    "TrackerKind",
    "TrackerState",
]
