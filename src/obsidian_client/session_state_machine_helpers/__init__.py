"""Helper modules for the session state machine."""

from .poller import StatusPoller
from .refresh_worker import BackgroundRefreshWorker
from .registry import ProcessRegistry
from .transitions import TRANSITIONS, LifecycleCommand, StatusTransition, transition_for

__all__ = [
    "BackgroundRefreshWorker",
    "LifecycleCommand",
    "ProcessRegistry",
    "StatusPoller",
    "StatusTransition",
    "TRANSITIONS",
    "transition_for",
]
