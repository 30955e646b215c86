"""Lifecycle command rules: optimistic status and poll-terminating statuses."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet

from ..data_models.process import ProcessStatus

ALWAYS_TERMINAL: FrozenSet[ProcessStatus] = frozenset({ProcessStatus.ERROR, ProcessStatus.CRASHED})


class LifecycleCommand(str, Enum):
    START = "start"
    STOP = "stop"
    RESTART = "restart"
    KILL = "kill"

    @classmethod
    def parse(cls, value) -> "LifecycleCommand":
        if isinstance(value, LifecycleCommand):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown lifecycle command: {value!r}") from None


@dataclass(frozen=True)
class StatusTransition:
    """What a command implies locally and which statuses end its reconciliation poll."""

    command: LifecycleCommand
    optimistic_status: ProcessStatus
    terminal_statuses: FrozenSet[ProcessStatus]

    def is_terminal(self, status: ProcessStatus) -> bool:
        return status in self.terminal_statuses


_STARTED = frozenset({ProcessStatus.RUNNING}) | ALWAYS_TERMINAL
_STOPPED = frozenset({ProcessStatus.STOPPED}) | ALWAYS_TERMINAL

TRANSITIONS = {
    LifecycleCommand.START: StatusTransition(LifecycleCommand.START, ProcessStatus.STARTING, _STARTED),
    LifecycleCommand.STOP: StatusTransition(LifecycleCommand.STOP, ProcessStatus.STOPPING, _STOPPED),
    LifecycleCommand.RESTART: StatusTransition(LifecycleCommand.RESTART, ProcessStatus.STOPPING, _STARTED),
    LifecycleCommand.KILL: StatusTransition(LifecycleCommand.KILL, ProcessStatus.STOPPING, _STOPPED),
}


def transition_for(command) -> StatusTransition:
    return TRANSITIONS[LifecycleCommand.parse(command)]


__all__ = ["ALWAYS_TERMINAL", "LifecycleCommand", "StatusTransition", "TRANSITIONS", "transition_for"]
