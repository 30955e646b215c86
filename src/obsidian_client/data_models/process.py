"""
Managed process records held by the session state machine.

A record's status is never stored as a bare value: it is wrapped in either a
:class:`Confirmed` observation (came from the remote side) or an
:class:`Optimistic` one (set locally right after a lifecycle command). Any
later snapshot replaces the observation outright, so a reconciliation poll
always supersedes a guess.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Union

logger = logging.getLogger(__name__)

_CORE_FIELDS = frozenset({"id", "status", "created_at", "updated_at", "last_started", "owner_id", "name"})


class ProcessStatus(str, Enum):
    """Lifecycle status reported for a managed process."""

    IDLE = "idle"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"
    ERROR = "error"
    CRASHED = "crashed"
    HANGING = "hanging"

    @classmethod
    def parse(cls, value: Any) -> "ProcessStatus":
        """Parse a remote status string case-insensitively; unknown values map to IDLE."""
        if isinstance(value, ProcessStatus):
            return value
        normalized = str(value).strip().lower() if value is not None else ""
        try:
            return cls(normalized)
        except ValueError:
            logger.debug("Unrecognized process status %r; treating as idle", value)
            return cls.IDLE


RUNNING_LIKE_STATUSES = frozenset(
    {ProcessStatus.RUNNING, ProcessStatus.STARTING, ProcessStatus.STOPPING, ProcessStatus.HANGING}
)


@dataclass(frozen=True)
class Confirmed:
    """Status as last reported by the remote side."""

    status: ProcessStatus
    observed_at: float


@dataclass(frozen=True)
class Optimistic:
    """Status guessed locally after a command, pending reconciliation."""

    status: ProcessStatus
    since: float


StatusObservation = Union[Confirmed, Optimistic]


def _optional_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


@dataclass
class ManagedProcess:
    """Authoritative local view of one remote game server."""

    id: str
    observation: StatusObservation
    name: str = ""
    created_at: Optional[float] = None
    updated_at: Optional[float] = None
    last_started_at: Optional[float] = None
    owner_id: Optional[int] = None
    config: Dict[str, Any] = field(default_factory=dict)

    @property
    def status(self) -> ProcessStatus:
        return self.observation.status

    @property
    def is_optimistic(self) -> bool:
        return isinstance(self.observation, Optimistic)

    @property
    def is_running_like(self) -> bool:
        return self.status in RUNNING_LIKE_STATUSES

    @classmethod
    def from_snapshot(cls, snapshot: Mapping[str, Any], *, observed_at: Optional[float] = None) -> "ManagedProcess":
        process_id = snapshot.get("id")
        if not process_id:
            raise ValueError("Process snapshot is missing 'id'")
        record = cls(
            id=str(process_id),
            observation=Confirmed(ProcessStatus.parse(snapshot.get("status")), observed_at or time.time()),
        )
        record.apply_snapshot(snapshot, observed_at=observed_at)
        return record

    def apply_snapshot(self, snapshot: Mapping[str, Any], *, observed_at: Optional[float] = None) -> None:
        """Overwrite this record in place with a remote snapshot."""
        snapshot_id = snapshot.get("id")
        if snapshot_id is not None and str(snapshot_id) != self.id:
            raise ValueError(f"Snapshot for {snapshot_id!r} cannot be applied to process {self.id!r}")

        self.observation = Confirmed(ProcessStatus.parse(snapshot.get("status")), observed_at or time.time())
        self.name = str(snapshot.get("name") or self.name)
        self.created_at = _optional_float(snapshot.get("created_at"))
        self.updated_at = _optional_float(snapshot.get("updated_at"))
        self.last_started_at = _optional_float(snapshot.get("last_started"))
        owner = snapshot.get("owner_id")
        self.owner_id = int(owner) if owner is not None else None
        self.config = {key: value for key, value in snapshot.items() if key not in _CORE_FIELDS}

    def mark_optimistic(self, status: ProcessStatus, *, since: Optional[float] = None) -> None:
        self.observation = Optimistic(status, since or time.time())

    def to_payload(self) -> Dict[str, Any]:
        """Render the record in the remote API's field naming."""
        payload: Dict[str, Any] = dict(self.config)
        payload.update(
            {
                "id": self.id,
                "name": self.name,
                "status": self.status.value,
                "created_at": self.created_at,
                "updated_at": self.updated_at,
                "last_started": self.last_started_at,
                "owner_id": self.owner_id,
            }
        )
        return payload


__all__ = [
    "Confirmed",
    "ManagedProcess",
    "Optimistic",
    "ProcessStatus",
    "RUNNING_LIKE_STATUSES",
    "StatusObservation",
]
