"""Persistent action history entries."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

ACTION_IN_PROGRESS = "in_progress"
ACTION_COMPLETED = "completed"
ACTION_FAILED = "failed"


@dataclass(frozen=True)
class ActionRecord:
    """Server-side record of a long-running action, keyed by tracker id."""

    id: int
    tracker_id: str
    action_type: str
    status: str
    progress: float
    details: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    completed_at: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status == ACTION_IN_PROGRESS

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ActionRecord":
        return cls(
            id=int(payload.get("id") or 0),
            tracker_id=str(payload.get("tracker_id") or ""),
            action_type=str(payload.get("action_type") or ""),
            status=str(payload.get("status") or ""),
            progress=float(payload.get("progress") or 0),
            details=payload.get("details"),
            created_at=payload.get("created_at"),
            updated_at=payload.get("updated_at"),
            completed_at=payload.get("completed_at"),
        )


__all__ = ["ACTION_COMPLETED", "ACTION_FAILED", "ACTION_IN_PROGRESS", "ActionRecord"]
