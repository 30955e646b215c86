"""Owned table of managed process records."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional

from ..data_models.process import ManagedProcess, ProcessStatus
from ..errors import MissingProcessIdError, UnknownProcessError

logger = logging.getLogger(__name__)

ProcessListener = Callable[[ManagedProcess], None]


class ProcessRegistry:
    """Exactly one :class:`ManagedProcess` per id, mutated in place."""

    def __init__(self) -> None:
        self._records: Dict[str, ManagedProcess] = {}
        self._loaded_id: Optional[str] = None
        self._listeners: List[ProcessListener] = []

    def __contains__(self, process_id: object) -> bool:
        return process_id in self._records

    def __iter__(self) -> Iterator[ManagedProcess]:
        return iter(list(self._records.values()))

    def __len__(self) -> int:
        return len(self._records)

    @property
    def loaded_id(self) -> Optional[str]:
        return self._loaded_id

    @property
    def loaded(self) -> Optional[ManagedProcess]:
        if self._loaded_id is None:
            return None
        return self._records.get(self._loaded_id)

    def set_loaded(self, process_id: Optional[str]) -> None:
        self._loaded_id = process_id

    def get(self, process_id: str) -> Optional[ManagedProcess]:
        return self._records.get(process_id)

    def require(self, process_id: str) -> ManagedProcess:
        record = self._records.get(process_id)
        if record is None:
            raise UnknownProcessError(process_id)
        return record

    def resolve_id(self, process_id: Optional[str], operation: str = "") -> str:
        """Return *process_id* or the loaded id; fail fast when neither exists."""
        resolved = process_id or self._loaded_id
        if not resolved:
            raise MissingProcessIdError(operation)
        return str(resolved)

    def merge(self, snapshot: Mapping[str, Any]) -> ManagedProcess:
        """Create or overwrite the record described by *snapshot*."""
        process_id = str(snapshot.get("id") or "")
        record = self._records.get(process_id)
        if record is None:
            record = ManagedProcess.from_snapshot(snapshot)
            self._records[record.id] = record
            logger.debug("Registered process %s (%s)", record.id, record.status.value)
        else:
            record.apply_snapshot(snapshot)
        self._notify(record)
        return record

    def mark_optimistic(self, process_id: str, status: ProcessStatus) -> Optional[ManagedProcess]:
        record = self._records.get(process_id)
        if record is None:
            return None
        record.mark_optimistic(status)
        self._notify(record)
        return record

    def remove(self, process_id: str) -> Optional[ManagedProcess]:
        record = self._records.pop(process_id, None)
        if self._loaded_id == process_id:
            self._loaded_id = None
        return record

    def watch(self, listener: ProcessListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unwatch() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unwatch

    def _notify(self, record: ManagedProcess) -> None:
        for listener in list(self._listeners):
            try:
                listener(record)
            except Exception:
                logger.exception("Process listener raised for %s", record.id)


__all__ = ["ProcessListener", "ProcessRegistry"]
