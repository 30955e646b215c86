"""Installable Java runtime versions reported by the panel."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional


@dataclass(frozen=True)
class RuntimeVersion:
    """One installable runtime; ``runtime`` is its stable key."""

    runtime: str
    version: str
    installed: bool
    executable: Optional[str] = None
    operating_system: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.runtime:
            raise ValueError("runtime must be a non-empty string")
        if not self.installed and self.executable is not None:
            # An uninstalled runtime never exposes an executable path.
            object.__setattr__(self, "executable", None)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "RuntimeVersion":
        executable = payload.get("executable")
        operating_system = payload.get("operating_system")
        return cls(
            runtime=str(payload.get("runtime") or ""),
            version=str(payload.get("version") or ""),
            installed=bool(payload.get("installed")),
            executable=str(executable) if executable else None,
            operating_system=str(operating_system) if operating_system else None,
        )


@dataclass(frozen=True)
class RuntimeVersionRange:
    """Inclusive game-version range served by one runtime."""

    runtime: str
    min_version: str
    max_version: str


__all__ = ["RuntimeVersion", "RuntimeVersionRange"]
