"""
Normalization of heterogeneous completion signals into ``ProgressState``.

Two aggregators are provided:

* :class:`UnitProgressAggregator` counts discrete named units (for example the
  files of a runtime install manifest). Completions may arrive in any order and
  may repeat; the aggregate is a running tally over the manifest.
* :class:`RatioProgressAggregator` divides a processed amount by a total (bytes
  for uploads and downloads, percent points for archive and extract reports).

Both keep a running maximum so a snapshot never reports less than a previous
snapshot from the same aggregator.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

logger = logging.getLogger(__name__)

PERCENT_TOTAL = 100.0


@dataclass(frozen=True)
class ProgressState:
    """
    Normalized progress of one tracked operation.

    Unit-based operations also name the units: ``installed`` lists completed
    units in arrival order and ``to_install`` is the manifest in its original
    order. Both stay empty for byte and percent progress.
    """

    progress: float
    processed: float = 0.0
    total: Optional[float] = None
    completed_units: int = 0
    total_units: Optional[int] = None
    installed: Tuple[str, ...] = ()
    to_install: Tuple[str, ...] = ()

    @property
    def is_complete(self) -> bool:
        return self.progress >= 1.0

    @classmethod
    def complete(cls) -> "ProgressState":
        return cls(progress=1.0, processed=1.0, total=1.0)


def clamp_fraction(value: float) -> float:
    if value != value:  # NaN
        return 0.0
    return max(0.0, min(1.0, value))


class _RunningMaximum:
    """Holds the highest progress fraction reported so far."""

    def __init__(self) -> None:
        self._high_water = 0.0

    def _ratchet(self, fraction: float) -> float:
        fraction = clamp_fraction(fraction)
        if fraction > self._high_water:
            self._high_water = fraction
        return self._high_water

    @property
    def progress(self) -> float:
        return self._high_water


class UnitProgressAggregator(_RunningMaximum):
    """Progress over a manifest of named units."""

    def __init__(self, units: Optional[Iterable[str]] = None) -> None:
        super().__init__()
        self._manifest: Optional[Tuple[str, ...]] = None
        self._completed: List[str] = []
        if units is not None:
            self.resolve_total(units)

    @property
    def total_resolved(self) -> bool:
        return self._manifest is not None

    def resolve_total(self, units: Iterable[str]) -> ProgressState:
        """Fix the manifest; completions recorded earlier are kept if they belong to it."""
        self._manifest = tuple(dict.fromkeys(units))
        members = set(self._manifest)
        kept = [unit for unit in self._completed if unit in members]
        if len(kept) != len(self._completed):
            logger.debug("Discarding %d completions outside the manifest", len(self._completed) - len(kept))
            self._completed = kept
        return self.snapshot()

    def mark_completed(self, unit: str) -> ProgressState:
        if self._manifest is not None and unit not in self._manifest:
            logger.debug("Ignoring completion for unit %r outside the manifest", unit)
            return self.snapshot()
        if unit not in self._completed:
            self._completed.append(unit)
        return self.snapshot()

    def snapshot(self) -> ProgressState:
        if self._manifest is None:
            return ProgressState(
                progress=self._ratchet(0.0),
                completed_units=len(self._completed),
                installed=tuple(self._completed),
            )
        total_units = len(self._manifest)
        completed_units = len(self._completed)
        fraction = 1.0 if total_units == 0 else completed_units / total_units
        return ProgressState(
            progress=self._ratchet(fraction),
            processed=float(completed_units),
            total=float(total_units),
            completed_units=completed_units,
            total_units=total_units,
            installed=tuple(self._completed),
            to_install=self._manifest,
        )


class RatioProgressAggregator(_RunningMaximum):
    """Progress as ``processed / total``, clamped to ``[0, 1]``."""

    def __init__(self, total: Optional[float] = None) -> None:
        super().__init__()
        self._total: Optional[float] = None
        self._processed = 0.0
        if total is not None:
            self.set_total(total)

    def set_total(self, total: Optional[float]) -> None:
        if total is None:
            return
        if total < 0:
            raise ValueError(f"Progress total must be non-negative, got {total}")
        self._total = float(total)

    def update(self, processed: float, total: Optional[float] = None) -> ProgressState:
        self.set_total(total)
        self._processed = max(0.0, float(processed))
        return self.snapshot()

    def update_percent(self, percent: float) -> ProgressState:
        return self.update(percent, PERCENT_TOTAL)

    def update_fraction(self, fraction: float) -> ProgressState:
        return self.update(fraction, 1.0)

    def snapshot(self) -> ProgressState:
        if self._total is None:
            fraction = 0.0
        elif self._total == 0:
            fraction = 1.0
        else:
            fraction = self._processed / self._total
        return ProgressState(progress=self._ratchet(fraction), processed=self._processed, total=self._total)


class ByteProgressAggregator(RatioProgressAggregator):
    """Ratio aggregator whose amounts are byte counts."""


__all__ = [
    "PERCENT_TOTAL",
    "ByteProgressAggregator",
    "ProgressState",
    "RatioProgressAggregator",
    "UnitProgressAggregator",
    "clamp_fraction",
]
