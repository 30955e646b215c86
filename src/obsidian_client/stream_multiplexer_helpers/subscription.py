"""Console subscription record."""

from __future__ import annotations

import asyncio
import itertools
from dataclasses import dataclass, field
from typing import Callable, Optional

DataCallback = Callable[[str], None]
ErrorCallback = Callable[[Exception], None]

_generation = itertools.count(1)


@dataclass
class StreamSubscription:
    """Exclusive console subscription for one process."""

    process_id: str
    on_data: DataCallback
    on_error: Optional[ErrorCallback] = None
    generation: int = field(default_factory=lambda: next(_generation))
    task: Optional[asyncio.Task] = None
    active: bool = True
    error: Optional[Exception] = None

    def cleanup(self) -> None:
        """Stop delivery and cancel the pump task."""
        self.active = False
        if self.task is not None and not self.task.done():
            self.task.cancel()
