"""Helper modules for the console stream multiplexer."""

from .pump import console_event_names, pump_console
from .subscription import StreamSubscription

__all__ = ["StreamSubscription", "console_event_names", "pump_console"]
