"""Helper modules for the operation facade."""

from .filesystem_ops import FilesystemOperations
from .signals import SignalKind, StreamSignal
from .streamed_operation import StreamedOperation

__all__ = ["FilesystemOperations", "SignalKind", "StreamSignal", "StreamedOperation"]
