"""Error types raised by the panel client."""

from __future__ import annotations

from typing import Any, Optional


class PanelClientError(RuntimeError):
    """Base error that attaches provided keyword fields as attributes."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        super().__init__(message)
        for key, value in kwargs.items():
            setattr(self, key, value)


class RemoteRequestError(PanelClientError):
    """Raised when a remote API call fails or returns a non-success status."""

    def __init__(
        self,
        message: str,
        *,
        path: str = "",
        status: Optional[int] = None,
        transient: bool = False,
    ) -> None:
        super().__init__(message, path=path, status=status, transient=transient)


class StreamError(PanelClientError):
    """Raised or reported when an event stream fails."""


class StreamClosedError(StreamError):
    """The remote side ended an event stream."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Event stream closed by remote: {path}", path=path)


class OperationFailedError(PanelClientError):
    """A tracked operation was reported as failed by the remote side."""


class MissingProcessIdError(PanelClientError):
    """No process id was provided and no process is loaded."""

    def __init__(self, operation: str = "") -> None:
        if operation:
            msg = f"No process id provided and no process loaded for {operation}"
        else:
            msg = "No process id provided and no process loaded"
        super().__init__(msg, operation=operation)


class UnknownProcessError(PanelClientError):
    """The requested process is not present in the local registry."""

    def __init__(self, process_id: str) -> None:
        super().__init__(f"Process {process_id!r} is not loaded", process_id=process_id)


class RuntimeNotInstalledError(PanelClientError):
    """An uninstall was requested for a runtime that is not installed."""

    def __init__(self, runtime: str) -> None:
        super().__init__(f"Runtime {runtime!r} is not installed", runtime=runtime)


class UnknownRuntimeError(PanelClientError):
    """The runtime name does not match any known runtime version."""

    def __init__(self, runtime: str) -> None:
        super().__init__(f"Unknown runtime {runtime!r}", runtime=runtime)


__all__ = [
    "PanelClientError",
    "RemoteRequestError",
    "StreamError",
    "StreamClosedError",
    "OperationFailedError",
    "MissingProcessIdError",
    "UnknownProcessError",
    "RuntimeNotInstalledError",
    "UnknownRuntimeError",
]
