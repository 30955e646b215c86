"""Client runtime for managed game-server processes on a remote panel."""

from .client import PanelClient
from .config import ClientSettings, load_client_settings
from .errors import (
    MissingProcessIdError,
    OperationFailedError,
    PanelClientError,
    RemoteRequestError,
    RuntimeNotInstalledError,
    StreamClosedError,
    StreamError,
    UnknownProcessError,
    UnknownRuntimeError,
)
from .logging_config import setup_logging

__all__ = [
    "ClientSettings",
    "MissingProcessIdError",
    "OperationFailedError",
    "PanelClient",
    "PanelClientError",
    "RemoteRequestError",
    "RuntimeNotInstalledError",
    "StreamClosedError",
    "StreamError",
    "UnknownProcessError",
    "UnknownRuntimeError",
    "setup_logging",
]
