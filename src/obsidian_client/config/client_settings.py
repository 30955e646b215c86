"""Typed client settings assembled from the environment."""

from __future__ import annotations

from dataclasses import dataclass

from ..http_utils import validate_base_url
from .errors import ConfigurationError
from .runtime import env_float, env_int, env_seconds, env_str

DEFAULT_BASE_URL = "http://127.0.0.1:8080"
DEFAULT_REQUEST_TIMEOUT_SECONDS = 30.0
DEFAULT_CONNECT_TIMEOUT_SECONDS = 10.0
DEFAULT_STATUS_POLL_SECONDS = 1.0
DEFAULT_PROCESS_REFRESH_SECONDS = 5.0
DEFAULT_CANCEL_ACK_TIMEOUT_SECONDS = 5.0
DEFAULT_TRANSFER_CHUNK_BYTES = 64 * 1024
DEFAULT_MAX_RETRIES = 1
DEFAULT_BACKOFF_BASE_SECONDS = 1.0
DEFAULT_BACKOFF_MAX_SECONDS = 30.0


@dataclass(frozen=True)
class ClientSettings:
    """Connection and timing settings for the panel client."""

    base_url: str = DEFAULT_BASE_URL
    request_timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS
    connect_timeout_seconds: float = DEFAULT_CONNECT_TIMEOUT_SECONDS
    status_poll_seconds: float = DEFAULT_STATUS_POLL_SECONDS
    process_refresh_seconds: float = DEFAULT_PROCESS_REFRESH_SECONDS
    cancel_ack_timeout_seconds: float = DEFAULT_CANCEL_ACK_TIMEOUT_SECONDS
    transfer_chunk_bytes: int = DEFAULT_TRANSFER_CHUNK_BYTES
    max_retries: int = DEFAULT_MAX_RETRIES
    backoff_base_seconds: float = DEFAULT_BACKOFF_BASE_SECONDS
    backoff_max_seconds: float = DEFAULT_BACKOFF_MAX_SECONDS

    def __post_init__(self) -> None:
        try:
            validate_base_url(self.base_url)
        except ValueError as exc:
            raise ConfigurationError.unparseable("base_url", self.base_url, "an http(s)://host[:port] URL") from exc
        if self.status_poll_seconds <= 0:
            raise ConfigurationError.out_of_range("status_poll_seconds", self.status_poll_seconds, "must be positive")
        if self.transfer_chunk_bytes <= 0:
            raise ConfigurationError.out_of_range("transfer_chunk_bytes", self.transfer_chunk_bytes, "must be positive")
        if self.max_retries < 1:
            raise ConfigurationError.out_of_range("max_retries", self.max_retries, "must allow at least one attempt")


def load_client_settings() -> ClientSettings:
    """Build :class:`ClientSettings` from ``OBSIDIAN_*`` environment variables."""
    return ClientSettings(
        base_url=env_str("OBSIDIAN_BASE_URL", DEFAULT_BASE_URL) or DEFAULT_BASE_URL,
        request_timeout_seconds=_seconds("OBSIDIAN_REQUEST_TIMEOUT_SECONDS", DEFAULT_REQUEST_TIMEOUT_SECONDS),
        connect_timeout_seconds=_seconds("OBSIDIAN_CONNECT_TIMEOUT_SECONDS", DEFAULT_CONNECT_TIMEOUT_SECONDS),
        status_poll_seconds=_seconds("OBSIDIAN_STATUS_POLL_SECONDS", DEFAULT_STATUS_POLL_SECONDS),
        process_refresh_seconds=_seconds("OBSIDIAN_PROCESS_REFRESH_SECONDS", DEFAULT_PROCESS_REFRESH_SECONDS),
        cancel_ack_timeout_seconds=_seconds("OBSIDIAN_CANCEL_ACK_TIMEOUT_SECONDS", DEFAULT_CANCEL_ACK_TIMEOUT_SECONDS),
        transfer_chunk_bytes=_int("OBSIDIAN_TRANSFER_CHUNK_BYTES", DEFAULT_TRANSFER_CHUNK_BYTES),
        max_retries=_int("OBSIDIAN_MAX_RETRIES", DEFAULT_MAX_RETRIES),
        backoff_base_seconds=_float("OBSIDIAN_BACKOFF_BASE_SECONDS", DEFAULT_BACKOFF_BASE_SECONDS),
        backoff_max_seconds=_float("OBSIDIAN_BACKOFF_MAX_SECONDS", DEFAULT_BACKOFF_MAX_SECONDS),
    )


def _seconds(name: str, default: float) -> float:
    value = env_seconds(name, or_value=default)
    return default if value is None else value


def _int(name: str, default: int) -> int:
    value = env_int(name, or_value=default)
    return default if value is None else value


def _float(name: str, default: float) -> float:
    value = env_float(name, or_value=default)
    return default if value is None else value


__all__ = ["ClientSettings", "load_client_settings"]
