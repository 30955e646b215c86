"""
Centralized logging configuration for client applications.

``setup_logging`` configures the root logger once with:
- Console output to stdout (technical format, or bare messages in user-friendly mode)
- Optional file output to ``$OBSIDIAN_LOG_DIR/{service_name}.log``
- Fresh log file on each start unless ``LOG_APPEND=1``
"""

import logging
import logging.handlers
import os
import sys
import threading
from pathlib import Path
from typing import Optional

from .config.runtime import env_bool, env_str

_config_lock = threading.Lock()
_MODULE_LOGGER = logging.getLogger(__name__)
_TECHNICAL_FORMAT = "%(asctime)s.%(msecs)03d - %(name)s - %(levelname)s - %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_LOG_DIR = "logs"

NOISY_LOGGERS = ("asyncio", "aiohttp", "aiohttp.access", "aiohttp.client")


def _technical_formatter() -> logging.Formatter:
    return logging.Formatter(_TECHNICAL_FORMAT, _DATE_FORMAT)


def _should_skip_logging_configuration(root_logger: logging.Logger, service_name: Optional[str]) -> bool:
    if not root_logger.handlers:
        return False
    has_console = any(
        isinstance(handler, logging.StreamHandler) and not isinstance(handler, logging.FileHandler)
        for handler in root_logger.handlers
    )
    if not service_name:
        return has_console
    has_file = any(isinstance(handler, logging.FileHandler) for handler in root_logger.handlers)
    return has_console and has_file


def _close_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        try:
            handler.close()
        except OSError as exc:
            _MODULE_LOGGER.debug("Handler close failed for logger '%s': %s", logger.name, exc)
    logger.handlers = []


def _build_console_handler(user_friendly: bool) -> logging.Handler:
    console_handler = logging.StreamHandler(sys.stdout)
    if user_friendly:
        console_handler.setFormatter(logging.Formatter("%(message)s"))
        console_handler.setLevel(logging.WARNING)
    else:
        console_handler.setFormatter(_technical_formatter())
        console_handler.setLevel(logging.DEBUG)
    return console_handler


def resolve_log_directory() -> Path:
    configured = env_str("OBSIDIAN_LOG_DIR", DEFAULT_LOG_DIR) or DEFAULT_LOG_DIR
    return Path(configured).expanduser()


def _configure_file_handler(service_name: Optional[str]) -> Optional[logging.Handler]:
    if not service_name:
        return None

    logs_dir = resolve_log_directory()
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_path = logs_dir / f"{service_name}.log"
    file_mode = "a" if os.getenv("LOG_APPEND") == "1" else "w"

    file_handler = logging.handlers.WatchedFileHandler(log_path, mode=file_mode)
    file_handler.setFormatter(_technical_formatter())
    file_handler.setLevel(logging.INFO)
    return file_handler


def _suppress_noisy_third_parties() -> None:
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def setup_logging(service_name: Optional[str] = None, user_friendly: bool = False):
    """Configure logging for the application"""

    with _config_lock:
        root_logger = logging.getLogger()

        if _should_skip_logging_configuration(root_logger, service_name):
            return

        _close_handlers(root_logger)
        root_logger.addHandler(_build_console_handler(user_friendly))

        file_handler = _configure_file_handler(service_name)
        if file_handler:
            root_logger.addHandler(file_handler)

        debug_enabled = bool(env_bool("OBSIDIAN_DEBUG", or_value=False))
        root_logger.setLevel(logging.DEBUG if debug_enabled else logging.INFO)
        _suppress_noisy_third_parties()
