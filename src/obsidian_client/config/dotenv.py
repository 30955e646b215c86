"""Fallback values read from ``.env`` style files."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterable, Optional, Tuple

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_DOTENV_PATHS: Tuple[Path, ...] = (Path(".env"), Path.home() / ".obsidian_client.env")


def read_dotenv(path: Path) -> Dict[str, str]:
    """
    Parse ``KEY=value`` lines from *path*.

    Blank lines, ``#`` comments and lines without ``=`` are skipped. An
    ``export`` prefix is accepted and one pair of matching quotes around the
    value is removed. A missing file yields an empty mapping.

    Raises:
        ConfigurationError: If the file exists but cannot be read
    """
    if not path.is_file():
        return {}
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"Failed to read settings file {path}") from exc

    values: Dict[str, str] = {}
    for line in text.splitlines():
        entry = line.strip()
        if not entry or entry.startswith("#") or "=" not in entry:
            continue
        if entry.startswith("export "):
            entry = entry[len("export ") :]
        key, _, value = entry.partition("=")
        key = key.strip()
        if key:
            values[key] = _unquote(value.strip())
    return values


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    return value


class DotenvDefaults:
    """Lazily merged view over several dotenv files; earlier paths win."""

    def __init__(self, paths: Iterable[Path] = DEFAULT_DOTENV_PATHS):
        self._paths = tuple(paths)
        self._values: Optional[Dict[str, str]] = None

    def get(self, name: str) -> Optional[str]:
        if self._values is None:
            self._values = self._load()
        return self._values.get(name)

    def reload(self) -> None:
        self._values = None

    def _load(self) -> Dict[str, str]:
        merged: Dict[str, str] = {}
        for path in self._paths:
            for key, value in read_dotenv(path).items():
                merged.setdefault(key, value)
        if merged:
            logger.debug("Loaded %d fallback settings from dotenv files", len(merged))
        return merged


__all__ = ["DEFAULT_DOTENV_PATHS", "DotenvDefaults", "read_dotenv"]
