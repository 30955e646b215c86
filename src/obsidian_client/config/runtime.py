"""Typed lookups over environment variables with dotenv fallbacks."""

from __future__ import annotations

import os
from typing import Callable, Optional, TypeVar

from .dotenv import DotenvDefaults
from .errors import ConfigurationError

T = TypeVar("T")

_TRUE_VALUES = frozenset({"1", "true", "t", "yes", "y", "on"})
_FALSE_VALUES = frozenset({"0", "false", "f", "no", "n", "off"})

_dotenv_defaults = DotenvDefaults()


def reload_dotenv_defaults() -> None:
    """Forget cached dotenv values so the next lookup re-reads the files."""
    _dotenv_defaults.reload()


def _lookup(name: str, *, strip: bool) -> Optional[str]:
    for candidate in (os.environ.get(name), _dotenv_defaults.get(name)):
        if candidate is None:
            continue
        value = candidate.strip() if strip else candidate
        if value != "":
            return value
    return None


def env_str(name: str, or_value: Optional[str] = None, *, required: bool = False, strip: bool = True) -> Optional[str]:
    """Fetch a non-blank string setting; the process environment wins over dotenv files."""
    value = _lookup(name, strip=strip)
    if value is None:
        if required:
            raise ConfigurationError.missing(name)
        return or_value
    return value


def _typed(name: str, or_value: Optional[T], required: bool, parse: Callable[[str], T], expected: str) -> Optional[T]:
    raw = _lookup(name, strip=True)
    if raw is None:
        if required and or_value is None:
            raise ConfigurationError.missing(name)
        return or_value
    try:
        return parse(raw)
    except ValueError as exc:
        raise ConfigurationError.unparseable(name, raw, expected) from exc


def _parse_bool(raw: str) -> bool:
    lowered = raw.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(raw)


def env_int(name: str, or_value: Optional[int] = None, *, required: bool = False) -> Optional[int]:
    return _typed(name, or_value, required, int, "an integer")


def env_float(name: str, or_value: Optional[float] = None, *, required: bool = False) -> Optional[float]:
    return _typed(name, or_value, required, float, "a number")


def env_bool(name: str, or_value: Optional[bool] = None, *, required: bool = False) -> Optional[bool]:
    return _typed(name, or_value, required, _parse_bool, "a boolean such as 1/0, true/false or yes/no")


def env_seconds(name: str, or_value: Optional[float] = None, *, required: bool = False) -> Optional[float]:
    """Fetch a duration in seconds; fractions are allowed, negatives are not."""
    value = env_float(name, or_value, required=required)
    if value is not None and value < 0:
        raise ConfigurationError.out_of_range(name, value, "must be non-negative")
    return value


__all__ = [
    "env_bool",
    "env_float",
    "env_int",
    "env_seconds",
    "env_str",
    "reload_dotenv_defaults",
]
