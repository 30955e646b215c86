"""Exception types for configuration handling."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """Raised when a setting is missing, unparseable or out of range."""

    @classmethod
    def missing(cls, name: str) -> "ConfigurationError":
        return cls(f"Required setting {name!r} is not set")

    @classmethod
    def unparseable(cls, name: str, raw: str, expected: str) -> "ConfigurationError":
        return cls(f"Setting {name!r} must be {expected} (got {raw!r})")

    @classmethod
    def out_of_range(cls, name: str, value: object, requirement: str) -> "ConfigurationError":
        return cls(f"Setting {name!r} {requirement} (got {value!r})")


__all__ = ["ConfigurationError"]
