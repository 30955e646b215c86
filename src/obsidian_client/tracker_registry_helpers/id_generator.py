"""Collision-free tracker id generation."""

import itertools
import re
import secrets

_LABEL_UNSAFE = re.compile(r"[^A-Za-z0-9_.-]+")
_RANDOM_BYTES = 4


def sanitize_label(label: str) -> str:
    cleaned = _LABEL_UNSAFE.sub("_", label).strip("_")
    return cleaned or "op"


class TrackerIdGenerator:
    """Produces ids shaped ``{label}-{counter}-{random}``."""

    def __init__(self) -> None:
        self._counter = itertools.count(1)

    def next_id(self, label: str) -> str:
        return f"{sanitize_label(label)}-{next(self._counter)}-{secrets.token_hex(_RANDOM_BYTES)}"
