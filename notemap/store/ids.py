"""Identifier strategies for the client graph store.

The store only needs a callable ``(prefix) -> str``.  Production code uses
random URL-safe tokens; tests inject :class:`SequentialIds` for stable ids.
"""

from __future__ import annotations

import secrets
from collections import defaultdict

NOTE_PREFIX = "note"
TAG_PREFIX = "tag"
CONNECTION_PREFIX = "conn"


def prefixed_id(prefix: str) -> str:
    """Return ``<prefix>-<21 char random token>``."""
    return f"{prefix}-{secrets.token_urlsafe(16)[:21]}"


class SequentialIds:
    """Deterministic ``<prefix>-<n>`` ids, counted per prefix."""

    def __init__(self, start: int = 1) -> None:
        self._next: defaultdict[str, int] = defaultdict(lambda: start)

    def __call__(self, prefix: str) -> str:
        n = self._next[prefix]
        self._next[prefix] = n + 1
        return f"{prefix}-{n}"
