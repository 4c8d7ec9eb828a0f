"""Free-text search filter over notes.

A pure view transform: it never mutates the notes it is given and must be
re-run whenever the query or the underlying notes change.
"""

from __future__ import annotations

from typing import Iterable, Protocol, TypeVar


class _Searchable(Protocol):
    title: str
    content: str


N = TypeVar("N", bound=_Searchable)


def matches(note: _Searchable, query: str) -> bool:
    """True if *query* is a case-insensitive substring of title or content."""
    if not query:
        return True
    q = query.lower()
    return q in (note.title or "").lower() or q in (note.content or "").lower()


def filter_notes(notes: Iterable[N], query: str) -> list[N]:
    """Return the notes matching *query*, in their original order.

    An empty query returns every note.
    """
    return [n for n in notes if matches(n, query)]
