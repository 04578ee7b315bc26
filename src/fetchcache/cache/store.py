"""Insertion-ordered entry storage for the promise cache."""

from __future__ import annotations

import asyncio
from collections import OrderedDict
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any


@dataclass(frozen=True)
class Entry:
    """A cache key paired with its shared operation and creation time."""

    key: str
    future: asyncio.Future[Any]
    created_at: float

    @property
    def state(self) -> str:
        """pending, resolved or failed."""
        if not self.future.done():
            return "pending"
        if self.future.cancelled() or self.future.exception() is not None:
            return "failed"
        return "resolved"

    def age(self, now: float) -> float:
        return now - self.created_at


class EntryStore:
    """
    Ordered key -> Entry mapping.

    Iteration order is insertion order and doubles as eviction order.
    Re-inserting a key moves it to the end. The store knows nothing about
    time or capacity.
    """

    def __init__(self) -> None:
        self._entries: OrderedDict[str, Entry] = OrderedDict()

    def get(self, key: str) -> Entry | None:
        return self._entries.get(key)

    def set(self, key: str, entry: Entry) -> None:
        self._entries.pop(key, None)
        self._entries[key] = entry

    def delete(self, key: str) -> bool:
        """Remove a key, returning whether it was present."""
        return self._entries.pop(key, None) is not None

    def clear(self) -> int:
        """Swap in an empty mapping, returning how many entries were dropped."""
        dropped = len(self._entries)
        self._entries = OrderedDict()
        return dropped

    def size(self) -> int:
        return len(self._entries)

    def oldest_key(self) -> str | None:
        return next(iter(self._entries), None)

    def snapshot(self) -> Mapping[str, Entry]:
        """Read-only copy of the current entries in eviction order."""
        return MappingProxyType(dict(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)
