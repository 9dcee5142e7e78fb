"""Explicit TTL cache for external lookup results."""

import time
from typing import Any, Callable

_MISSING = object()


class LookupCache:
    """Key/value cache with a per-instance time-to-live.

    Services receive a cache through their constructor, so its lifetime is
    whatever the caller chooses: one per import run, or one per process
    with ``ttl_seconds`` bounding staleness. ``None`` values are cached too
    (a lookup that found nothing is not repeated until it expires).
    """

    def __init__(self, ttl_seconds: float | None = None, clock: Callable[[], float] = time.monotonic):
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[str, tuple[float, Any]] = {}

    def get(self, key: str, default: Any = None) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            return default
        stored_at, value = entry
        if self._ttl is not None and self._clock() - stored_at > self._ttl:
            del self._entries[key]
            return default
        return value

    def contains(self, key: str) -> bool:
        return self.get(key, _MISSING) is not _MISSING

    def set(self, key: str, value: Any) -> None:
        self._prune_expired()
        # Re-insert so entries stay ordered by store time
        self._entries.pop(key, None)
        self._entries[key] = (self._clock(), value)

    def _prune_expired(self) -> None:
        """Drop expired entries from the oldest end."""
        if self._ttl is None:
            return
        now = self._clock()
        while self._entries:
            oldest = next(iter(self._entries))
            stored_at, _ = self._entries[oldest]
            if now - stored_at <= self._ttl:
                break
            del self._entries[oldest]

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
