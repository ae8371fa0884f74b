"""
Short-lived in-process memoization for finance summaries.
"""

import time
from typing import Callable, Generic, TypeVar

from cachetools import TTLCache

V = TypeVar("V")

DEFAULT_MAX_ENTRIES = 10_000


class ResultCache(Generic[V]):
    """
    Key/value map whose entries expire a fixed time after they are written.

    There is no invalidation API. Stored values are returned as-is, so callers
    must treat them as immutable.
    """

    def __init__(
        self,
        ttl_seconds: float,
        clock: Callable[[], float] = time.monotonic,
        max_entries: int = DEFAULT_MAX_ENTRIES,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.ttl_seconds = ttl_seconds
        self._entries: TTLCache[str, V] = TTLCache(
            maxsize=max_entries, ttl=ttl_seconds, timer=clock
        )

    def get(self, key: str) -> V | None:
        return self._entries.get(key)

    def put(self, key: str, value: V) -> None:
        self._entries[key] = value

    def __len__(self) -> int:
        self._entries.expire()
        return len(self._entries)
