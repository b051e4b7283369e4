"""Client-side query cache with stale marking."""

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Hashable, Optional, Tuple


QueryKey = Tuple[Hashable, ...]


class ConversationKeys:
    """Cache keys for conversation queries."""

    ALL = ("reviewConversations",)

    @staticmethod
    def by_attempt(attempt_id: str) -> QueryKey:
        return ("reviewConversations", attempt_id)

    @staticmethod
    def unresolved(attempt_id: str) -> QueryKey:
        return ("reviewConversations", attempt_id, "unresolved")

    @staticmethod
    def single(attempt_id: str, conversation_id: str) -> QueryKey:
        return ("reviewConversations", attempt_id, conversation_id)


conversation_keys = ConversationKeys()


@dataclass
class CacheEntry:
    data: Any
    updated_at: float
    stale: bool = False


class QueryCache:
    """Query results keyed by tuples; entries are stale by age or by invalidation.

    Every write to a key (set, invalidate, remove) bumps that key's generation.
    A fetch records the generation when it starts and may only store its
    result if nothing touched the key in between.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._entries: Dict[QueryKey, CacheEntry] = {}
        self._generations: Dict[QueryKey, int] = {}
        self._clock = clock

    def generation(self, key: QueryKey) -> int:
        return self._generations.get(key, 0)

    def _bump(self, key: QueryKey) -> None:
        self._generations[key] = self._generations.get(key, 0) + 1

    def get_query_data(self, key: QueryKey) -> Optional[Any]:
        entry = self._entries.get(key)
        return entry.data if entry else None

    def set_query_data(self, key: QueryKey, data: Any) -> None:
        """Store authoritative data; the entry becomes fresh."""
        self._entries[key] = CacheEntry(data=data, updated_at=self._clock())
        self._bump(key)

    def set_if_unchanged(self, key: QueryKey, data: Any, generation: int) -> bool:
        """Store fetched data unless the key was written since ``generation``."""
        if self.generation(key) != generation:
            return False
        self.set_query_data(key, data)
        return True

    def invalidate(self, key: QueryKey) -> None:
        """Mark an entry stale so the next read refetches.

        A missing key holds no data, but in-flight fetches of it are still
        superseded.
        """
        entry = self._entries.get(key)
        if entry:
            entry.stale = True
        self._bump(key)

    def remove(self, key: QueryKey) -> None:
        self._entries.pop(key, None)
        self._bump(key)

    def remove_if_unchanged(self, key: QueryKey, generation: int) -> bool:
        if self.generation(key) != generation:
            return False
        self.remove(key)
        return True

    def is_stale(self, key: QueryKey, stale_after: float) -> bool:
        """True when the entry is missing, invalidated, or older than stale_after seconds."""
        entry = self._entries.get(key)
        if entry is None:
            return True
        return entry.stale or (self._clock() - entry.updated_at) >= stale_after

    def clear(self) -> None:
        for key in list(self._entries):
            self._bump(key)
        self._entries.clear()

    def __contains__(self, key: QueryKey) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
