from collections import OrderedDict
from typing import Generic, Optional, Tuple, TypeVar

V = TypeVar("V")

# (history length, last sample timestamp)
TrendCacheKey = Tuple[int, float]


class TrendCache(Generic[V]):
    """
    Bounded memoization of trend results.

    Entries are keyed by ``(history length, last timestamp)`` and evicted
    oldest-inserted first once `max_entries` is exceeded. `None` values are
    cached too ("no trend available" is a valid, repeatable answer).
    """

    _MISSING = object()

    def __init__(self, max_entries: int = 100):
        if max_entries <= 0:
            raise ValueError(f"max_entries must be > 0, got {max_entries}")
        self.max_entries = int(max_entries)
        self._entries: "OrderedDict[TrendCacheKey, Optional[V]]" = OrderedDict()
        self.hits = 0
        self.misses = 0

    def contains(self, key: TrendCacheKey) -> bool:
        return key in self._entries

    def get(self, key: TrendCacheKey) -> Optional[V]:
        value = self._entries.get(key, self._MISSING)
        if value is self._MISSING:
            self.misses += 1
            return None
        self.hits += 1
        return value

    def put(self, key: TrendCacheKey, value: Optional[V]) -> None:
        self._entries[key] = value
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)

    def clear(self) -> None:
        self._entries.clear()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)
