"""In-memory result caches.

`InMemoryResultCache` is the base behaviour: entries are never evicted and
live as long as the binding. `BoundedResultCache` layers an optional LRU
eviction policy on top for callers who need a capacity bound.
"""

import logging
from collections import OrderedDict
from typing import Any, Callable, Dict, Optional, Tuple

from svcproxy.domain.interfaces.cache import ResultCache
from svcproxy.domain.models.common import CacheKey

logger = logging.getLogger(__name__)

ResultCacheFactory = Callable[[], ResultCache]


class InMemoryResultCache(ResultCache):
    """Append-only dictionary cache. The first stored result for a key wins."""

    def __init__(self):
        self._entries: Dict[CacheKey, Any] = {}

    def lookup(self, key: CacheKey) -> Tuple[bool, Any]:
        if key in self._entries:
            return True, self._entries[key]
        return False, None

    def store(self, key: CacheKey, value: Any) -> None:
        self._entries.setdefault(key, value)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class BoundedResultCache(ResultCache):
    """LRU cache holding at most `max_items` results."""

    def __init__(self, max_items: int):
        if max_items <= 0:
            raise ValueError("max_items must be positive.")
        self.max_items = max_items
        self._entries: "OrderedDict[CacheKey, Any]" = OrderedDict()
        self.evictions = 0

    def lookup(self, key: CacheKey) -> Tuple[bool, Any]:
        if key not in self._entries:
            return False, None
        self._entries.move_to_end(key)
        return True, self._entries[key]

    def store(self, key: CacheKey, value: Any) -> None:
        if key in self._entries:
            self._entries.move_to_end(key)
            return
        self._entries[key] = value
        self._prune()

    def _prune(self) -> None:
        """Evicts least recently used entries while over the size limit."""
        while len(self._entries) > self.max_items:
            evicted_key, _ = self._entries.popitem(last=False)
            self.evictions += 1
            logger.debug(f"Evicted cached result for key: {evicted_key!r}")

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


def make_cache_factory(max_items: Optional[int] = None) -> ResultCacheFactory:
    """Returns a factory producing one fresh cache per operation."""
    if max_items is None:
        return InMemoryResultCache
    if max_items <= 0:
        raise ValueError("max_items must be positive.")
    return lambda: BoundedResultCache(max_items)
