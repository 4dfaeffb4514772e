"""
In-memory cache repository.

Process-local implementation of ``CacheStoreRepository`` backed by a dict.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from ...domain.cache.entities import CacheEntry
from ...domain.cache.repository_interfaces import CacheStoreRepository
from ...domain.cache.value_objects import CacheKey

logger = logging.getLogger(__name__)


class InMemoryCacheRepository(CacheStoreRepository):
    """Dictionary-backed entry store owned by a single ResourceCache."""

    def __init__(self) -> None:
        self._entries: Dict[CacheKey, CacheEntry[Any]] = {}

    def get(self, key: CacheKey) -> Optional[CacheEntry[Any]]:
        return self._entries.get(key)

    def put(self, key: CacheKey, entry: CacheEntry[Any]) -> None:
        self._entries[key] = entry

    def delete(self, key: CacheKey) -> bool:
        return self._entries.pop(key, None) is not None

    def delete_where(self, predicate: Callable[[CacheKey], bool]) -> int:
        doomed = [key for key in self._entries if predicate(key)]
        for key in doomed:
            del self._entries[key]
        if doomed:
            logger.debug(
                "Deleted cache entries",
                extra={"count": len(doomed), "keys": [key.value for key in doomed]},
            )
        return len(doomed)

    def clear(self) -> int:
        count = len(self._entries)
        self._entries.clear()
        return count

    def keys(self) -> List[CacheKey]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)
