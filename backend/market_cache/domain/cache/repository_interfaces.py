"""
Cache Repository Interfaces

Abstract store contract for cache entries.

Store operations are synchronous: each call completes between event-loop
suspension points, so no caller can observe a partially applied mutation.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional

from .entities import CacheEntry
from .value_objects import CacheKey


class CacheStoreRepository(ABC):
    """
    Abstract repository for cache entries keyed by ``CacheKey``.
    """

    @abstractmethod
    def get(self, key: CacheKey) -> Optional[CacheEntry[Any]]:
        """Return the entry for key, live or not."""
        pass

    @abstractmethod
    def put(self, key: CacheKey, entry: CacheEntry[Any]) -> None:
        """Insert or replace the entry for key."""
        pass

    @abstractmethod
    def delete(self, key: CacheKey) -> bool:
        """Delete the entry for key. Returns whether one existed."""
        pass

    @abstractmethod
    def delete_where(self, predicate: Callable[[CacheKey], bool]) -> int:
        """Delete every entry whose key satisfies predicate."""
        pass

    @abstractmethod
    def clear(self) -> int:
        """Delete all entries. Returns how many were removed."""
        pass

    @abstractmethod
    def keys(self) -> List[CacheKey]:
        """Snapshot of the stored keys."""
        pass

    @abstractmethod
    def __len__(self) -> int:
        pass
