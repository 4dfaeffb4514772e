"""
Cache Domain Entities

Core entities for the resource cache: stored entries and the counters kept
about cache traffic.
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict, Generic, TypeVar

from .value_objects import TTL

T = TypeVar("T")


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """
    Cached value with its storage and expiry timestamps.

    Entries are never mutated; a refresh replaces the entry wholesale.
    Timestamps come from the owning cache's clock.
    """

    value: T
    stored_at: float
    expires_at: float

    @classmethod
    def create(cls, value: T, ttl: TTL, now: float) -> "CacheEntry[T]":
        """Create an entry that expires ``ttl`` after ``now``."""
        return cls(value=value, stored_at=now, expires_at=now + ttl.seconds)

    def is_live(self, now: float) -> bool:
        """Whether the entry may still be served at ``now``."""
        return now < self.expires_at


@dataclass
class CacheStats:
    """Counters for cache traffic."""

    hits: int = 0
    misses: int = 0
    coalesced: int = 0
    refill_failures: int = 0
    invalidated: int = 0

    @property
    def hit_rate(self) -> float:
        """Share of lookups answered without an upstream call."""
        lookups = self.hits + self.misses + self.coalesced
        if lookups == 0:
            return 0.0
        return (self.hits + self.coalesced) / lookups

    def to_dict(self) -> Dict[str, Any]:
        """Counters plus the derived hit rate."""
        data = asdict(self)
        data["hit_rate"] = round(self.hit_rate, 4)
        return data
