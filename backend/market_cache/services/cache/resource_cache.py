"""
Resource Cache Service

Single choke point between the market data accessors and the upstream
provider. Serves live entries, refills expired or missing ones exactly once
per miss, and never stores the outcome of a failed refill.
"""

import asyncio
import functools
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple, TypeVar

from opentelemetry import trace

from ...domain.cache.entities import CacheEntry, CacheStats
from ...domain.cache.repository_interfaces import CacheStoreRepository
from ...domain.cache.value_objects import CacheKey, TTL
from ...infrastructure.repositories.cache_repository import InMemoryCacheRepository

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

T = TypeVar("T")

Clock = Callable[[], float]


class ResourceCache:
    """
    TTL cache with per-key refill and symbol-scoped invalidation.

    Args:
        store: Entry repository; a fresh in-memory store when omitted.
        clock: Monotonic time source in seconds. Tests inject a fake one.
        coalesce_misses: When true, concurrent misses on the same key await
            one shared upstream fetch instead of each issuing their own.
    """

    def __init__(
        self,
        store: Optional[CacheStoreRepository] = None,
        clock: Clock = time.monotonic,
        coalesce_misses: bool = True,
    ):
        self._store = store if store is not None else InMemoryCacheRepository()
        self._clock = clock
        self._coalesce_misses = coalesce_misses
        self._in_flight: Dict[CacheKey, "asyncio.Future[Any]"] = {}
        self._stats = CacheStats()
        # Refills whose key was invalidated while they ran must not write back
        self._epoch = 0
        self._generations: Dict[CacheKey, int] = {}
        self._refilling: Dict[CacheKey, int] = {}

    async def cached_fetch(
        self,
        key: CacheKey,
        fetch_fn: Callable[[], Awaitable[T]],
        ttl: TTL,
    ) -> T:
        """
        Return the live value for key, or fetch, store and return a fresh one.

        Args:
            key: Cache key of the logical resource
            fetch_fn: Zero-argument coroutine function performing the upstream call
            ttl: How long a fetched value stays servable

        Returns:
            Cached or freshly fetched value

        Raises:
            Exception: Whatever fetch_fn raised; the store is left untouched
        """
        with tracer.start_as_current_span("resource_cache.cached_fetch") as span:
            span.set_attribute("cache.key", key.value)
            now = self._clock()

            entry = self._store.get(key)
            if entry is not None and entry.is_live(now):
                self._stats.hits += 1
                span.set_attribute("cache.hit", True)
                logger.debug("Cache hit", extra={"key": key.value})
                return entry.value

            span.set_attribute("cache.hit", False)

            if not self._coalesce_misses:
                return await self._refill(key, fetch_fn, ttl, now)

            shared = self._in_flight.get(key)
            if shared is None:
                shared = asyncio.ensure_future(self._refill(key, fetch_fn, ttl, now))
                self._in_flight[key] = shared
                shared.add_done_callback(functools.partial(self._release, key))
            else:
                self._stats.coalesced += 1
                span.set_attribute("cache.coalesced", True)
                logger.debug("Joining in-flight fetch", extra={"key": key.value})

            # The fetch runs in its own task; cancelling any caller leaves it running
            return await asyncio.shield(shared)

    def _release(self, key: CacheKey, shared: "asyncio.Future[Any]") -> None:
        if self._in_flight.get(key) is shared:
            del self._in_flight[key]
        if not shared.cancelled():
            # Mark retrieved so a failure with no remaining waiter is not reported
            shared.exception()

    def _token(self, key: CacheKey) -> Tuple[int, int]:
        return self._epoch, self._generations.get(key, 0)

    async def _refill(
        self,
        key: CacheKey,
        fetch_fn: Callable[[], Awaitable[T]],
        ttl: TTL,
        now: float,
    ) -> T:
        token = self._token(key)
        self._refilling[key] = self._refilling.get(key, 0) + 1
        self._stats.misses += 1
        logger.debug("Cache miss, fetching fresh data", extra={"key": key.value})

        try:
            try:
                value = await fetch_fn()
            except Exception as e:
                self._stats.refill_failures += 1
                logger.warning(
                    "Cache refill failed",
                    extra={
                        "key": key.value,
                        "error": str(e),
                        "error_type": type(e).__name__,
                    },
                )
                raise

            if self._token(key) != token:
                logger.debug(
                    "Discarding refill invalidated while in flight",
                    extra={"key": key.value},
                )
            else:
                self._store.put(key, CacheEntry.create(value, ttl, now))
            return value
        finally:
            remaining = self._refilling.pop(key) - 1
            if remaining:
                self._refilling[key] = remaining
            else:
                self._generations.pop(key, None)

    def get_entry(self, key: CacheKey) -> Optional[CacheEntry[Any]]:
        """Stored entry for key, live or expired."""
        return self._store.get(key)

    def invalidate_key(self, key: CacheKey) -> bool:
        """Remove a single entry."""
        self._detach(lambda candidate: candidate == key)
        removed = self._store.delete(key)
        if removed:
            self._stats.invalidated += 1
        return removed

    def _detach(self, predicate: Callable[[CacheKey], bool]) -> None:
        """Stop running refills for matching keys from writing back or being joined."""
        for key in [key for key in self._refilling if predicate(key)]:
            self._generations[key] = self._generations.get(key, 0) + 1
        for key in [key for key in self._in_flight if predicate(key)]:
            del self._in_flight[key]

    def invalidate(self, symbol: str) -> int:
        """
        Remove every entry whose key refers to symbol.

        Matching is case-insensitive against the key's parameter tokens.
        Fetches already in flight for matching keys still answer their
        callers but no longer write back, and later calls start a new fetch.

        Returns:
            Number of entries removed
        """
        with tracer.start_as_current_span("resource_cache.invalidate") as span:
            span.set_attribute("cache.symbol", symbol)

            def matches(key: CacheKey) -> bool:
                return key.mentions_symbol(symbol)

            self._detach(matches)
            removed = self._store.delete_where(matches)
            self._stats.invalidated += removed
            span.set_attribute("cache.invalidated_count", removed)
            logger.info(
                f"Invalidated {removed} cache entries for {symbol}",
                extra={"symbol": symbol, "count": removed},
            )
            return removed

    def invalidate_all(self) -> int:
        """Empty the store unconditionally and detach every in-flight fetch."""
        self._epoch += 1
        self._in_flight.clear()
        removed = self._store.clear()
        self._stats.invalidated += removed
        logger.info(
            f"Invalidated all {removed} cache entries", extra={"count": removed}
        )
        return removed

    def stats(self) -> Dict[str, Any]:
        """Traffic counters plus live and stored entry counts."""
        now = self._clock()
        live = 0
        for key in self._store.keys():
            entry = self._store.get(key)
            if entry is not None and entry.is_live(now):
                live += 1

        data = self._stats.to_dict()
        data.update(
            {
                "entries": len(self._store),
                "live_entries": live,
                "in_flight": len(self._in_flight),
                "coalesce_misses": self._coalesce_misses,
            }
        )
        return data

    def __len__(self) -> int:
        return len(self._store)
