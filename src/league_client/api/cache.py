"""
Session Caching Layer.

In-memory cache for league API responses with TTL expiry and structured
keys. Nothing is persisted: the cache lives as long as the client.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TTL = 300.0  # 5 minutes


class _AnyScope:
    """Sentinel matching every scope in a KeyPattern."""

    def __repr__(self) -> str:
        return "ANY"


ANY = _AnyScope()


@dataclass(frozen=True)
class CacheKey:
    """
    Structured cache key.

    Attributes:
        namespace: Endpoint / data shape (e.g. "season-teams")
        scope: Canonical league segment, None when not tenant-scoped
        params: Call-specific parameters (ids, filters)
    """

    namespace: str
    scope: str | None = None
    params: tuple[Any, ...] = ()

    def __str__(self) -> str:
        parts = [self.namespace]
        if self.scope is not None:
            parts.append(self.scope)
        parts.extend(str(p) for p in self.params)
        return ":".join(parts)


@dataclass(frozen=True)
class KeyPattern:
    """Matches every key in a namespace, optionally narrowed by scope and leading params."""

    namespace: str
    scope: Any = ANY
    params: tuple[Any, ...] = ()

    def matches(self, key: CacheKey) -> bool:
        if key.namespace != self.namespace:
            return False
        if self.scope is not ANY and key.scope != self.scope:
            return False
        return key.params[: len(self.params)] == self.params


@dataclass
class CacheEntry:
    """A cached value and the instant it was fetched."""

    value: Any
    timestamp: float

    def age(self, now: float) -> float:
        """Get age of cache entry in seconds."""
        return now - self.timestamp

    def is_valid(self, now: float, ttl: float) -> bool:
        return self.age(now) < ttl


class SessionCache:
    """
    In-memory cache for API responses.

    Features:
    - Lazy TTL expiry, checked on read
    - Invalidation by namespace, scope and leading params
    - No in-flight deduplication: concurrent misses each fetch, last write wins
    """

    def __init__(
        self,
        ttl: float = DEFAULT_TTL,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the cache.

        Args:
            ttl: Default time-to-live in seconds
            clock: Monotonic time source (injectable for tests)
        """
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[CacheKey, CacheEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: CacheKey) -> bool:
        return key in self._entries

    def peek(self, key: CacheKey) -> CacheEntry | None:
        """Return the stored entry for key, expired or not."""
        return self._entries.get(key)

    async def get_or_compute(
        self,
        key: CacheKey,
        producer: Callable[[], Awaitable[T]],
        ttl: float | None = None,
    ) -> T:
        """
        Return the cached value for key, fetching it on a miss.

        Args:
            key: Cache key
            producer: Coroutine function fetching the value
            ttl: Custom TTL (overrides the cache default)

        Returns:
            The cached or freshly produced value

        Raises:
            Whatever producer raises; failures are never cached
        """
        effective_ttl = ttl if ttl is not None else self.ttl
        now = self._clock()

        entry = self._entries.get(key)
        if entry is not None and entry.is_valid(now, effective_ttl):
            logger.debug(f"Cache hit: {key} (age: {entry.age(now):.0f}s)")
            return entry.value

        if entry is None:
            logger.debug(f"Cache miss: {key}")
        else:
            logger.debug(f"Cache expired: {key} (age: {entry.age(now):.0f}s)")

        value = await producer()
        self._entries[key] = CacheEntry(value=value, timestamp=now)
        logger.debug(f"Cached: {key} (ttl: {effective_ttl:.0f}s)")
        return value

    def invalidate(self, *patterns: KeyPattern) -> int:
        """
        Remove every entry matching any of the patterns.

        With no patterns the whole cache is cleared.

        Returns:
            Number of entries removed
        """
        if not patterns:
            return self.clear()

        stale = [k for k in self._entries if any(p.matches(k) for p in patterns)]
        for k in stale:
            del self._entries[k]

        logger.debug(f"Invalidated {len(stale)} entries for {list(patterns)}")
        return len(stale)

    def clear(self) -> int:
        """
        Clear all cache entries.

        Returns:
            Number of entries cleared
        """
        count = len(self._entries)
        self._entries.clear()
        logger.debug(f"Cleared {count} cache entries")
        return count
