"""Memoization of successful routes."""

import logging
from collections import OrderedDict
from dataclasses import replace

from ..models.geo import Coordinate
from .provider import RouteProvider, RouteResult

logger = logging.getLogger(__name__)

CacheKey = tuple[Coordinate, Coordinate, str]


class CachingRouteProvider:
    """Wrap a provider and reuse routes for identical endpoint pairs.

    Only successes are cached, so a provider outage is retried on the next
    batch. Keys include the travel profile. At most ``max_size`` routes are
    kept; the least recently used one is dropped first.
    """

    def __init__(self, inner: RouteProvider, profile: str = "drive", max_size: int = 2048):
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.inner = inner
        self.profile = profile
        self.max_size = max_size
        self._cache: OrderedDict[CacheKey, RouteResult] = OrderedDict()
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    @property
    def name(self) -> str:
        return self.inner.name

    @property
    def size(self) -> int:
        return len(self._cache)

    async def route(self, source: Coordinate, target: Coordinate) -> RouteResult:
        key = (source, target, self.profile)
        cached = self._cache.get(key)
        if cached is not None:
            self.hits += 1
            self._cache.move_to_end(key)
            return replace(cached, points=list(cached.points), cached=True)

        self.misses += 1
        result = await self.inner.route(source, target)
        self._cache[key] = replace(result, points=list(result.points))
        self._cache.move_to_end(key)
        while len(self._cache) > self.max_size:
            self._cache.popitem(last=False)
            self.evictions += 1
        return result

    def clear(self) -> int:
        """Drop all cached routes.

        Returns:
            Number of routes removed
        """
        count = len(self._cache)
        self._cache.clear()
        logger.info(f"Route cache cleared: {count} routes removed")
        return count

    def get_stats(self) -> dict[str, dict]:
        stats = {}
        inner_stats = getattr(self.inner, "get_stats", None)
        if inner_stats is not None:
            stats.update(inner_stats())
        stats["cache"] = {
            "size": self.size,
            "max_size": self.max_size,
            "hits": self.hits,
            "misses": self.misses,
            "evictions": self.evictions,
        }
        return stats

    async def aclose(self) -> None:
        close = getattr(self.inner, "aclose", None)
        if close is not None:
            await close()
