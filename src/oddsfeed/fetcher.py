"""Read-through fetching with stale-on-error fallback."""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from oddsfeed.cache import FreshnessCache
from oddsfeed.config import ConfigurationError
from oddsfeed.models import PayloadSource

logger = logging.getLogger(__name__)

FetchFn = Callable[[], Awaitable[Any]]


@dataclass(frozen=True)
class FetchOutcome:
    """Raw payload for a key plus where it was served from."""

    key: str
    data: Any
    source: PayloadSource

    @property
    def is_stale(self) -> bool:
        return self.source is PayloadSource.STALE_CACHE


class CachedFetcher:
    """Serves a key from cache when fresh, otherwise calls upstream once.

    A failed upstream call falls back to whatever entry exists for the key,
    fresh or not. Only successful upstream results are ever written, so a
    stale serve never extends an entry's lifetime. Concurrent requests for
    the same key are not coalesced; the last completed write wins.
    """

    def __init__(self, cache: FreshnessCache) -> None:
        self._cache = cache

    async def fetch(self, key: str, fetch_fn: FetchFn) -> FetchOutcome:
        """Resolve key to a payload.

        Args:
            key: Cache key, typically from cache_key()
            fetch_fn: Zero-argument coroutine function calling the upstream

        Returns:
            FetchOutcome tagged CACHE, UPSTREAM or STALE_CACHE

        Raises:
            ConfigurationError: Propagated as-is, without a fallback read.
            Exception: Whatever fetch_fn raised, when no entry exists for key.
        """
        cached = await self._cache.lookup(key)
        if cached.is_fresh and cached.data is not None:
            return FetchOutcome(key=key, data=cached.data, source=PayloadSource.CACHE)

        try:
            data = await fetch_fn()
        except ConfigurationError:
            raise
        except Exception as e:
            logger.error(f"Upstream fetch failed for {key}: {e}")
            fallback = await self._cache.read(key)
            if fallback is None:
                raise
            logger.warning(f"Serving stale cache as fallback: {key}")
            return FetchOutcome(key=key, data=fallback, source=PayloadSource.STALE_CACHE)

        await self._cache.write(key, data)
        return FetchOutcome(key=key, data=data, source=PayloadSource.UPSTREAM)

    async def get_or_fetch(self, key: str, fetch_fn: FetchFn) -> Any:
        """Like fetch(), returning only the payload."""
        outcome = await self.fetch(key, fetch_fn)
        return outcome.data


__all__ = ["FetchFn", "FetchOutcome", "CachedFetcher"]
