"""Short-lived cache for storefront candidate lookups.

Fresh entries live in a cachetools ``TTLCache``. A second, size-bounded map
remembers the last value loaded for each key; reads fall back to it only
when the database call keeps failing, so product pages keep their timer
through a brief outage. Nothing is shared between processes.
"""

import asyncio
import functools
import logging
import weakref
from collections import OrderedDict
from collections.abc import Awaitable, Callable
from typing import Any

from cachetools import TTLCache  # type: ignore[import-untyped]

logger = logging.getLogger(__name__)

# Cached values may legitimately be None or []
_MISSING = object()


class AsyncTTLCache:
    def __init__(self, maxsize: int = 128, ttl: float = 60.0):
        self._maxsize = maxsize
        self._fresh: TTLCache = TTLCache(maxsize=maxsize, ttl=ttl)
        self._last_good: OrderedDict[str, Any] = OrderedDict()
        # one load in flight per key; locks vanish once nobody awaits them
        self._loading: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    @property
    def size(self) -> int:
        return len(self._fresh)

    def get(self, key: str) -> Any:
        """Fresh value for *key*, or ``_MISSING``."""
        return self._fresh.get(key, _MISSING)

    def get_stale(self, key: str) -> Any:
        """Last value stored under *key* regardless of age, or ``_MISSING``."""
        return self._last_good.get(key, _MISSING)

    def set(self, key: str, value: Any) -> None:
        self._fresh[key] = value
        self._last_good.pop(key, None)
        self._last_good[key] = value
        if len(self._last_good) > self._maxsize:
            self._last_good.popitem(last=False)

    def invalidate_prefix(self, prefix: str) -> None:
        """Expire fresh entries under *prefix*. Fallback values are kept."""
        for key in [k for k in self._fresh if k.startswith(prefix)]:
            del self._fresh[key]

    def clear(self) -> None:
        self._fresh.clear()
        self._last_good.clear()

    def lock_for(self, key: str) -> asyncio.Lock:
        lock = self._loading.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._loading[key] = lock
        return lock


async def _load_with_retry(
    load: Callable[[], Awaitable[Any]], key: str, attempts: int, delay: float
) -> Any:
    for attempt in range(1, attempts + 1):
        try:
            return await load()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            if attempt == attempts:
                raise
            wait = delay * attempt
            logger.warning(
                f"Load of {key} failed ({type(e).__name__}), "
                f"attempt {attempt}/{attempts}, retrying in {wait:.1f}s"
            )
            await asyncio.sleep(wait)
    raise AssertionError("unreachable")


def cached(
    cache: AsyncTTLCache,
    key_func: Callable[..., str],
    *,
    retry: int = 2,
    retry_delay: float = 0.5,
):
    """Cache an async read under ``key_func(*args, **kwargs)``.

    Concurrent misses on one key share a single load. The load is tried
    *retry* times; if it still fails the last good value is served with a
    warning, and without one the error propagates.
    """

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            key = key_func(*args, **kwargs)
            value = cache.get(key)
            if value is not _MISSING:
                return value

            async with cache.lock_for(key):
                value = cache.get(key)
                if value is not _MISSING:
                    return value
                try:
                    value = await _load_with_retry(
                        lambda: func(*args, **kwargs), key, retry, retry_delay
                    )
                except Exception as e:
                    stale = cache.get_stale(key)
                    if stale is _MISSING:
                        raise
                    logger.warning(f"Serving last good value for {key} ({type(e).__name__})")
                    return stale
                cache.set(key, value)
                return value

        wrapper.cache = cache  # type: ignore[attr-defined]
        return wrapper

    return decorator
