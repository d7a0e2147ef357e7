"""
Disk-backed cache for listing page data.

Entries are keyed by listing path plus its normalized query parameters and
hold whatever the listing loaded from the database. Mutations call
`revalidate_path()` so the next request for that listing reloads.

Storage is a `diskcache.Cache` directory, so every gunicorn worker pointed
at the same directory sees the same entries and the same revalidations.
Entries expire after `expire` seconds and the directory is capped at
`size_limit` bytes.
"""
from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path
from typing import TypeVar
from urllib.parse import urlencode

import diskcache
from flask import current_app

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Bumped by every revalidation; a load that started under an older
# generation is returned to its caller but not stored.
_GENERATION_KEY = "__generation__"
_MISSING = object()

DEFAULT_EXPIRE = 300
DEFAULT_SIZE_LIMIT = 64 * 1024 * 1024


def listing_key(path: str, **params: object) -> str:
    """Build a cache key from a path and the params that shape the listing."""
    items = sorted((k, str(v)) for k, v in params.items() if v not in (None, ""))
    return f"{path}?{urlencode(items)}" if items else path


class ListingCache:
    def __init__(
        self,
        directory: str | Path | None = None,
        *,
        enabled: bool = True,
        expire: int | None = DEFAULT_EXPIRE,
        size_limit: int = DEFAULT_SIZE_LIMIT,
    ) -> None:
        self.enabled = enabled
        self.expire = expire
        self._cache = diskcache.Cache(str(directory) if directory else None, size_limit=size_limit)

    def get_or_load(self, key: str, loader: Callable[[], T]) -> T:
        if not self.enabled:
            return loader()

        cached = self._cache.get(key, default=_MISSING)
        if cached is not _MISSING:
            return cached

        generation = self._cache.get(_GENERATION_KEY, default=0)
        value = loader()
        with self._cache.transact():
            if self._cache.get(_GENERATION_KEY, default=0) == generation:
                self._cache.set(key, value, expire=self.expire)
            else:
                logger.debug("Listing %s revalidated during load; not storing", key)
        return value

    def revalidate_path(self, path: str) -> int:
        """Drop every entry for `path` and anything below it. Returns how many were dropped."""
        path = path.rstrip("/") or "/"
        dropped = 0
        with self._cache.transact():
            self._cache.incr(_GENERATION_KEY, default=0)
            for key in list(self._cache.iterkeys()):
                if key != _GENERATION_KEY and _under(key, path) and self._cache.delete(key):
                    dropped += 1
        if dropped:
            logger.debug("Revalidated %s (%d cached listing(s) dropped)", path, dropped)
        return dropped

    def clear(self) -> None:
        self._cache.clear()

    def close(self) -> None:
        self._cache.close()

    def __contains__(self, key: str) -> bool:
        return key != _GENERATION_KEY and key in self._cache

    def __len__(self) -> int:
        return sum(1 for key in self._cache.iterkeys() if key != _GENERATION_KEY)


def _under(key: str, path: str) -> bool:
    base = key.split("?", 1)[0].rstrip("/") or "/"
    return base == path or base.startswith(path + "/")


def listing_cache() -> ListingCache:
    return current_app.extensions["listing_cache"]
