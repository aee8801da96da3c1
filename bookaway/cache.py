"""TTL cache for catalog queries that are read far more often than they change."""
from __future__ import annotations

from typing import Any, Callable, Generic, Mapping, Optional, TypeVar

from cachetools import TTLCache

T = TypeVar("T")


def make_cache_key(namespace: str, params: Mapping[str, Any]) -> str:
    """Build a stable key from query parameters, ignoring unset ones."""

    parts = [f"{name}={str(value).strip().lower()}" for name, value in sorted(params.items()) if value not in (None, "")]
    return f"{namespace}:" + "&".join(parts)


class CatalogCache(Generic[T]):
    def __init__(self, ttl: int, maxsize: int = 256) -> None:
        self._cache: TTLCache[str, T] = TTLCache(maxsize=maxsize, ttl=ttl)

    def get(self, key: str) -> Optional[T]:
        return self._cache.get(key)

    def get_or_load(self, key: str, loader: Callable[[], T]) -> T:
        cached = self._cache.get(key)
        if cached is not None:
            return cached
        value = loader()
        self._cache[key] = value
        return value

    def clear(self) -> None:
        self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)
