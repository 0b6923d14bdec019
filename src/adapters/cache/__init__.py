"""Almacenes de caché que implementan `core.interfaces.cache.CacheRepository`."""


from __future__ import annotations

from adapters.cache.base import Clock, utc_now
from adapters.cache.file import JsonFileCacheRepository
from adapters.cache.memory import MemoryCacheRepository
from core.config import AppSettings, CacheBackend
from core.interfaces.cache import CacheRepository


def build_cache(settings: AppSettings, *, clock: Clock = utc_now) -> CacheRepository:
    """Cache store selected by `settings.cache_backend`."""

    if settings.cache_backend is CacheBackend.MEMORY:
        return MemoryCacheRepository(clock=clock)
    return JsonFileCacheRepository(settings.resolved_cache_dir(), clock=clock)


__all__ = ["JsonFileCacheRepository", "MemoryCacheRepository", "build_cache"]
