"""Comportamiento común a todos los almacenes de caché."""


from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable

from core.interfaces.cache import is_stale

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def normalize_key(key: str) -> str:
    return key.strip().lower()


class BaseCacheRepository:
    def __init__(self, *, clock: Clock = utc_now) -> None:
        self._clock = clock

    def is_stale(self, last_updated: datetime, cache_minutes: int, now: datetime | None = None) -> bool:
        return is_stale(last_updated, cache_minutes, now or self._clock())

    def _prune_cutoff(self, age: timedelta, now: datetime | None) -> datetime:
        return (now or self._clock()) - age
