"""Caché en memoria del proceso.

Las entradas viven lo que dura el proceso; `remove_stale` es la única
expulsión. Ninguna operación hace await, así que es atómica por clave en el
event loop.
"""


from __future__ import annotations

import logging
from datetime import datetime, timedelta

from adapters.cache.base import BaseCacheRepository, Clock, normalize_key, utc_now
from core.domain.models import CacheEntry, NormalizedPage

logger = logging.getLogger(__name__)


class MemoryCacheRepository(BaseCacheRepository):
    def __init__(self, *, clock: Clock = utc_now) -> None:
        super().__init__(clock=clock)
        self._entries: dict[str, CacheEntry[NormalizedPage]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    async def ensure_available(self) -> None:
        return None

    async def try_get(
        self,
        key: str,
        *,
        mark_requested: bool = True,
    ) -> CacheEntry[NormalizedPage] | None:
        key = normalize_key(key)
        entry = self._entries.get(key)
        if entry is None:
            return None
        if mark_requested:
            entry = entry.model_copy(update={"last_requested": self._clock()})
            self._entries[key] = entry
        return entry

    async def save(self, key: str, payload: NormalizedPage, now: datetime) -> CacheEntry[NormalizedPage]:
        key = normalize_key(key)
        entry = CacheEntry[NormalizedPage](
            key=key,
            payload=payload,
            last_updated=now,
            last_requested=now,
        )
        self._entries[key] = entry
        return entry

    async def remove_stale(self, age: timedelta, now: datetime | None = None) -> int:
        cutoff = self._prune_cutoff(age, now)
        stale = [key for key, entry in self._entries.items() if entry.last_requested < cutoff]
        for key in stale:
            del self._entries[key]
        if stale:
            logger.info("Pruned %d cache entr(ies) not requested since %s", len(stale), cutoff.isoformat())
        return len(stale)
