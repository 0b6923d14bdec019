"""Contrato de la caché de páginas de mods.

El Core solo accede al almacenamiento a través de este contrato, así que el
backend (memoria, ficheros JSON, una base de datos externa) es sustituible.
"""


from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Protocol, runtime_checkable

from core.domain.models import CacheEntry, NormalizedPage


def is_stale(last_updated: datetime, cache_minutes: int, now: datetime | None = None) -> bool:
    """Whether an entry updated at `last_updated` is outside its freshness window."""

    now = now or datetime.now(timezone.utc)
    return last_updated < now - timedelta(minutes=cache_minutes)


@runtime_checkable
class CacheRepository(Protocol):
    async def ensure_available(self) -> None:
        """Raise `CacheUnavailableError` if the store can't be used."""

        ...

    async def try_get(
        self,
        key: str,
        *,
        mark_requested: bool = True,
    ) -> CacheEntry[NormalizedPage] | None:
        """Return the entry for `key`, or None. Optionally bumps `last_requested`."""

        ...

    async def save(self, key: str, payload: NormalizedPage, now: datetime) -> CacheEntry[NormalizedPage]:
        """Store `payload` as fetched at `now`, replacing any previous entry."""

        ...

    def is_stale(self, last_updated: datetime, cache_minutes: int, now: datetime | None = None) -> bool:
        ...

    async def remove_stale(self, age: timedelta, now: datetime | None = None) -> int:
        """Delete entries not requested within `age`; return how many were removed."""

        ...
