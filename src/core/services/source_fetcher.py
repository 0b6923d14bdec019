"""Cache-aside fetch for one `(source, id)` pair.

Terminal states (no internal retries, retry policy belongs to the client):
- cache hit, fresh: no network call.
- fetched ok: normalized and written through to the cache.
- fetched error with a cached entry: the stale payload is served with the new
  failure attached (stale-while-error).
- fetched error without a cached entry: error-only result.

Client and normalizer exceptions stop here; they never reach the aggregator.
Cancellation and cache-store failures are not caught.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable, Mapping

from core.domain.errors import DecodeError, ErrorKind, SourceError
from core.domain.models import (
    CacheEntry,
    FetchOutcome,
    ModRepository,
    NormalizedPage,
    PageStatus,
    SourceFetchResult,
)
from core.interfaces.cache import CacheRepository
from core.normalization import NORMALIZERS, Normalizer
from core.services.source_resolver import ResolvedSource

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SingleSourceFetcher:
    def __init__(
        self,
        cache: CacheRepository,
        *,
        cache_not_found: bool = False,
        clock: Clock = utc_now,
        normalizers: Mapping[ModRepository, Normalizer] | None = None,
    ) -> None:
        self._cache = cache
        self._cache_not_found = cache_not_found
        self._clock = clock
        self._normalizers = dict(normalizers or NORMALIZERS)

    async def fetch(self, source: ResolvedSource) -> SourceFetchResult:
        now = self._clock()
        cached = await self._cache.try_get(source.cache_key)
        if cached is not None and not self._cache.is_stale(
            cached.last_updated, source.settings.cache_minutes, now
        ):
            logger.debug("Cache hit for %s", source.cache_key)
            return self._from_cache(source, cached, FetchOutcome.CACHE_HIT_FRESH)

        logger.debug(
            "Cache %s for %s, fetching",
            "stale" if cached is not None else "miss",
            source.cache_key,
        )
        page: NormalizedPage | None = None
        try:
            raw = await self._fetch_raw(source)
        except SourceError as exc:
            kind, detail = exc.kind, str(exc)
        except asyncio.TimeoutError:
            kind = ErrorKind.TRANSPORT
            detail = f"request timed out after {source.settings.timeout_seconds:g}s."
        except Exception as exc:
            kind, detail = ErrorKind.TRANSPORT, f"{type(exc).__name__}: {exc}"
        else:
            page, kind, detail = self._normalize(source, raw)

        if page is not None:
            if page.status is PageStatus.OK:
                entry = await self._cache.save(source.cache_key, page, now)
                return self._result(source, entry.payload, FetchOutcome.FETCHED_OK)

            kind, detail = ErrorKind.NOT_FOUND, page.error or "not found."

        if kind is ErrorKind.NOT_FOUND and self._cache_not_found:
            await self._cache.save(source.cache_key, NormalizedPage.not_found(detail), now)
            cached = None

        message = self._describe_failure(source, kind, detail)
        if cached is not None:
            logger.warning(
                "Refreshing %s failed (%s); serving cache from %s",
                source.cache_key,
                detail,
                cached.last_updated.isoformat(),
            )
            note = (
                f"{message} Using cached data from "
                f"{cached.last_updated.astimezone(timezone.utc):%Y-%m-%d %H:%M} UTC."
            )
            return self._from_cache(
                source,
                cached,
                FetchOutcome.FETCHED_ERROR_STALE_FALLBACK,
                error=note,
                error_kind=kind,
            )

        logger.warning("Fetching %s failed: %s", source.cache_key, detail)
        return SourceFetchResult(
            repository=source.repository,
            native_id=source.native_id,
            ok=False,
            error=message,
            error_kind=kind,
            outcome=FetchOutcome.FETCHED_ERROR_NO_CACHE,
        )

    async def _fetch_raw(self, source: ResolvedSource) -> object:
        raw = await asyncio.wait_for(
            source.client.fetch(source.native_id),
            timeout=source.settings.timeout_seconds,
        )
        if raw is None:
            raise DecodeError("the source returned an empty payload.")
        return raw

    def _normalize(
        self, source: ResolvedSource, raw: object
    ) -> tuple[NormalizedPage | None, ErrorKind | None, str]:
        normalizer = self._normalizers[source.repository]
        try:
            return normalizer(source.native_id, raw, source.page_url), None, ""
        except SourceError as exc:
            return None, exc.kind, str(exc)
        except Exception as exc:
            # A payload the normalizer chokes on is a decode failure, not a transport one.
            logger.debug("Normalizer for %s failed", source.cache_key, exc_info=True)
            return None, ErrorKind.DECODE, f"{type(exc).__name__}: {exc}"

    @staticmethod
    def _describe_failure(source: ResolvedSource, kind: ErrorKind, detail: str) -> str:
        if kind is ErrorKind.NOT_FOUND:
            return detail
        return f"Couldn't fetch {source.describe()}: {detail}"

    def _from_cache(
        self,
        source: ResolvedSource,
        entry: CacheEntry[NormalizedPage],
        outcome: FetchOutcome,
        *,
        error: str | None = None,
        error_kind: ErrorKind | None = None,
    ) -> SourceFetchResult:
        page = entry.payload
        if page.status is not PageStatus.OK:
            # A negatively cached answer: report it, there's nothing to rank.
            return SourceFetchResult(
                repository=source.repository,
                native_id=source.native_id,
                ok=False,
                error=error or page.error,
                error_kind=error_kind or ErrorKind.NOT_FOUND,
                outcome=outcome,
                from_cache=True,
            )
        return self._result(source, page, outcome, error=error, error_kind=error_kind, from_cache=True)

    @staticmethod
    def _result(
        source: ResolvedSource,
        page: NormalizedPage,
        outcome: FetchOutcome,
        *,
        error: str | None = None,
        error_kind: ErrorKind | None = None,
        from_cache: bool = False,
    ) -> SourceFetchResult:
        return SourceFetchResult(
            repository=source.repository,
            native_id=source.native_id,
            ok=True,
            downloads=list(page.downloads),
            page_url=page.url or source.page_url,
            name=page.name,
            error=error,
            error_kind=error_kind,
            outcome=outcome,
            from_cache=from_cache,
        )
