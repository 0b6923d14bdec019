"""Fan-out and merge for a batch of update checks.

Flow:
1. Plan: every distinct `(source, id)` referenced by a resolvable key, so
   pairs shared by several mods are fetched exactly once.
2. Dispatch one task per pair, bounded by a semaphore per source.
3. Join, then merge single-threaded over the completed results.

The aggregator holds no state across batches other than the cache, so
concurrent batches are independent.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Sequence

from core.domain.errors import ParseError
from core.domain.models import (
    ModDownload,
    ModRepository,
    ModSearchEntry,
    ModUpdateVerdict,
    SourceFetchResult,
    SuggestedUpdate,
    UpdateKey,
)
from core.domain.version import SemanticVersion
from core.interfaces.cache import CacheRepository
from core.services.source_fetcher import SingleSourceFetcher
from core.services.source_resolver import ResolvedSource, SourceResolver

logger = logging.getLogger(__name__)

FetchKey = tuple[ModRepository, str]


@dataclass
class FetchPlan:
    """Distinct sources to fetch, plus the per-key resolution failures."""

    sources: dict[FetchKey, ResolvedSource] = field(default_factory=dict)
    key_errors: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class _Candidate:
    download: ModDownload
    version: SemanticVersion | None
    raw_version: str
    key_index: int
    download_index: int
    page_url: str | None

    def rank(self) -> tuple:
        # Parsed versions outrank unparsed ones; then the greatest version;
        # then the earliest declared key and download.
        if self.version is not None:
            return (1, self.version, -self.key_index, -self.download_index)
        return (0, -self.key_index, -self.download_index)


class UpdateAggregator:
    def __init__(
        self,
        resolver: SourceResolver,
        fetcher: SingleSourceFetcher,
        cache: CacheRepository,
    ) -> None:
        self._resolver = resolver
        self._fetcher = fetcher
        self._cache = cache

    async def check(self, entries: Sequence[ModSearchEntry]) -> list[ModUpdateVerdict]:
        """Return one verdict per entry, in input order."""

        await self._cache.ensure_available()

        plan = self.plan(entries)
        logger.info(
            "Checking %d mod(s) against %d distinct source(s)",
            len(entries),
            len(plan.sources),
        )
        results = await self._dispatch(plan)
        verdicts = [self._merge(entry, plan, results) for entry in entries]
        logger.debug("Batch complete: %d verdict(s)", len(verdicts))
        return verdicts

    def plan(self, entries: Sequence[ModSearchEntry]) -> FetchPlan:
        plan = FetchPlan()
        for entry in entries:
            for key in entry.update_keys:
                if key.fetch_key in plan.sources or key.raw_text in plan.key_errors:
                    continue
                try:
                    plan.sources[key.fetch_key] = self._resolver.resolve(key)
                except ParseError as exc:
                    plan.key_errors[key.raw_text] = str(exc)
        return plan

    async def _dispatch(self, plan: FetchPlan) -> dict[FetchKey, SourceFetchResult]:
        limiters = {
            repository: asyncio.Semaphore(self._resolver.settings_for(repository).max_concurrency)
            for repository in {source.repository for source in plan.sources.values()}
        }

        async def fetch_one(source: ResolvedSource) -> SourceFetchResult:
            async with limiters[source.repository]:
                return await self._fetcher.fetch(source)

        keys = list(plan.sources)
        tasks = [asyncio.ensure_future(fetch_one(plan.sources[key])) for key in keys]
        try:
            results = await asyncio.gather(*tasks)
        except BaseException:
            # Cancelled batch or fatal cache error: stop every outstanding fetch.
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        return dict(zip(keys, results))

    def _merge(
        self,
        entry: ModSearchEntry,
        plan: FetchPlan,
        results: dict[FetchKey, SourceFetchResult],
    ) -> ModUpdateVerdict:
        errors: list[str] = []
        candidates: list[_Candidate] = []
        reported: set[FetchKey] = set()

        for key_index, key in enumerate(entry.update_keys):
            key_error = plan.key_errors.get(key.raw_text)
            result = results.get(key.fetch_key) if key_error is None else None
            if result is None:
                if key_error:
                    errors.append(key_error)
                continue

            # Two keys on one source (e.g. different subkeys) share one result.
            if result.error and key.fetch_key not in reported:
                errors.append(result.error)
            reported.add(key.fetch_key)

            candidates.extend(self._candidates(entry, key, key_index, result))

        suggestion = None
        if candidates:
            best = max(candidates, key=lambda c: c.rank())
            url = best.download.page_url_override or best.page_url or ""
            version = str(best.version) if best.version is not None else best.raw_version
            suggestion = SuggestedUpdate(version=version, url=url)

        return ModUpdateVerdict(mod_id=entry.mod_id, suggested_update=suggestion, errors=errors)

    @classmethod
    def _candidates(
        cls,
        entry: ModSearchEntry,
        key: UpdateKey,
        key_index: int,
        result: SourceFetchResult,
    ) -> list[_Candidate]:
        if key.subkey:
            matching = cls._collect(entry, key_index, result, subkey=key.subkey)
            if matching:
                return matching
            # No matching download has a usable version, so the subkey is ignored.
        return cls._collect(entry, key_index, result, subkey=None)

    @staticmethod
    def _collect(
        entry: ModSearchEntry,
        key_index: int,
        result: SourceFetchResult,
        *,
        subkey: str | None,
    ) -> list[_Candidate]:
        out: list[_Candidate] = []
        for download_index, download in enumerate(result.downloads):
            if subkey and not download.matches_subkey(subkey):
                continue
            raw_version = (download.version or "").strip()
            if not raw_version:
                continue
            version = SemanticVersion.try_parse(raw_version)
            if version is None and not entry.allow_invalid_versions:
                continue
            out.append(
                _Candidate(
                    download=download,
                    version=version,
                    raw_version=raw_version,
                    key_index=key_index,
                    download_index=download_index,
                    page_url=result.page_url,
                )
            )
        return out
