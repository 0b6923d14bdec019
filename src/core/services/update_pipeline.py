"""Update-check orchestration.

This module wires the default adapters (repository clients, cache store)
into the aggregator, so entry-points (CLI, tests, a future web API) only
deal with a request in and verdicts out.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Iterable, Mapping

from adapters.cache import build_cache
from adapters.repository_clients import build_default_clients
from core.config import AppSettings
from core.domain.models import ModRepository, ModSearchEntry, ModSearchRequest, ModUpdateVerdict
from core.interfaces.cache import CacheRepository
from core.interfaces.repository_client import RepositoryClient
from core.services.source_fetcher import Clock, SingleSourceFetcher, utc_now
from core.services.source_resolver import SourceResolver
from core.services.update_aggregator import UpdateAggregator


def build_aggregator(
    *,
    settings: AppSettings,
    clients: Mapping[ModRepository, RepositoryClient] | None = None,
    cache: CacheRepository | None = None,
    clock: Clock | None = None,
) -> UpdateAggregator:
    clock = clock or utc_now
    cache = cache if cache is not None else build_cache(settings, clock=clock)
    clients = clients if clients is not None else build_default_clients(settings)

    resolver = SourceResolver(clients, settings)
    fetcher = SingleSourceFetcher(cache, cache_not_found=settings.cache_not_found, clock=clock)
    return UpdateAggregator(resolver, fetcher, cache)


async def check_updates(
    *,
    settings: AppSettings,
    request: ModSearchRequest | Iterable[ModSearchEntry],
    clients: Mapping[ModRepository, RepositoryClient] | None = None,
    cache: CacheRepository | None = None,
    clock: Clock | None = None,
) -> list[ModUpdateVerdict]:
    """Check a batch of mods and return one verdict per mod, in input order.

    Raises:
        FatalUpdateCheckError: the batch can't run at all (e.g. the cache
            store is unavailable). Per-key and per-source failures never
            raise; they are reported inside the verdicts.
    """

    entries = request.to_entries() if isinstance(request, ModSearchRequest) else list(request)
    aggregator = build_aggregator(settings=settings, clients=clients, cache=cache, clock=clock)
    return await aggregator.check(entries)


async def prune_cache(
    *,
    settings: AppSettings,
    older_than: timedelta,
    cache: CacheRepository | None = None,
) -> int:
    """Delete cache entries no check has requested within `older_than`."""

    cache = cache if cache is not None else build_cache(settings)
    await cache.ensure_available()
    return await cache.remove_stale(older_than)
