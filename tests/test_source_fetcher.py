from __future__ import annotations

import asyncio
from datetime import timedelta

import pytest

from core.config import SourceSettings
from core.domain.errors import ErrorKind, NotFoundError, TransportError
from core.domain.models import FetchOutcome, ModRepository
from core.services.source_fetcher import SingleSourceFetcher
from core.services.source_resolver import ResolvedSource

from conftest import FakeClient, github_payload


def _source(client: FakeClient, native_id: str = "owner/repo", **overrides) -> ResolvedSource:
    settings = SourceSettings(
        base_url="https://api.github.com",
        mod_page_url_format="https://github.com/{id}/releases",
        **overrides,
    )
    return ResolvedSource(
        repository=ModRepository.GITHUB,
        native_id=native_id,
        client=client,
        settings=settings,
    )


@pytest.mark.asyncio
async def test_miss_fetches_and_writes_through(memory_cache, clock):
    client = FakeClient(ModRepository.GITHUB, {"owner/repo": github_payload("1.0.0")})
    fetcher = SingleSourceFetcher(memory_cache, clock=clock)

    result = await fetcher.fetch(_source(client))

    assert result.ok
    assert result.outcome is FetchOutcome.FETCHED_OK
    assert [d.version for d in result.downloads] == ["1.0.0"]
    assert result.page_url == "https://github.com/owner/repo/releases"
    cached = await memory_cache.try_get("github:owner/repo")
    assert cached is not None and cached.last_updated == clock.now


@pytest.mark.asyncio
async def test_fresh_entry_skips_network(memory_cache, clock):
    client = FakeClient(ModRepository.GITHUB, {"owner/repo": github_payload("1.0.0")})
    fetcher = SingleSourceFetcher(memory_cache, clock=clock)
    await fetcher.fetch(_source(client))

    clock.advance(minutes=59)
    result = await fetcher.fetch(_source(client))

    assert result.outcome is FetchOutcome.CACHE_HIT_FRESH
    assert result.from_cache
    assert client.calls == ["owner/repo"]


@pytest.mark.asyncio
async def test_stale_entry_is_refetched(memory_cache, clock):
    client = FakeClient(ModRepository.GITHUB, {"owner/repo": github_payload("1.0.0")})
    fetcher = SingleSourceFetcher(memory_cache, clock=clock)
    await fetcher.fetch(_source(client))

    client.responses["owner/repo"] = github_payload("1.1.0", "1.0.0")
    clock.advance(minutes=61)
    result = await fetcher.fetch(_source(client))

    assert result.outcome is FetchOutcome.FETCHED_OK
    assert [d.version for d in result.downloads] == ["1.1.0", "1.0.0"]
    assert len(client.calls) == 2


@pytest.mark.asyncio
async def test_failed_refresh_serves_stale_data(memory_cache, clock):
    client = FakeClient(ModRepository.GITHUB, {"owner/repo": github_payload("1.0.0")})
    fetcher = SingleSourceFetcher(memory_cache, clock=clock)
    await fetcher.fetch(_source(client))

    client.responses["owner/repo"] = TransportError("GitHub answered HTTP 503.")
    clock.advance(days=3)
    result = await fetcher.fetch(_source(client))

    assert result.ok
    assert result.outcome is FetchOutcome.FETCHED_ERROR_STALE_FALLBACK
    assert result.error_kind is ErrorKind.TRANSPORT
    assert [d.version for d in result.downloads] == ["1.0.0"]
    assert result.error == (
        "Couldn't fetch GitHub mod 'owner/repo': GitHub answered HTTP 503. "
        "Using cached data from 2024-05-01 12:00 UTC."
    )
    # The stale entry is kept as-is.
    cached = await memory_cache.try_get("github:owner/repo", mark_requested=False)
    assert cached is not None and cached.last_updated < clock.now - timedelta(days=2)


@pytest.mark.asyncio
async def test_failure_without_cache(memory_cache, clock):
    client = FakeClient(ModRepository.GITHUB, {"owner/repo": TransportError("GitHub answered HTTP 500.")})
    fetcher = SingleSourceFetcher(memory_cache, clock=clock)

    result = await fetcher.fetch(_source(client))

    assert not result.ok
    assert result.outcome is FetchOutcome.FETCHED_ERROR_NO_CACHE
    assert result.error == "Couldn't fetch GitHub mod 'owner/repo': GitHub answered HTTP 500."
    assert result.downloads == []


@pytest.mark.asyncio
async def test_not_found_is_reported_verbatim_and_not_cached(memory_cache, clock):
    client = FakeClient(ModRepository.GITHUB)
    fetcher = SingleSourceFetcher(memory_cache, clock=clock)

    first = await fetcher.fetch(_source(client))
    second = await fetcher.fetch(_source(client))

    assert first.error == "Found no GitHub mod with ID 'owner/repo'."
    assert first.error_kind is ErrorKind.NOT_FOUND
    assert second.outcome is FetchOutcome.FETCHED_ERROR_NO_CACHE
    assert len(client.calls) == 2
    assert await memory_cache.try_get("github:owner/repo") is None


@pytest.mark.asyncio
async def test_not_found_can_be_cached(memory_cache, clock):
    client = FakeClient(ModRepository.GITHUB)
    fetcher = SingleSourceFetcher(memory_cache, cache_not_found=True, clock=clock)

    await fetcher.fetch(_source(client))
    second = await fetcher.fetch(_source(client))

    assert client.calls == ["owner/repo"]
    assert not second.ok
    assert second.outcome is FetchOutcome.CACHE_HIT_FRESH
    assert second.error == "Found no GitHub mod with ID 'owner/repo'."


@pytest.mark.asyncio
async def test_timeout_is_a_transport_error(memory_cache, clock):
    client = FakeClient(ModRepository.GITHUB, {"owner/repo": github_payload("1.0.0")}, delay=1.0)
    fetcher = SingleSourceFetcher(memory_cache, clock=clock)

    result = await fetcher.fetch(_source(client, timeout_seconds=0.01))

    assert not result.ok
    assert result.error_kind is ErrorKind.TRANSPORT
    assert "timed out" in (result.error or "")


@pytest.mark.asyncio
async def test_unexpected_payload_is_a_decode_error(memory_cache, clock):
    client = FakeClient(ModRepository.GITHUB, {"owner/repo": {"releases": "nope"}})
    fetcher = SingleSourceFetcher(memory_cache, clock=clock)

    result = await fetcher.fetch(_source(client))

    assert result.error_kind is ErrorKind.DECODE
    assert result.error is not None and result.error.startswith("Couldn't fetch GitHub mod 'owner/repo': GitHub returned")


@pytest.mark.asyncio
async def test_unexpected_exception_is_contained(memory_cache, clock):
    client = FakeClient(ModRepository.GITHUB, {"owner/repo": RuntimeError("boom")})
    fetcher = SingleSourceFetcher(memory_cache, clock=clock)

    result = await fetcher.fetch(_source(client))

    assert result.error_kind is ErrorKind.TRANSPORT
    assert result.error == "Couldn't fetch GitHub mod 'owner/repo': RuntimeError: boom"


@pytest.mark.asyncio
async def test_cancellation_propagates_without_saving(memory_cache, clock):
    client = FakeClient(ModRepository.GITHUB, {"owner/repo": github_payload("1.0.0")}, delay=10)
    fetcher = SingleSourceFetcher(memory_cache, clock=clock)

    task = asyncio.ensure_future(fetcher.fetch(_source(client)))
    await asyncio.sleep(0.01)
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task
    assert await memory_cache.try_get("github:owner/repo") is None


@pytest.mark.asyncio
async def test_not_found_error_class_from_client(memory_cache, clock):
    client = FakeClient(ModRepository.GITHUB, {"owner/repo": NotFoundError("gone")})
    fetcher = SingleSourceFetcher(memory_cache, clock=clock)

    result = await fetcher.fetch(_source(client))

    assert result.error == "gone"
    assert result.error_kind is ErrorKind.NOT_FOUND


@pytest.mark.asyncio
async def test_normalizer_bug_is_a_decode_error(memory_cache, clock):
    def broken(native_id, raw, page_url):
        raise KeyError("tag_name")

    client = FakeClient(ModRepository.GITHUB, {"owner/repo": github_payload("1.0.0")})
    fetcher = SingleSourceFetcher(memory_cache, clock=clock, normalizers={ModRepository.GITHUB: broken})

    result = await fetcher.fetch(_source(client))

    assert not result.ok
    assert result.error_kind is ErrorKind.DECODE
    assert result.error == "Couldn't fetch GitHub mod 'owner/repo': KeyError: 'tag_name'"
    assert await memory_cache.try_get("github:owner/repo") is None
