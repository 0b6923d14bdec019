from __future__ import annotations

import asyncio
from datetime import timedelta

import pytest

from adapters.cache import JsonFileCacheRepository, MemoryCacheRepository, build_cache
from core.config import AppSettings, CacheBackend
from core.domain.errors import CacheUnavailableError
from core.domain.models import ModDownload, NormalizedPage
from core.interfaces.cache import CacheRepository, is_stale

from conftest import T0, FrozenClock


def _page(version: str = "1.0.0") -> NormalizedPage:
    return NormalizedPage(
        name="Content Patcher",
        url="https://www.nexusmods.com/stardewvalley/mods/1915",
        downloads=[ModDownload(name="Content Patcher", version=version)],
    )


def test_staleness_window():
    assert is_stale(T0, 60, T0 + timedelta(minutes=61))
    assert not is_stale(T0, 60, T0 + timedelta(minutes=59))
    assert not is_stale(T0, 60, T0 + timedelta(minutes=60))


def test_zero_minute_window_is_stale_immediately_after():
    assert is_stale(T0, 0, T0 + timedelta(seconds=1))


def test_stores_satisfy_contract(tmp_path):
    assert isinstance(MemoryCacheRepository(), CacheRepository)
    assert isinstance(JsonFileCacheRepository(tmp_path), CacheRepository)


def test_build_cache_follows_backend(tmp_path):
    memory = build_cache(AppSettings(_env_file=None, cache_backend=CacheBackend.MEMORY))
    file = build_cache(AppSettings(_env_file=None, cache_backend=CacheBackend.FILE, cache_dir=tmp_path))

    assert isinstance(memory, MemoryCacheRepository)
    assert isinstance(file, JsonFileCacheRepository)
    assert file.directory == tmp_path


@pytest.mark.asyncio
async def test_memory_save_and_get_normalizes_key(clock):
    cache = MemoryCacheRepository(clock=clock)

    saved = await cache.save("Nexus:1915", _page(), T0)
    entry = await cache.try_get("nexus:1915")

    assert saved.key == "nexus:1915"
    assert entry is not None
    assert entry.payload.downloads[0].version == "1.0.0"
    assert entry.last_updated == T0


@pytest.mark.asyncio
async def test_memory_get_marks_requested(clock):
    cache = MemoryCacheRepository(clock=clock)
    await cache.save("nexus:1", _page(), T0)

    clock.advance(hours=5)
    peeked = await cache.try_get("nexus:1", mark_requested=False)
    read = await cache.try_get("nexus:1")

    assert peeked is not None and peeked.last_requested == T0
    assert read is not None and read.last_requested == T0 + timedelta(hours=5)
    assert read.last_updated == T0


@pytest.mark.asyncio
async def test_memory_missing_key_returns_none():
    assert await MemoryCacheRepository().try_get("nexus:404") is None


@pytest.mark.asyncio
async def test_memory_remove_stale(clock):
    cache = MemoryCacheRepository(clock=clock)
    await cache.save("nexus:1", _page(), T0)
    await cache.save("nexus:2", _page(), T0 + timedelta(days=10))

    removed = await cache.remove_stale(timedelta(days=7), now=T0 + timedelta(days=12))

    assert removed == 1
    assert await cache.try_get("nexus:1") is None
    assert await cache.try_get("nexus:2") is not None


@pytest.mark.asyncio
async def test_file_round_trip_across_instances(tmp_path, clock):
    await JsonFileCacheRepository(tmp_path, clock=clock).save("GitHub:Owner/Repo", _page("2.1.0"), T0)

    entry = await JsonFileCacheRepository(tmp_path, clock=clock).try_get("github:owner/repo")

    assert entry is not None
    assert entry.payload.name == "Content Patcher"
    assert entry.payload.downloads[0].version == "2.1.0"
    assert entry.last_updated == T0


@pytest.mark.asyncio
async def test_file_writes_leave_no_temp_files(tmp_path):
    cache = JsonFileCacheRepository(tmp_path)
    await cache.save("nexus:1", _page(), T0)
    await cache.save("nexus:1", _page("1.1.0"), T0)

    names = sorted(path.name for path in tmp_path.iterdir())

    assert len(names) == 1
    assert names[0].endswith(".json")
    assert not names[0].startswith(".tmp-")


@pytest.mark.asyncio
async def test_file_corrupt_entry_is_a_miss(tmp_path):
    cache = JsonFileCacheRepository(tmp_path)
    cache.path_for("nexus:1").write_text("{not json", encoding="utf-8")

    assert await cache.try_get("nexus:1") is None


@pytest.mark.asyncio
async def test_file_remove_stale_uses_last_requested(tmp_path):
    clock = FrozenClock()
    cache = JsonFileCacheRepository(tmp_path, clock=clock)
    await cache.save("nexus:1", _page(), T0)
    await cache.save("nexus:2", _page(), T0)

    clock.advance(days=6)
    await cache.try_get("nexus:2")
    removed = await cache.remove_stale(timedelta(days=5), now=T0 + timedelta(days=7))

    assert removed == 1
    assert await cache.try_get("nexus:1") is None
    assert await cache.try_get("nexus:2") is not None


@pytest.mark.asyncio
async def test_file_remove_stale_without_directory(tmp_path):
    cache = JsonFileCacheRepository(tmp_path / "missing")

    assert await cache.remove_stale(timedelta(days=1)) == 0


@pytest.mark.asyncio
async def test_file_unavailable_directory_raises(tmp_path):
    blocker = tmp_path / "cache"
    blocker.write_text("not a directory", encoding="utf-8")

    with pytest.raises(CacheUnavailableError):
        await JsonFileCacheRepository(blocker).ensure_available()


@pytest.mark.asyncio
async def test_file_concurrent_availability_checks(tmp_path):
    caches = [JsonFileCacheRepository(tmp_path) for _ in range(20)]

    await asyncio.gather(*(cache.ensure_available() for cache in caches))

    assert list(tmp_path.iterdir()) == []


@pytest.mark.asyncio
async def test_file_marking_requested_keeps_newer_save(tmp_path):
    clock = FrozenClock()
    cache = JsonFileCacheRepository(tmp_path, clock=clock)
    await cache.save("nexus:1", _page("1.0.0"), T0)

    entry = await cache.try_get("nexus:1")
    await cache.save("nexus:1", _page("2.0.0"), T0 + timedelta(hours=2))
    clock.advance(hours=3)
    await cache.try_get("nexus:1")

    assert entry is not None and entry.payload.downloads[0].version == "1.0.0"
    latest = await JsonFileCacheRepository(tmp_path).try_get("nexus:1", mark_requested=False)
    assert latest is not None
    assert latest.payload.downloads[0].version == "2.0.0"
    assert latest.last_updated == T0 + timedelta(hours=2)
    assert latest.last_requested == T0 + timedelta(hours=3)


@pytest.mark.asyncio
async def test_file_marking_requested_leaves_content_alone(tmp_path):
    clock = FrozenClock()
    cache = JsonFileCacheRepository(tmp_path, clock=clock)
    await cache.save("nexus:1", _page(), T0)
    before = cache.path_for("nexus:1").read_text(encoding="utf-8")

    clock.advance(days=1)
    entry = await cache.try_get("nexus:1")

    assert cache.path_for("nexus:1").read_text(encoding="utf-8") == before
    assert entry is not None
    assert entry.last_updated == T0
    assert entry.last_requested == T0 + timedelta(days=1)


@pytest.mark.asyncio
async def test_file_remove_stale_skips_in_flight_writes(tmp_path):
    cache = JsonFileCacheRepository(tmp_path)
    in_flight = tmp_path / ".tmp-abc.json"
    in_flight.write_text("", encoding="utf-8")

    assert await cache.remove_stale(timedelta(days=1), now=T0) == 0
    assert in_flight.exists()
