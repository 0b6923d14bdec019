"""
Test configuration: fakes and shared fixtures.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from adapters.cache import MemoryCacheRepository
from core.config import AppSettings, CacheBackend
from core.domain.errors import NotFoundError
from core.domain.models import ModRepository

T0 = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


class FrozenClock:
    """Manually advanced UTC clock."""

    def __init__(self, now: datetime = T0) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class FakeClient:
    """Scripted repository client.

    `responses` maps native ids to a raw payload or to an exception to raise;
    unknown ids raise `NotFoundError`.
    """

    def __init__(
        self,
        repository: ModRepository,
        responses: dict[str, Any] | None = None,
        *,
        delay: float = 0.0,
    ) -> None:
        self.repository = repository
        self.responses = dict(responses or {})
        self.delay = delay
        self.calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def fetch(self, native_id: str) -> Any:
        self.calls.append(native_id)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            result = self.responses.get(native_id)
            if isinstance(result, BaseException):
                raise result
            if result is None:
                raise NotFoundError(f"Found no {self.repository.value} mod with ID '{native_id}'.")
            return result
        finally:
            self.in_flight -= 1


def nexus_payload(name: str, version: str | None, *, files: list[dict[str, Any]] | None = None) -> dict[str, Any]:
    return {"name": name, "version": version, "files": files or []}


def github_payload(*tags: str, repo: str = "owner/repo") -> dict[str, Any]:
    return {
        "releases": [
            {
                "tag_name": tag,
                "name": f"Release {tag}",
                "html_url": f"https://github.com/{repo}/releases/tag/{tag}",
            }
            for tag in tags
        ]
    }


def moddrop_payload(native_id: str, title: str, files: list[dict[str, Any]]) -> dict[str, Any]:
    return {"Mods": {native_id: {"Mod": {"Title": title}, "Files": files}}}


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def settings() -> AppSettings:
    return AppSettings(_env_file=None, cache_backend=CacheBackend.MEMORY)


@pytest.fixture
def memory_cache(clock: FrozenClock) -> MemoryCacheRepository:
    return MemoryCacheRepository(clock=clock)
