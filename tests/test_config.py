from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from core.config import AppSettings, CacheBackend, SourceSettings, get_user_config_dir
from core.domain.models import ModRepository


def test_defaults_cover_every_repository():
    settings = AppSettings(_env_file=None)

    assert set(settings.sources) == set(ModRepository.known())
    assert settings.source(ModRepository.NEXUS).max_concurrency == 2
    assert settings.source(ModRepository.GITHUB).cache_minutes == 60
    assert settings.cache_backend is CacheBackend.FILE
    assert settings.cache_not_found is False


def test_partial_override_keeps_defaults():
    settings = AppSettings(_env_file=None, sources={"nexus": {"cache_minutes": 30}})

    nexus = settings.source(ModRepository.NEXUS)
    assert nexus.cache_minutes == 30
    assert nexus.base_url == "https://www.nexusmods.com"
    assert settings.source(ModRepository.MODDROP) is not None


def test_nested_env_override(monkeypatch):
    monkeypatch.setenv("MODCHECK_SOURCES__NEXUS__CACHE_MINUTES", "15")
    monkeypatch.setenv("MODCHECK_CACHE_BACKEND", "memory")

    settings = AppSettings(_env_file=None)

    assert settings.source(ModRepository.NEXUS).cache_minutes == 15
    assert settings.source(ModRepository.NEXUS).max_concurrency == 2
    assert settings.cache_backend is CacheBackend.MEMORY


def test_unknown_repository_is_rejected():
    with pytest.raises(ValidationError):
        AppSettings(_env_file=None, sources={"Steam": {"cache_minutes": 5}})


@pytest.mark.parametrize(
    "overrides",
    [
        {"cache_minutes": -1},
        {"max_concurrency": 0},
        {"timeout_seconds": 0},
    ],
)
def test_source_bounds(overrides):
    with pytest.raises(ValidationError):
        SourceSettings(base_url="https://example.org", **overrides)


def test_cache_dir_defaults_under_user_config(tmp_path):
    assert AppSettings(_env_file=None).resolved_cache_dir() == get_user_config_dir() / "cache"
    assert AppSettings(_env_file=None, cache_dir=tmp_path).resolved_cache_dir() == Path(tmp_path)
