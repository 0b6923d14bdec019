"""Configuración del Core.

Por qué aquí:
- Centraliza variables de entorno (pydantic-settings) sin contaminar la CLI.
- Permite que adaptadores (clientes HTTP, caché) lean config de forma consistente.
"""


from __future__ import annotations

import os
import sys
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.domain.models import ModRepository


def get_user_config_dir() -> Path:
    """Per-user config directory (cross-platform, no extra dependencies)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "modcheck"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "modcheck"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "modcheck"
    return Path.home() / ".config" / "modcheck"


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


class CacheBackend(str, Enum):
    MEMORY = "memory"
    FILE = "file"


class SourceSettings(BaseModel):
    """Per-repository tuning: freshness window, concurrency bound and endpoints."""

    cache_minutes: int = Field(
        default=60,
        ge=0,
        description="Minutes a fetched page stays fresh before it is refetched.",
    )
    max_concurrency: int = Field(
        default=4,
        ge=1,
        le=100,
        description="Maximum in-flight fetches against this repository.",
    )
    timeout_seconds: float = Field(
        default=15.0,
        gt=0,
        description="Timeout for one fetch, enforced at the client boundary.",
    )
    base_url: str = Field(..., min_length=8, description="Base URL of the repository.")
    mod_page_url_format: str = Field(
        default="",
        description="Public mod page URL, where `{id}` is the mod id.",
    )


def _default_sources() -> dict[ModRepository, SourceSettings]:
    return {
        ModRepository.CHUCKLEFISH: SourceSettings(
            base_url="https://community.playstarbound.com",
            mod_page_url_format="https://community.playstarbound.com/resources/{id}",
        ),
        ModRepository.CURSEFORGE: SourceSettings(
            base_url="https://addons-ecs.forgesvc.net/api/v2",
            max_concurrency=6,
        ),
        ModRepository.GITHUB: SourceSettings(
            base_url="https://api.github.com",
            mod_page_url_format="https://github.com/{id}/releases",
        ),
        ModRepository.MODDROP: SourceSettings(
            base_url="https://www.moddrop.com/api/mods/data",
            mod_page_url_format="https://www.moddrop.com/stardew-valley/mod/{id}",
        ),
        ModRepository.NEXUS: SourceSettings(
            base_url="https://www.nexusmods.com",
            mod_page_url_format="https://www.nexusmods.com/stardewvalley/mods/{id}",
            max_concurrency=2,
        ),
    }


class AppSettings(BaseSettings):
    """Configuración central de la aplicación.

    Por qué pydantic-settings:
    - Tipado + validación en el borde (env vars) sin filtrarse al Core.
    - Un único contrato de configuración para CLI, servicios y adapters.
    """

    model_config = SettingsConfigDict(
        env_prefix="MODCHECK_",
        extra="ignore",
        case_sensitive=False,
        env_nested_delimiter="__",
        # Order: project first (dev), then the user's global config.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    http_timeout_seconds: float = Field(
        default=20.0,
        gt=0,
        description="Per-request timeout for the underlying HTTP client (seconds).",
    )
    user_agent: str = Field(
        default="modcheck/0.1 (+https://local)",
        min_length=1,
        description="User-Agent sent to mod repositories.",
    )

    sources: dict[ModRepository, SourceSettings] = Field(
        default_factory=_default_sources,
        description="Per-repository settings, keyed by repository.",
    )

    cache_backend: CacheBackend = Field(
        default=CacheBackend.FILE,
        description="Where fetched pages are cached (memory or JSON files).",
    )
    cache_dir: Path | None = Field(
        default=None,
        description="Directory for the file cache (defaults to the user config dir).",
    )
    cache_not_found: bool = Field(
        default=False,
        description="Cache confirmed 'not found' answers for the source's cache window.",
    )

    log_level: str = Field(
        default="WARNING",
        description="Root log level (DEBUG, INFO, WARNING, ERROR).",
    )

    @field_validator("sources", mode="before")
    @classmethod
    def _merge_source_defaults(cls, value: Any) -> Any:
        # Env overrides usually touch one field (MODCHECK_SOURCES__NEXUS__CACHE_MINUTES=30).
        if not isinstance(value, dict):
            return value
        merged: dict[ModRepository, dict[str, Any]] = {
            repository: settings.model_dump() for repository, settings in _default_sources().items()
        }
        for key, override in value.items():
            repository = key if isinstance(key, ModRepository) else ModRepository(key)
            if isinstance(override, SourceSettings):
                override = override.model_dump()
            merged[repository] = {**merged.get(repository, {}), **dict(override)}
        return merged

    def source(self, repository: ModRepository) -> SourceSettings | None:
        return self.sources.get(repository)

    def resolved_cache_dir(self) -> Path:
        return self.cache_dir or (get_user_config_dir() / "cache")
