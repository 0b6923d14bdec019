"""Normalización por repositorio de metadata cruda a `NormalizedPage`.

Por qué un registro en vez de una jerarquía de clases de respuesta:
- Cada repositorio responde con su propia forma; una función simple por
  repositorio, elegida por el enum `ModRepository`, las mantiene independientes.
"""


from __future__ import annotations

from typing import Any

from core.domain.models import ModRepository, NormalizedPage
from core.normalization.base import Normalizer
from core.normalization.chucklefish import normalize_chucklefish
from core.normalization.curseforge import normalize_curseforge
from core.normalization.github import normalize_github
from core.normalization.moddrop import normalize_moddrop
from core.normalization.nexus import normalize_nexus

NORMALIZERS: dict[ModRepository, Normalizer] = {
    ModRepository.CHUCKLEFISH: normalize_chucklefish,
    ModRepository.CURSEFORGE: normalize_curseforge,
    ModRepository.GITHUB: normalize_github,
    ModRepository.MODDROP: normalize_moddrop,
    ModRepository.NEXUS: normalize_nexus,
}


def normalize(
    repository: ModRepository,
    native_id: str,
    raw: Any,
    page_url: str | None = None,
) -> NormalizedPage:
    """Normalize `raw` with the normalizer registered for `repository`."""

    return NORMALIZERS[repository](native_id, raw, page_url)


__all__ = ["NORMALIZERS", "Normalizer", "normalize"]
