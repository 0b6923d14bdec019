"""Contratos de clientes de repositorios de mods.

Por qué Protocol:
- Define un contrato estructural (duck typing) sin herencia rígida.
- Permite que los clientes (Nexus, ModDrop, GitHub, etc.) sean intercambiables
  y testeables sin acoplar el Core a httpx.
"""


from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from core.domain.models import ModRepository


@runtime_checkable
class RepositoryClient(Protocol):
    """Minimal contract for one repository.

    Design rules:
    - `fetch` is async because it does network I/O.
    - It returns the raw, JSON-compatible metadata for one mod id; shaping it
      into `ModDownload`s is the normalizer's job, not the client's.
    - Failures are raised (`TransportError`, `NotFoundError`, `DecodeError`
      or anything else); the fetcher converts them at its boundary.
    """

    repository: ModRepository

    async def fetch(self, native_id: str) -> Any:
        """Fetch raw metadata for `native_id`."""

        ...
