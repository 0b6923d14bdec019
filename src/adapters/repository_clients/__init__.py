"""Clientes de repositorios (un módulo por repositorio de mods).

Cada cliente implementa `core.interfaces.repository_client.RepositoryClient`.
"""


from __future__ import annotations

import httpx

from adapters.repository_clients.chucklefish import ChucklefishClient
from adapters.repository_clients.curseforge import CurseForgeClient
from adapters.repository_clients.github import GitHubClient
from adapters.repository_clients.moddrop import ModDropClient
from adapters.repository_clients.nexus import NexusClient
from core.config import AppSettings
from core.domain.models import ModRepository
from core.interfaces.repository_client import RepositoryClient

_CLIENTS = (
    ChucklefishClient,
    CurseForgeClient,
    GitHubClient,
    ModDropClient,
    NexusClient,
)


def build_default_clients(
    settings: AppSettings,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> dict[ModRepository, RepositoryClient]:
    """Client registry for every repository that has settings."""

    return {
        client.repository: client(settings, transport=transport)
        for client in _CLIENTS
        if settings.source(client.repository) is not None
    }


__all__ = [
    "ChucklefishClient",
    "CurseForgeClient",
    "GitHubClient",
    "ModDropClient",
    "NexusClient",
    "build_default_clients",
]
