"""Cliente de repositorio: GitHub Releases (API REST, sin autenticar)."""


from __future__ import annotations

from typing import Any

from adapters.http_client import check_response, decode_json, send
from adapters.repository_clients.base import HttpRepositoryClient
from core.domain.models import ModRepository
from core.interfaces.repository_client import RepositoryClient


class GitHubClient(HttpRepositoryClient, RepositoryClient):
    repository = ModRepository.GITHUB
    # GitHub requires a UA (set by the builder) and a stable JSON media type.
    extra_headers = {"Accept": "application/vnd.github+json"}

    release_limit = 10

    async def fetch(self, native_id: str) -> dict[str, Any]:
        async with self._client() as client:
            request = client.build_request(
                "GET",
                f"repos/{native_id}/releases",
                params={"per_page": self.release_limit},
            )
            response = await send(client, request, source=self.source_name)

        check_response(response, source=self.source_name, native_id=native_id)
        return {"releases": decode_json(response, source=self.source_name)}
