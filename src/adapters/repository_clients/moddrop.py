"""Cliente de repositorio: ModDrop (API JSON)."""


from __future__ import annotations

from typing import Any

from adapters.http_client import check_response, decode_json, send
from adapters.repository_clients.base import HttpRepositoryClient
from core.domain.models import ModRepository
from core.interfaces.repository_client import RepositoryClient


class ModDropClient(HttpRepositoryClient, RepositoryClient):
    repository = ModRepository.MODDROP

    async def fetch(self, native_id: str) -> Any:
        body = {"ModIDs": [int(native_id)], "Files": True, "Mods": True}
        async with self._client() as client:
            request = client.build_request("POST", self._source.base_url, json=body)
            response = await send(client, request, source=self.source_name)

        check_response(response, source=self.source_name, native_id=native_id)
        return decode_json(response, source=self.source_name)
