"""Cliente de repositorio: foros de Chucklefish (scraping HTML).

El foro responde 403 para recursos borrados o privados, así que tanto 403
como 404 significan "no encontrado".
"""


from __future__ import annotations

from typing import Any

from adapters.http_client import check_response, node_text, parse_html, send
from adapters.repository_clients.base import HttpRepositoryClient
from core.domain.models import ModRepository
from core.interfaces.repository_client import RepositoryClient


def scrape_chucklefish_page(html: str, *, url: str | None) -> dict[str, Any]:
    soup = parse_html(html)
    title = soup.find("meta", attrs={"name": "twitter:title"})
    name = str(title.get("content")).strip() if title and title.get("content") else None
    return {
        "name": name,
        "version": node_text(soup.select_one("h1 span")),
        "url": url,
    }


class ChucklefishClient(HttpRepositoryClient, RepositoryClient):
    repository = ModRepository.CHUCKLEFISH
    extra_headers = {"Accept": "text/html,application/xhtml+xml;q=0.9,*/*;q=0.8"}

    async def fetch(self, native_id: str) -> dict[str, Any]:
        url = self.page_url(native_id) or f"/resources/{native_id}"
        async with self._client() as client:
            request = client.build_request("GET", url)
            response = await send(client, request, source=self.source_name)

        check_response(
            response,
            source=self.source_name,
            native_id=native_id,
            not_found_statuses=(403, 404),
        )
        return scrape_chucklefish_page(response.text, url=self.page_url(native_id))
