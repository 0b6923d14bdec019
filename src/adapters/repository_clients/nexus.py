"""Cliente de repositorio: Nexus Mods (scraping HTML de la página pública).

Notas:
- La página se pide con `?tab=files` para que estén todas las secciones.
- Nexus muestra un "site notice" en vez de la página para mods inexistentes u
  ocultos; se pasa como `notice` para que el normalizador lo clasifique.
"""


from __future__ import annotations

from typing import Any

from adapters.http_client import check_response, node_text, parse_html, send
from adapters.repository_clients.base import HttpRepositoryClient
from core.domain.models import ModRepository
from core.interfaces.repository_client import RepositoryClient

_SECTION_CATEGORIES = {
    "main files": "MAIN",
    "update files": "UPDATE",
    "optional files": "OPTIONAL",
    "miscellaneous files": "MISCELLANEOUS",
    "old files": "OLD_VERSION",
    "archived files": "ARCHIVED",
    "deleted files": "DELETED",
}


def scrape_nexus_page(html: str, *, url: str | None) -> dict[str, Any]:
    soup = parse_html(html)

    notice = soup.select_one("div.site-notice.warning")
    if notice is not None:
        lines = [line.strip() for line in notice.get_text("\n").split("\n") if line.strip()]
        code = lines[0] if lines else "unknown"
        text = " ".join(lines[1:]) or None
        return {"notice": {"code": code, "text": text}, "url": url}

    files: list[dict[str, Any]] = []
    for container in soup.select("div.files-tabs"):
        heading = (node_text(container.find("h2")) or "").lower()
        category = _SECTION_CATEGORIES.get(heading, "MISCELLANEOUS")
        for header in container.select("dt.file-expander-header"):
            details = header.find_next_sibling("dd")
            files.append(
                {
                    "name": header.get("data-name") or node_text(header) or "",
                    "version": header.get("data-version"),
                    "description": node_text(details.select_one("div.files-description"))
                    if details is not None
                    else None,
                    "category": category,
                }
            )

    return {
        "name": node_text(soup.find("h1")),
        "version": node_text(soup.select_one("ul.stats li.stat-version div.stat")),
        "url": url,
        "files": files,
    }


class NexusClient(HttpRepositoryClient, RepositoryClient):
    repository = ModRepository.NEXUS
    extra_headers = {"Accept": "text/html,application/xhtml+xml;q=0.9,*/*;q=0.8"}

    async def fetch(self, native_id: str) -> dict[str, Any]:
        url = self.page_url(native_id) or f"/stardewvalley/mods/{native_id}"
        async with self._client() as client:
            request = client.build_request("GET", url, params={"tab": "files"})
            response = await send(client, request, source=self.source_name)

        check_response(response, source=self.source_name, native_id=native_id)
        return scrape_nexus_page(response.text, url=self.page_url(native_id))
