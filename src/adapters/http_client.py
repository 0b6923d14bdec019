"""Wrapper de httpx.

Por qué un wrapper:
- Estandariza timeouts, headers y mapeo de errores para todos los clientes.
- Facilita testeo: se puede inyectar un `transport` (p.ej. `httpx.MockTransport`).
"""


from __future__ import annotations

from typing import Any, Iterable

import httpx
from bs4 import BeautifulSoup

from core.config import AppSettings
from core.domain.errors import DecodeError, NotFoundError, TransportError


def build_async_client(
    settings: AppSettings | None = None,
    *,
    base_url: str = "",
    extra_headers: dict[str, str] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Crea un `httpx.AsyncClient` con defaults seguros.

    Por qué un builder:
    - Centraliza timeouts/headers para que todas las fuentes se comporten igual.
    - Deja un único sitio para futuras políticas (retries, proxies).
    """

    settings = settings or AppSettings()
    headers: dict[str, str] = {
        "User-Agent": settings.user_agent,
        "Accept": "application/json, text/html;q=0.9, */*;q=0.8",
    }
    if extra_headers:
        headers.update(extra_headers)
    return httpx.AsyncClient(
        base_url=base_url,
        timeout=httpx.Timeout(settings.http_timeout_seconds),
        follow_redirects=True,
        headers=headers,
        transport=transport,
    )


def check_response(
    response: httpx.Response,
    *,
    source: str,
    native_id: str,
    not_found_statuses: Iterable[int] = (404,),
) -> None:
    """Map HTTP statuses to the update-check error taxonomy."""

    if response.status_code in set(not_found_statuses):
        raise NotFoundError(f"Found no {source} mod with ID '{native_id}'.")
    if response.is_error:
        raise TransportError(f"{source} answered HTTP {response.status_code}.")


def decode_json(response: httpx.Response, *, source: str) -> Any:
    try:
        return response.json()
    except ValueError as exc:
        raise DecodeError(f"{source} returned invalid JSON: {exc}") from exc


async def send(client: httpx.AsyncClient, request: httpx.Request, *, source: str) -> httpx.Response:
    """Send `request`, turning network failures into `TransportError`."""

    try:
        return await client.send(request)
    except httpx.TimeoutException as exc:
        raise TransportError(f"{source} request timed out ({type(exc).__name__}).") from exc
    except httpx.HTTPError as exc:
        raise TransportError(f"{source} request failed: {exc}") from exc


def parse_html(html: str) -> BeautifulSoup:
    return BeautifulSoup(html or "", "html.parser")


def node_text(node: Any) -> str | None:
    """Stripped text of a BeautifulSoup node, or None when missing/blank."""

    if node is None:
        return None
    text = node.get_text(" ", strip=True)
    return text or None
