"""Infraestructura común de los clientes de repositorios."""


from __future__ import annotations

import httpx

from adapters.http_client import build_async_client
from core.config import AppSettings, SourceSettings
from core.domain.errors import ConfigurationError
from core.domain.models import ModRepository


class HttpRepositoryClient:
    """Base for httpx clients: settings lookup and client construction.

    A new `httpx.AsyncClient` is opened per fetch, like the rest of the
    adapters; `transport` lets tests inject `httpx.MockTransport`.
    """

    repository: ModRepository = ModRepository.UNKNOWN
    extra_headers: dict[str, str] = {}

    def __init__(
        self,
        settings: AppSettings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings or AppSettings()
        source = self._settings.source(self.repository)
        if source is None:
            raise ConfigurationError(f"No source settings configured for {self.repository.value}.")
        self._source: SourceSettings = source
        self._transport = transport

    @property
    def source_name(self) -> str:
        return self.repository.value

    def page_url(self, native_id: str) -> str | None:
        if not self._source.mod_page_url_format:
            return None
        return self._source.mod_page_url_format.format(id=native_id)

    def _client(self) -> httpx.AsyncClient:
        return build_async_client(
            self._settings,
            base_url=self._source.base_url,
            extra_headers=self.extra_headers,
            transport=self._transport,
        )
