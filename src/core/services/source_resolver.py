"""Routes an update key to the repository client that can answer it."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Mapping

from core.config import AppSettings, SourceSettings
from core.domain.errors import ConfigurationError, ParseError
from core.domain.models import ModRepository, UpdateKey
from core.interfaces.repository_client import RepositoryClient

_INTEGER_ID = re.compile(r"^[1-9]\d*$")
_GITHUB_ID = re.compile(r"^[^/\s]+/[^/\s]+$")


@dataclass(frozen=True)
class ResolvedSource:
    """A valid update key bound to its client and settings."""

    repository: ModRepository
    native_id: str
    client: RepositoryClient
    settings: SourceSettings

    @property
    def cache_key(self) -> str:
        return f"{self.repository.value}:{self.native_id}".lower()

    @property
    def page_url(self) -> str | None:
        if not self.settings.mod_page_url_format:
            return None
        return self.settings.mod_page_url_format.format(id=self.native_id)

    def describe(self) -> str:
        return f"{self.repository.value} mod '{self.native_id}'"


class SourceResolver:
    """Maps update keys to `(client, settings)` pairs.

    The client registry is passed in explicitly so tests can supply fakes.
    """

    def __init__(
        self,
        clients: Mapping[ModRepository, RepositoryClient],
        settings: AppSettings,
    ) -> None:
        missing = [repo.value for repo in clients if settings.source(repo) is None]
        if missing:
            raise ConfigurationError(
                f"No source settings configured for: {', '.join(sorted(missing))}."
            )
        self._clients = dict(clients)
        self._settings = settings

    @property
    def repositories(self) -> list[ModRepository]:
        return sorted(self._clients, key=lambda repo: repo.value)

    def settings_for(self, repository: ModRepository) -> SourceSettings:
        source = self._settings.source(repository)
        if source is None:
            raise ConfigurationError(f"No source settings configured for {repository.value}.")
        return source

    def resolve(self, key: UpdateKey) -> ResolvedSource:
        """Resolve `key`, raising `ParseError` when it can't be fetched."""

        if not key.looks_valid:
            if key.repository is ModRepository.UNKNOWN and ":" in key.raw_text:
                token = key.raw_text.split(":", 1)[0].strip()
                raise ParseError(self._unknown_site_message(token))
            raise ParseError(
                f"The update key '{key.raw_text}' isn't in a valid format. It should contain "
                "the site key and mod ID like 'Nexus:541'."
            )

        client = self._clients.get(key.repository)
        if client is None:
            raise ParseError(self._unknown_site_message(key.repository.value))

        self._validate_id(key)
        return ResolvedSource(
            repository=key.repository,
            native_id=key.id,
            client=client,
            settings=self.settings_for(key.repository),
        )

    def _unknown_site_message(self, token: str) -> str:
        expected = ", ".join(repo.value for repo in self.repositories)
        return f"There's no mod site with key '{token}'. Expected one of [{expected}]."

    @staticmethod
    def _validate_id(key: UpdateKey) -> None:
        if key.repository is ModRepository.GITHUB:
            if not _GITHUB_ID.match(key.id):
                raise ParseError(
                    f"The value '{key.id}' isn't a valid GitHub mod ID, must be a username "
                    "and project name like 'Pathoschild/SMAPI'."
                )
            return
        if not _INTEGER_ID.match(key.id):
            raise ParseError(
                f"The value '{key.id}' isn't a valid {key.repository.value} mod ID, "
                "must be an integer ID."
            )
