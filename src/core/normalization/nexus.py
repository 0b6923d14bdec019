"""Nexus Mods normalization.

The client scrapes the mod page into `{name, version, url, files, notice}`;
here we drop archived/old/deleted files and map Nexus notices to not-found.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from core.domain.models import ModDownload, NormalizedPage
from core.normalization.base import clean_text, validate_payload

_EXCLUDED_CATEGORIES = {"ARCHIVED", "OLD_VERSION", "DELETED"}
_NOT_FOUND_CODES = {"not found", "hidden mod"}


class NexusNotice(BaseModel):
    model_config = ConfigDict(extra="ignore")

    code: str
    text: str | None = None


class NexusFile(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str = ""
    description: str | None = None
    version: str | None = None
    category: str = Field(default="MAIN")


class NexusPage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str | None = None
    version: str | None = None
    url: str | None = None
    files: list[NexusFile] = Field(default_factory=list)
    notice: NexusNotice | None = None


def normalize_nexus(native_id: str, raw: Any, page_url: str | None) -> NormalizedPage:
    page = validate_payload(NexusPage, raw, source="Nexus")

    if page.notice is not None:
        code = page.notice.code.strip()
        if code.lower() in _NOT_FOUND_CODES:
            return NormalizedPage.not_found(f"Found no Nexus mod with ID '{native_id}'.")
        detail = f" ({page.notice.text.strip()})" if page.notice.text else ""
        return NormalizedPage.not_found(f"Nexus error: {code}{detail}.")

    downloads: list[ModDownload] = []
    name = clean_text(page.name)
    if clean_text(page.version):
        downloads.append(ModDownload(name=name or "", version=clean_text(page.version), is_mod_version=True))
    for file in page.files:
        if file.category.strip().upper() in _EXCLUDED_CATEGORIES:
            continue
        downloads.append(
            ModDownload(
                name=file.name.strip(),
                description=clean_text(file.description),
                version=clean_text(file.version),
            )
        )

    return NormalizedPage(name=name, url=page.url or page_url, downloads=downloads)
