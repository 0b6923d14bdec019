"""Chucklefish forums normalization: one page, one version."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict

from core.domain.models import ModDownload, NormalizedPage
from core.normalization.base import clean_text, validate_payload

_TITLE_PREFIX = "[SMAPI] "


class ChucklefishPage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    version: str | None = None
    url: str | None = None


def normalize_chucklefish(native_id: str, raw: Any, page_url: str | None) -> NormalizedPage:
    page = validate_payload(ChucklefishPage, raw, source="Chucklefish")

    name = page.name.strip().removeprefix(_TITLE_PREFIX)
    downloads = [ModDownload(name=name, version=clean_text(page.version), is_mod_version=True)]
    return NormalizedPage(name=name, url=page.url or page_url, downloads=downloads)
