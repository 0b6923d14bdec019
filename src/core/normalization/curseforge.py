"""CurseForge normalization.

CurseForge files don't carry a version field, so it's read from the display
name (falling back to the file name), e.g. `Content Patcher 1.9.2.zip`.
"""

from __future__ import annotations

import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from core.domain.models import ModDownload, NormalizedPage
from core.normalization.base import clean_text, validate_payload

VERSION_IN_NAME = re.compile(
    r"^(?:.+? | *)v?(\d+\.\d+(?:\.\d+)?(?:-.+?)?) *(?:\.(?:zip|rar|7z))?$",
    re.IGNORECASE,
)


class CurseForgeFile(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    display_name: str = Field(default="", alias="displayName")
    file_name: str = Field(default="", alias="fileName")
    is_available: bool = Field(default=True, alias="isAvailable")


class CurseForgeMod(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    name: str
    website_url: str | None = Field(default=None, alias="websiteUrl")
    latest_files: list[CurseForgeFile] = Field(default_factory=list, alias="latestFiles")


def extract_version(file: CurseForgeFile) -> str | None:
    for candidate in (file.display_name, file.file_name):
        match = VERSION_IN_NAME.match(candidate.strip())
        if match:
            return match.group(1)
    return None


def normalize_curseforge(native_id: str, raw: Any, page_url: str | None) -> NormalizedPage:
    mod = validate_payload(CurseForgeMod, raw, source="CurseForge")

    downloads = [
        ModDownload(
            name=clean_text(file.display_name) or file.file_name,
            description=clean_text(file.file_name),
            version=extract_version(file),
        )
        for file in mod.latest_files
        if file.is_available
    ]
    return NormalizedPage(name=mod.name, url=mod.website_url or page_url, downloads=downloads)
