"""ModDrop normalization.

Raw shape (API answer to `{"ModIDs": [id], "Files": true, "Mods": true}`):
`{"Mods": {"<id>": {"Mod": {"Title", "ErrorCode"}, "Files": [...]}}}`.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from core.domain.models import ModDownload, NormalizedPage
from core.normalization.base import clean_text, validate_payload


class ModDropFile(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    name: str = Field(default="", alias="Name")
    description: str | None = Field(default=None, alias="Desc")
    version: str | None = Field(default=None, alias="Version")
    is_default: bool = Field(default=False, alias="IsDefault")
    is_old: bool = Field(default=False, alias="IsOld")
    is_deleted: bool = Field(default=False, alias="IsDeleted")
    is_hidden: bool = Field(default=False, alias="IsHidden")


class ModDropModInfo(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    title: str | None = Field(default=None, alias="Title")
    error_code: int | None = Field(default=None, alias="ErrorCode")


class ModDropModModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    mod: ModDropModInfo | None = Field(default=None, alias="Mod")
    files: list[ModDropFile] = Field(default_factory=list, alias="Files")


class ModDropList(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    mods: dict[str, ModDropModModel] = Field(default_factory=dict, alias="Mods")


def normalize_moddrop(native_id: str, raw: Any, page_url: str | None) -> NormalizedPage:
    listing = validate_payload(ModDropList, raw, source="ModDrop")

    mod = listing.mods.get(native_id)
    if mod is None or mod.mod is None or mod.mod.title is None:
        return NormalizedPage.not_found(f"Found no ModDrop mod with ID '{native_id}'.")
    if mod.mod.error_code is not None:
        return NormalizedPage.not_found(
            f"ModDrop mod '{native_id}' is unavailable (error code {mod.mod.error_code})."
        )

    downloads = [
        ModDownload(
            name=file.name.strip(),
            description=clean_text(file.description),
            version=clean_text(file.version),
        )
        for file in mod.files
        if not (file.is_old or file.is_deleted or file.is_hidden)
    ]
    return NormalizedPage(name=mod.mod.title.strip(), url=page_url, downloads=downloads)
