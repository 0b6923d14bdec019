"""GitHub Releases normalization: one download per published release."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from core.domain.models import ModDownload, NormalizedPage
from core.normalization.base import clean_text, validate_payload


class GitHubRelease(BaseModel):
    model_config = ConfigDict(extra="ignore")

    tag_name: str
    name: str | None = None
    body: str | None = None
    html_url: str | None = None
    draft: bool = False


class GitHubReleases(BaseModel):
    model_config = ConfigDict(extra="ignore")

    releases: list[GitHubRelease] = Field(default_factory=list)


def normalize_github(native_id: str, raw: Any, page_url: str | None) -> NormalizedPage:
    listing = validate_payload(GitHubReleases, raw, source="GitHub")

    downloads = [
        ModDownload(
            name=clean_text(release.name) or release.tag_name,
            description=clean_text(release.body),
            version=release.tag_name.strip(),
            page_url_override=release.html_url,
        )
        for release in listing.releases
        if not release.draft
    ]
    return NormalizedPage(
        name=native_id,
        url=page_url or f"https://github.com/{native_id}/releases",
        downloads=downloads,
    )
