"""Modelos del dominio (Pydantic v2).

Por qué Pydantic en el dominio:
- Nos da validación estricta y documentación autocontenida (Field) sin acoplar
  el Core a librerías de I/O.
- Una única forma normalizada para metadata de cinco repositorios distintos.

Nota:
- Estos modelos describen *qué* es la información, no *cómo* se obtiene.
"""


from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Generic, Iterable, TypeVar

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel

from core.domain.errors import ErrorKind

T = TypeVar("T")


class ModRepository(str, Enum):
    """Mod repositories an update key can point at."""

    CHUCKLEFISH = "Chucklefish"
    CURSEFORGE = "CurseForge"
    GITHUB = "GitHub"
    MODDROP = "ModDrop"
    NEXUS = "Nexus"
    UNKNOWN = "Unknown"

    @classmethod
    def _missing_(cls, value: object) -> "ModRepository | None":
        if isinstance(value, str):
            wanted = value.strip().lower()
            for repository in cls:
                if repository.value.lower() == wanted:
                    return repository
        return None

    @classmethod
    def from_token(cls, token: str | None) -> "ModRepository":
        """Case-insensitive lookup; anything unrecognized is `UNKNOWN`."""

        try:
            return cls(token or "")
        except ValueError:
            return cls.UNKNOWN

    @classmethod
    def known(cls) -> list["ModRepository"]:
        return [r for r in cls if r is not cls.UNKNOWN]


class UpdateKey(BaseModel):
    """A namespaced mod id like `Nexus:541` or `ModDrop:123@HD`.

    Parsing never raises: malformed text yields `repository=Unknown` and
    `looks_valid=False`, so one bad key can't break the rest of a batch.
    """

    model_config = ConfigDict(frozen=True)

    raw_text: str = Field(..., description="Update key exactly as received.")
    repository: ModRepository = Field(
        default=ModRepository.UNKNOWN,
        description="Repository hosting the mod.",
    )
    id: str = Field(default="", description="Mod id within the repository, without subkey.")
    subkey: str | None = Field(
        default=None,
        description="Optional filter selecting one download variant (text after '@').",
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def looks_valid(self) -> bool:
        return self.repository is not ModRepository.UNKNOWN and bool(self.id.strip())

    @classmethod
    def parse(cls, raw: str | None) -> "UpdateKey":
        raw_text = raw or ""
        if ":" not in raw_text:
            return cls(raw_text=raw_text)

        token, _, remainder = raw_text.partition(":")
        native_id, subkey = remainder, None
        if "@" in remainder:
            native_id, _, subkey = remainder.partition("@")
            subkey = subkey.strip() or None

        return cls(
            raw_text=raw_text,
            repository=ModRepository.from_token(token),
            id=native_id.strip(),
            subkey=subkey,
        )

    @property
    def fetch_key(self) -> tuple[ModRepository, str]:
        """The `(source, id)` pair fetched for this key; ids are case-insensitive."""

        return self.repository, self.id.lower()

    @property
    def cache_key(self) -> str:
        return f"{self.repository.value}:{self.id}".lower()

    def __str__(self) -> str:
        if not self.looks_valid:
            return self.raw_text
        text = f"{self.repository.value}:{self.id}"
        if self.subkey:
            text += f"@{self.subkey}"
        return text


class ModSearchEntry(BaseModel):
    """One mod to check, with its update keys in declared order."""

    model_config = ConfigDict(frozen=True)

    mod_id: str = Field(..., description="Unique id of the installed mod.")
    update_keys: tuple[UpdateKey, ...] = Field(default_factory=tuple)
    allow_invalid_versions: bool = Field(
        default=False,
        description="Keep downloads with non-semantic versions, ranked below parsed ones.",
    )

    @classmethod
    def create(
        cls,
        mod_id: str,
        update_keys: Iterable[str | UpdateKey],
        *,
        allow_invalid_versions: bool = False,
    ) -> "ModSearchEntry":
        """Build an entry, parsing raw keys and dropping duplicates (first wins)."""

        seen: set[str] = set()
        keys: list[UpdateKey] = []
        for raw in update_keys:
            key = raw if isinstance(raw, UpdateKey) else UpdateKey.parse(raw)
            identity = str(key).lower()
            if identity in seen:
                continue
            seen.add(identity)
            keys.append(key)
        return cls(
            mod_id=mod_id,
            update_keys=tuple(keys),
            allow_invalid_versions=allow_invalid_versions,
        )


class ModDownload(BaseModel):
    """A download variant offered by a repository, in normalized form."""

    name: str = Field(default="", description="Download or file name.")
    description: str | None = Field(default=None, description="Free-text description.")
    version: str | None = Field(default=None, description="Version text as reported by the source.")
    page_url_override: str | None = Field(
        default=None,
        description="Page URL for this download when it differs from the mod page.",
    )
    is_mod_version: bool = Field(
        default=False,
        description="Version reported for the mod page as a whole rather than for one file.",
    )

    def matches_subkey(self, subkey: str) -> bool:
        if self.is_mod_version:
            return False
        needle = subkey.strip().lower()
        if not needle:
            return True
        haystacks = (self.name or "", self.description or "")
        return any(needle in text.lower() for text in haystacks)


class PageStatus(str, Enum):
    OK = "ok"
    NOT_FOUND = "not_found"


class NormalizedPage(BaseModel):
    """Repository metadata after per-source normalization; also the cached payload."""

    status: PageStatus = Field(default=PageStatus.OK)
    name: str | None = Field(default=None, description="Mod name on the repository.")
    url: str | None = Field(default=None, description="Mod page URL.")
    downloads: list[ModDownload] = Field(default_factory=list)
    error: str | None = Field(
        default=None,
        description="Why the page is unusable when `status` isn't ok.",
    )

    @classmethod
    def not_found(cls, message: str) -> "NormalizedPage":
        return cls(status=PageStatus.NOT_FOUND, error=message)


class FetchOutcome(str, Enum):
    """Terminal state of a single-source fetch."""

    CACHE_HIT_FRESH = "cache_hit_fresh"
    FETCHED_OK = "fetched_ok"
    FETCHED_ERROR_STALE_FALLBACK = "fetched_error_stale_fallback"
    FETCHED_ERROR_NO_CACHE = "fetched_error_no_cache"


class SourceFetchResult(BaseModel):
    """Outcome of querying one `(source, id)` pair."""

    model_config = ConfigDict(frozen=True)

    repository: ModRepository
    native_id: str
    ok: bool = Field(..., description="False only when no usable payload exists.")
    downloads: list[ModDownload] = Field(default_factory=list)
    page_url: str | None = None
    name: str | None = None
    error: str | None = Field(default=None, description="Failure message, verbatim for verdicts.")
    error_kind: ErrorKind | None = None
    outcome: FetchOutcome
    from_cache: bool = False


class SuggestedUpdate(BaseModel):
    model_config = ConfigDict(frozen=True)

    version: str
    url: str


class ModUpdateVerdict(BaseModel):
    """Update verdict for one requested mod."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    mod_id: str = Field(..., alias="modIdentifier")
    suggested_update: SuggestedUpdate | None = None
    errors: list[str] = Field(default_factory=list)


class CacheEntry(BaseModel, Generic[T]):
    """A cached payload and its bookkeeping timestamps (UTC)."""

    key: str
    payload: T
    last_updated: datetime = Field(..., description="When the payload was fetched.")
    last_requested: datetime = Field(..., description="When the entry was last read by a check.")


class ModSearchEntryModel(BaseModel):
    """Wire shape of one requested mod."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    mod_id: str = Field(..., min_length=1, alias="modIdentifier")
    update_keys: list[str] = Field(default_factory=list)
    allow_invalid_versions: bool = False

    def to_entry(self) -> ModSearchEntry:
        return ModSearchEntry.create(
            self.mod_id,
            self.update_keys,
            allow_invalid_versions=self.allow_invalid_versions,
        )


class ModSearchRequest(BaseModel):
    """Wire shape of a batch request."""

    model_config = ConfigDict(extra="ignore")

    mods: list[ModSearchEntryModel] = Field(default_factory=list)

    @classmethod
    def from_payload(cls, data: Any) -> "ModSearchRequest":
        """Accept either `{"mods": [...]}` or a bare list of mods."""

        if isinstance(data, list):
            data = {"mods": data}
        return cls.model_validate(data)

    def to_entries(self) -> list[ModSearchEntry]:
        return [mod.to_entry() for mod in self.mods]
