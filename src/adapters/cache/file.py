"""Caché en ficheros JSON: un fichero por clave dentro de un directorio.

Notas:
- Se escribe a un fichero temporal en el mismo directorio y luego `os.replace`,
  así un lector nunca ve una entrada a medias y una escritura cancelada deja
  intacta la entrada anterior.
- El I/O de ficheros corre en `asyncio.to_thread` para no bloquear el event loop.
- `last_requested` vive en el mtime del fichero, no en su contenido: marcar
  una entrada como pedida nunca reescribe el payload ni puede deshacer un
  `save` concurrente de la misma clave.
- Una entrada ilegible o corrupta cuenta como miss (y se loguea); el siguiente
  fetch correcto la sobrescribe.
"""


from __future__ import annotations

import asyncio
import hashlib
import logging
import os
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path

from pydantic import ValidationError

from adapters.cache.base import BaseCacheRepository, Clock, normalize_key, utc_now
from core.domain.errors import CacheUnavailableError
from core.domain.models import CacheEntry, NormalizedPage

logger = logging.getLogger(__name__)

_Entry = CacheEntry[NormalizedPage]
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _to_ns(moment: datetime) -> int:
    delta = moment - _EPOCH
    return (delta.days * 86_400 + delta.seconds) * 1_000_000_000 + delta.microseconds * 1_000


def _from_ns(ns: int) -> datetime:
    return _EPOCH + timedelta(microseconds=ns // 1_000)


def _file_name(key: str) -> str:
    # Keys contain ':' and '/' (GitHub ids), neither safe in file names.
    readable = "".join(ch if ch.isalnum() or ch in "-_." else "_" for ch in key)[:80]
    digest = hashlib.sha1(key.encode("utf-8")).hexdigest()[:12]
    return f"{readable}-{digest}.json"


class JsonFileCacheRepository(BaseCacheRepository):
    def __init__(self, directory: Path, *, clock: Clock = utc_now) -> None:
        super().__init__(clock=clock)
        self.directory = Path(directory)

    def path_for(self, key: str) -> Path:
        return self.directory / _file_name(normalize_key(key))

    async def ensure_available(self) -> None:
        await asyncio.to_thread(self._ensure_available_sync)

    def _ensure_available_sync(self) -> None:
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, marker = tempfile.mkstemp(dir=self.directory, prefix=".writable-")
            os.close(fd)
            os.unlink(marker)
        except OSError as exc:
            raise CacheUnavailableError(f"Cache directory '{self.directory}' isn't writable: {exc}") from exc

    async def try_get(
        self,
        key: str,
        *,
        mark_requested: bool = True,
    ) -> _Entry | None:
        return await asyncio.to_thread(self._try_get_sync, normalize_key(key), mark_requested)

    def _try_get_sync(self, key: str, mark_requested: bool) -> _Entry | None:
        path = self.path_for(key)
        entry = self._read(path)
        if entry is None:
            return None
        if mark_requested:
            requested = self._clock()
            try:
                os.utime(path, ns=(_to_ns(requested), _to_ns(requested)))
            except FileNotFoundError:
                # Pruned since the read; the entry read is still valid.
                pass
            except OSError as exc:
                raise CacheUnavailableError(f"Can't update cache file '{path}': {exc}") from exc
            entry = entry.model_copy(update={"last_requested": requested})
        return entry

    async def save(self, key: str, payload: NormalizedPage, now: datetime) -> _Entry:
        key = normalize_key(key)
        entry = _Entry(key=key, payload=payload, last_updated=now, last_requested=now)
        await asyncio.to_thread(self._write, self.path_for(key), entry)
        return entry

    async def remove_stale(self, age: timedelta, now: datetime | None = None) -> int:
        cutoff = self._prune_cutoff(age, now)
        removed = await asyncio.to_thread(self._remove_stale_sync, cutoff)
        if removed:
            logger.info("Pruned %d cache file(s) not requested since %s", removed, cutoff.isoformat())
        return removed

    def _remove_stale_sync(self, cutoff: datetime) -> int:
        if not self.directory.is_dir():
            return 0
        removed = 0
        for path in self.directory.glob("*.json"):
            if path.name.startswith("."):
                # Another writer's temp file.
                continue
            entry = self._read(path)
            if entry is None or entry.last_requested < cutoff:
                path.unlink(missing_ok=True)
                removed += 1
        return removed

    @staticmethod
    def _read(path: Path) -> _Entry | None:
        try:
            requested_ns = path.stat().st_mtime_ns
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            logger.warning("Can't read cache file %s: %s", path, exc)
            return None
        try:
            entry = _Entry.model_validate_json(text)
        except ValidationError as exc:
            logger.warning("Ignoring corrupt cache file %s (%d error(s))", path, exc.error_count())
            return None
        return entry.model_copy(update={"last_requested": _from_ns(requested_ns)})

    def _write(self, path: Path, entry: _Entry) -> None:
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=".tmp-", suffix=".json")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(entry.model_dump_json(indent=2))
                requested = _to_ns(entry.last_requested)
                os.utime(tmp_name, ns=(requested, requested))
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise CacheUnavailableError(f"Can't write cache file '{path}': {exc}") from exc
