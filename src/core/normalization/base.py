"""Shared helpers for per-repository normalizers."""

from __future__ import annotations

from typing import Any, Callable, TypeVar

from pydantic import BaseModel, ValidationError

from core.domain.errors import DecodeError
from core.domain.models import NormalizedPage

M = TypeVar("M", bound=BaseModel)

# (native_id, raw payload, default page URL) -> normalized page
Normalizer = Callable[[str, Any, str | None], NormalizedPage]


def validate_payload(model: type[M], raw: Any, *, source: str) -> M:
    """Validate `raw` against `model`, turning shape mismatches into `DecodeError`."""

    try:
        return model.model_validate(raw)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
            for err in exc.errors()[:3]
        )
        raise DecodeError(f"{source} returned an unexpected payload ({problems}).") from exc


def clean_text(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None
