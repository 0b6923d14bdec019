"""Exportación JSON de los veredictos.

Por qué JSON:
- Es el formato que los consumidores ya parsean (camelCase, `modIdentifier`).
- Permite guardar resultados y compararlos entre ejecuciones.
"""


from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Sequence

from core.domain.models import ModUpdateVerdict


def verdicts_to_payload(verdicts: Sequence[ModUpdateVerdict]) -> list[dict[str, Any]]:
    return [verdict.model_dump(mode="json", by_alias=True) for verdict in verdicts]


def dump_verdicts_json(verdicts: Sequence[ModUpdateVerdict]) -> str:
    return json.dumps(verdicts_to_payload(verdicts), ensure_ascii=False, indent=2) + "\n"


def export_verdicts_json(*, verdicts: Sequence[ModUpdateVerdict], output_path: Path) -> Path:
    """Write verdicts to `output_path` as UTF-8 JSON, keeping input order."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(dump_verdicts_json(verdicts), encoding="utf-8")
    return output_path
