"""Componentes de UI para CLI (Rich).

Por qué separar componentes:
- Evita mezclar lógica de comandos con detalles visuales.
- Las tablas se reutilizan en `check` y `doctor`.
"""


from __future__ import annotations

from typing import Sequence

from rich.table import Table
from rich.text import Text

from core.domain.models import ModUpdateVerdict


def build_verdicts_table(verdicts: Sequence[ModUpdateVerdict]) -> Table:
    """One row per mod: suggested version and URL, or the errors."""

    table = Table(title="Update check")
    table.add_column("Mod", style="cyan", no_wrap=True)
    table.add_column("Update", style="green")
    table.add_column("URL", style="magenta")
    table.add_column("Errors", style="red")

    for verdict in verdicts:
        update = verdict.suggested_update
        table.add_row(
            verdict.mod_id,
            update.version if update else Text("none", style="dim"),
            update.url if update else "",
            "\n".join(verdict.errors),
        )
    return table


def build_check_table(title: str) -> Table:
    table = Table(title=title)
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")
    return table
