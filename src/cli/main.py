"""CLI de modcheck.

Por qué Typer + Rich:
- Opciones tipadas y subcomandos casi sin boilerplate.
- Tablas para humanos en stdout; los logs van a stderr para que la salida
  `--json` siga siendo encadenable.
"""


from __future__ import annotations

import asyncio
import json
from datetime import timedelta
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from adapters.json_exporter import export_verdicts_json, verdicts_to_payload
from cli import doctor
from cli.ui_components import build_verdicts_table
from core.config import AppSettings
from core.domain.errors import FatalUpdateCheckError
from core.domain.models import ModSearchEntry, ModSearchRequest
from core.logging_setup import configure_logging
from core.services.update_pipeline import check_updates, prune_cache

app = typer.Typer(no_args_is_help=True, help="Check installed mods for updates across mod repositories.")
cache_app = typer.Typer(no_args_is_help=True, help="Manage the mod page cache.")
app.add_typer(cache_app, name="cache")
app.add_typer(doctor.app, name="doctor")

_console = Console()
_err_console = Console(stderr=True)


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Override MODCHECK_LOG_LEVEL (DEBUG, INFO, WARNING, ERROR).",
    ),
) -> None:
    configure_logging(log_level or AppSettings().log_level)


def parse_mod_option(value: str, *, allow_invalid_versions: bool = False) -> ModSearchEntry:
    """Parse `ModId=Key1,Key2` into an entry."""

    mod_id, sep, keys = value.partition("=")
    if not sep or not mod_id.strip():
        raise typer.BadParameter(f"expected 'ModId=Site:ID[,Site:ID...]', got '{value}'", param_hint="--mod")
    update_keys = [key.strip() for key in keys.split(",") if key.strip()]
    return ModSearchEntry.create(
        mod_id.strip(),
        update_keys,
        allow_invalid_versions=allow_invalid_versions,
    )


def _load_request(path: Path) -> list[ModSearchEntry]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise typer.BadParameter(f"can't read '{path}': {exc}", param_hint="--input") from exc
    try:
        return ModSearchRequest.from_payload(data).to_entries()
    except ValueError as exc:
        raise typer.BadParameter(f"'{path}' isn't a valid request: {exc}", param_hint="--input") from exc


@app.command()
def check(
    input_path: Optional[Path] = typer.Option(
        None,
        "--input",
        "-i",
        help='JSON request: {"mods": [{"modIdentifier": ..., "updateKeys": [...]}]} or a bare list.',
    ),
    mods: list[str] = typer.Option(
        [],
        "--mod",
        "-m",
        help="Mod to check as 'ModId=Nexus:541,GitHub:owner/repo'. Repeatable.",
    ),
    allow_invalid_versions: bool = typer.Option(
        False,
        "--allow-invalid-versions",
        help="For --mod entries: also suggest versions that aren't semantic versions.",
    ),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write verdicts to this JSON file."),
    as_json: bool = typer.Option(False, "--json", help="Print verdicts as JSON instead of a table."),
) -> None:
    """Check mods for updates and print one verdict per mod."""

    entries: list[ModSearchEntry] = []
    if input_path is not None:
        entries.extend(_load_request(input_path))
    entries.extend(parse_mod_option(value, allow_invalid_versions=allow_invalid_versions) for value in mods)
    if not entries:
        raise typer.BadParameter("pass --input and/or at least one --mod")

    settings = AppSettings()
    try:
        verdicts = asyncio.run(check_updates(settings=settings, request=entries))
    except FatalUpdateCheckError as exc:
        _err_console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=2) from exc

    if output is not None:
        path = export_verdicts_json(verdicts=verdicts, output_path=output)
        _err_console.print(f"[green]Saved verdicts to:[/green] {path}")

    if as_json:
        _console.print_json(data=verdicts_to_payload(verdicts))
    else:
        _console.print(build_verdicts_table(verdicts))


@cache_app.command("prune")
def cache_prune(
    days: int = typer.Option(48, "--days", min=0, help="Remove entries not requested for this many days."),
) -> None:
    """Delete cache entries no check has asked for recently."""

    settings = AppSettings()
    try:
        removed = asyncio.run(prune_cache(settings=settings, older_than=timedelta(days=days)))
    except FatalUpdateCheckError as exc:
        _err_console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=2) from exc
    _console.print(f"Removed {removed} cache entr{'y' if removed == 1 else 'ies'}.")


def run() -> None:
    app()


if __name__ == "__main__":
    run()
