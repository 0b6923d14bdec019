"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console

from adapters.cache import build_cache
from adapters.http_client import build_async_client
from cli.ui_components import build_check_table
from core.config import AppSettings, CacheBackend
from core.domain.errors import CacheUnavailableError
from core.domain.models import ModRepository

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


async def _check_http(settings: AppSettings, url: str) -> tuple[bool, str]:
    try:
        async with build_async_client(settings) as client:
            response = await client.get(url)
        return True, f"HTTP {response.status_code}"
    except Exception as exc:
        return False, str(exc)


async def _check_cache(settings: AppSettings) -> tuple[bool, str]:
    try:
        await build_cache(settings).ensure_available()
    except CacheUnavailableError as exc:
        return False, str(exc)
    if settings.cache_backend is CacheBackend.MEMORY:
        return True, "in-memory (not persisted)"
    return True, str(settings.resolved_cache_dir())


@app.command()
def run(
    offline: bool = typer.Option(False, "--offline", help="Skip the repository connectivity checks."),
) -> None:
    """Show effective settings and check cache and repository reachability."""

    settings = AppSettings()

    table = build_check_table("modcheck doctor")
    table.add_row("User-Agent", "OK", settings.user_agent)
    table.add_row("Log level", "OK", settings.log_level)

    ok_cache, detail_cache = asyncio.run(_check_cache(settings))
    table.add_row(f"Cache ({settings.cache_backend.value})", "OK" if ok_cache else "FAIL", detail_cache)

    for repository in ModRepository.known():
        source = settings.source(repository)
        if source is None:
            table.add_row(repository.value, "MISSING", "no source settings")
            continue
        summary = (
            f"cache {source.cache_minutes}m, concurrency {source.max_concurrency}, "
            f"timeout {source.timeout_seconds:g}s"
        )
        if offline:
            table.add_row(repository.value, "SKIPPED", f"{source.base_url} ({summary})")
            continue
        ok_http, detail_http = asyncio.run(_check_http(settings, source.base_url))
        table.add_row(repository.value, "OK" if ok_http else "FAIL", f"{detail_http} ({summary})")

    _console.print(table)

    if not ok_cache:
        _console.print(
            "\n[yellow]Note:[/yellow] set MODCHECK_CACHE_DIR to a writable directory "
            "or MODCHECK_CACHE_BACKEND=memory."
        )
        raise typer.Exit(code=1)
