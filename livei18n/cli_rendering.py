"""CLI output and error rendering helpers.

This module centralizes user-facing CLI presentation for command diagnostics
and cache statistics.
"""

from __future__ import annotations

from typing import NoReturn

import typer

from .cache import PersistentCacheStats
from .errors import CommandError
from .models.datatypes import CacheStats


def exit_with_command_error(command_name: str, exc: Exception) -> NoReturn:
    """Print concise diagnostics for command failures and exit with code 1."""

    if isinstance(exc, CommandError):
        typer.secho(
            f"{command_name} failed at stage `{exc.stage}`: {exc.detail}",
            fg=typer.colors.RED,
            err=True,
        )
        if exc.hint:
            typer.secho(f"Hint: {exc.hint}", fg=typer.colors.YELLOW, err=True)
    else:
        typer.secho(f"{command_name} failed: {exc}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1) from exc


def echo_cache_stats(stats: CacheStats, persistent: PersistentCacheStats | None) -> None:
    """Print cache size, capacity, and persistent-tier availability."""

    typer.echo(f"Cache entries: {stats.size}/{stats.max_size}")
    if persistent is None:
        typer.echo("Persistent cache: disabled")
        return
    availability = "available" if persistent.persistent_available else "unavailable"
    typer.echo(f"Persistent cache: {availability}")
