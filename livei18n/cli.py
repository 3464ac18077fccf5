"""Command-line interface for LiveI18n.

Responsibilities:
- Expose user-facing commands for one-off translation and cache maintenance.
- Convert CLI arguments into `LiveI18nConfig` and drive the async client.

Key public functions:
- `app`: Typer application instance.
- `main`: invoke the Typer application.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Annotated

import typer

from .cache import FileKeyValueStore, PersistentCache
from .cli_rendering import echo_cache_stats, exit_with_command_error
from .cli_runtime import (
    load_base_config,
    load_yaml_config,
    persist_api_key,
    resolve_api_key_sources,
)
from .config import CacheSettings, LiveI18nConfig
from .credentials import create_credential_store
from .errors import CommandError
from .gateway import LiveI18n
from .loading import generate_loading_text
from .models.datatypes import CacheStats, TranslationOptions
from .parsing import normalize_optional_string
from .telemetry.logger import EventLogger

app = typer.Typer(
    name="livei18n",
    no_args_is_help=True,
    help="LiveI18n CLI.",
)

_LOADING_PATTERNS = ("dots", "blocks", "none")


def _load_cache_settings(config_file: Path | None, cache_dir: Path | None) -> CacheSettings:
    """Return cache settings from an optional YAML config and `--cache-dir` override."""

    settings = CacheSettings()
    if config_file is not None:
        settings = load_yaml_config(config_file).cache
    if cache_dir is not None:
        settings.storage_dir = cache_dir
    return settings


def _open_persistent_cache(settings: CacheSettings) -> PersistentCache:
    storage_dir = settings.resolved_storage_dir()
    cache = PersistentCache(
        FileKeyValueStore(storage_dir),
        settings.entry_size,
        settings.ttl_hours,
        logger=EventLogger(),
    )
    if not cache.persistent_available:
        raise CommandError(
            stage="cache",
            detail=f"Cache directory `{storage_dir}` is not writable.",
            hint="Pass a writable directory via `--cache-dir`.",
        )
    return cache


async def _translate_once(
    config: LiveI18nConfig,
    text: str,
    options: TranslationOptions,
) -> str:
    store = None
    if config.cache.persistent:
        store = FileKeyValueStore(config.cache.resolved_storage_dir())
    async with LiveI18n(config, store=store) as client:
        await client.ready()
        return await client.translate(
            text,
            options,
            on_retry=lambda attempt: typer.echo(f"[retry] attempt={attempt + 1}", err=True),
        )


@app.command("translate")
def translate_command(
    text: Annotated[str, typer.Argument(help="Source text to translate.")],
    language: Annotated[
        str | None,
        typer.Option("--language", "-l", help="Target locale, e.g. `de-DE`."),
    ] = None,
    tone: Annotated[
        str | None, typer.Option("--tone", help="Tone hint, e.g. `formal`.")
    ] = None,
    context: Annotated[
        str | None, typer.Option("--context", help="Free-text context for the translator.")
    ] = None,
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to YAML config file with client settings."),
    ] = None,
    customer_id: Annotated[
        str | None,
        typer.Option("--customer-id", help="Customer id (overrides config file value)."),
    ] = None,
    endpoint: Annotated[
        str | None,
        typer.Option("--endpoint", help="API base URL (overrides config file value)."),
    ] = None,
    api_key: Annotated[
        str | None,
        typer.Option(
            "--api-key",
            help="API key override. Prefer `--prompt-api-key` to avoid shell history.",
        ),
    ] = None,
    prompt_api_key: Annotated[
        bool,
        typer.Option(
            "--prompt-api-key",
            help="Prompt for API key with hidden input (never echoed).",
        ),
    ] = False,
    store_api_key: Annotated[
        bool,
        typer.Option(
            "--store-api-key/--no-store-api-key",
            help="Persist CLI-entered API key to secure credential storage.",
        ),
    ] = False,
    no_batch: Annotated[
        bool,
        typer.Option("--no-batch", help="Send an individual request instead of batching."),
    ] = False,
    memory_only: Annotated[
        bool,
        typer.Option("--memory-only", help="Skip the persistent cache tier."),
    ] = False,
    cache_dir: Annotated[
        Path | None,
        typer.Option("--cache-dir", help="Directory for the persistent cache."),
    ] = None,
    loading_pattern: Annotated[
        str,
        typer.Option(
            "--loading-pattern",
            help="Placeholder shown while waiting: `dots`, `blocks`, or `none`.",
        ),
    ] = "dots",
    debug: Annotated[
        bool, typer.Option("--debug", help="Emit debug event lines.")
    ] = False,
) -> None:
    """Translate one text and print the result."""

    try:
        normalized_pattern = loading_pattern.strip().lower()
        if normalized_pattern not in _LOADING_PATTERNS:
            raise CommandError(
                stage="options",
                detail=f"Unsupported loading pattern `{loading_pattern}`.",
                hint="Use one of: " + ", ".join(_LOADING_PATTERNS) + ".",
            )
        config = load_base_config(config_file, customer_id)
        sources = resolve_api_key_sources(api_key=api_key, prompt_api_key=prompt_api_key)
        credential_store = create_credential_store()
        if store_api_key and "api_key" in sources.cli:
            persist_api_key(credential_store, config.customer_id, sources.cli["api_key"])
        config.api_key = config.resolved_api_key(sources, credential_store)
        if config.api_key is None:
            raise CommandError(
                stage="credentials",
                detail="No LiveI18n API key is configured.",
                hint=(
                    "Pass `--api-key`, set `LIVEI18N_API_KEY`, or store one with "
                    "`livei18n credentials --customer-id <id> --set-api-key`."
                ),
            )
        if normalize_optional_string(endpoint) is not None:
            config.endpoint = str(normalize_optional_string(endpoint))
        if no_batch:
            config.batch_requests = False
        if memory_only:
            config.cache.persistent = False
        if cache_dir is not None:
            config.cache.storage_dir = cache_dir
        if debug:
            config.debug = True
        try:
            config.validate()
        except ValueError as exc:
            raise CommandError(
                stage="config",
                detail=str(exc),
                hint="Fix the option values and rerun.",
            ) from exc

        options = TranslationOptions(language=language, tone=tone, context=context)
        placeholder = generate_loading_text(text, normalized_pattern)  # type: ignore[arg-type]
        if normalized_pattern != "none":
            typer.echo(f"[progress] {placeholder}", err=True)
        translated = asyncio.run(_translate_once(config, text, options))
    except Exception as exc:
        exit_with_command_error("translate", exc)

    typer.echo(translated)


@app.command("cache-stats")
def cache_stats_command(
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to YAML config file with cache settings."),
    ] = None,
    cache_dir: Annotated[
        Path | None,
        typer.Option("--cache-dir", help="Directory for the persistent cache."),
    ] = None,
) -> None:
    """Show how many cached translations are loaded from the persistent cache."""

    try:
        settings = _load_cache_settings(config_file, cache_dir)
        cache = _open_persistent_cache(settings)
        asyncio.run(cache.preload(settings.entry_size))
    except Exception as exc:
        exit_with_command_error("cache-stats", exc)

    typer.echo(f"Cache directory: {settings.resolved_storage_dir()}")
    echo_cache_stats(CacheStats(size=cache.size(), max_size=cache.max_size), cache.stats())


@app.command("clear-cache")
def clear_cache_command(
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to YAML config file with cache settings."),
    ] = None,
    cache_dir: Annotated[
        Path | None,
        typer.Option("--cache-dir", help="Directory for the persistent cache."),
    ] = None,
) -> None:
    """Delete every cached translation from the persistent cache."""

    try:
        settings = _load_cache_settings(config_file, cache_dir)
        cache = _open_persistent_cache(settings)
        cache.clear()
    except Exception as exc:
        exit_with_command_error("clear-cache", exc)

    typer.echo(f"Cleared translation cache in {settings.resolved_storage_dir()}")


@app.command("credentials")
def credentials_command(
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to YAML config file naming the customer id."),
    ] = None,
    customer_id: Annotated[
        str | None,
        typer.Option("--customer-id", help="Customer whose stored API key is managed."),
    ] = None,
    set_api_key: Annotated[
        bool,
        typer.Option(
            "--set-api-key",
            help="Prompt for API key with hidden input and store it securely.",
        ),
    ] = False,
    clear_api_key: Annotated[
        bool,
        typer.Option(
            "--clear-api-key",
            help="Clear stored API key from secure credential storage.",
        ),
    ] = False,
) -> None:
    """Manage the securely stored API key of one LiveI18n customer."""

    try:
        if set_api_key and clear_api_key:
            raise CommandError(
                stage="credentials",
                detail="`--set-api-key` and `--clear-api-key` cannot be used together.",
                hint="Run one credentials action per command invocation.",
            )
        customer = load_base_config(config_file, customer_id).customer_id
        credential_store = create_credential_store()

        if set_api_key:
            prompted_api_key = normalize_optional_string(
                typer.prompt(
                    "LiveI18n API key (hidden input)",
                    default="",
                    hide_input=True,
                    show_default=False,
                )
            )
            if prompted_api_key is None:
                raise CommandError(
                    stage="credentials",
                    detail="No API key entered.",
                    hint="Provide a non-empty API key when using `--set-api-key`.",
                )
            persist_api_key(credential_store, customer, prompted_api_key)
            return

        if clear_api_key:
            if credential_store.clear_api_key(customer):
                typer.echo(f"Cleared stored API key for customer `{customer}`.")
            else:
                typer.echo(f"No stored API key found for customer `{customer}`.")
            return

        availability = "available" if credential_store.is_available() else "unavailable"
        stored = credential_store.get_api_key(customer) is not None
    except Exception as exc:
        exit_with_command_error("credentials", exc)

    typer.echo(f"Secure credential storage: {availability}")
    typer.echo(f"Stored API key for customer `{customer}`: {'present' if stored else 'not set'}")


def main() -> None:
    """CLI entrypoint for console scripts."""
    app()


if __name__ == "__main__":
    main()
