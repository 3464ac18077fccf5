"""CLI runtime resolution helpers.

This module isolates configuration loading, API-key prompting, and secure
API-key persistence from the command wiring layer.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping

import typer

from .config import ConfigLoader, LiveI18nConfig, RuntimeConfigSources
from .credentials import CredentialStore
from .errors import CommandError, CredentialStoreError
from .parsing import normalize_optional_string


def load_yaml_config(config_file: Path) -> LiveI18nConfig:
    """Load a YAML config file and map failures to stage errors."""

    try:
        return ConfigLoader.from_yaml(config_file)
    except FileNotFoundError as exc:
        raise CommandError(
            stage="config",
            detail=f"Config file not found: `{config_file}`.",
            hint="Provide an existing path via `--config <path.yaml>`.",
        ) from exc
    except ValueError as exc:
        raise CommandError(
            stage="config",
            detail=f"Invalid config file `{config_file}`: {exc}",
            hint="Fix config schema/values and rerun.",
        ) from exc


def load_base_config(
    config_file: Path | None,
    customer_id: str | None,
    env: Mapping[str, str] | None = None,
) -> LiveI18nConfig:
    """Load config from YAML, CLI customer id, or environment, mapping failures to stage errors."""

    env_map: Mapping[str, str] = os.environ if env is None else env
    if config_file is not None:
        config = load_yaml_config(config_file)
    elif normalize_optional_string(customer_id) is not None:
        config = LiveI18nConfig(customer_id=str(normalize_optional_string(customer_id)))
    elif normalize_optional_string(env_map.get("LIVEI18N_CUSTOMER_ID")) is not None:
        try:
            config = ConfigLoader.from_env(env_map)
        except ValueError as exc:
            raise CommandError(
                stage="config",
                detail=f"Invalid environment configuration: {exc}",
                hint="Fix the `LIVEI18N_*` environment variables and rerun.",
            ) from exc
    else:
        raise CommandError(
            stage="config",
            detail="A customer id is required.",
            hint="Pass `--customer-id`, set `LIVEI18N_CUSTOMER_ID`, or use `--config <path.yaml>`.",
        )

    if customer_id is not None and normalize_optional_string(customer_id) is not None:
        config.customer_id = str(normalize_optional_string(customer_id))
    return config


def resolve_api_key_sources(
    api_key: str | None,
    prompt_api_key: bool,
    env: Mapping[str, str] | None = None,
) -> RuntimeConfigSources:
    """Collect the CLI (argument or hidden prompt) and environment API-key sources."""

    runtime_cli_values: dict[str, str] = {}
    normalized_api_key = normalize_optional_string(api_key)
    if normalized_api_key is not None:
        runtime_cli_values["api_key"] = normalized_api_key
    elif prompt_api_key:
        prompted_api_key = normalize_optional_string(
            typer.prompt(
                "LiveI18n API key (hidden; leave blank to skip)",
                default="",
                hide_input=True,
                show_default=False,
            )
        )
        if prompted_api_key is not None:
            runtime_cli_values["api_key"] = prompted_api_key

    env_map: Mapping[str, str] = os.environ if env is None else env
    runtime_env_values = {
        key: value
        for key, value in env_map.items()
        if key == "LIVEI18N_API_KEY" and normalize_optional_string(value) is not None
    }
    return RuntimeConfigSources(cli=runtime_cli_values, env=runtime_env_values)


def persist_api_key(
    credential_store: CredentialStore,
    customer_id: str,
    api_key: str,
) -> None:
    """Persist `api_key` for `customer_id`, mapping backend failures to a credentials-stage error."""

    try:
        credential_store.set_api_key(customer_id, api_key)
    except (CredentialStoreError, ValueError) as exc:
        raise CommandError(
            stage="credentials",
            detail=f"Failed to store API key securely: {exc}",
            hint=(
                "Install and configure a keyring backend, or rerun without "
                "`--store-api-key` for one-off usage."
            ),
        ) from exc
    typer.echo(f"Stored API key for customer `{customer_id}` in secure credential storage.")
