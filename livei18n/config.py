"""Configuration model and loaders for the LiveI18n client.

Responsibilities:
- Define client configuration as typed dataclasses.
- Provide deterministic precedence resolution for the API key.
- Provide loader entry points for file- and environment-based configuration.

Key types:
- `LiveI18nConfig`: normalized settings for one client instance.
- `CacheSettings`, `BatchSettings`, `RetrySettings`: grouped tuning values.
- `RuntimeConfigSources`: optional value sources for precedence resolution.
- `ConfigLoader`: static construction helpers for `LiveI18nConfig`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import os
from pathlib import Path
from typing import Any, Mapping

import yaml

from .client.http import DEFAULT_ENDPOINT
from .client.retry import BatchRetryPolicy, RetryPolicy
from .credentials import CredentialStore
from .parsing import (
    normalize_optional_string,
    parse_positive_float,
    parse_positive_int,
    parse_required_boolean,
)

_BATCH_FALLBACK_POLICIES = frozenset({"original", "individual"})
_DEFAULT_STORAGE_DIR = Path("~/.cache/livei18n")


@dataclass(frozen=True, slots=True)
class RuntimeConfigSources:
    """Source mappings used for deterministic runtime value precedence.

    Attributes:
        cli: Values explicitly provided by CLI arguments.
        env: Values loaded from environment variables.
    """

    cli: Mapping[str, str] = field(default_factory=dict)
    env: Mapping[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class CacheSettings:
    """Cache selection and sizing.

    Attributes:
        persistent: Mirror the memory cache into persistent storage.
        entry_size: Maximum in-memory entries.
        ttl_hours: Entry time-to-live for both tiers.
        preload: Warm memory from persistent storage when the client starts.
        preload_max_items: Upper bound on entries read during preload.
        storage_dir: Directory for the persistent store; defaults to `~/.cache/livei18n`.
    """

    persistent: bool = True
    entry_size: int = 500
    ttl_hours: float = 1.0
    preload: bool = True
    preload_max_items: int = 50
    storage_dir: Path | None = None

    def resolved_storage_dir(self) -> Path:
        return (self.storage_dir or _DEFAULT_STORAGE_DIR).expanduser()


@dataclass(slots=True)
class BatchSettings:
    """Batching queue thresholds and batch retry/fallback policy.

    Attributes:
        max_items: Queue length that triggers an immediate flush.
        window_ms: Delay after the first queued item before a timed flush.
        retry_delay_ms: Delay before retrying a failed batch request.
        max_attempts: Total batch request attempts including the first.
        fallback: `original` resolves failed batches with source text;
            `individual` re-drives each item through the individual retry pipeline.
    """

    max_items: int = 10
    window_ms: float = 50.0
    retry_delay_ms: float = 500.0
    max_attempts: int = 2
    fallback: str = "original"

    def retry_policy(self) -> BatchRetryPolicy:
        return BatchRetryPolicy(
            max_attempts=self.max_attempts,
            retry_delay_ms=self.retry_delay_ms,
        )


@dataclass(slots=True)
class RetrySettings:
    """Individual request retry budget."""

    max_attempts: int = 5
    base_delay_ms: float = 100.0
    max_delay_ms: float = 1600.0
    budget_ms: float = 5000.0

    def policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=self.max_attempts,
            base_delay_ms=self.base_delay_ms,
            max_delay_ms=self.max_delay_ms,
            budget_ms=self.budget_ms,
        )


@dataclass(slots=True)
class LiveI18nConfig:
    """Settings for one `LiveI18n` client.

    Attributes:
        customer_id: Opaque customer identifier, part of every cache key.
        api_key: API key sent as `X-API-Key`; may be resolved at runtime instead.
        endpoint: Base URL of the LiveI18n API.
        default_language: Locale used when a call does not specify one.
        debug: Emit debug event lines.
        batch_requests: Coalesce concurrent cache misses into batch requests.
        timeout_seconds: Per-request HTTP timeout.
        low_confidence_threshold: Confidence below which a warning is logged.
        cache: Cache settings.
        batching: Batching settings.
        retry: Individual retry settings.
    """

    customer_id: str
    api_key: str | None = None
    endpoint: str = DEFAULT_ENDPOINT
    default_language: str | None = None
    debug: bool = False
    batch_requests: bool = True
    timeout_seconds: float = 10.0
    low_confidence_threshold: float = 0.4
    cache: CacheSettings = field(default_factory=CacheSettings)
    batching: BatchSettings = field(default_factory=BatchSettings)
    retry: RetrySettings = field(default_factory=RetrySettings)

    def validate(self) -> None:
        """Validate configuration values before a client is built."""

        self._require_non_empty(self.customer_id, "customer_id")
        self._require_non_empty(self.endpoint, "endpoint")
        if self.timeout_seconds <= 0:
            raise ValueError("`timeout_seconds` must be a positive number.")
        if not 0.0 <= self.low_confidence_threshold <= 1.0:
            raise ValueError("`low_confidence_threshold` must be between 0 and 1.")
        if self.cache.entry_size <= 0:
            raise ValueError("`cache.entry_size` must be a positive integer.")
        if self.cache.ttl_hours <= 0:
            raise ValueError("`cache.ttl_hours` must be a positive number.")
        if self.cache.preload_max_items < 0:
            raise ValueError("`cache.preload_max_items` must not be negative.")
        if self.batching.max_items <= 0:
            raise ValueError("`batching.max_items` must be a positive integer.")
        if self.batching.window_ms < 0 or self.batching.retry_delay_ms < 0:
            raise ValueError("`batching` delays must not be negative.")
        if self.batching.max_attempts <= 0:
            raise ValueError("`batching.max_attempts` must be a positive integer.")
        if self.batching.fallback not in _BATCH_FALLBACK_POLICIES:
            supported = ", ".join(sorted(_BATCH_FALLBACK_POLICIES))
            raise ValueError(
                f"Unsupported `batching.fallback` value `{self.batching.fallback}`; "
                f"supported: {supported}."
            )
        if self.retry.max_attempts <= 0:
            raise ValueError("`retry.max_attempts` must be a positive integer.")
        if self.retry.budget_ms <= 0:
            raise ValueError("`retry.budget_ms` must be a positive number.")

    def resolved_api_key(
        self,
        sources: RuntimeConfigSources | None = None,
        credential_store: CredentialStore | None = None,
    ) -> str | None:
        """Resolve the API key with deterministic source precedence.

        Precedence is `cli` > the key stored for `customer_id` in
        `credential_store` > `env` (`LIVEI18N_API_KEY`) > config field.
        """

        resolved_sources = sources if sources is not None else RuntimeConfigSources()
        cli_value = normalize_optional_string(resolved_sources.cli.get("api_key"))
        if cli_value is not None:
            return cli_value
        if credential_store is not None:
            stored_value = credential_store.get_api_key(self.customer_id)
            if stored_value is not None:
                return stored_value
        env_value = normalize_optional_string(resolved_sources.env.get("LIVEI18N_API_KEY"))
        if env_value is not None:
            return env_value
        return normalize_optional_string(self.api_key)

    @staticmethod
    def _require_non_empty(value: str, field_name: str) -> None:
        """Validate that string fields are not empty."""

        if not isinstance(value, str) or not value.strip():
            raise ValueError(f"`{field_name}` must be a non-empty string.")


class ConfigLoader:
    """Factory methods for creating `LiveI18nConfig` from external sources."""

    _REQUIRED_YAML_KEYS = frozenset({"customer_id"})
    _SUPPORTED_YAML_KEYS = frozenset(
        {
            "customer_id",
            "api_key",
            "endpoint",
            "default_language",
            "debug",
            "batch_requests",
            "timeout_seconds",
            "low_confidence_threshold",
            "cache",
            "batching",
            "retry",
        }
    )
    _SUPPORTED_CACHE_KEYS = frozenset(
        {"persistent", "entry_size", "ttl_hours", "preload", "preload_max_items", "storage_dir"}
    )
    _SUPPORTED_BATCHING_KEYS = frozenset(
        {"max_items", "window_ms", "retry_delay_ms", "max_attempts", "fallback"}
    )
    _SUPPORTED_RETRY_KEYS = frozenset(
        {"max_attempts", "base_delay_ms", "max_delay_ms", "budget_ms"}
    )

    @staticmethod
    def from_yaml(path: Path) -> LiveI18nConfig:
        """Create a validated config from a YAML file."""

        path_text = path.read_text(encoding="utf-8")
        payload = yaml.safe_load(path_text)
        if payload is None:
            payload = {}
        if not isinstance(payload, Mapping):
            raise ValueError(f"YAML config `{path}` must contain a top-level mapping/object.")
        return ConfigLoader.from_mapping(payload, source_label=f"YAML `{path}`")

    @staticmethod
    def from_mapping(payload: Mapping[str, Any], source_label: str = "mapping") -> LiveI18nConfig:
        """Build a validated config from a nested mapping payload."""

        ConfigLoader._validate_keys(
            payload, ConfigLoader._SUPPORTED_YAML_KEYS, source_label, ""
        )
        missing = sorted(
            key for key in ConfigLoader._REQUIRED_YAML_KEYS
            if normalize_optional_string(payload.get(key)) is None
        )
        if missing:
            raise ValueError(f"{source_label} is missing required key(s): {', '.join(missing)}.")

        cache_payload = ConfigLoader._section(payload, "cache", source_label)
        batching_payload = ConfigLoader._section(payload, "batching", source_label)
        retry_payload = ConfigLoader._section(payload, "retry", source_label)
        ConfigLoader._validate_keys(
            cache_payload, ConfigLoader._SUPPORTED_CACHE_KEYS, source_label, "cache."
        )
        ConfigLoader._validate_keys(
            batching_payload, ConfigLoader._SUPPORTED_BATCHING_KEYS, source_label, "batching."
        )
        ConfigLoader._validate_keys(
            retry_payload, ConfigLoader._SUPPORTED_RETRY_KEYS, source_label, "retry."
        )

        defaults_cache = CacheSettings()
        storage_dir = normalize_optional_string(cache_payload.get("storage_dir"))
        cache = CacheSettings(
            persistent=ConfigLoader._bool(cache_payload, "persistent", defaults_cache.persistent, "cache."),
            entry_size=ConfigLoader._int(cache_payload, "entry_size", defaults_cache.entry_size, "cache."),
            ttl_hours=ConfigLoader._float(cache_payload, "ttl_hours", defaults_cache.ttl_hours, "cache."),
            preload=ConfigLoader._bool(cache_payload, "preload", defaults_cache.preload, "cache."),
            preload_max_items=ConfigLoader._int(
                cache_payload, "preload_max_items", defaults_cache.preload_max_items, "cache."
            ),
            storage_dir=Path(storage_dir) if storage_dir is not None else None,
        )

        defaults_batching = BatchSettings()
        batching = BatchSettings(
            max_items=ConfigLoader._int(
                batching_payload, "max_items", defaults_batching.max_items, "batching."
            ),
            window_ms=ConfigLoader._float(
                batching_payload, "window_ms", defaults_batching.window_ms, "batching."
            ),
            retry_delay_ms=ConfigLoader._float(
                batching_payload, "retry_delay_ms", defaults_batching.retry_delay_ms, "batching."
            ),
            max_attempts=ConfigLoader._int(
                batching_payload, "max_attempts", defaults_batching.max_attempts, "batching."
            ),
            fallback=(
                normalize_optional_string(batching_payload.get("fallback"))
                or defaults_batching.fallback
            ).lower(),
        )

        defaults_retry = RetrySettings()
        retry = RetrySettings(
            max_attempts=ConfigLoader._int(
                retry_payload, "max_attempts", defaults_retry.max_attempts, "retry."
            ),
            base_delay_ms=ConfigLoader._float(
                retry_payload, "base_delay_ms", defaults_retry.base_delay_ms, "retry."
            ),
            max_delay_ms=ConfigLoader._float(
                retry_payload, "max_delay_ms", defaults_retry.max_delay_ms, "retry."
            ),
            budget_ms=ConfigLoader._float(
                retry_payload, "budget_ms", defaults_retry.budget_ms, "retry."
            ),
        )

        config = LiveI18nConfig(
            customer_id=str(normalize_optional_string(payload.get("customer_id"))),
            api_key=normalize_optional_string(payload.get("api_key")),
            endpoint=normalize_optional_string(payload.get("endpoint")) or DEFAULT_ENDPOINT,
            default_language=normalize_optional_string(payload.get("default_language")),
            debug=ConfigLoader._bool(payload, "debug", False, ""),
            batch_requests=ConfigLoader._bool(payload, "batch_requests", True, ""),
            timeout_seconds=ConfigLoader._float(payload, "timeout_seconds", 10.0, ""),
            low_confidence_threshold=ConfigLoader._unit_interval(
                payload, "low_confidence_threshold", 0.4
            ),
            cache=cache,
            batching=batching,
            retry=retry,
        )
        config.validate()
        return config

    @staticmethod
    def from_env(env: Mapping[str, str] | None = None) -> LiveI18nConfig:
        """Create a validated config from `LIVEI18N_*` environment variables."""

        env_map: Mapping[str, str] = os.environ if env is None else env

        def value(name: str) -> str | None:
            return normalize_optional_string(env_map.get(name))

        customer_id = value("LIVEI18N_CUSTOMER_ID")
        if customer_id is None:
            raise ValueError("Environment variable `LIVEI18N_CUSTOMER_ID` is required.")

        payload: dict[str, Any] = {"customer_id": customer_id}
        for env_key, field_name in (
            ("LIVEI18N_API_KEY", "api_key"),
            ("LIVEI18N_ENDPOINT", "endpoint"),
            ("LIVEI18N_DEFAULT_LANGUAGE", "default_language"),
            ("LIVEI18N_DEBUG", "debug"),
            ("LIVEI18N_BATCH_REQUESTS", "batch_requests"),
            ("LIVEI18N_TIMEOUT_SECONDS", "timeout_seconds"),
        ):
            if value(env_key) is not None:
                payload[field_name] = value(env_key)

        cache_payload: dict[str, Any] = {}
        for env_key, field_name in (
            ("LIVEI18N_CACHE_PERSISTENT", "persistent"),
            ("LIVEI18N_CACHE_ENTRY_SIZE", "entry_size"),
            ("LIVEI18N_CACHE_TTL_HOURS", "ttl_hours"),
            ("LIVEI18N_CACHE_PRELOAD", "preload"),
            ("LIVEI18N_CACHE_DIR", "storage_dir"),
        ):
            if value(env_key) is not None:
                cache_payload[field_name] = value(env_key)
        if cache_payload:
            payload["cache"] = cache_payload

        batch_fallback = value("LIVEI18N_BATCH_FALLBACK")
        if batch_fallback is not None:
            payload["batching"] = {"fallback": batch_fallback}

        return ConfigLoader.from_mapping(payload, source_label="environment")

    @staticmethod
    def _section(payload: Mapping[str, Any], key: str, source_label: str) -> Mapping[str, Any]:
        """Return a nested mapping section, treating a missing/null section as empty."""

        section = payload.get(key)
        if section is None:
            return {}
        if not isinstance(section, Mapping):
            raise ValueError(f"{source_label} key `{key}` must be a mapping/object.")
        return section

    @staticmethod
    def _validate_keys(
        payload: Mapping[str, Any],
        supported: frozenset[str],
        source_label: str,
        prefix: str,
    ) -> None:
        unknown = sorted(f"{prefix}{key}" for key in payload if key not in supported)
        if unknown:
            raise ValueError(f"{source_label} has unsupported key(s): {', '.join(unknown)}.")

    @staticmethod
    def _bool(payload: Mapping[str, Any], key: str, default: bool, prefix: str) -> bool:
        if payload.get(key) is None:
            return default
        return parse_required_boolean(payload[key], f"{prefix}{key}")

    @staticmethod
    def _int(payload: Mapping[str, Any], key: str, default: int, prefix: str) -> int:
        if payload.get(key) is None:
            return default
        return parse_positive_int(payload[key], f"{prefix}{key}")

    @staticmethod
    def _float(payload: Mapping[str, Any], key: str, default: float, prefix: str) -> float:
        if payload.get(key) is None:
            return default
        return parse_positive_float(payload[key], f"{prefix}{key}")

    @staticmethod
    def _unit_interval(payload: Mapping[str, Any], key: str, default: float) -> float:
        raw = normalize_optional_string(payload.get(key))
        if raw is None:
            return default
        try:
            parsed = float(raw)
        except ValueError as exc:
            raise ValueError(f"`{key}` must be a number between 0 and 1.") from exc
        if not 0.0 <= parsed <= 1.0:
            raise ValueError(f"`{key}` must be a number between 0 and 1.")
        return parsed
