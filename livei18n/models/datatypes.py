"""Core datatypes exchanged between the translation gateway, transport, and callers.

Responsibilities:
- Represent immutable request/response records with explicit typing.
- Validate backend payloads at the transport boundary.

Key types:
- `TranslationOptions`, `TranslationRequest`, `TranslationResponse`,
  `BatchTranslationEntry`, `BatchTranslationResponse`, `QueuedTranslation`,
  and `CacheStats`.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Callable, Mapping

from ..errors import TranslationError

RetryObserver = Callable[[int], None]


@dataclass(frozen=True, slots=True)
class TranslationOptions:
    """Per-call translation options.

    Attributes:
        language: Target locale for this call; overrides the configured default.
        tone: Free-form tone hint, truncated to 50 characters before use.
        context: Free-form context hint, truncated to 500 characters before use.
    """

    language: str | None = None
    tone: str | None = None
    context: str | None = None


@dataclass(frozen=True, slots=True)
class TranslationRequest:
    """One prepared translation request after validation, truncation, and keying."""

    text: str
    locale: str
    tone: str
    context: str
    cache_key: str

    def as_payload(self) -> dict[str, str]:
        """Return the wire payload shared by individual and batch requests."""

        return {
            "text": self.text,
            "locale": self.locale,
            "tone": self.tone,
            "context": self.context,
            "cache_key": self.cache_key,
        }


def _required_string(payload: Mapping[str, Any], key: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str):
        raise TranslationError(
            f"Translation response is missing string field `{key}`.",
            failure_kind="invalid_response",
        )
    return value


def _optional_confidence(payload: Mapping[str, Any]) -> float | None:
    value = payload.get("confidence")
    if isinstance(value, bool) or not isinstance(value, int | float):
        return None
    return float(value)


@dataclass(frozen=True, slots=True)
class TranslationResponse:
    """Backend result for one translated text."""

    translated: str
    confidence: float | None = None
    locale: str | None = None
    cached: bool = False

    @classmethod
    def from_payload(cls, payload: object) -> TranslationResponse:
        """Build a response from decoded JSON or raise `TranslationError`."""

        if not isinstance(payload, Mapping):
            raise TranslationError(
                "Translation response must be a JSON object.",
                failure_kind="invalid_response",
            )
        locale = payload.get("locale")
        return cls(
            translated=_required_string(payload, "translated"),
            confidence=_optional_confidence(payload),
            locale=locale if isinstance(locale, str) else None,
            cached=payload.get("cached") is True,
        )


@dataclass(frozen=True, slots=True)
class BatchTranslationEntry:
    """One entry of a batch response, matched to its request by `cache_key`."""

    cache_key: str
    translated: str
    confidence: float | None = None
    cached: bool = False


@dataclass(frozen=True, slots=True)
class BatchTranslationResponse:
    """Backend result for a batch request; order and completeness are not guaranteed."""

    responses: tuple[BatchTranslationEntry, ...]

    @classmethod
    def from_payload(cls, payload: object) -> BatchTranslationResponse:
        """Build a batch response from decoded JSON or raise `TranslationError`."""

        if not isinstance(payload, Mapping) or not isinstance(payload.get("responses"), list):
            raise TranslationError(
                "Batch translation response is missing a `responses` list.",
                failure_kind="invalid_response",
            )
        entries: list[BatchTranslationEntry] = []
        for item in payload["responses"]:
            if not isinstance(item, Mapping):
                continue
            cache_key = item.get("cache_key")
            translated = item.get("translated")
            if not isinstance(cache_key, str) or not isinstance(translated, str):
                continue
            entries.append(
                BatchTranslationEntry(
                    cache_key=cache_key,
                    translated=translated,
                    confidence=_optional_confidence(item),
                    cached=item.get("cached") is True,
                )
            )
        return cls(responses=tuple(entries))

    def by_cache_key(self) -> dict[str, BatchTranslationEntry]:
        """Index entries by cache key; a repeated key keeps its first entry."""

        indexed: dict[str, BatchTranslationEntry] = {}
        for entry in self.responses:
            indexed.setdefault(entry.cache_key, entry)
        return indexed


@dataclass(frozen=True, slots=True)
class QueuedTranslation:
    """A cache miss waiting in the batching queue.

    The future is resolved exactly once with the translated or original text.
    """

    request: TranslationRequest
    future: asyncio.Future[str]
    on_retry: RetryObserver | None = None

    def resolve(self, value: str) -> bool:
        """Resolve the pending future and return whether this call resolved it."""

        if self.future.done():
            return False
        self.future.set_result(value)
        return True


@dataclass(frozen=True, slots=True)
class CacheStats:
    """Cache size snapshot exposed to collaborators."""

    size: int
    max_size: int
