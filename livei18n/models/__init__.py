"""Data models for translation requests, responses, and cache statistics."""

from .datatypes import (
    BatchTranslationEntry,
    BatchTranslationResponse,
    CacheStats,
    QueuedTranslation,
    RetryObserver,
    TranslationOptions,
    TranslationRequest,
    TranslationResponse,
)

__all__ = [
    "BatchTranslationEntry",
    "BatchTranslationResponse",
    "CacheStats",
    "QueuedTranslation",
    "RetryObserver",
    "TranslationOptions",
    "TranslationRequest",
    "TranslationResponse",
]
