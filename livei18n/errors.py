"""Domain exceptions for the translation client and CLI diagnostics."""

from __future__ import annotations


class TranslationError(RuntimeError):
    """Raised when a translation backend request fails or returns malformed output."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        failure_kind: str = "unknown",
    ) -> None:
        """Initialize backend error metadata used by retry classification."""

        super().__init__(message)
        self.status_code = status_code
        self.failure_kind = failure_kind

    @property
    def is_validation_error(self) -> bool:
        """Return whether the backend rejected the request itself (HTTP 4xx)."""

        return self.status_code is not None and 400 <= self.status_code < 500


class StorageError(RuntimeError):
    """Raised when the persistent key-value store cannot complete an operation."""


class StorageQuotaExceededError(StorageError):
    """Raised when a persistent write does not fit in the remaining storage quota."""


class CredentialStoreError(RuntimeError):
    """Raised when the secure credential backend cannot read or write an API key."""


class CommandError(RuntimeError):
    """Raised when a CLI command fails at a specific stage."""

    def __init__(
        self,
        *,
        stage: str,
        detail: str,
        hint: str | None = None,
    ) -> None:
        """Initialize a stage-scoped command error."""

        super().__init__(detail)
        self.stage = stage
        self.detail = detail
        self.hint = hint
