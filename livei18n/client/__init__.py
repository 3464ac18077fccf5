"""Backend-facing transport and retry policies."""

from .http import DEFAULT_ENDPOINT, LiveI18nHTTPClient
from .retry import BatchRetryPolicy, RetryPolicy

__all__ = ["BatchRetryPolicy", "DEFAULT_ENDPOINT", "LiveI18nHTTPClient", "RetryPolicy"]
