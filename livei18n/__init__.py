"""Top-level package for LiveI18n.

This package provides a client-side translation delivery layer: cache-first
lookups, retrying and batched calls to the LiveI18n API, and graceful fallback
to the original text. The main entry point is `LiveI18n`.
"""

from .cache import compute_cache_key
from .config import ConfigLoader, LiveI18nConfig
from .gateway import LiveI18n
from .loading import generate_loading_text
from .models import TranslationOptions

__all__ = [
    "ConfigLoader",
    "LiveI18n",
    "LiveI18nConfig",
    "TranslationOptions",
    "__version__",
    "compute_cache_key",
    "generate_loading_text",
]

__version__ = "0.1.0"
