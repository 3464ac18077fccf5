"""Best-effort detection of the host's preferred locale."""

from __future__ import annotations

import locale
import os
from typing import Mapping

FALLBACK_LOCALE = "en-US"
_LOCALE_ENV_KEYS = ("LC_ALL", "LC_MESSAGES", "LANG", "LANGUAGE")
_NEUTRAL_LOCALES = frozenset({"c", "posix"})


def to_language_tag(value: str | None) -> str | None:
    """Convert a POSIX locale name such as `de_DE.UTF-8` into a tag like `de-DE`."""

    if not value:
        return None
    name = value.split(":", 1)[0].split(".", 1)[0].split("@", 1)[0].strip()
    if not name or name.lower() in _NEUTRAL_LOCALES:
        return None
    parts = name.replace("_", "-").split("-")
    language = parts[0].lower()
    if not language.isalpha():
        return None
    if len(parts) > 1 and parts[1]:
        return f"{language}-{parts[1].upper()}"
    return language


def detect_locale(
    env: Mapping[str, str] | None = None,
    fallback: str = FALLBACK_LOCALE,
) -> str:
    """Return the host locale from environment variables, the `locale` module, or `fallback`."""

    env_map: Mapping[str, str] = os.environ if env is None else env
    for key in _LOCALE_ENV_KEYS:
        tag = to_language_tag(env_map.get(key))
        if tag is not None:
            return tag
    if env is None:
        try:
            tag = to_language_tag(locale.getlocale()[0])
        except ValueError:
            tag = None
        if tag is not None:
            return tag
    return fallback
