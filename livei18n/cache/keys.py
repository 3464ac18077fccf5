"""Canonical translation cache-key algorithm.

Responsibilities:
- Normalize translation identity fields into a fixed five-field record.
- Serialize the record canonically and reduce it to an 8-digit hex digest.

The backend regenerates and validates keys with the same algorithm, so any
change here fragments the shared cache.
"""

from __future__ import annotations

import json
import struct

_HASH_MASK = 0xFFFFFFFF
_HASH_SIGN_BIT = 0x80000000
_DIGEST_WIDTH = 8

# ECMAScript WhiteSpace and LineTerminator code points, the set trimmed by
# `String.prototype.trim`. Unlike `str.strip()` it includes U+FEFF and
# excludes U+001C-U+001F and U+0085.
_TRIM_CHARACTERS = (
    "\t\n\v\f\r \u00a0\u1680"
    "\u2000\u2001\u2002\u2003\u2004\u2005\u2006\u2007\u2008\u2009\u200a"
    "\u2028\u2029\u202f\u205f\u3000\ufeff"
)


def _normalize_field(value: object) -> str:
    """Return a trimmed, lowercased string for an optional identity field."""

    if value is None:
        return ""
    return str(value).strip(_TRIM_CHARACTERS).lower()


def canonical_record(
    customer_id: object,
    text: object,
    locale: object,
    context: object = "",
    tone: object = "",
) -> str:
    """Return the canonical JSON serialization hashed into the cache key.

    Keys are emitted in alphabetical order with compact separators and without
    ASCII escaping, which is byte-identical to `JSON.stringify` on the same
    sorted record.
    """

    record = {
        "c": "" if customer_id is None else str(customer_id),
        "t": _normalize_field(text),
        "l": _normalize_field(locale),
        "ctx": _normalize_field(context),
        "tn": _normalize_field(tone),
    }
    return json.dumps(record, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def rolling_hash(value: str) -> str:
    """Hash `value` with the 32-bit `h * 31 + unit` polynomial over UTF-16 code units."""

    encoded = value.encode("utf-16-le", "surrogatepass")
    digest = 0
    for (code_unit,) in struct.iter_unpack("<H", encoded):
        digest = ((digest << 5) - digest + code_unit) & _HASH_MASK
    if digest & _HASH_SIGN_BIT:
        digest -= _HASH_MASK + 1
    return format(abs(digest), "x").rjust(_DIGEST_WIDTH, "0")


def compute_cache_key(
    customer_id: object,
    text: object,
    locale: object,
    context: object = "",
    tone: object = "",
) -> str:
    """Compute the deterministic cache key for one translation identity."""

    return rolling_hash(canonical_record(customer_id, text, locale, context, tone))
