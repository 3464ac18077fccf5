"""Unit tests for the canonical translation cache-key algorithm."""

from __future__ import annotations

import re

from livei18n.cache import canonical_record, compute_cache_key, rolling_hash


def _reference_hash(value: str) -> str:
    """Signed 32-bit `h * 31 + c` over BMP characters, rendered as padded hex of `abs(h)`."""

    digest = 0
    for character in value:
        digest = (digest * 31 + ord(character)) % (1 << 32)
    if digest >= 1 << 31:
        digest -= 1 << 32
    return f"{abs(digest):08x}"


def test_canonical_record_sorts_fields_and_normalizes_values() -> None:
    """Record should use sorted compact keys and trim/lowercase everything but the customer id."""

    record = canonical_record("Cust-A", "  Hello World ", " EN-us ", " Menu ", " Formal ")

    assert record == '{"c":"Cust-A","ctx":"menu","l":"en-us","t":"hello world","tn":"formal"}'


def test_canonical_record_keeps_non_ascii_characters() -> None:
    """Non-ASCII text should be serialized verbatim rather than escaped."""

    assert canonical_record("c", "Grüße", "de") == '{"c":"c","ctx":"","l":"de","t":"grüße","tn":""}'


def test_rolling_hash_known_values() -> None:
    """Small inputs should hash to their polynomial value padded to 8 hex digits."""

    assert rolling_hash("") == "00000000"
    assert rolling_hash("a") == "00000061"
    assert rolling_hash("ab") == "00000c21"


def test_rolling_hash_uses_utf16_code_units() -> None:
    """Astral characters should contribute both surrogate code units."""

    assert rolling_hash("\U0001F600") == "001b0d63"


def test_rolling_hash_matches_signed_reference_for_long_inputs() -> None:
    """Hashes that wrap past 32 bits should match the signed reference implementation."""

    samples = [
        '{"c":"acme","ctx":"","l":"fr-fr","t":"welcome back","tn":""}',
        "x" * 300,
        "Přejít na nákupní košík",
    ]
    for sample in samples:
        assert rolling_hash(sample) == _reference_hash(sample)


def test_cache_key_is_deterministic_and_well_formed() -> None:
    """Equal inputs should map to one 8-digit lowercase hex key."""

    key_one = compute_cache_key("acme", "Hello", "de-DE", "checkout", "friendly")
    key_two = compute_cache_key("acme", "Hello", "de-DE", "checkout", "friendly")

    assert key_one == key_two
    assert re.fullmatch(r"[0-9a-f]{8}", key_one)


def test_cache_key_ignores_case_and_surrounding_whitespace() -> None:
    """Text, locale, context, and tone normalization should collapse equivalent inputs."""

    assert compute_cache_key("acme", " HELLO ", "DE-de", " Checkout", "FRIENDLY ") == (
        compute_cache_key("acme", "hello", "de-de", "checkout", "friendly")
    )


def test_cache_key_distinguishes_customer_id_case_and_fields() -> None:
    """Customer ids are case-sensitive and every field takes part in the key."""

    base = compute_cache_key("acme", "hello", "de")

    assert compute_cache_key("ACME", "hello", "de") != base
    assert compute_cache_key("acme", "hello", "fr") != base
    assert compute_cache_key("acme", "hello", "de", context="menu") != base
    assert compute_cache_key("acme", "hello", "de", tone="formal") != base


def test_cache_key_treats_missing_optional_fields_as_empty() -> None:
    """`None` context and tone should hash like empty strings."""

    assert compute_cache_key("acme", "hello", "de", None, None) == compute_cache_key(
        "acme", "hello", "de", "", ""
    )


def test_cache_key_trims_byte_order_mark_and_unicode_spaces() -> None:
    """U+FEFF, no-break and ideographic spaces, and line separators are trimmed like JS `trim()`."""

    base = compute_cache_key("acme", "hi", "en")
    for code_point in (0xFEFF, 0x00A0, 0x2007, 0x2028, 0x3000):
        padding = chr(code_point)
        assert compute_cache_key("acme", f"{padding}hi{padding}", "en") == base
    assert canonical_record("c", chr(0xFEFF) + "hi", "en") == canonical_record("c", "hi", "en")


def test_cache_key_keeps_information_separators_and_next_line() -> None:
    """U+001C-U+001F and U+0085 are not JS whitespace, so they stay part of the key."""

    base = compute_cache_key("acme", "hi", "en")
    for code_point in (0x1C, 0x1D, 0x1E, 0x1F, 0x85):
        assert compute_cache_key("acme", chr(code_point) + "hi", "en") != base
    assert canonical_record("c", chr(0x1F) + "hi", "en") == (
        '{"c":"c","ctx":"","l":"en","t":"\\u001fhi","tn":""}'
    )
