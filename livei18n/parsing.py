"""Shared parsing helpers for configuration and request value normalization."""

from __future__ import annotations


_TRUE_BOOLEAN_TOKENS = frozenset({"1", "true", "yes", "on"})
_FALSE_BOOLEAN_TOKENS = frozenset({"0", "false", "no", "off"})


def normalize_optional_string(value: object) -> str | None:
    """Normalize an optional value to a stripped non-empty string.

    Args:
        value: Arbitrary input value.

    Returns:
        Stripped string value, or `None` when the value is empty after trimming.
    """

    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    return text


def clip_text(value: str | None, limit: int) -> str:
    """Return `value` cut to at most `limit` characters, with `None` as empty."""

    if not value:
        return ""
    return value[:limit]


def parse_permissive_boolean(value: object) -> bool | None:
    """Parse a permissive boolean token and return `None` for invalid values."""

    if isinstance(value, bool):
        return value

    normalized = normalize_optional_string(value)
    if normalized is None:
        return None

    token = normalized.lower()
    if token in _TRUE_BOOLEAN_TOKENS:
        return True
    if token in _FALSE_BOOLEAN_TOKENS:
        return False
    return None


def parse_required_boolean(value: object, field_name: str) -> bool:
    """Parse a required boolean value from accepted textual tokens.

    Args:
        value: Value to parse.
        field_name: Field name for an actionable validation error message.

    Raises:
        ValueError: If the token is not one of the accepted boolean values.
    """

    parsed = parse_permissive_boolean(value)
    if parsed is not None:
        return parsed

    raise ValueError(
        f"`{field_name}` must be a boolean value (`true`/`false`, `1`/`0`, `yes`/`no`)."
    )


def parse_positive_int(value: object, field_name: str) -> int:
    """Parse a strictly positive integer, rejecting booleans and blank values."""

    if isinstance(value, bool):
        raise ValueError(f"`{field_name}` must be a positive integer.")
    normalized = normalize_optional_string(value)
    try:
        parsed = int(normalized) if normalized is not None else 0
    except ValueError as exc:
        raise ValueError(f"`{field_name}` must be a positive integer.") from exc
    if parsed <= 0:
        raise ValueError(f"`{field_name}` must be a positive integer.")
    return parsed


def parse_positive_float(value: object, field_name: str) -> float:
    """Parse a strictly positive float, rejecting booleans and blank values."""

    if isinstance(value, bool):
        raise ValueError(f"`{field_name}` must be a positive number.")
    normalized = normalize_optional_string(value)
    try:
        parsed = float(normalized) if normalized is not None else 0.0
    except ValueError as exc:
        raise ValueError(f"`{field_name}` must be a positive number.") from exc
    if parsed <= 0.0:
        raise ValueError(f"`{field_name}` must be a positive number.")
    return parsed
