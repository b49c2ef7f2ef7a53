from __future__ import annotations

import re

_HEX_PATTERN = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")


def normalize_tint(value: str) -> str:
    """Return `value` as lower-case `#rrggbb`; raise ValueError if it is not a hex color."""
    if not isinstance(value, str):
        raise ValueError(f"Tint must be a string, got {type(value).__name__}")
    text = value.strip()
    if not _HEX_PATTERN.match(text):
        raise ValueError(f"Invalid tint color: {value!r}")
    digits = text[1:].lower()
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)
    return f"#{digits}"


def tint_to_int(value: str) -> int:
    return int(normalize_tint(value)[1:], 16)


def is_valid_tint(value: object) -> bool:
    try:
        normalize_tint(value)  # type: ignore[arg-type]
    except ValueError:
        return False
    return True


__all__ = ["normalize_tint", "tint_to_int", "is_valid_tint"]
