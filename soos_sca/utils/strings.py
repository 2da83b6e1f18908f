"""Small string helpers used in log lines and reports."""

from __future__ import annotations

import re

_CAMEL_BOUNDARY_RE = re.compile(r"(?<=[a-z])(?=[A-Z])")

_BYTE_UNITS = ("Bytes", "KB", "MB", "GB", "TB", "PB")


def pluralize_word(count: int | None, singular: str, plural: str | None = None) -> str:
    """Return *singular* when count is exactly 1, otherwise the plural form."""
    if count == 1:
        return singular
    return plural if plural is not None else f"{singular}s"


def pluralize_template(count: int | None, singular: str, plural: str | None = None) -> str:
    """Render ``"<count> <word>"``; a missing count renders as 0.

    >>> pluralize_template(1, "file")
    '1 file'
    >>> pluralize_template(None, "file")
    '0 files'
    """
    word = pluralize_word(count, singular, plural)
    return f"{count or 0} {word}"


def from_camel_to_title_case(value: str) -> str:
    """``"LocatingIssues"`` -> ``"Locating Issues"``."""
    words = _CAMEL_BOUNDARY_RE.split(value)
    return " ".join(word[:1].upper() + word[1:].lower() for word in words)


def are_equal_ignore_case(a: str, b: str) -> bool:
    return a.casefold() == b.casefold()


def format_bytes(size: int, decimals: int = 2) -> str:
    """Human-readable byte size, base 1024."""
    if size <= 0:
        return "0 Bytes"
    value = float(size)
    unit = 0
    while value >= 1024 and unit < len(_BYTE_UNITS) - 1:
        value /= 1024
        unit += 1
    rendered = f"{value:.{max(decimals, 0)}f}"
    if "." in rendered:
        rendered = rendered.rstrip("0").rstrip(".")
    return f"{rendered} {_BYTE_UNITS[unit]}"
