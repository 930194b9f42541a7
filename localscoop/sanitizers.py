"""
Input sanitizers for place IDs, API keys and block attributes.

These functions are total: they never raise. Invalid input yields False
or a safe default, never partially cleaned output.
"""

import math
import re
from collections.abc import Collection
from typing import Any, TypeVar
from urllib.parse import urlsplit

T = TypeVar("T")

IDENTIFIER_PATTERN = re.compile(r"[A-Za-z0-9_-]+")
HEX_COLOR_PATTERN = re.compile(r"#(?:[0-9a-fA-F]{3}){1,2}")

EXTERNAL_ID_MIN_LENGTH = 10
EXTERNAL_ID_MAX_LENGTH = 100
CREDENTIAL_MIN_LENGTH = 30
CREDENTIAL_MAX_LENGTH = 50

_TAG_PATTERN = re.compile(r"<[^>]*>")
_SCRIPT_STYLE_PATTERN = re.compile(
    r"<(script|style)[^>]*?>.*?</\1>", re.IGNORECASE | re.DOTALL
)
_WHITESPACE_PATTERN = re.compile(r"\s+")
_LEADING_NUMBER_PATTERN = re.compile(r"\s*([+-]?\d+(?:\.\d*)?)")


def validate_identifier(value: Any) -> bool:
    """Return True if value is a place ID made of [A-Za-z0-9_-] only."""
    return isinstance(value, str) and bool(IDENTIFIER_PATTERN.fullmatch(value))


def validate_identifier_external(value: Any) -> bool:
    """
    Stricter place ID check for IDs arriving over the network.

    Adds a length bound of 10 to 100 characters on top of
    validate_identifier().
    """
    if not validate_identifier(value):
        return False
    return EXTERNAL_ID_MIN_LENGTH <= len(value) <= EXTERNAL_ID_MAX_LENGTH


def validate_credential(value: Any) -> bool:
    """Return True if value looks like a Google API key (30-50 chars)."""
    if not validate_identifier(value):
        return False
    return CREDENTIAL_MIN_LENGTH <= len(value) <= CREDENTIAL_MAX_LENGTH


def coerce_enum(value: Any, allowed: Collection[T], default: T) -> T:
    """Return value if it is one of the allowed options, else default."""
    try:
        if value in allowed:
            return value  # type: ignore[no-any-return]
    except TypeError:
        # Unhashable values cannot be members of a set
        pass
    return default


def coerce_color(value: Any) -> str:
    """
    Normalize a hex color.

    Accepts #rgb and #rrggbb, returned lower-cased. Anything else
    yields an empty string.
    """
    if not isinstance(value, str):
        return ""
    value = value.strip()
    if not HEX_COLOR_PATTERN.fullmatch(value):
        return ""
    return value.lower()


def coerce_non_negative_int(value: Any, default: int) -> int:
    """
    Coerce value to a non-negative integer.

    Strings are read up to the first non-numeric character, so "12px"
    gives 12. Missing values and strings with no leading number yield
    default. Negative numbers are folded to their absolute value.
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, str):
        match = _LEADING_NUMBER_PATTERN.match(value)
        if match is None:
            return default
        value = match.group(1)
    try:
        number = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return default
    return abs(number)


def coerce_float(value: Any, default: float) -> float:
    """Coerce value to a finite float, or return default."""
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return default
    if not math.isfinite(number):
        return default
    return number


def coerce_bool(value: Any, default: bool) -> bool:
    """Coerce a block attribute to a boolean."""
    if value is None:
        return default
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("1", "true", "yes", "on"):
            return True
        if lowered in ("0", "false", "no", "off", ""):
            return False
        return default
    return bool(value)


def strip_tags(value: Any) -> str:
    """Remove HTML tags, including script and style contents."""
    if value is None:
        return ""
    text = _SCRIPT_STYLE_PATTERN.sub("", str(value))
    return _TAG_PATTERN.sub("", text).strip()


def sanitize_text(value: Any) -> str:
    """
    Clean a single-line text value.

    Strips tags, collapses line breaks, tabs and repeated whitespace,
    and trims the result.
    """
    text = strip_tags(value)
    return _WHITESPACE_PATTERN.sub(" ", text).strip()


def sanitize_url(value: Any) -> str:
    """Return value if it is an absolute http(s) URL, else ''."""
    if not isinstance(value, str):
        return ""
    url = value.strip()
    if any(ch.isspace() for ch in url) or '"' in url or "<" in url:
        return ""
    try:
        parts = urlsplit(url)
    except ValueError:
        return ""
    if parts.scheme.lower() not in ("http", "https") or not parts.netloc:
        return ""
    return url
