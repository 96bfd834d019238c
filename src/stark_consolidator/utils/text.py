# src/stark_consolidator/utils/text.py
"""
Text and value normalization helpers shared by every extractor.

Stark exports render counters and labels into the same text nodes, so
every string pulled out of the DOM goes through normalize_text() before
it is compared, keyed or stored.
"""

import re
from typing import Any, Optional

SNIPPET_MAX_LENGTH = 420
ELLIPSIS = "…"

_WHITESPACE_RE = re.compile(r"\s+")
_DIGITS_RE = re.compile(r"\d+")

# Counter artifacts glued to the word "passed" ("3passed12", "passed 5", ...)
_PASSED_ARTIFACT_PATTERNS = [
    re.compile(r"\b\d+passed\d+\b", re.IGNORECASE),
    re.compile(r"\b\d+\s*passed\s*\d+\b", re.IGNORECASE),
    re.compile(r"\bpassed\s*\d+\b", re.IGNORECASE),
    re.compile(r"\b\d+\s*passed\b", re.IGNORECASE),
]


def collapse_whitespace(value: Optional[str]) -> str:
    """Collapse runs of whitespace to a single space and trim."""
    return _WHITESPACE_RE.sub(" ", value or "").strip()


def normalize_text(value: Optional[Any]) -> str:
    """
    Normalize an extracted string.

    Collapses whitespace, trims and strips "passed" counter artifacts.
    None and non-string values are accepted; the result is always a str.
    Applying it twice returns the same value as applying it once.

    Args:
        value: Raw text (or None)

    Returns:
        Normalized single-spaced string
    """
    if value is None:
        return ""
    text = collapse_whitespace(str(value))
    # Stripping one artifact can glue digits to the next "passed", so loop
    # until the text stops changing.
    while True:
        cleaned = text
        for pattern in _PASSED_ARTIFACT_PATTERNS:
            cleaned = pattern.sub("", cleaned)
        cleaned = collapse_whitespace(cleaned)
        if cleaned == text:
            return cleaned
        text = cleaned


def parse_first_int(value: Optional[Any]) -> Optional[int]:
    """Return the first non-negative integer found in value, or None."""
    match = _DIGITS_RE.search(normalize_text(value))
    if not match:
        return None
    return int(match.group(0))


def parse_occurrences(value: Optional[Any]) -> int:
    """
    Parse an occurrence count, defaulting to "at least one".

    Args:
        value: Cell text such as "12", "(3 instances)" or ""

    Returns:
        First positive integer in value, otherwise 1
    """
    number = parse_first_int(value)
    if number is None or number <= 0:
        return 1
    return number


def clamp_snippet(value: Optional[Any], max_length: int = SNIPPET_MAX_LENGTH) -> str:
    """Normalize a code snippet and truncate it with an ellipsis."""
    text = normalize_text(value)
    if len(text) <= max_length:
        return text
    return f"{text[:max_length - 1]}{ELLIPSIS}"


def truncate_title(text: str, max_length: int = 90) -> str:
    # Card titles longer than max_length keep max_length - 3 chars + ellipsis
    if len(text) <= max_length:
        return text
    return f"{text[:max_length - 3]}{ELLIPSIS}"


def to_header_key(header: Optional[str]) -> str:
    """Lowercase alphanumeric key used to match table headers."""
    key = collapse_whitespace((header or "").lower())
    key = re.sub(r"[^a-z0-9 ]", "", key)
    return key.strip()


def element_text(element) -> str:
    """Normalized text content of a BeautifulSoup element (None-safe)."""
    if element is None:
        return ""
    return normalize_text(element.get_text(" "))
