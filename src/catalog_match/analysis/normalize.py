"""Description normalization and tokenization.

This module turns raw catalog descriptions into a canonical, comparison-ready
form and derives the word tokens used for cheap candidate filtering.
"""

import math
import re
from typing import Any

MIN_TOKEN_LENGTH = 3

_NON_WORD = re.compile(r"[^\w\s]|_")
_WHITESPACE = re.compile(r"\s+")


def normalize_description(text: Any) -> str:
    """Normalize a description for comparison.

    Lower-cases the text, drops every character that is neither alphanumeric
    nor whitespace, collapses whitespace runs to a single space and trims.

    Args:
        text: Raw description. ``None``, NaN and empty values are accepted.

    Returns:
        Normalized description, or an empty string for absent input.
    """
    if text is None:
        return ""
    if isinstance(text, float) and math.isnan(text):
        return ""
    if not isinstance(text, str):
        text = str(text)

    lowered = text.lower()
    stripped = _NON_WORD.sub("", lowered)
    return _WHITESPACE.sub(" ", stripped).strip()


def extract_tokens(text: Any) -> frozenset[str]:
    """Extract significant word tokens from a description.

    Args:
        text: Raw description.

    Returns:
        Set of normalized words with at least three characters.
    """
    normalized = normalize_description(text)
    if not normalized:
        return frozenset()
    return frozenset(word for word in normalized.split(" ") if len(word) >= MIN_TOKEN_LENGTH)
