"""Similarity calculation functions for catalog descriptions.

This module provides Dice's coefficient over character bigrams, the single
scorer shared by every matching entry point.
"""

from collections import Counter

from catalog_match.analysis.normalize import normalize_description

SCORE_DECIMALS = 2


def get_bigrams(normalized: str) -> Counter[str]:
    """Decompose a normalized string into its multiset of bigrams.

    Args:
        normalized: Already normalized string.

    Returns:
        Counter mapping each 2-character substring to its occurrence count.
    """
    return Counter(normalized[i : i + 2] for i in range(len(normalized) - 1))


def dice_coefficient_normalized(normalized_1: str, normalized_2: str) -> float:
    """Calculate Dice's coefficient between two already normalized strings.

    Args:
        normalized_1: First normalized string.
        normalized_2: Second normalized string.

    Returns:
        Similarity in the range 0.0-1.0.
    """
    if not normalized_1 or not normalized_2:
        return 0.0

    # Strings without bigrams only match themselves
    if len(normalized_1) < 2 or len(normalized_2) < 2:
        return 1.0 if normalized_1 == normalized_2 else 0.0

    bigrams_1 = get_bigrams(normalized_1)
    bigrams_2 = get_bigrams(normalized_2)

    # Calculate Dice coefficient: 2 * |A ∩ B| / (|A| + |B|)
    intersection = sum((bigrams_1 & bigrams_2).values())
    total = (len(normalized_1) - 1) + (len(normalized_2) - 1)

    return 2.0 * intersection / total


def dice_coefficient(text_1: str | None, text_2: str | None) -> float:
    """Calculate bigram similarity between two raw descriptions.

    Both inputs are normalized first. Empty descriptions score 0.

    Args:
        text_1: First description.
        text_2: Second description.

    Returns:
        Similarity in the range 0.0-1.0.
    """
    return dice_coefficient_normalized(
        normalize_description(text_1), normalize_description(text_2)
    )


def to_percentage(similarity: float) -> float:
    """Convert a 0.0-1.0 similarity to a percentage with two decimals."""
    return round(similarity * 100, SCORE_DECIMALS)


def calculate_similarity(text_1: str | None, text_2: str | None) -> float:
    """Calculate the similarity percentage between two descriptions.

    Args:
        text_1: First description.
        text_2: Second description.

    Returns:
        Similarity score (0-100) rounded to two decimal places.
    """
    return to_percentage(dice_coefficient(text_1, text_2))
