"""Analysis modules for catalog description matching.

This package provides core analysis functionality including:
- Description normalization and tokenization
- Similarity calculation (bigram Dice coefficient)
- Batched matching of two catalogs
- Result reporting (quality bands, filtering, export)
"""

from catalog_match.analysis.matching import (
    DescriptionMatcher,
    MatchResult,
    match_descriptions,
    match_descriptions_async,
)
from catalog_match.analysis.normalize import extract_tokens, normalize_description
from catalog_match.analysis.similarity import calculate_similarity, dice_coefficient

__all__ = [
    "normalize_description",
    "extract_tokens",
    "dice_coefficient",
    "calculate_similarity",
    "DescriptionMatcher",
    "MatchResult",
    "match_descriptions",
    "match_descriptions_async",
]
