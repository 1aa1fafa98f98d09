"""Candidate filtering strategies for description matching.

This module decides cheaply which right entries are worth scoring against a
left entry:
- Length-ratio filtering (shorter/longer normalized length)
- Token-overlap filtering (Jaccard over significant words)

The heuristic filter trades recall for speed. A pair with high bigram
similarity but few shared words (abbreviations, glued words) can be pruned
and never scored. The unfiltered strategy is the ground truth.
"""

from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import Protocol

import numpy as np

from catalog_match.analysis.matching.match_types import NormalizedEntry
from catalog_match.const.matching import FilterThresholds


def length_ratio(normalized_1: str, normalized_2: str) -> float:
    """Calculate the shorter/longer length ratio of two normalized strings.

    Returns:
        Ratio in the range 0.0-1.0, 0.0 when both strings are empty.
    """
    longest = max(len(normalized_1), len(normalized_2))
    if longest == 0:
        return 0.0
    return min(len(normalized_1), len(normalized_2)) / longest


def token_overlap(tokens_1: frozenset[str], tokens_2: frozenset[str]) -> float:
    """Calculate Jaccard overlap between two token sets.

    Returns:
        Jaccard similarity (0.0-1.0), 0.0 when both sets are empty.
    """
    overlap = len(tokens_1 & tokens_2)
    union = len(tokens_1) + len(tokens_2) - overlap
    if union == 0:
        return 0.0
    return overlap / union


def _should_skip_by_tokens(
    left: NormalizedEntry,
    right: NormalizedEntry,
    min_overlap: float = FilterThresholds.MIN_TOKEN_OVERLAP,
) -> bool:
    return token_overlap(left.tokens, right.tokens) <= min_overlap


def is_candidate(
    left: NormalizedEntry,
    right: NormalizedEntry,
    min_length_ratio: float = FilterThresholds.MIN_LENGTH_RATIO,
    min_token_overlap: float = FilterThresholds.MIN_TOKEN_OVERLAP,
) -> bool:
    """Check whether a left/right pair should be scored.

    Pairwise reference for ``HeuristicFilter``, which runs the same length
    test vectorized and then this module's token test.

    Args:
        left: Left entry
        right: Right entry
        min_length_ratio: Pairs below this length ratio are rejected
        min_token_overlap: Pairs at or below this token overlap are rejected

    Returns:
        True if both cheap tests pass.
    """
    if length_ratio(left.normalized, right.normalized) < min_length_ratio:
        return False
    return not _should_skip_by_tokens(left, right, min_token_overlap)


class EntryIndex:
    """Right-side entries with their normalized lengths precomputed."""

    def __init__(self, entries: Sequence[NormalizedEntry]) -> None:
        self.entries = list(entries)
        self.lengths = np.fromiter(
            (len(entry.normalized) for entry in self.entries),
            dtype=np.int64,
            count=len(self.entries),
        )

    def __len__(self) -> int:
        return len(self.entries)


class CandidateFilter(Protocol):
    """Strategy selecting the right entries to score for one left entry."""

    def select(self, left: NormalizedEntry, index: EntryIndex) -> Iterator[NormalizedEntry]:
        """Yield candidate right entries in index order."""
        ...


class NoFilter:
    """Every right entry is a candidate."""

    def select(self, left: NormalizedEntry, index: EntryIndex) -> Iterator[NormalizedEntry]:
        return iter(index.entries)

    def __repr__(self) -> str:
        return "NoFilter()"


@dataclass(frozen=True)
class HeuristicFilter:
    """Length-ratio test followed by token-overlap test.

    The length test runs vectorized over the whole right side; the token test
    only runs on entries surviving it.
    """

    min_length_ratio: float = FilterThresholds.MIN_LENGTH_RATIO
    min_token_overlap: float = FilterThresholds.MIN_TOKEN_OVERLAP

    def select(self, left: NormalizedEntry, index: EntryIndex) -> Iterator[NormalizedEntry]:
        if len(index) == 0:
            return

        left_length = len(left.normalized)
        shorter = np.minimum(index.lengths, left_length)
        longer = np.maximum(index.lengths, left_length)
        ratios = shorter / longer
        surviving = np.flatnonzero(ratios >= self.min_length_ratio)

        for position in surviving:
            right = index.entries[position]
            if not _should_skip_by_tokens(left, right, self.min_token_overlap):
                yield right


def build_filter(
    filtering: str,
    min_length_ratio: float = FilterThresholds.MIN_LENGTH_RATIO,
    min_token_overlap: float = FilterThresholds.MIN_TOKEN_OVERLAP,
) -> CandidateFilter:
    """Create a candidate filter from its configuration name.

    Args:
        filtering: "none" or "heuristic"

    Raises:
        ValueError: If the filtering name is unknown.
    """
    if filtering == "none":
        return NoFilter()
    if filtering == "heuristic":
        return HeuristicFilter(min_length_ratio, min_token_overlap)
    raise ValueError(f"Unknown filtering strategy: {filtering}")
