"""Data types for description matching.

This module defines the core data structures used in matching:
- NormalizedEntry: Pre-processed view over one source record
- MatchResult: A scored left/right pair handed to the caller
- MatchDifferences: Token-level breakdown of a matched pair
- SweepState: Explicit scheduler state threaded through each batch
- MatchProgress: Progress event emitted after each batch
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from catalog_match.analysis.normalize import extract_tokens

Record = Mapping[str, Any]


@dataclass(frozen=True)
class NormalizedEntry:
    """Read-only, comparison-ready view over a source record.

    Attributes:
        record: Original record, carried through untouched
        description: Raw description text as read from the record
        normalized: Normalized description (never empty)
        tokens: Significant word tokens (never empty)
        index: Position of the record in its source sequence
    """

    record: Record
    description: str
    normalized: str
    tokens: frozenset[str]
    index: int


@dataclass(frozen=True)
class MatchDifferences:
    """Common and unique tokens between two matched descriptions."""

    common_words: list[str]
    only_in_left: list[str]
    only_in_right: list[str]
    left_word_count: int
    right_word_count: int

    @property
    def word_accuracy(self) -> float:
        """Share of common words relative to the wordier side (0-100)."""
        largest = max(self.left_word_count, self.right_word_count)
        if largest == 0:
            return 0.0
        return round(len(self.common_words) / largest * 100, 2)


def describe_differences(left_description: Any, right_description: Any) -> MatchDifferences:
    """Compute the token breakdown between two descriptions.

    Args:
        left_description: Left-side description
        right_description: Right-side description

    Returns:
        MatchDifferences with sorted token lists.
    """
    left_tokens = extract_tokens(left_description)
    right_tokens = extract_tokens(right_description)
    return MatchDifferences(
        common_words=sorted(left_tokens & right_tokens),
        only_in_left=sorted(left_tokens - right_tokens),
        only_in_right=sorted(right_tokens - left_tokens),
        left_word_count=len(left_tokens),
        right_word_count=len(right_tokens),
    )


@dataclass
class MatchResult:
    """A candidate match between one left and one right record.

    Attributes:
        left_record: Original left record
        right_record: Original right record
        left_description: Left description as used for matching
        right_description: Right description as used for matching
        score: Similarity percentage (0-100, two decimals)
    """

    left_record: Record
    right_record: Record
    left_description: str
    right_description: str
    score: float

    @property
    def differences(self) -> MatchDifferences:
        """Token differences between the two descriptions."""
        return describe_differences(self.left_description, self.right_description)


@dataclass(frozen=True)
class SweepState:
    """Scheduler state between two batches.

    Each batch step consumes one state and returns a new one, so batch
    transitions can be replayed and tested in isolation.

    Attributes:
        next_index: Index of the next left entry to process
        total: Number of left entries in the sweep
        matches: Results accumulated so far, in discovery order
        early_exit: True once a stopping policy halted the sweep
    """

    next_index: int
    total: int
    matches: tuple[MatchResult, ...] = field(default_factory=tuple)
    early_exit: bool = False

    @property
    def processed(self) -> int:
        return min(self.next_index, self.total)

    @property
    def finished(self) -> bool:
        return self.early_exit or self.next_index >= self.total


@dataclass(frozen=True)
class MatchProgress:
    """Progress notification emitted after each batch.

    Attributes:
        percent: Completion percentage (0-100), 100 only once the sweep is over
        processed: Number of left entries processed
        total: Number of left entries in the sweep
        matches_found: Number of results accumulated so far
        early_exit: True when the sweep ended through a stopping policy
    """

    percent: int
    processed: int
    total: int
    matches_found: int
    early_exit: bool = False

    @property
    def done(self) -> bool:
        return self.percent == 100
