"""Description matching module for reconciling two catalogs.

This module provides the batched, filtered matching engine.
Main entry point is the DescriptionMatcher class.

Public API:
    - DescriptionMatcher: Main class for matching two record sets
    - match_descriptions: Direct, unfiltered full sweep
    - match_descriptions_async: Filtered, batched sweep for the event loop
    - MatchResult: A scored left/right pair
    - MatchProgress: Progress event emitted after each batch
    - SweepState: Explicit scheduler state (advanced usage)
"""

from catalog_match.analysis.matching.description_matcher import (
    DescriptionMatcher,
    match_descriptions,
    match_descriptions_async,
)
from catalog_match.analysis.matching.match_filters import HeuristicFilter, NoFilter, is_candidate
from catalog_match.analysis.matching.match_types import (
    MatchDifferences,
    MatchProgress,
    MatchResult,
    NormalizedEntry,
    SweepState,
    describe_differences,
)
from catalog_match.analysis.matching.ranker import rank_matches
from catalog_match.analysis.matching.stopping import HighConfidenceStop, NeverStop

__all__ = [
    "DescriptionMatcher",
    "match_descriptions",
    "match_descriptions_async",
    "HeuristicFilter",
    "NoFilter",
    "is_candidate",
    "MatchDifferences",
    "MatchProgress",
    "MatchResult",
    "NormalizedEntry",
    "SweepState",
    "describe_differences",
    "rank_matches",
    "HighConfidenceStop",
    "NeverStop",
]
