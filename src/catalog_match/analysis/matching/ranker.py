"""Ranking of accumulated match results."""

from collections.abc import Iterable

from catalog_match.analysis.matching.match_types import MatchResult


def rank_matches(matches: Iterable[MatchResult], max_results: int) -> list[MatchResult]:
    """Sort matches by descending score and keep the best ``max_results``.

    Args:
        matches: Unordered match results
        max_results: Maximum number of results to return

    Returns:
        Ranked list of at most ``max_results`` results.
    """
    if max_results <= 0:
        return []
    return sorted(matches, key=lambda match: match.score, reverse=True)[:max_results]
