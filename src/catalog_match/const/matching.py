"""Constants for description matching configuration.

This module defines default values and thresholds used throughout
the matching process to improve maintainability and configurability.
"""


class FilterThresholds:
    """Thresholds for pre-filtering during similarity matching."""

    # Minimum shorter/longer length ratio of the normalized descriptions
    MIN_LENGTH_RATIO = 0.3

    # Token Jaccard overlap must be strictly above this value
    MIN_TOKEN_OVERLAP = 0.15


class EarlyExitDefaults:
    """Defaults for the per-row break and the global early exit."""

    # A row stops scanning once it records a match at or above this score
    NEAR_PERFECT_SCORE = 98.0

    # Stop the sweep once matches reach max_results times this factor
    RESULT_MULTIPLIER = 3

    # ... but only when the caller asked for at least this threshold
    MIN_THRESHOLD = 70.0


class MatchingDefaults:
    """Default values for matching parameters."""

    # Description column of the left catalog
    LEFT_FIELD = "Description"

    # Description column of the right catalog
    RIGHT_FIELD = "LONG DESCRIPTION"

    # Default minimum similarity score (0-100)
    MIN_THRESHOLD = 0.0

    # Default cap on ranked results
    MAX_RESULTS = 1000

    # Number of left entries processed between suspension points
    BATCH_SIZE = 200
