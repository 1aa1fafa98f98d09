"""Stopping policies deciding when a sweep may end early."""

from dataclasses import dataclass
from typing import Protocol

from catalog_match.analysis.matching.match_types import SweepState
from catalog_match.const.matching import EarlyExitDefaults


class StoppingPolicy(Protocol):
    """Predicate over the accumulated sweep state."""

    def should_stop(self, state: SweepState, min_threshold: float, max_results: int) -> bool:
        ...


class NeverStop:
    """Always run the sweep to completion."""

    def should_stop(self, state: SweepState, min_threshold: float, max_results: int) -> bool:
        return False

    def __repr__(self) -> str:
        return "NeverStop()"


@dataclass(frozen=True)
class HighConfidenceStop:
    """Stop once enough high-confidence matches are collected.

    A threshold at or above ``min_threshold`` signals that the caller only
    wants a small set of strong matches, so ``multiplier * max_results``
    accumulated results are enough to rank from.
    """

    multiplier: int = EarlyExitDefaults.RESULT_MULTIPLIER
    min_threshold: float = EarlyExitDefaults.MIN_THRESHOLD

    def should_stop(self, state: SweepState, min_threshold: float, max_results: int) -> bool:
        if min_threshold < self.min_threshold:
            return False
        return len(state.matches) >= max_results * self.multiplier
