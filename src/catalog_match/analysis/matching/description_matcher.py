"""Description matching between two catalogs.

This module drives the left x right sweep in bounded batches:
1. Pre-processing: normalize and tokenize every description once
2. Batched sweep: filter candidates, score survivors, accumulate results
3. Ranking: sort accumulated results and keep the best ones

Performance optimizations:
- Cheap candidate filtering before bigram scoring
- Per-row break once a near-perfect match is recorded
- Global early exit through an injectable stopping policy
- Optional process pool for batches
"""

import asyncio
from collections.abc import Callable, Iterator, Sequence
from concurrent.futures import ProcessPoolExecutor
from dataclasses import replace
import logging
import math
import time

from catalog_match.analysis.matching.match_filters import CandidateFilter, EntryIndex, build_filter
from catalog_match.analysis.matching.match_types import (
    MatchProgress,
    MatchResult,
    NormalizedEntry,
    Record,
    SweepState,
)
from catalog_match.analysis.matching.ranker import rank_matches
from catalog_match.analysis.matching.stopping import HighConfidenceStop, NeverStop, StoppingPolicy
from catalog_match.analysis.normalize import extract_tokens, normalize_description
from catalog_match.analysis.similarity import dice_coefficient_normalized, to_percentage
from catalog_match.const.matching import MatchingDefaults
from catalog_match.core.config import MatchConfig

logger = logging.getLogger(__name__)

ProgressSink = Callable[[MatchProgress], None]

# Progress is logged whenever it lands on a multiple of this step
_PROGRESS_LOG_STEP = 20


def _is_blank(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return not str(value).strip()


class DescriptionMatcher:
    """Matches left catalog descriptions against right catalog descriptions.

    The sweep state is an explicit ``SweepState`` value: every batch step
    takes a state and returns the next one, and the drivers (``match``,
    ``match_async``, ``match_parallel``) only differ in how they schedule
    those steps.
    """

    def __init__(
        self,
        config: MatchConfig | None = None,
        candidate_filter: CandidateFilter | None = None,
        stopping_policy: StoppingPolicy | None = None,
    ) -> None:
        """Initialize DescriptionMatcher.

        Args:
            config: Matching configuration. Defaults to ``MatchConfig()``.
            candidate_filter: Filtering strategy. Built from ``config.filtering``
                              when omitted.
            stopping_policy: Global early-exit policy. Built from the config's
                             early-exit settings when omitted.
        """
        self.config = config or MatchConfig()

        if candidate_filter is None:
            candidate_filter = build_filter(
                self.config.filtering,
                self.config.min_length_ratio,
                self.config.min_token_overlap,
            )
        self.candidate_filter = candidate_filter

        if stopping_policy is None:
            if self.config.early_exit_multiplier is None:
                stopping_policy = NeverStop()
            else:
                stopping_policy = HighConfidenceStop(
                    multiplier=self.config.early_exit_multiplier,
                    min_threshold=self.config.early_exit_min_threshold,
                )
        self.stopping_policy = stopping_policy

    @staticmethod
    def prepare_entries(records: Sequence[Record], field: str) -> list[NormalizedEntry]:
        """Normalize and tokenize the description of every record.

        Records without a usable description are dropped and only logged.

        Args:
            records: Source records
            field: Name of the description field

        Returns:
            Entries with non-empty normalized text and token set.
        """
        entries = []
        missing_count = 0
        unusable_count = 0

        for index, record in enumerate(records):
            description = record.get(field)
            if _is_blank(description):
                missing_count += 1
                logger.debug(f"Record {index} has no '{field}' description, skipped")
                continue

            normalized = normalize_description(description)
            tokens = extract_tokens(normalized)
            if not normalized or not tokens:
                unusable_count += 1
                logger.debug(f"Record {index} description {description!r} has no usable words")
                continue

            entries.append(
                NormalizedEntry(
                    record=record,
                    description=str(description),
                    normalized=normalized,
                    tokens=tokens,
                    index=index,
                )
            )

        if missing_count or unusable_count:
            logger.info(
                f"Pre-processed '{field}': kept {len(entries)} of {len(records)} records "
                f"({missing_count} missing, {unusable_count} without usable words)"
            )
        return entries

    def start(self, left_entries: Sequence[NormalizedEntry]) -> SweepState:
        """Create the initial sweep state."""
        return SweepState(next_index=0, total=len(left_entries))

    def score_entry(self, left: NormalizedEntry, right_index: EntryIndex) -> list[MatchResult]:
        """Score one left entry against its filtered right candidates.

        Scanning stops after the first recorded match at or above
        ``near_perfect_score``; later candidates of that row are never scored.
        """
        min_threshold = self.config.min_threshold
        near_perfect = self.config.near_perfect_score
        matches = []

        for right in self.candidate_filter.select(left, right_index):
            score = to_percentage(dice_coefficient_normalized(left.normalized, right.normalized))
            if score < min_threshold:
                continue

            matches.append(
                MatchResult(
                    left_record=left.record,
                    right_record=right.record,
                    left_description=left.description,
                    right_description=right.description,
                    score=score,
                )
            )
            if near_perfect is not None and score >= near_perfect:
                break

        return matches

    def _advance(
        self, state: SweepState, next_index: int, batch_matches: Sequence[MatchResult]
    ) -> SweepState:
        next_state = replace(
            state,
            next_index=next_index,
            matches=state.matches + tuple(batch_matches),
        )
        if next_state.finished:
            return next_state

        if self.stopping_policy.should_stop(
            next_state, self.config.min_threshold, self.config.max_results
        ):
            logger.info(
                f"Early exit: found {len(next_state.matches)} matches "
                f"(target: {self.config.max_results})"
            )
            next_state = replace(next_state, early_exit=True)
        return next_state

    def process_batch(
        self,
        state: SweepState,
        left_entries: Sequence[NormalizedEntry],
        right_index: EntryIndex,
    ) -> SweepState:
        """Process the next batch of left entries.

        Args:
            state: Current sweep state
            left_entries: All left entries of the sweep
            right_index: Indexed right entries

        Returns:
            The state after this batch. A finished state is returned unchanged.
        """
        if state.finished:
            return state

        end = min(state.next_index + self.config.batch_size, state.total)
        batch_matches = []
        for left in left_entries[state.next_index : end]:
            batch_matches.extend(self.score_entry(left, right_index))

        return self._advance(state, end, batch_matches)

    def _prepare(
        self, left_records: Sequence[Record], right_records: Sequence[Record]
    ) -> tuple[list[NormalizedEntry], EntryIndex]:
        logger.info(
            f"Starting match with {len(left_records)} left records "
            f"vs {len(right_records)} right records"
        )
        left_entries = self.prepare_entries(left_records, self.config.left_field)
        right_index = EntryIndex(self.prepare_entries(right_records, self.config.right_field))
        logger.info(f"Pre-processed: {len(left_entries)} left, {len(right_index)} right entries")
        return left_entries, right_index

    def sweep(
        self, left_records: Sequence[Record], right_records: Sequence[Record]
    ) -> Iterator[SweepState]:
        """Run the sweep lazily, yielding the state after every batch.

        The last yielded state is always finished. With no usable left
        entries, the initial (already finished) state is yielded once.
        """
        left_entries, right_index = self._prepare(left_records, right_records)
        state = self.start(left_entries)
        if state.finished:
            yield state
            return

        while not state.finished:
            state = self.process_batch(state, left_entries, right_index)
            yield state

    @staticmethod
    def progress_for(state: SweepState) -> MatchProgress:
        """Build the progress event for a sweep state.

        The percentage rounds halves up (1 of 8 rows is 13%) and is capped
        at 99 until the sweep is over.
        """
        if state.finished:
            percent = 100
        else:
            percent = min(math.floor(state.processed / state.total * 100 + 0.5), 99)

        return MatchProgress(
            percent=percent,
            processed=state.processed,
            total=state.total,
            matches_found=len(state.matches),
            early_exit=state.early_exit,
        )

    def _report(self, state: SweepState, on_progress: ProgressSink | None) -> None:
        progress = self.progress_for(state)
        if on_progress is not None:
            on_progress(progress)

        if progress.percent % _PROGRESS_LOG_STEP == 0:
            logger.info(f"Progress: {progress.percent}%, matches found: {progress.matches_found}")

    def _finish(self, state: SweepState, started: float) -> list[MatchResult]:
        ranked = rank_matches(state.matches, self.config.max_results)
        elapsed = time.perf_counter() - started
        logger.info(
            f"Matching complete in {elapsed:.2f}s: {len(state.matches)} matches found, "
            f"returning top {len(ranked)}"
        )
        return ranked

    def match(
        self,
        left_records: Sequence[Record],
        right_records: Sequence[Record],
        on_progress: ProgressSink | None = None,
    ) -> list[MatchResult]:
        """Match both catalogs synchronously.

        Args:
            left_records: Left catalog records
            right_records: Right catalog records
            on_progress: Optional sink receiving a MatchProgress after each batch

        Returns:
            Results ranked by descending score, at most ``max_results`` long.
        """
        started = time.perf_counter()
        state = None
        for state in self.sweep(left_records, right_records):
            self._report(state, on_progress)
        return self._finish(state, started)

    async def match_async(
        self,
        left_records: Sequence[Record],
        right_records: Sequence[Record],
        on_progress: ProgressSink | None = None,
    ) -> list[MatchResult]:
        """Match both catalogs, yielding to the event loop between batches.

        Args:
            left_records: Left catalog records
            right_records: Right catalog records
            on_progress: Optional sink receiving a MatchProgress after each batch

        Returns:
            Results ranked by descending score, at most ``max_results`` long.
        """
        started = time.perf_counter()
        state = None
        for state in self.sweep(left_records, right_records):
            self._report(state, on_progress)
            if not state.finished:
                await asyncio.sleep(0)
        return self._finish(state, started)

    def match_parallel(
        self,
        left_records: Sequence[Record],
        right_records: Sequence[Record],
        max_workers: int | None = None,
        on_progress: ProgressSink | None = None,
    ) -> list[MatchResult]:
        """Match both catalogs with batches scored in worker processes.

        Batch results are merged in batch order before the stopping policy
        runs, so the output equals the one of ``match``. Returned records are
        copies made by the worker processes.

        Args:
            left_records: Left catalog records
            right_records: Right catalog records
            max_workers: Maximum number of worker processes.
                         If None, defaults to number of CPU cores.
            on_progress: Optional sink receiving a MatchProgress after each batch

        Returns:
            Results ranked by descending score, at most ``max_results`` long.
        """
        started = time.perf_counter()
        left_entries, right_index = self._prepare(left_records, right_records)
        state = self.start(left_entries)

        if state.finished:
            self._report(state, on_progress)
            return self._finish(state, started)

        batch_size = self.config.batch_size
        batches = [
            left_entries[offset : offset + batch_size]
            for offset in range(0, len(left_entries), batch_size)
        ]

        executor = ProcessPoolExecutor(
            max_workers=max_workers,
            initializer=_init_worker,
            initargs=(self, right_index),
        )
        try:
            for batch, batch_matches in zip(batches, executor.map(_score_batch, batches)):
                state = self._advance(state, state.next_index + len(batch), batch_matches)
                self._report(state, on_progress)
                if state.finished:
                    break
        finally:
            executor.shutdown(wait=True, cancel_futures=True)

        return self._finish(state, started)


_worker_context: tuple[DescriptionMatcher, EntryIndex] | None = None


def _init_worker(matcher: DescriptionMatcher, right_index: EntryIndex) -> None:
    global _worker_context
    _worker_context = (matcher, right_index)


def _score_batch(batch: Sequence[NormalizedEntry]) -> list[MatchResult]:
    """Score one batch of left entries (helper for parallel processing)."""
    matcher, right_index = _worker_context
    batch_matches = []
    for left in batch:
        batch_matches.extend(matcher.score_entry(left, right_index))
    return batch_matches


def match_descriptions(
    left_records: Sequence[Record],
    right_records: Sequence[Record],
    min_threshold: float = MatchingDefaults.MIN_THRESHOLD,
    max_results: int = MatchingDefaults.MAX_RESULTS,
    left_field: str = MatchingDefaults.LEFT_FIELD,
    right_field: str = MatchingDefaults.RIGHT_FIELD,
) -> list[MatchResult]:
    """Score every left/right pair directly.

    No candidate filtering, no per-row break, no early exit and a single
    batch. Suitable for small inputs and as ground truth for the filtered path.
    """
    config = MatchConfig(
        left_field=left_field,
        right_field=right_field,
        min_threshold=min_threshold,
        max_results=max_results,
        batch_size=max(1, len(left_records)),
        filtering="none",
        near_perfect_score=None,
        early_exit_multiplier=None,
    )
    return DescriptionMatcher(config).match(left_records, right_records)


async def match_descriptions_async(
    left_records: Sequence[Record],
    right_records: Sequence[Record],
    min_threshold: float = MatchingDefaults.MIN_THRESHOLD,
    max_results: int = MatchingDefaults.MAX_RESULTS,
    on_progress: ProgressSink | None = None,
    left_field: str = MatchingDefaults.LEFT_FIELD,
    right_field: str = MatchingDefaults.RIGHT_FIELD,
    batch_size: int = MatchingDefaults.BATCH_SIZE,
) -> list[MatchResult]:
    """Match both catalogs with filtering, batching and early exits.

    The filter may prune pairs that ``match_descriptions`` would report.
    """
    config = MatchConfig(
        left_field=left_field,
        right_field=right_field,
        min_threshold=min_threshold,
        max_results=max_results,
        batch_size=batch_size,
    )
    return await DescriptionMatcher(config).match_async(left_records, right_records, on_progress)
