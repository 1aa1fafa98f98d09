"""Tests for the batched description matcher."""

import asyncio
import logging

import pytest

from catalog_match.analysis.matching import (
    DescriptionMatcher,
    MatchProgress,
    NeverStop,
    NoFilter,
    SweepState,
    match_descriptions,
    match_descriptions_async,
)
from catalog_match.analysis.matching.match_filters import EntryIndex
from catalog_match.core.config import MatchConfig

LEFT_FIELD = "Description"
RIGHT_FIELD = "LONG DESCRIPTION"


def left_rows(*texts):
    return [{"Item Code": f"IM-{i}", LEFT_FIELD: text} for i, text in enumerate(texts)]


def right_rows(*texts):
    return [{"NUPCO CODE": f"NP-{i}", RIGHT_FIELD: text} for i, text in enumerate(texts)]


class RecordingFilter:
    """NoFilter that remembers which right entries were handed out."""

    def __init__(self):
        self.yielded = []

    def select(self, left, index):
        for right in NoFilter().select(left, index):
            self.yielded.append(right.description)
            yield right


class StopAfterFirstBatch:
    """Stopping policy halting the sweep after any batch."""

    def should_stop(self, state, min_threshold, max_results):
        return True


@pytest.fixture
def medical_left():
    return left_rows(
        "Cotton Gauze Roll",
        "Surgical Gloves, Size-M",
        "Wound Dressing 10x10cm",
        "Plastic Syringe 10ml",
        "Elastic Bandage 10cm",
    )


@pytest.fixture
def medical_right():
    return right_rows(
        "cotton gauze roll, 4in",
        "surgical gloves size m sterile",
        "plastic syringe 10 ml luer lock",
        "adhesive wound dressing 10cm x 10cm",
        "elastic crepe bandage 10cm x 4.5m",
        "urine bag 2000ml",
    )


class TestPrepareEntries:
    """Test pre-processing of records."""

    def test_drops_unusable_rows(self, caplog):
        """Test that missing, blank and wordless descriptions are excluded."""
        records = [
            {LEFT_FIELD: "Cotton Gauze Roll"},
            {"Other": "no description"},
            {LEFT_FIELD: None},
            {LEFT_FIELD: "   "},
            {LEFT_FIELD: "!!!"},
            {LEFT_FIELD: "IV 5 ml"},
            {LEFT_FIELD: float("nan")},
            {LEFT_FIELD: "Wound Dressing"},
        ]
        caplog.set_level(logging.INFO)

        entries = DescriptionMatcher.prepare_entries(records, LEFT_FIELD)

        assert [entry.index for entry in entries] == [0, 7]
        assert entries[0].record is records[0]
        assert entries[0].description == "Cotton Gauze Roll"
        assert entries[0].normalized == "cotton gauze roll"
        assert entries[0].tokens == frozenset({"cotton", "gauze", "roll"})
        assert "kept 2 of 8 records (4 missing, 2 without usable words)" in caplog.text

    def test_numeric_descriptions(self):
        """Test that numeric cells are matched as text."""
        entries = DescriptionMatcher.prepare_entries([{LEFT_FIELD: 40101}], LEFT_FIELD)
        assert entries[0].description == "40101"
        assert entries[0].tokens == frozenset({"40101"})


class TestDirectMatching:
    """Test the unfiltered full sweep."""

    def test_gauze_pair_only(self):
        """Test that only the gauze pair clears a 50% threshold."""
        right = right_rows("cotton gauze roll, 4in", "plastic syringe 10ml")

        results = match_descriptions(left_rows("cotton gauze roll"), right, min_threshold=50)

        assert len(results) == 1
        assert results[0].right_record is right[0]
        assert results[0].left_description == "cotton gauze roll"
        assert results[0].right_description == "cotton gauze roll, 4in"
        assert results[0].score > 50
        assert results[0].score == 88.89

    def test_threshold_compares_rounded_score(self):
        """Test that the threshold sees the two-decimal score, not the raw one."""
        # Raw Dice is 88.888...%, reported as 88.89
        right = right_rows("cotton gauze roll, 4in")

        results = match_descriptions(left_rows("cotton gauze roll"), right, min_threshold=88.89)
        assert [result.score for result in results] == [88.89]

        assert match_descriptions(left_rows("cotton gauze roll"), right, min_threshold=88.9) == []

    def test_break_compares_rounded_score(self):
        """Test that the per-row break sees the two-decimal score."""
        config = MatchConfig(filtering="none", near_perfect_score=88.89, early_exit_multiplier=None)
        right = right_rows("cotton gauze roll, 4in", "cotton gauze roll, 4in")

        results = DescriptionMatcher(config).match(left_rows("cotton gauze roll"), right)

        assert len(results) == 1
        assert results[0].right_record is right[0]

    def test_scores_every_pair(self, medical_left, medical_right):
        """Test that a zero threshold reports every pair."""
        results = match_descriptions(medical_left, medical_right)
        assert len(results) == len(medical_left) * len(medical_right)

    def test_custom_fields(self):
        """Test that description field names are configurable."""
        results = match_descriptions(
            [{"name": "cotton gauze roll"}],
            [{"title": "cotton gauze roll"}],
            left_field="name",
            right_field="title",
        )
        assert [result.score for result in results] == [100.0]


class TestScoreEntry:
    """Test per-row scanning."""

    def test_near_perfect_match_stops_row_scan(self):
        """Test that later candidates are never evaluated after a near-perfect match."""
        recorder = RecordingFilter()
        matcher = DescriptionMatcher(MatchConfig(), candidate_filter=recorder)
        left = left_rows("sterile gauze swab 10cm")
        right = right_rows("sterile gauze swab 10cm", "sterile gauze swab 10cm pack of 100")

        results = matcher.match(left, right)

        assert [result.score for result in results] == [100.0]
        assert recorder.yielded == ["sterile gauze swab 10cm"]

    def test_break_after_lower_scores(self):
        """Test that candidates before the near-perfect one are kept."""
        matcher = DescriptionMatcher(MatchConfig(), candidate_filter=NoFilter())
        left = left_rows("sterile gauze swab 10cm")
        right = right_rows(
            "sterile gauze swab 10cm pack of 100",
            "sterile gauze swab 10cm",
            "sterile gauze swab 10 cm",
        )

        results = matcher.match(left, right)

        assert [result.right_description for result in results] == [
            "sterile gauze swab 10cm",
            "sterile gauze swab 10cm pack of 100",
        ]

    def test_break_disabled(self):
        """Test that every candidate is scored without the break."""
        matcher = DescriptionMatcher(MatchConfig(near_perfect_score=None), candidate_filter=NoFilter())
        left = left_rows("sterile gauze swab 10cm")
        right = right_rows("sterile gauze swab 10cm", "sterile gauze swab 10cm pack of 100")

        assert len(matcher.match(left, right)) == 2


class TestSweepState:
    """Test explicit batch transitions."""

    @pytest.fixture
    def matcher(self):
        return DescriptionMatcher(MatchConfig(batch_size=2, filtering="none"))

    def test_batch_transition(self, matcher, medical_left, medical_right):
        """Test that one batch advances by batch_size and accumulates matches."""
        left_entries = matcher.prepare_entries(medical_left, LEFT_FIELD)
        right_index = EntryIndex(matcher.prepare_entries(medical_right, RIGHT_FIELD))
        state = matcher.start(left_entries)

        next_state = matcher.process_batch(state, left_entries, right_index)

        assert state == SweepState(next_index=0, total=5)
        assert next_state.next_index == 2
        assert next_state.processed == 2
        assert len(next_state.matches) > 0
        assert not next_state.finished
        assert {match.left_description for match in next_state.matches} <= {
            "Cotton Gauze Roll",
            "Surgical Gloves, Size-M",
        }

    def test_finished_state_is_unchanged(self, matcher):
        """Test that a finished state is returned as is."""
        state = SweepState(next_index=3, total=3)
        assert matcher.process_batch(state, [], EntryIndex([])) is state

    def test_sweep_yields_after_each_batch(self, matcher, medical_left, medical_right):
        """Test the number of suspension points."""
        states = list(matcher.sweep(medical_left, medical_right))
        assert [state.next_index for state in states] == [2, 4, 5]
        assert states[-1].finished


class TestProgress:
    """Test progress events."""

    def test_progress_sequence(self, medical_left, medical_right):
        """Test one event per batch, ending at 100."""
        events: list[MatchProgress] = []
        matcher = DescriptionMatcher(MatchConfig(batch_size=2))

        matcher.match(medical_left, medical_right, on_progress=events.append)

        assert [event.percent for event in events] == [40, 80, 100]
        assert [event.processed for event in events] == [2, 4, 5]
        assert events[-1].done
        assert not events[0].done

    def test_progress_capped_until_done(self):
        """Test that 199 of 200 rows does not round up to 100."""
        left = left_rows(*(f"gauze item number {i:03d}" for i in range(200)))
        events: list[MatchProgress] = []
        matcher = DescriptionMatcher(MatchConfig(batch_size=199))

        matcher.match(left, [], on_progress=events.append)

        assert [event.percent for event in events] == [99, 100]

    @pytest.mark.parametrize("processed,total,percent", [(1, 8, 13), (3, 8, 38), (1, 3, 33)])
    def test_percent_rounds_half_up(self, processed, total, percent):
        """Test that exact halves round up."""
        state = SweepState(next_index=processed, total=total)
        assert DescriptionMatcher.progress_for(state).percent == percent

    def test_no_left_entries(self, medical_right):
        """Test a single completion event for an empty left side."""
        events: list[MatchProgress] = []
        results = DescriptionMatcher().match([], medical_right, on_progress=events.append)

        assert results == []
        assert [event.percent for event in events] == [100]


class TestEarlyExit:
    """Test the global early exit."""

    @pytest.fixture
    def identical_catalogs(self):
        texts = [
            "cotton gauze roll 4in",
            "surgical gloves size m",
            "plastic syringe 10ml",
            "urine drainage bag 2000ml",
            "elastic crepe bandage",
        ]
        return left_rows(*texts), right_rows(*texts)

    def test_stops_after_enough_confident_matches(self, identical_catalogs):
        """Test exit once matches reach 3 x max_results with a 70% threshold."""
        left, right = identical_catalogs
        events: list[MatchProgress] = []
        matcher = DescriptionMatcher(MatchConfig(min_threshold=70, max_results=1, batch_size=1))

        states = list(matcher.sweep(left, right))
        results = matcher.match(left, right, on_progress=events.append)

        assert states[-1].early_exit
        assert states[-1].next_index == 3
        assert len(results) == 1
        assert [event.percent for event in events] == [20, 40, 100]
        assert events[-1].early_exit

    def test_low_threshold_runs_to_completion(self, identical_catalogs):
        """Test that thresholds below 70 never exit early."""
        left, right = identical_catalogs
        matcher = DescriptionMatcher(MatchConfig(min_threshold=50, max_results=1, batch_size=1))

        states = list(matcher.sweep(left, right))

        assert not states[-1].early_exit
        assert states[-1].next_index == 5

    def test_injected_policy(self, medical_left, medical_right):
        """Test that a custom stopping policy is honoured."""
        matcher = DescriptionMatcher(
            MatchConfig(batch_size=2), stopping_policy=StopAfterFirstBatch()
        )
        states = list(matcher.sweep(medical_left, medical_right))
        assert len(states) == 1
        assert states[0].early_exit

    def test_never_stop_from_config(self):
        """Test that a disabled multiplier builds NeverStop."""
        matcher = DescriptionMatcher(MatchConfig(early_exit_multiplier=None))
        assert isinstance(matcher.stopping_policy, NeverStop)


class TestAsyncMatching:
    """Test the cooperative entry point."""

    def test_same_results_as_sync(self, medical_left, medical_right):
        """Test that both drivers agree."""
        matcher = DescriptionMatcher(MatchConfig(batch_size=2, min_threshold=30))
        sync_results = matcher.match(medical_left, medical_right)
        async_results = asyncio.run(matcher.match_async(medical_left, medical_right))
        assert async_results == sync_results

    def test_yields_between_batches(self, medical_left, medical_right):
        """Test that other tasks run while the sweep is in progress."""
        matcher = DescriptionMatcher(MatchConfig(batch_size=1))
        events: list[MatchProgress] = []
        observed: list[int] = []

        async def ticker():
            for _ in range(20):
                observed.append(len(events))
                await asyncio.sleep(0)

        async def run():
            task = asyncio.create_task(ticker())
            await matcher.match_async(medical_left, medical_right, events.append)
            await task

        asyncio.run(run())

        assert any(0 < seen < len(medical_left) for seen in observed)

    def test_filter_prunes_pairs_found_by_direct_sweep(self):
        """Test the accepted divergence between filtered and unfiltered paths."""
        left = left_rows("surgical gloves")
        right = right_rows("surgicalgloves")

        direct = match_descriptions(left, right, min_threshold=80)
        filtered = asyncio.run(match_descriptions_async(left, right, min_threshold=80))

        assert [result.score for result in direct] == [88.89]
        assert filtered == []

    def test_filtered_results_are_subset(self, medical_left, medical_right):
        """Test that the filtered path reports the same scores for what it finds."""
        direct = match_descriptions(medical_left, medical_right, min_threshold=40)
        filtered = asyncio.run(
            match_descriptions_async(medical_left, medical_right, min_threshold=40)
        )

        direct_keys = {(r.left_description, r.right_description, r.score) for r in direct}
        filtered_keys = {(r.left_description, r.right_description, r.score) for r in filtered}
        assert filtered
        assert filtered_keys <= direct_keys


class TestParallelMatching:
    """Test the process pool driver."""

    def test_same_results_as_sync(self, medical_left, medical_right):
        """Test that merged batch results equal the sequential ones."""
        matcher = DescriptionMatcher(MatchConfig(batch_size=2, min_threshold=20))
        events: list[MatchProgress] = []

        sequential = matcher.match(medical_left, medical_right)
        parallel = matcher.match_parallel(
            medical_left, medical_right, max_workers=2, on_progress=events.append
        )

        assert [(r.left_description, r.right_description, r.score) for r in parallel] == [
            (r.left_description, r.right_description, r.score) for r in sequential
        ]
        assert [event.percent for event in events] == [40, 80, 100]

    def test_no_left_entries(self, medical_right):
        """Test the empty case without starting workers."""
        assert DescriptionMatcher().match_parallel([], medical_right) == []
