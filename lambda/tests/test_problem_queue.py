"""
Unit tests for the adaptive problem queue.
"""

import json
import random
from datetime import datetime, timedelta

import pytest

from blockymath.problem_queue import (
    MASTERY_THRESHOLD,
    MISSED_MASTERY_THRESHOLD,
    EntryState,
    InvalidInputError,
    NoActiveProblemError,
    ProblemQueueManager,
    ProblemSpec,
    QueueConfig,
    SessionNotCompleteError,
    SessionState,
    answers_match,
    replay_session,
)


class FakeClock:
    """Clock that advances one second per call."""

    def __init__(self, start: datetime = datetime(2025, 1, 1, 9, 0, 0)):
        self.now = start

    def __call__(self) -> datetime:
        current = self.now
        self.now += timedelta(seconds=1)
        return current


class RecordingOffsets:
    """Offset generator that always returns the same offset and records its calls."""

    def __init__(self, offset: int):
        self.offset = offset
        self.calls: list[tuple[int, int]] = []

    def __call__(self, low: int, high: int) -> int:
        self.calls.append((low, high))
        return self.offset


def make_spec(problem_id: str, answer=5, choices=()) -> ProblemSpec:
    return ProblemSpec(
        id=problem_id, question=f"Question {problem_id}", answer=answer, choices=choices
    )


def queue_ids(state: SessionState) -> list[str]:
    return [entry.problem_id for entry in state.queue]


@pytest.fixture
def manager():
    """Manager with a fixed clock and a fixed reinsertion offset of 4."""
    return ProblemQueueManager(clock=FakeClock(), rng=RecordingOffsets(4))


class TestAnswersMatch:
    """Tests for answer comparison."""

    def test_equal_numbers_match(self):
        assert answers_match(5, 5) is True

    def test_int_and_float_compare_numerically(self):
        assert answers_match(5.0, 5) is True

    def test_different_numbers_do_not_match(self):
        assert answers_match(4, 5) is False

    def test_string_does_not_match_number(self):
        """There is no coercion between strings and numbers."""
        assert answers_match("5", 5) is False
        assert answers_match(5, "5") is False

    def test_strings_match_exactly(self):
        assert answers_match("1/2", "1/2") is True
        assert answers_match("1/2 ", "1/2") is False

    def test_booleans_never_match(self):
        assert answers_match(True, 1) is False


class TestQueueConfig:
    """Tests for the queue configuration."""

    def test_defaults(self):
        config = QueueConfig()

        assert config.mastery_threshold == 2
        assert config.missed_mastery_threshold == 3
        assert config.min_reinsert_offset == 2
        assert config.max_reinsert_offset == 6

    def test_rejects_zero_threshold(self):
        with pytest.raises(ValueError):
            QueueConfig(mastery_threshold=0)

    def test_rejects_missed_threshold_below_threshold(self):
        with pytest.raises(ValueError):
            QueueConfig(mastery_threshold=3, missed_mastery_threshold=2)

    def test_rejects_inverted_offset_window(self):
        with pytest.raises(ValueError):
            QueueConfig(min_reinsert_offset=5, max_reinsert_offset=3)

    def test_rejects_zero_offset(self):
        with pytest.raises(ValueError):
            QueueConfig(min_reinsert_offset=0)


class TestInitialize:
    """Tests for creating a session."""

    def test_creates_one_entry_per_spec_in_order(self, manager):
        specs = [make_spec("a"), make_spec("b"), make_spec("c")]

        state = manager.initialize(specs)

        assert queue_ids(state) == ["a", "b", "c"]
        assert [entry.spec for entry in state.entries] == specs

    def test_entries_start_fresh(self, manager):
        state = manager.initialize([make_spec("a")])
        entry = state.entries[0]

        assert entry.correct_streak == 0
        assert entry.mistake_count == 0
        assert entry.history == []
        assert entry.mastery_threshold == MASTERY_THRESHOLD
        assert entry.mastered is False
        assert entry.state == EntryState.FRESH

    def test_session_starts_incomplete(self, manager):
        state = manager.initialize([make_spec("a")])

        assert state.session_complete is False
        assert state.mistakes_log == []
        assert state.score == 0
        assert state.structure_blocks_awarded == 0

    def test_empty_list_raises_invalid_input(self, manager):
        with pytest.raises(InvalidInputError):
            manager.initialize([])

    def test_duplicate_ids_raise_invalid_input(self, manager):
        with pytest.raises(InvalidInputError, match="Duplicate"):
            manager.initialize([make_spec("a"), make_spec("b"), make_spec("a")])

    def test_invalid_input_is_a_value_error(self, manager):
        with pytest.raises(ValueError):
            manager.initialize([])


class TestCurrentProblem:
    """Tests for reading the current problem."""

    def test_returns_front_of_queue(self, manager):
        spec = make_spec("a", answer=5, choices=(5, 3, 7))
        state = manager.initialize([spec])

        assert manager.current_problem(state) == spec

    def test_does_not_change_state(self, manager):
        state = manager.initialize([make_spec("a"), make_spec("b")])

        manager.current_problem(state)
        manager.current_problem(state)

        assert queue_ids(state) == ["a", "b"]
        assert state.entries[0].history == []

    def test_returns_none_when_complete(self, manager):
        state = manager.initialize([make_spec("a", answer=5)])
        manager.submit_answer(state, 5)
        manager.submit_answer(state, 5)

        assert manager.current_problem(state) is None


class TestSubmitAnswerCorrect:
    """Tests for correct answers."""

    def test_single_problem_mastered_after_two_correct(self, manager):
        """A never-missed problem needs two correct answers in a row."""
        state = manager.initialize([make_spec("a", answer=5, choices=(5, 3, 7))])

        result = manager.submit_answer(state, 5)
        entry = state.get_entry("a")

        assert result.correct is True
        assert result.state is state
        assert entry.correct_streak == 1
        assert entry.mastery_threshold == 2
        assert entry.mastered is False
        assert queue_ids(state) == ["a"]
        assert state.session_complete is False

        result = manager.submit_answer(state, 5)

        assert result.correct is True
        assert entry.correct_streak == 2
        assert entry.mastered is True
        assert state.queue == []
        assert state.session_complete is True

    def test_correct_but_not_mastered_goes_to_end(self, manager):
        state = manager.initialize([make_spec("a"), make_spec("b"), make_spec("c")])

        manager.submit_answer(state, 5)

        assert queue_ids(state) == ["b", "c", "a"]

    def test_correct_answer_does_not_use_random_offset(self):
        offsets = RecordingOffsets(4)
        manager = ProblemQueueManager(clock=FakeClock(), rng=offsets)
        state = manager.initialize([make_spec("a"), make_spec("b")])

        manager.submit_answer(state, 5)

        assert offsets.calls == []

    def test_mastered_problem_leaves_queue(self, manager):
        state = manager.initialize([make_spec("a"), make_spec("b")])

        manager.submit_answer(state, 5)  # a: streak 1
        manager.submit_answer(state, 5)  # b: streak 1
        manager.submit_answer(state, 5)  # a: mastered

        assert queue_ids(state) == ["b"]
        assert state.get_entry("a").state == EntryState.MASTERED
        assert state.session_complete is False

    def test_cycling_state_after_first_correct(self, manager):
        state = manager.initialize([make_spec("a"), make_spec("b")])

        manager.submit_answer(state, 5)

        assert state.get_entry("a").state == EntryState.CYCLING


class TestSubmitAnswerIncorrect:
    """Tests for incorrect answers."""

    def test_miss_raises_threshold_and_logs_mistake(self, manager):
        state = manager.initialize([make_spec("a", answer=5), make_spec("b", answer=10)])

        result = manager.submit_answer(state, 3)
        entry = state.get_entry("a")

        assert result.correct is False
        assert entry.mistake_count == 1
        assert entry.correct_streak == 0
        assert entry.mastery_threshold == MISSED_MASTERY_THRESHOLD
        assert state.mistakes_log == [entry]
        assert entry.state == EntryState.MISSED

    def test_miss_reinsert_clamped_to_end_of_short_queue(self, manager):
        """Offset 4 with one remaining problem appends at the end."""
        state = manager.initialize([make_spec("a", answer=5), make_spec("b", answer=10)])

        manager.submit_answer(state, 3)

        assert queue_ids(state) == ["b", "a"]

    def test_correct_after_miss_of_other_problem(self, manager):
        state = manager.initialize([make_spec("a", answer=5), make_spec("b", answer=10)])
        manager.submit_answer(state, 3)

        result = manager.submit_answer(state, 10)
        entry_b = state.get_entry("b")

        assert result.correct is True
        assert entry_b.correct_streak == 1
        assert entry_b.mastery_threshold == 2
        assert entry_b.mastered is False
        assert queue_ids(state) == ["a", "b"]

    @pytest.mark.parametrize(
        "offset, expected",
        [
            (2, ["b", "c", "a", "d", "e", "f", "g"]),
            (4, ["b", "c", "d", "e", "a", "f", "g"]),
            (6, ["b", "c", "d", "e", "f", "g", "a"]),
        ],
    )
    def test_miss_reinserted_offset_positions_ahead(self, offset, expected):
        manager = ProblemQueueManager(clock=FakeClock(), rng=RecordingOffsets(offset))
        state = manager.initialize([make_spec(problem_id) for problem_id in "abcdefg"])

        manager.submit_answer(state, 0)

        assert queue_ids(state) == expected

    def test_offset_requested_from_inclusive_window(self):
        offsets = RecordingOffsets(3)
        manager = ProblemQueueManager(clock=FakeClock(), rng=offsets)
        state = manager.initialize([make_spec("a"), make_spec("b")])

        manager.submit_answer(state, 0)

        assert offsets.calls == [(2, 6)]

    def test_default_random_offset_stays_in_window(self):
        """With the real random source, a missed problem returns 2-6 positions later."""
        manager = ProblemQueueManager(clock=FakeClock())

        for _ in range(50):
            state = manager.initialize([make_spec(str(i)) for i in range(10)])
            manager.submit_answer(state, 0)
            position = queue_ids(state).index("0")
            assert 2 <= position <= 6

    def test_single_problem_miss_stays_in_queue(self, manager):
        state = manager.initialize([make_spec("a", answer=5)])

        manager.submit_answer(state, 4)

        assert queue_ids(state) == ["a"]
        assert state.session_complete is False

    def test_missed_problem_needs_three_correct(self, manager):
        """After a miss, mastery comes on the third consecutive correct answer, not the second."""
        state = manager.initialize([make_spec("a", answer=5)])
        entry = state.get_entry("a")
        manager.submit_answer(state, 4)

        manager.submit_answer(state, 5)
        manager.submit_answer(state, 5)

        assert entry.correct_streak == 2
        assert entry.mastered is False
        assert entry.state == EntryState.MISSED

        manager.submit_answer(state, 5)

        assert entry.mastered is True
        assert state.session_complete is True

    def test_miss_resets_streak(self, manager):
        state = manager.initialize([make_spec("a", answer=5)])
        entry = state.get_entry("a")
        manager.submit_answer(state, 4)
        manager.submit_answer(state, 5)
        manager.submit_answer(state, 5)

        manager.submit_answer(state, 4)

        assert entry.correct_streak == 0
        assert entry.mistake_count == 2

    def test_mistakes_log_contains_problem_once(self, manager):
        state = manager.initialize([make_spec("a", answer=5)])

        manager.submit_answer(state, 1)
        manager.submit_answer(state, 2)
        manager.submit_answer(state, 3)

        assert [entry.problem_id for entry in state.mistakes_log] == ["a"]
        assert state.get_entry("a").mistake_count == 3

    def test_mistakes_log_keeps_first_miss_order(self):
        manager = ProblemQueueManager(clock=FakeClock(), rng=RecordingOffsets(6))
        state = manager.initialize([make_spec("a"), make_spec("b"), make_spec("c")])

        manager.submit_answer(state, 0)  # miss a -> [b, c, a]
        manager.submit_answer(state, 0)  # miss b -> [c, a, b]
        manager.submit_answer(state, 0)  # miss c -> [a, b, c]
        manager.submit_answer(state, 0)  # miss a again

        assert [entry.problem_id for entry in state.mistakes_log] == ["a", "b", "c"]

    def test_string_answer_is_not_coerced(self, manager):
        state = manager.initialize([make_spec("a", answer=5)])

        result = manager.submit_answer(state, "5")

        assert result.correct is False


class TestSubmitAnswerErrors:
    """Tests for answering without an active problem."""

    def test_raises_no_active_problem_on_empty_queue(self, manager):
        state = manager.initialize([make_spec("a", answer=5)])
        manager.submit_answer(state, 5)
        manager.submit_answer(state, 5)

        with pytest.raises(NoActiveProblemError):
            manager.submit_answer(state, 5)

    def test_raises_on_empty_state(self, manager):
        with pytest.raises(NoActiveProblemError):
            manager.submit_answer(SessionState(), 5)


class TestHistory:
    """Tests for the attempt history."""

    def test_history_records_answer_correctness_and_time(self):
        clock = FakeClock(datetime(2025, 3, 1, 12, 0, 0))
        manager = ProblemQueueManager(clock=clock, rng=RecordingOffsets(4))
        state = manager.initialize([make_spec("a", answer=5)])

        manager.submit_answer(state, 4)
        manager.submit_answer(state, 5)

        history = state.get_entry("a").history
        assert [(record.answer, record.correct) for record in history] == [(4, False), (5, True)]
        assert history[0].timestamp == datetime(2025, 3, 1, 12, 0, 0)
        assert history[1].timestamp == datetime(2025, 3, 1, 12, 0, 1)

    def test_attempt_log_is_in_submission_order(self, manager):
        state = manager.initialize([make_spec("a", answer=5), make_spec("b", answer=10)])

        manager.submit_answer(state, 3)  # a wrong -> [b, a]
        manager.submit_answer(state, 10)  # b right -> [a, b]
        manager.submit_answer(state, 5)  # a right

        log = state.attempt_log()

        assert [(item.problem_id, item.answer, item.correct) for item in log] == [
            ("a", 3, False),
            ("b", 10, True),
            ("a", 5, True),
        ]
        assert state.total_attempts == 3


class TestInvariants:
    """Property checks over a long randomized session."""

    def _play(self, seed: int):
        player = random.Random(seed)
        clock = FakeClock()
        manager = ProblemQueueManager(clock=clock, rng=random.Random(seed + 1000).randint)
        specs = [make_spec(f"p{i}", answer=i) for i in range(8)]
        state = manager.initialize(specs)

        front_counts = {spec.id: 0 for spec in specs}
        previous = {entry.problem_id: (0, MASTERY_THRESHOLD) for entry in state.entries}

        for _ in range(1000):
            problem = manager.current_problem(state)
            if problem is None:
                break
            front_counts[problem.id] += 1
            answer = problem.answer if player.random() < 0.7 else -1
            manager.submit_answer(state, answer)

            for entry in state.entries:
                mistakes, threshold = previous[entry.problem_id]
                assert entry.mistake_count >= mistakes
                if threshold == MISSED_MASTERY_THRESHOLD:
                    assert entry.mastery_threshold == MISSED_MASTERY_THRESHOLD
                previous[entry.problem_id] = (entry.mistake_count, entry.mastery_threshold)

        return manager, state, front_counts

    @pytest.mark.parametrize("seed", [1, 2, 3, 4, 5])
    def test_session_completes_with_all_problems_mastered(self, seed):
        _, state, _ = self._play(seed)

        assert state.session_complete is True
        assert all(entry.mastered for entry in state.entries)

    @pytest.mark.parametrize("seed", [1, 2, 3])
    def test_history_length_matches_times_at_front(self, seed):
        _, state, front_counts = self._play(seed)

        for entry in state.entries:
            assert len(entry.history) == front_counts[entry.problem_id]

    @pytest.mark.parametrize("seed", [1, 2, 3])
    def test_mistakes_log_matches_missed_problems(self, seed):
        _, state, _ = self._play(seed)

        logged = [entry.problem_id for entry in state.mistakes_log]
        missed = {entry.problem_id for entry in state.entries if entry.mistake_count > 0}

        assert len(logged) == len(set(logged))
        assert set(logged) == missed

    @pytest.mark.parametrize("seed", [1, 2, 3])
    def test_missed_problems_end_on_three_correct(self, seed):
        _, state, _ = self._play(seed)

        for entry in state.entries:
            required = MISSED_MASTERY_THRESHOLD if entry.mistake_count else MASTERY_THRESHOLD
            assert [record.correct for record in entry.history[-required:]] == [True] * required


class TestBuildSessionSummary:
    """Tests for the end-of-session report."""

    def test_raises_before_session_complete(self, manager):
        state = manager.initialize([make_spec("a", answer=5)])

        with pytest.raises(SessionNotCompleteError):
            manager.build_session_summary(state)

    def test_perfect_session(self, manager):
        state = manager.initialize([make_spec("a", answer=5), make_spec("b", answer=10)])
        for answer in (5, 10, 5, 10):
            manager.submit_answer(state, answer)

        summary = manager.build_session_summary(state)

        assert summary.perfect is True
        assert summary.mistakes == ()
        assert summary.problem_count == 2
        assert summary.total_attempts == 4

    def test_summary_lists_missed_problems(self, manager):
        state = manager.initialize([make_spec("a", answer=5), make_spec("b", answer=10)])
        # a wrong -> [b, a]; b right -> [a, b]; a right x3 with b in between
        for answer in (3, 10, 5, 10, 5, 5):
            manager.submit_answer(state, answer)

        summary = manager.build_session_summary(state)

        assert summary.perfect is False
        assert len(summary.mistakes) == 1
        mistake = summary.mistakes[0]
        assert mistake.problem_id == "a"
        assert mistake.question == "Question a"
        assert mistake.correct_answer == 5
        assert mistake.mistake_count == 1
        assert [record.answer for record in mistake.history] == [3, 5, 5, 5]

    def test_summary_is_idempotent(self, manager):
        state = manager.initialize([make_spec("a", answer=5)])
        for answer in (1, 5, 5, 5):
            manager.submit_answer(state, answer)

        first = manager.build_session_summary(state)
        second = manager.build_session_summary(state)

        assert first == second

    def test_summary_is_a_snapshot(self, manager):
        state = manager.initialize([make_spec("a", answer=5)])
        for answer in (1, 5, 5, 5):
            manager.submit_answer(state, answer)

        summary = manager.build_session_summary(state)
        state.get_entry("a").history.clear()

        assert len(summary.mistakes[0].history) == 4

    def test_summary_includes_award_counters(self, manager):
        state = manager.initialize([make_spec("a", answer=5)])
        manager.submit_answer(state, 5)
        manager.submit_answer(state, 5)
        state.score = 2
        state.structure_blocks_awarded = 2

        summary = manager.build_session_summary(state)

        assert summary.score == 2
        assert summary.structure_blocks_awarded == 2


class TestCustomConfig:
    """Tests for non-default thresholds and windows."""

    def test_threshold_of_one_masters_immediately(self):
        config = QueueConfig(mastery_threshold=1, missed_mastery_threshold=2)
        manager = ProblemQueueManager(config=config, clock=FakeClock(), rng=RecordingOffsets(2))
        state = manager.initialize([make_spec("a", answer=5)])

        manager.submit_answer(state, 5)

        assert state.session_complete is True

    def test_custom_window_passed_to_random_source(self):
        offsets = RecordingOffsets(1)
        config = QueueConfig(min_reinsert_offset=1, max_reinsert_offset=3)
        manager = ProblemQueueManager(config=config, clock=FakeClock(), rng=offsets)
        state = manager.initialize([make_spec("a"), make_spec("b"), make_spec("c")])

        manager.submit_answer(state, 0)

        assert offsets.calls == [(1, 3)]
        assert queue_ids(state) == ["b", "a", "c"]


class TestSerialization:
    """Tests for storing a session between requests."""

    def _played_state(self, manager):
        state = manager.initialize(
            [make_spec("a", answer=5, choices=(5, 3, 7)), make_spec("b", answer=10)]
        )
        manager.submit_answer(state, 3)
        manager.submit_answer(state, 10)
        state.score = 1
        return state

    def test_round_trip_preserves_state(self, manager):
        state = self._played_state(manager)

        restored = SessionState.from_dict(json.loads(json.dumps(state.to_dict())))

        assert queue_ids(restored) == queue_ids(state)
        assert [entry.problem_id for entry in restored.mistakes_log] == ["a"]
        assert restored.total_attempts == 2
        assert restored.score == 1
        assert restored.get_entry("a").spec.choices == (5, 3, 7)
        assert restored.get_entry("a").history == state.get_entry("a").history
        assert restored.get_entry("a").mastery_threshold == 3

    def test_round_trip_shares_entries(self, manager):
        state = self._played_state(manager)

        restored = SessionState.from_dict(state.to_dict())

        assert restored.queue[0] is restored.get_entry("a")
        assert restored.mistakes_log[0] is restored.get_entry("a")

    def test_restored_session_continues(self, manager):
        state = self._played_state(manager)
        restored = SessionState.from_dict(state.to_dict())

        for answer in (5, 10, 5, 5):
            manager.submit_answer(restored, answer)

        assert restored.session_complete is True

    def test_unknown_queue_reference_raises(self):
        with pytest.raises(InvalidInputError):
            SessionState.from_dict({"entries": [], "queue": ["missing"]})


class TestReplay:
    """Tests for replaying a recorded session."""

    def test_replay_reproduces_mistakes_and_mastery(self):
        specs = [make_spec(f"p{i}", answer=i) for i in range(6)]
        player = random.Random(42)
        manager = ProblemQueueManager(clock=FakeClock(), rng=random.Random(7).randint)
        state = manager.initialize(specs)

        while manager.current_problem(state) is not None:
            problem = manager.current_problem(state)
            manager.submit_answer(state, problem.answer if player.random() < 0.6 else -1)

        replayed = replay_session(specs, state.attempt_log(), rng=random.Random(7).randint)

        assert replayed.session_complete is True
        assert [entry.problem_id for entry in replayed.mistakes_log] == [
            entry.problem_id for entry in state.mistakes_log
        ]
        for entry in state.entries:
            other = replayed.get_entry(entry.problem_id)
            assert other.mastered == entry.mastered
            assert other.mistake_count == entry.mistake_count
            assert other.mastery_threshold == entry.mastery_threshold
            assert [r.answer for r in other.history] == [r.answer for r in entry.history]

    def test_replay_rejects_attempt_for_wrong_problem(self):
        specs = [make_spec("a"), make_spec("b")]

        with pytest.raises(InvalidInputError, match="diverged"):
            replay_session(specs, [("b", 5)], rng=RecordingOffsets(4))
