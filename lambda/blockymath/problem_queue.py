"""
Adaptive problem queue for Blocky Math Champ.

This module decides which problem the player sees next and when a problem
counts as learned. Every problem of a session sits in one queue:

- Correct answer, streak below threshold: problem goes to the end of the queue
- Correct answer, streak reaches threshold: problem is mastered and leaves the queue
- Wrong answer: streak resets, threshold rises to 3 for good, and the problem
  comes back 2-6 positions later (spaced repetition)

The session is complete once the queue is empty. Problems missed at least
once are collected in the mistakes log for the end-of-session review.
"""

import logging
import random
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import NamedTuple

logger = logging.getLogger(__name__)

# Consecutive correct answers needed for mastery
MASTERY_THRESHOLD = 2
MISSED_MASTERY_THRESHOLD = 3  # After the first mistake

# Reinsertion window for missed problems (positions after the front, inclusive)
MIN_REINSERT_OFFSET = 2
MAX_REINSERT_OFFSET = 6

Answer = int | float | str
Clock = Callable[[], datetime]
OffsetGenerator = Callable[[int, int], int]


class ProblemQueueError(Exception):
    """Base class for problem queue contract violations."""


class InvalidInputError(ProblemQueueError, ValueError):
    """Raised when a session is created from an empty or inconsistent problem list."""


class NoActiveProblemError(ProblemQueueError, RuntimeError):
    """Raised when an answer is submitted but no problem is waiting."""


class SessionNotCompleteError(ProblemQueueError, RuntimeError):
    """Raised when the session summary is requested before every problem is mastered."""


class EntryState(Enum):
    """Learning state of a single problem within a session."""

    FRESH = "fresh"
    CYCLING = "cycling"
    MISSED = "missed"
    MASTERED = "mastered"


def answers_match(given: Answer, expected: Answer) -> bool:
    """
    Compare a player's answer with the canonical answer.

    Numbers compare numerically, strings compare exactly. There is no
    coercion between the two: "5" never matches 5.
    """
    if isinstance(given, bool) or isinstance(expected, bool):
        return False
    if isinstance(given, str) or isinstance(expected, str):
        return isinstance(given, str) and isinstance(expected, str) and given == expected
    return given == expected


@dataclass(frozen=True)
class QueueConfig:
    """Tunable mastery thresholds and reinsertion window."""

    mastery_threshold: int = MASTERY_THRESHOLD
    missed_mastery_threshold: int = MISSED_MASTERY_THRESHOLD
    min_reinsert_offset: int = MIN_REINSERT_OFFSET
    max_reinsert_offset: int = MAX_REINSERT_OFFSET

    def __post_init__(self):
        if self.mastery_threshold < 1:
            raise ValueError(f"mastery_threshold must be at least 1, got {self.mastery_threshold}")
        if self.missed_mastery_threshold < self.mastery_threshold:
            raise ValueError(
                "missed_mastery_threshold must not be lower than mastery_threshold "
                f"({self.missed_mastery_threshold} < {self.mastery_threshold})"
            )
        if self.min_reinsert_offset < 1:
            raise ValueError(
                f"min_reinsert_offset must be at least 1, got {self.min_reinsert_offset}"
            )
        if self.max_reinsert_offset < self.min_reinsert_offset:
            raise ValueError(
                "max_reinsert_offset must not be lower than min_reinsert_offset "
                f"({self.max_reinsert_offset} < {self.min_reinsert_offset})"
            )


@dataclass(frozen=True)
class ProblemSpec:
    """A single problem as produced by the problem generator."""

    id: str
    question: str
    answer: Answer
    choices: tuple[Answer, ...] = ()

    def to_dict(self) -> dict:
        """Convert to dictionary for session storage."""
        return {
            "id": self.id,
            "question": self.question,
            "answer": self.answer,
            "choices": list(self.choices),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ProblemSpec":
        """Create from dictionary (from session storage)."""
        return cls(
            id=data["id"],
            question=data["question"],
            answer=data["answer"],
            choices=tuple(data.get("choices", [])),
        )


@dataclass(frozen=True)
class AttemptRecord:
    """One submitted answer for a problem."""

    answer: Answer
    correct: bool
    timestamp: datetime
    attempt_number: int = 0  # Position of this attempt within the whole session

    def to_dict(self) -> dict:
        return {
            "answer": self.answer,
            "correct": self.correct,
            "timestamp": self.timestamp.isoformat(),
            "attempt_number": self.attempt_number,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AttemptRecord":
        return cls(
            answer=data["answer"],
            correct=data["correct"],
            timestamp=datetime.fromisoformat(data["timestamp"]),
            attempt_number=int(data.get("attempt_number", 0)),
        )


@dataclass
class ProblemQueueEntry:
    """
    Mastery tracking for one problem during a session.

    Entries are created once per session and move through the queue;
    they are never cloned or recreated mid-session.
    """

    spec: ProblemSpec
    correct_streak: int = 0
    mistake_count: int = 0
    history: list[AttemptRecord] = field(default_factory=list)
    mastery_threshold: int = MASTERY_THRESHOLD
    mastered: bool = False

    @property
    def problem_id(self) -> str:
        return self.spec.id

    @property
    def state(self) -> EntryState:
        """Current position in the Fresh/Cycling/Missed/Mastered state machine."""
        if self.mastered:
            return EntryState.MASTERED
        if self.mistake_count > 0:
            return EntryState.MISSED
        if not self.history:
            return EntryState.FRESH
        return EntryState.CYCLING

    def to_dict(self) -> dict:
        return {
            "spec": self.spec.to_dict(),
            "correct_streak": self.correct_streak,
            "mistake_count": self.mistake_count,
            "history": [record.to_dict() for record in self.history],
            "mastery_threshold": self.mastery_threshold,
            "mastered": self.mastered,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ProblemQueueEntry":
        return cls(
            spec=ProblemSpec.from_dict(data["spec"]),
            correct_streak=data.get("correct_streak", 0),
            mistake_count=int(data.get("mistake_count", 0)),
            history=[AttemptRecord.from_dict(record) for record in data.get("history", [])],
            mastery_threshold=data.get("mastery_threshold", MASTERY_THRESHOLD),
            mastered=data.get("mastered", False),
        )


class LoggedAttempt(NamedTuple):
    """A submitted answer together with the problem it was given for."""

    problem_id: str
    answer: Answer
    correct: bool
    timestamp: datetime


@dataclass
class SessionState:
    """
    All state of one play session.

    The queue and the mistakes log hold references to the entries in
    ``entries``; index 0 of the queue is the current problem.
    """

    entries: list[ProblemQueueEntry] = field(default_factory=list)
    queue: list[ProblemQueueEntry] = field(default_factory=list)
    mistakes_log: list[ProblemQueueEntry] = field(default_factory=list)
    session_complete: bool = False
    total_attempts: int = 0
    score: int = 0
    structure_blocks_awarded: int = 0

    def get_entry(self, problem_id: str) -> ProblemQueueEntry:
        """Look up the entry for a problem id."""
        for entry in self.entries:
            if entry.problem_id == problem_id:
                return entry
        raise KeyError(problem_id)

    @property
    def mastered_count(self) -> int:
        return sum(1 for entry in self.entries if entry.mastered)

    def attempt_log(self) -> list[LoggedAttempt]:
        """
        Combine the histories of all entries in submission order.

        Returns:
            List of LoggedAttempt tuples, oldest first.
        """
        attempts = [
            (record.attempt_number, entry.problem_id, record)
            for entry in self.entries
            for record in entry.history
        ]
        attempts.sort(key=lambda item: item[0])
        return [
            LoggedAttempt(problem_id, record.answer, record.correct, record.timestamp)
            for _, problem_id, record in attempts
        ]

    def to_dict(self) -> dict:
        """Convert to dictionary for session storage."""
        return {
            "entries": [entry.to_dict() for entry in self.entries],
            "queue": [entry.problem_id for entry in self.queue],
            "mistakes_log": [entry.problem_id for entry in self.mistakes_log],
            "session_complete": self.session_complete,
            "total_attempts": self.total_attempts,
            "score": self.score,
            "structure_blocks_awarded": self.structure_blocks_awarded,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SessionState":
        """
        Create from dictionary (from session storage).

        Queue and mistakes log are stored as problem ids and resolved back
        to the shared entry objects.
        """
        entries = [ProblemQueueEntry.from_dict(entry) for entry in data.get("entries", [])]
        by_id = {entry.problem_id: entry for entry in entries}

        try:
            queue = [by_id[problem_id] for problem_id in data.get("queue", [])]
            mistakes_log = [by_id[problem_id] for problem_id in data.get("mistakes_log", [])]
        except KeyError as e:
            raise InvalidInputError(f"Stored session references unknown problem {e}") from e

        return cls(
            entries=entries,
            queue=queue,
            mistakes_log=mistakes_log,
            session_complete=data.get("session_complete", False),
            total_attempts=data.get("total_attempts", 0),
            score=data.get("score", 0),
            structure_blocks_awarded=data.get("structure_blocks_awarded", 0),
        )


@dataclass(frozen=True)
class AnswerResult:
    """Outcome of submitting an answer."""

    correct: bool
    state: SessionState


@dataclass(frozen=True)
class MistakeSummary:
    """Snapshot of a missed problem for the end-of-session review."""

    problem_id: str
    question: str
    correct_answer: Answer
    mistake_count: int
    history: tuple[AttemptRecord, ...]

    def to_dict(self) -> dict:
        return {
            "problem_id": self.problem_id,
            "question": self.question,
            "correct_answer": self.correct_answer,
            "mistake_count": self.mistake_count,
            "history": [record.to_dict() for record in self.history],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "MistakeSummary":
        return cls(
            problem_id=data["problem_id"],
            question=data["question"],
            correct_answer=data["correct_answer"],
            mistake_count=int(data.get("mistake_count", 0)),
            history=tuple(AttemptRecord.from_dict(record) for record in data.get("history", [])),
        )


@dataclass(frozen=True)
class SessionSummary:
    """End-of-session report."""

    mistakes: tuple[MistakeSummary, ...]
    problem_count: int
    total_attempts: int
    score: int = 0
    structure_blocks_awarded: int = 0

    @property
    def perfect(self) -> bool:
        """True when no problem was ever answered incorrectly."""
        return not self.mistakes


class ProblemQueueManager:
    """
    Runs the mastery queue for a session.

    The manager itself is stateless apart from its configuration and the
    injected clock and random source; all session data lives in the
    SessionState it creates and mutates.
    """

    def __init__(
        self,
        config: QueueConfig | None = None,
        clock: Clock | None = None,
        rng: OffsetGenerator | None = None,
    ):
        """
        Initialize the manager.

        Args:
            config: Mastery thresholds and reinsertion window. Defaults to
                    the module constants.
            clock: Returns the timestamp for each attempt. Defaults to datetime.now.
            rng: Returns an integer in [low, high], used for the reinsertion
                 offset. Defaults to random.randint.
        """
        self._config = config or QueueConfig()
        self._clock = clock or datetime.now
        self._rng = rng or random.randint

    @property
    def config(self) -> QueueConfig:
        return self._config

    def initialize(self, problem_specs: Sequence[ProblemSpec]) -> SessionState:
        """
        Create a fresh session from the given problems, in order.

        Raises:
            InvalidInputError: If the list is empty or contains duplicate ids.
        """
        if not problem_specs:
            raise InvalidInputError("Cannot start a session without problems")

        seen: set[str] = set()
        for spec in problem_specs:
            if spec.id in seen:
                raise InvalidInputError(f"Duplicate problem id: {spec.id}")
            seen.add(spec.id)

        entries = [
            ProblemQueueEntry(spec=spec, mastery_threshold=self._config.mastery_threshold)
            for spec in problem_specs
        ]
        logger.info(f"Session initialized with {len(entries)} problems")
        return SessionState(entries=entries, queue=list(entries))

    def current_problem(self, state: SessionState) -> ProblemSpec | None:
        """Return the problem at the front of the queue, or None when the session is complete."""
        if not state.queue:
            return None
        return state.queue[0].spec

    def submit_answer(self, state: SessionState, answer: Answer) -> AnswerResult:
        """
        Record an answer for the current problem and advance the queue.

        Args:
            state: The session to update (mutated in place).
            answer: The player's answer.

        Returns:
            AnswerResult with the correctness and the updated state.

        Raises:
            NoActiveProblemError: If the queue is empty.
        """
        if not state.queue:
            raise NoActiveProblemError("No active problem: the queue is empty")

        entry = state.queue.pop(0)
        correct = answers_match(answer, entry.spec.answer)

        entry.history.append(
            AttemptRecord(
                answer=answer,
                correct=correct,
                timestamp=self._clock(),
                attempt_number=state.total_attempts,
            )
        )
        state.total_attempts += 1

        if correct:
            self._handle_correct(state, entry)
        else:
            self._handle_incorrect(state, entry)

        return AnswerResult(correct=correct, state=state)

    def _handle_correct(self, state: SessionState, entry: ProblemQueueEntry) -> None:
        entry.correct_streak += 1

        if entry.correct_streak >= entry.mastery_threshold:
            entry.mastered = True
            logger.info(
                f"Problem {entry.problem_id} mastered after {len(entry.history)} attempts, "
                f"{len(state.queue)} problems left"
            )
            if not state.queue:
                state.session_complete = True
                logger.info(f"Session complete after {state.total_attempts} attempts")
            return

        # Still cycling
        state.queue.append(entry)

    def _handle_incorrect(self, state: SessionState, entry: ProblemQueueEntry) -> None:
        entry.correct_streak = 0
        entry.mistake_count += 1
        entry.mastery_threshold = max(
            entry.mastery_threshold, self._config.missed_mastery_threshold
        )

        if entry.mistake_count == 1:
            state.mistakes_log.append(entry)

        offset = self._rng(self._config.min_reinsert_offset, self._config.max_reinsert_offset)
        position = min(offset, len(state.queue))
        state.queue.insert(position, entry)

        logger.info(f"Problem {entry.problem_id} missed ({entry.mistake_count}x)")
        logger.debug(f"Reinserted {entry.problem_id} at position {position} (offset {offset})")

    def build_session_summary(self, state: SessionState) -> SessionSummary:
        """
        Build the end-of-session review.

        Returns a snapshot for every problem in the mistakes log, in the
        order the problems were first missed. An empty list of mistakes
        means a perfect session.

        Raises:
            SessionNotCompleteError: If problems are still waiting in the queue.
        """
        if not state.session_complete:
            raise SessionNotCompleteError(
                f"Session not complete: {len(state.queue)} problems still in the queue"
            )

        mistakes = tuple(
            MistakeSummary(
                problem_id=entry.problem_id,
                question=entry.spec.question,
                correct_answer=entry.spec.answer,
                mistake_count=entry.mistake_count,
                history=tuple(entry.history),
            )
            for entry in state.mistakes_log
        )

        return SessionSummary(
            mistakes=mistakes,
            problem_count=len(state.entries),
            total_attempts=state.total_attempts,
            score=state.score,
            structure_blocks_awarded=state.structure_blocks_awarded,
        )


def replay_session(
    problem_specs: Sequence[ProblemSpec],
    attempts: Iterable[Sequence],
    config: QueueConfig | None = None,
    clock: Clock | None = None,
    rng: OffsetGenerator | None = None,
) -> SessionState:
    """
    Replay recorded answers against a fresh session.

    Args:
        problem_specs: The problems the original session started with.
        attempts: (problem_id, answer, ...) sequences in submission order,
                  e.g. the output of SessionState.attempt_log().
        config: Queue configuration of the original session.
        clock: Clock for the replayed attempts.
        rng: Must return the same offsets as the original session's source.

    Returns:
        The resulting SessionState.

    Raises:
        InvalidInputError: If an attempt does not belong to the current problem.
    """
    manager = ProblemQueueManager(config=config, clock=clock, rng=rng)
    state = manager.initialize(problem_specs)

    for attempt in attempts:
        problem_id, answer = attempt[0], attempt[1]
        current = manager.current_problem(state)
        if current is None or current.id != problem_id:
            expected = current.id if current else None
            raise InvalidInputError(
                f"Replay diverged: attempt for {problem_id}, current problem is {expected}"
            )
        manager.submit_answer(state, answer)

    return state
