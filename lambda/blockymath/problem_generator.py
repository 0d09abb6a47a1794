"""
Math problem generator for Blocky Math Champ.

This module builds the problem set for a session from the player's
difficulty setting. Each problem carries four answer choices: the correct
answer plus three nearby distractors.
"""

import logging
import random
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from blockymath.problem_queue import ProblemSpec

logger = logging.getLogger(__name__)


class Operation(Enum):
    """Supported math operations."""

    ADDITION = "add"
    SUBTRACTION = "sub"
    MULTIPLICATION = "mul"
    DIVISION = "div"


@dataclass
class DifficultyConfig:
    """Configuration for a difficulty level."""

    name: str
    label: str
    operations: list[Operation]
    number_range: tuple[int, int]  # (min, max) for addition and subtraction
    times_tables: list[int]  # Tables for multiplication and division


DEFAULT_TIMES_TABLES = list(range(2, 13))

DIFFICULTY_CONFIGS: dict[str, DifficultyConfig] = {
    "easy": DifficultyConfig(
        name="easy",
        label="Easy",
        operations=[Operation.ADDITION, Operation.SUBTRACTION],
        number_range=(1, 10),
        times_tables=DEFAULT_TIMES_TABLES,
    ),
    "medium": DifficultyConfig(
        name="medium",
        label="Medium",
        operations=[Operation.ADDITION, Operation.SUBTRACTION, Operation.MULTIPLICATION],
        number_range=(1, 20),
        times_tables=DEFAULT_TIMES_TABLES,
    ),
    "hard": DifficultyConfig(
        name="hard",
        label="Hard",
        operations=[
            Operation.ADDITION,
            Operation.SUBTRACTION,
            Operation.MULTIPLICATION,
            Operation.DIVISION,
        ],
        number_range=(1, 100),
        times_tables=DEFAULT_TIMES_TABLES,
    ),
}

DEFAULT_DIFFICULTY = "easy"

PROBLEM_COUNTS = [10, 15, 20, 25, 30, 35, 40]
DEFAULT_PROBLEM_COUNT = 10

CHOICE_COUNT = 4
DISTRACTOR_SPREAD = 4  # Distractors lie within +/- this distance of the answer

MAX_DUPLICATE_RETRIES = 10

# Speech-friendly words for each operation
OPERATION_WORDS: dict[Operation, str] = {
    Operation.ADDITION: "plus",
    Operation.SUBTRACTION: "minus",
    Operation.MULTIPLICATION: "times",
    Operation.DIVISION: "divided by",
}


def generate_problem_id(operation: Operation, operand1: int, operand2: int) -> str:
    """Generate the problem ID, e.g. "add_7_5"."""
    return f"{operation.value}_{operand1}_{operand2}"


def generate_choices(answer: int, rng=None) -> tuple[int, ...]:
    """
    Build the answer choices for a problem.

    Returns the answer plus distinct, non-negative distractors within
    DISTRACTOR_SPREAD of it, in shuffled order.
    """
    rng = rng or random

    candidates = [
        answer + delta
        for delta in range(-DISTRACTOR_SPREAD, DISTRACTOR_SPREAD + 1)
        if delta != 0 and answer + delta >= 0
    ]
    distractors = rng.sample(candidates, min(CHOICE_COUNT - 1, len(candidates)))

    choices = [answer, *distractors]
    rng.shuffle(choices)
    return tuple(choices)


def _build_problem(
    operation: Operation, operand1: int, operand2: int, answer: int, rng
) -> ProblemSpec:
    return ProblemSpec(
        id=generate_problem_id(operation, operand1, operand2),
        question=f"What is {operand1} {OPERATION_WORDS[operation]} {operand2}?",
        answer=answer,
        choices=generate_choices(answer, rng),
    )


def _generate_addition(config: DifficultyConfig, rng) -> ProblemSpec:
    min_num, max_num = config.number_range
    operand1 = rng.randint(min_num, max_num)
    operand2 = rng.randint(min_num, max_num)
    return _build_problem(Operation.ADDITION, operand1, operand2, operand1 + operand2, rng)


def _generate_subtraction(config: DifficultyConfig, rng) -> ProblemSpec:
    """Generate a subtraction problem; operands are swapped to avoid negative results."""
    min_num, max_num = config.number_range
    operand1 = rng.randint(min_num, max_num)
    operand2 = rng.randint(min_num, max_num)
    if operand2 > operand1:
        operand1, operand2 = operand2, operand1
    return _build_problem(Operation.SUBTRACTION, operand1, operand2, operand1 - operand2, rng)


def _generate_multiplication(config: DifficultyConfig, rng) -> ProblemSpec:
    operand1 = rng.choice(config.times_tables)
    operand2 = rng.randint(0, 12)
    return _build_problem(Operation.MULTIPLICATION, operand1, operand2, operand1 * operand2, rng)


def _generate_division(config: DifficultyConfig, rng) -> ProblemSpec:
    """Generate a division problem with a whole-number quotient of at least 1."""
    divisor = rng.choice(config.times_tables)
    quotient = rng.randint(1, 12)
    dividend = divisor * quotient
    return _build_problem(Operation.DIVISION, dividend, divisor, quotient, rng)


_OPERATION_GENERATORS: dict[Operation, Callable[[DifficultyConfig, object], ProblemSpec]] = {
    Operation.ADDITION: _generate_addition,
    Operation.SUBTRACTION: _generate_subtraction,
    Operation.MULTIPLICATION: _generate_multiplication,
    Operation.DIVISION: _generate_division,
}


def get_difficulty_config(difficulty: str) -> DifficultyConfig:
    """Get the configuration for a difficulty level."""
    if difficulty not in DIFFICULTY_CONFIGS:
        raise ValueError(
            f"Unsupported difficulty: {difficulty}. "
            f"Supported difficulties: {list(DIFFICULTY_CONFIGS.keys())}"
        )
    return DIFFICULTY_CONFIGS[difficulty]


def generate_problem(
    difficulty: str = DEFAULT_DIFFICULTY,
    operation: Operation | None = None,
    rng=None,
) -> ProblemSpec:
    """
    Generate a random problem for the given difficulty.

    Args:
        difficulty: "easy", "medium" or "hard".
        operation: Optional specific operation. If None, randomly selects
                   from the operations available at this difficulty.
        rng: Source of randomness with the random.Random interface.

    Raises:
        ValueError: If the difficulty is unknown or the operation is not
                    available at this difficulty.
    """
    rng = rng or random
    config = get_difficulty_config(difficulty)

    if operation is None:
        operation = rng.choice(config.operations)
    elif operation not in config.operations:
        raise ValueError(
            f"Operation {operation.value} is not available at difficulty {difficulty}. "
            f"Available operations: {[op.value for op in config.operations]}"
        )

    return _OPERATION_GENERATORS[operation](config, rng)


def generate_problem_set(
    count: int = DEFAULT_PROBLEM_COUNT,
    difficulty: str = DEFAULT_DIFFICULTY,
    rng=None,
) -> list[ProblemSpec]:
    """
    Generate the problems for one session.

    Problems are distributed round-robin over the difficulty's operations.
    Each problem is regenerated up to MAX_DUPLICATE_RETRIES times if its ID
    is already taken; small number ranges may still yield a duplicate.
    """
    rng = rng or random
    config = get_difficulty_config(difficulty)

    problems: list[ProblemSpec] = []
    seen_ids: set[str] = set()

    for i in range(count):
        operation = config.operations[i % len(config.operations)]
        problem = generate_problem(difficulty, operation, rng)

        tries = 1
        while problem.id in seen_ids and tries < MAX_DUPLICATE_RETRIES:
            problem = generate_problem(difficulty, operation, rng)
            tries += 1

        if problem.id in seen_ids:
            logger.warning(f"Duplicate problem {problem.id} after {tries} tries")

        seen_ids.add(problem.id)
        problems.append(problem)

    return problems


def generate_unique_problem_set(
    count: int = DEFAULT_PROBLEM_COUNT,
    difficulty: str = DEFAULT_DIFFICULTY,
    rng=None,
    max_attempts: int = 5,
) -> list[ProblemSpec]:
    """
    Generate a problem set without duplicate IDs.

    Regenerates the whole set when generate_problem_set could not avoid a
    duplicate; after max_attempts the duplicates are dropped.
    """
    problems: list[ProblemSpec] = []
    for _ in range(max_attempts):
        problems = generate_problem_set(count, difficulty, rng)
        if len({problem.id for problem in problems}) == len(problems):
            return problems

    unique: dict[str, ProblemSpec] = {}
    for problem in problems:
        unique.setdefault(problem.id, problem)
    return list(unique.values())


def get_available_operations(difficulty: str) -> list[Operation]:
    """Get the list of operations for a difficulty level."""
    return get_difficulty_config(difficulty).operations.copy()
