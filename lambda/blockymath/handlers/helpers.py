"""Helper functions for Alexa skill handlers."""

import contextlib
import random

from blockymath import data
from blockymath.models import SessionRecord
from blockymath.problem_queue import (
    MistakeSummary,
    ProblemQueueManager,
    ProblemSpec,
    SessionState,
)

# Session attribute keys
ATTR_STATE = "state"
ATTR_GAME = "game"
ATTR_DIFFICULTY = "difficulty"


def get_queue_manager() -> ProblemQueueManager:
    """Create the queue manager used by the handlers."""
    return ProblemQueueManager()


def load_session_state(handler_input) -> SessionState | None:
    """
    Restore the running game from the session attributes.

    Returns:
        The SessionState, or None if no game is stored in the session.
    """
    session_attr = handler_input.attributes_manager.session_attributes
    game = session_attr.get(ATTR_GAME)
    if not game:
        return None
    return SessionState.from_dict(game)


def save_session_state(handler_input, state: SessionState) -> None:
    """Store the running game in the session attributes."""
    session_attr = handler_input.attributes_manager.session_attributes
    session_attr[ATTR_GAME] = state.to_dict()


def clear_session_state(handler_input) -> None:
    """Remove the game from the session and leave game mode."""
    session_attr = handler_input.attributes_manager.session_attributes
    session_attr.pop(ATTR_GAME, None)
    session_attr[ATTR_STATE] = data.STATE_NONE


def get_slot_value(handler_input, slot_name: str) -> str | None:
    """Get the raw value of an intent slot, or None if it is missing or empty."""
    slots = handler_input.request_envelope.request.intent.slots
    if not slots:
        return None
    slot = slots.get(slot_name)
    return slot.value if slot else None


def parse_number_slot(handler_input, slot_name: str = "number") -> int | None:
    """Parse an AMAZON.NUMBER slot; returns None if it is not a whole number."""
    value = get_slot_value(handler_input, slot_name)
    if not value:
        return None
    with contextlib.suppress(ValueError):
        return int(value)
    return None


def format_choices(choices, conjunction: str = "or") -> str:
    """Join items for speech, e.g. "3, 5, 7, or 9"."""
    words = [str(choice) for choice in choices]
    if len(words) <= 1:
        return "".join(words)
    if len(words) == 2:
        return f"{words[0]} {conjunction} {words[1]}"
    return ", ".join(words[:-1]) + f", {conjunction} {words[-1]}"


def speak_problem(problem: ProblemSpec) -> str:
    """Speech for a problem, including its answer choices."""
    if not problem.choices:
        return problem.question
    choices = data.CHOICES_MESSAGE.format(choices=format_choices(problem.choices))
    return f"{problem.question} {choices}"


def get_correct_feedback(answer, block_name: str) -> str:
    """Generate positive feedback for a correct answer and the awarded block."""
    template = random.choice(data.CORRECT_ANSWER_TEMPLATES)
    return template.format(answer=answer, block=block_name.lower())


def get_incorrect_feedback(correct_answer) -> str:
    """Generate feedback for an incorrect answer with the correct solution."""
    template = random.choice(data.WRONG_ANSWER_TEMPLATES)
    return template.format(answer=correct_answer)


def describe_mistake(mistake: MistakeSummary) -> str:
    times = "time" if mistake.mistake_count == 1 else "times"
    return data.REVIEW_MISTAKE_ITEM.format(
        question=mistake.question,
        answer=mistake.correct_answer,
        count=mistake.mistake_count,
        times=times,
    )


def get_review_speech(record: SessionRecord) -> str:
    """Speech for the mistake review of a completed session."""
    if record.perfect:
        return data.REVIEW_PERFECT
    items = " ".join(describe_mistake(mistake) for mistake in record.mistakes)
    return data.REVIEW_MISTAKES_INTRO + items
