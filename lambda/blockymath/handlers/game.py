"""Game handlers for starting a game and processing answers."""

import logging

from ask_sdk_core.dispatch_components import AbstractRequestHandler
from ask_sdk_core.utils import is_intent_name

from blockymath import data
from blockymath.handlers.helpers import (
    ATTR_DIFFICULTY,
    ATTR_STATE,
    clear_session_state,
    get_correct_feedback,
    get_incorrect_feedback,
    get_queue_manager,
    get_review_speech,
    load_session_state,
    parse_number_slot,
    save_session_state,
    speak_problem,
)
from blockymath.models import SessionRecord
from blockymath.persistence import get_persistence_manager, save_completed_session
from blockymath.problem_generator import (
    DEFAULT_DIFFICULTY,
    generate_unique_problem_set,
    get_difficulty_config,
)
from blockymath.problem_queue import NoActiveProblemError

logger = logging.getLogger(__name__)


class StartGameHandler(AbstractRequestHandler):
    """
    Handler for starting a new game.

    Generates the problem set from the player's settings, creates a fresh
    session and asks the first problem. Also handles "yes" outside a game
    (answer to "Do you want to play?").
    """

    def can_handle(self, handler_input):
        session_attr = handler_input.attributes_manager.session_attributes
        if is_intent_name("AMAZON.YesIntent")(handler_input):
            return session_attr.get(ATTR_STATE) != data.STATE_GAME
        return is_intent_name("StartGameIntent")(handler_input) or is_intent_name(
            "AMAZON.StartOverIntent"
        )(handler_input)

    def handle(self, handler_input):
        session_attr = handler_input.attributes_manager.session_attributes
        logger.info(
            f"StartGameHandler: starting new game, previous state={session_attr.get(ATTR_STATE)}"
        )

        pm = get_persistence_manager(handler_input)
        profile = pm.get_player_profile()

        problems = generate_unique_problem_set(
            count=profile.problem_count, difficulty=profile.difficulty
        )
        manager = get_queue_manager()
        state = manager.initialize(problems)
        problem = manager.current_problem(state)

        session_attr[ATTR_STATE] = data.STATE_GAME
        session_attr[ATTR_DIFFICULTY] = profile.difficulty
        save_session_state(handler_input, state)

        difficulty_label = get_difficulty_config(profile.difficulty).label.lower()
        speech = data.START_GAME_MESSAGE.format(
            count=len(problems), difficulty=difficulty_label
        ) + speak_problem(problem)
        reprompt = speak_problem(problem)

        handler_input.response_builder.speak(speech).ask(reprompt)
        return handler_input.response_builder.response


class AnswerIntentHandler(AbstractRequestHandler):
    """
    Handler for answers during a game.

    Submits the answer to the problem queue, awards a block for a correct
    answer, and either asks the next problem or finishes the session with
    the mistake review.
    """

    def can_handle(self, handler_input):
        session_attr = handler_input.attributes_manager.session_attributes
        return (
            is_intent_name("AnswerIntent")(handler_input)
            and session_attr.get(ATTR_STATE) == data.STATE_GAME
        )

    def handle(self, handler_input):
        manager = get_queue_manager()
        state = load_session_state(handler_input)
        problem = manager.current_problem(state) if state else None
        if problem is None:
            raise NoActiveProblemError("Answer received but no game is running")

        answer = parse_number_slot(handler_input)
        if answer is None:
            speech = data.NOT_UNDERSTOOD_DURING_GAME + " " + speak_problem(problem)
            handler_input.response_builder.speak(speech).ask(speak_problem(problem))
            return handler_input.response_builder.response

        result = manager.submit_answer(state, answer)
        entry = state.get_entry(problem.id)
        logger.info(
            f"AnswerIntentHandler: problem={problem.id}, answer={answer}, "
            f"correct={result.correct}, streak={entry.correct_streak}, queue={len(state.queue)}"
        )

        if result.correct:
            pm = get_persistence_manager(handler_input)
            inventory = pm.get_block_inventory()
            block = inventory.award()
            pm.save_block_inventory(inventory)
            pm.commit()

            state.score += 1
            state.structure_blocks_awarded += 1

            feedback = get_correct_feedback(problem.answer, block.name)
            if entry.mastered:
                feedback += " " + data.MASTERED_MESSAGE
        else:
            feedback = get_incorrect_feedback(problem.answer)

        if state.session_complete:
            return self._finish_session(handler_input, manager, state, feedback)

        save_session_state(handler_input, state)
        next_problem = manager.current_problem(state)

        speech = feedback + " " + data.NEXT_PROBLEM + speak_problem(next_problem)
        handler_input.response_builder.speak(speech).ask(speak_problem(next_problem))
        return handler_input.response_builder.response

    def _finish_session(self, handler_input, manager, state, feedback):
        session_attr = handler_input.attributes_manager.session_attributes

        summary = manager.build_session_summary(state)
        record = SessionRecord.from_summary(
            summary, difficulty=session_attr.get(ATTR_DIFFICULTY, DEFAULT_DIFFICULTY)
        )
        save_completed_session(handler_input, record)
        clear_session_state(handler_input)

        logger.info(
            f"SESSION COMPLETE: problems={summary.problem_count}, "
            f"attempts={summary.total_attempts}, mistakes={len(summary.mistakes)}"
        )

        speech = " ".join(
            [
                feedback,
                data.SESSION_COMPLETE.format(
                    count=summary.problem_count,
                    attempts=summary.total_attempts,
                    blocks=summary.structure_blocks_awarded,
                ),
                get_review_speech(record),
                data.PLAY_AGAIN,
            ]
        )
        handler_input.response_builder.speak(speech).ask(data.PLAY_AGAIN)
        return handler_input.response_builder.response
