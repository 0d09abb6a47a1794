"""Settings handlers for difficulty and problem count."""

import logging

from ask_sdk_core.dispatch_components import AbstractRequestHandler
from ask_sdk_core.utils import is_intent_name

from blockymath import data
from blockymath.handlers.helpers import (
    ATTR_STATE,
    format_choices,
    get_queue_manager,
    get_slot_value,
    load_session_state,
    parse_number_slot,
    speak_problem,
)
from blockymath.persistence import get_persistence_manager
from blockymath.problem_generator import DIFFICULTY_CONFIGS, PROBLEM_COUNTS

logger = logging.getLogger(__name__)


def _settings_followup(handler_input, speech: str):
    """
    Finish a settings response.

    During a game the new setting only applies to the next game, so the
    current problem is asked again.
    """
    session_attr = handler_input.attributes_manager.session_attributes

    if session_attr.get(ATTR_STATE) == data.STATE_GAME:
        state = load_session_state(handler_input)
        problem = get_queue_manager().current_problem(state) if state else None
        if problem is not None:
            speech += " " + data.SETTINGS_APPLY_NEXT_GAME + " " + speak_problem(problem)
            handler_input.response_builder.speak(speech).ask(speak_problem(problem))
            return handler_input.response_builder.response

    speech += " " + data.REPROMPT_GENERAL
    handler_input.response_builder.speak(speech).ask(data.REPROMPT_GENERAL)
    return handler_input.response_builder.response


class SetDifficultyHandler(AbstractRequestHandler):
    """
    Handler for adjusting the difficulty level.

    Responds to "Make it harder/easier" or "Set difficulty to medium".
    """

    def can_handle(self, handler_input):
        return is_intent_name("SetDifficultyIntent")(handler_input)

    def handle(self, handler_input):
        logger.info("In SetDifficultyHandler")

        pm = get_persistence_manager(handler_input)
        profile = pm.get_player_profile()
        current = profile.difficulty

        difficulty_value = get_slot_value(handler_input, "difficulty")
        direction_value = get_slot_value(handler_input, "direction")

        order = data.DIFFICULTY_ORDER
        index = order.index(current) if current in order else 0
        new_difficulty = current

        if difficulty_value:
            requested = difficulty_value.lower().strip()
            if requested not in DIFFICULTY_CONFIGS:
                return _settings_followup(handler_input, data.DIFFICULTY_UNKNOWN)
            new_difficulty = requested
        elif direction_value:
            direction = direction_value.lower().strip()
            if direction in data.EASIER_WORDS:
                if index == 0:
                    return _settings_followup(
                        handler_input, data.DIFFICULTY_SAME.format(direction="easiest")
                    )
                new_difficulty = order[index - 1]
            elif direction in data.HARDER_WORDS:
                if index == len(order) - 1:
                    return _settings_followup(
                        handler_input, data.DIFFICULTY_SAME.format(direction="hardest")
                    )
                new_difficulty = order[index + 1]

        if new_difficulty != current:
            profile.difficulty = new_difficulty
            pm.save_player_profile(profile)
            pm.commit()
            logger.info(f"Difficulty changed from {current} to {new_difficulty}")

        label = DIFFICULTY_CONFIGS[new_difficulty].label.lower()
        return _settings_followup(handler_input, data.DIFFICULTY_CHANGED.format(difficulty=label))


class SetProblemCountHandler(AbstractRequestHandler):
    """Handler for choosing how many problems a game has."""

    def can_handle(self, handler_input):
        return is_intent_name("SetProblemCountIntent")(handler_input)

    def handle(self, handler_input):
        logger.info("In SetProblemCountHandler")

        count = parse_number_slot(handler_input, "count")
        if count not in PROBLEM_COUNTS:
            speech = data.PROBLEM_COUNT_INVALID.format(options=format_choices(PROBLEM_COUNTS))
            handler_input.response_builder.speak(speech).ask(speech)
            return handler_input.response_builder.response

        pm = get_persistence_manager(handler_input)
        profile = pm.get_player_profile()
        profile.problem_count = count
        pm.save_player_profile(profile)
        pm.commit()

        return _settings_followup(handler_input, data.PROBLEM_COUNT_CHANGED.format(count=count))
