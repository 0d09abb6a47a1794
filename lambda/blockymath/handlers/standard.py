"""Standard Alexa intent handlers (Help, Exit, Repeat, Fallback, etc.)."""

import json
import logging

from ask_sdk_core.dispatch_components import AbstractRequestHandler
from ask_sdk_core.serialize import DefaultSerializer
from ask_sdk_core.utils import get_intent_name, is_intent_name, is_request_type
from ask_sdk_model import Response

from blockymath import data
from blockymath.handlers.helpers import (
    ATTR_STATE,
    get_queue_manager,
    load_session_state,
    speak_problem,
)

logger = logging.getLogger(__name__)


def _current_problem_speech(handler_input) -> str:
    """Speech for the problem currently asked, or "" outside a game."""
    session_attr = handler_input.attributes_manager.session_attributes
    if session_attr.get(ATTR_STATE) != data.STATE_GAME:
        return ""
    state = load_session_state(handler_input)
    problem = get_queue_manager().current_problem(state) if state else None
    return speak_problem(problem) if problem else ""


class RepeatHandler(AbstractRequestHandler):
    """
    Handler for repeating the current problem.

    During a game, repeats the current problem.
    Outside a game, repeats the last response.
    """

    def can_handle(self, handler_input):
        return is_intent_name("AMAZON.RepeatIntent")(handler_input)

    def handle(self, handler_input):
        logger.info("In RepeatHandler")

        session_attr = handler_input.attributes_manager.session_attributes
        problem_speech = _current_problem_speech(handler_input)

        if problem_speech:
            speech = data.REPEAT_PROBLEM.format(question=problem_speech)
            reprompt = problem_speech
        elif "recent_response" in session_attr:
            cached_response_str = json.dumps(session_attr["recent_response"])
            return DefaultSerializer().deserialize(cached_response_str, Response)
        else:
            speech = data.HELP_MESSAGE
            reprompt = data.REPROMPT_GENERAL

        handler_input.response_builder.speak(speech).ask(reprompt)
        return handler_input.response_builder.response


class HelpIntentHandler(AbstractRequestHandler):
    """Handler for help intent; during a game the current problem is repeated after the help."""

    def can_handle(self, handler_input):
        return is_intent_name("AMAZON.HelpIntent")(handler_input)

    def handle(self, handler_input):
        logger.info("In HelpIntentHandler")

        problem_speech = _current_problem_speech(handler_input)

        if problem_speech:
            speech = data.HELP_DURING_GAME + " " + problem_speech
            reprompt = problem_speech
        else:
            speech = data.HELP_MESSAGE
            reprompt = data.REPROMPT_GENERAL

        handler_input.response_builder.speak(speech).ask(reprompt)
        return handler_input.response_builder.response


class NoIntentHandler(AbstractRequestHandler):
    """Handler for "no" to "Do you want to play?"."""

    def can_handle(self, handler_input):
        session_attr = handler_input.attributes_manager.session_attributes
        return (
            is_intent_name("AMAZON.NoIntent")(handler_input)
            and session_attr.get(ATTR_STATE) != data.STATE_GAME
        )

    def handle(self, handler_input):
        logger.info("In NoIntentHandler")

        handler_input.response_builder.speak(data.EXIT_SKILL_MESSAGE).set_should_end_session(True)
        return handler_input.response_builder.response


class ExitIntentHandler(AbstractRequestHandler):
    """
    Handler for Cancel, Stop, and Pause intents.

    During a game, tells the player how far they got.
    """

    def can_handle(self, handler_input):
        return (
            is_intent_name("AMAZON.CancelIntent")(handler_input)
            or is_intent_name("AMAZON.StopIntent")(handler_input)
            or is_intent_name("AMAZON.PauseIntent")(handler_input)
        )

    def handle(self, handler_input):
        logger.info("In ExitIntentHandler")

        session_attr = handler_input.attributes_manager.session_attributes
        state = None
        if session_attr.get(ATTR_STATE) == data.STATE_GAME:
            state = load_session_state(handler_input)

        if state is not None:
            speech = data.EXIT_DURING_GAME.format(
                mastered=state.mastered_count,
                total=len(state.entries),
                blocks=state.structure_blocks_awarded,
            )
        else:
            speech = data.EXIT_SKILL_MESSAGE

        handler_input.response_builder.speak(speech).set_should_end_session(True)
        return handler_input.response_builder.response


class SessionEndedRequestHandler(AbstractRequestHandler):
    """Handler for session end."""

    def can_handle(self, handler_input):
        return is_request_type("SessionEndedRequest")(handler_input)

    def handle(self, handler_input):
        logger.info("In SessionEndedRequestHandler")
        logger.info(f"Session ended with reason: {handler_input.request_envelope.request.reason}")
        return handler_input.response_builder.response


class FallbackIntentHandler(AbstractRequestHandler):
    """
    Handler for fallback intent.

    Triggered when Alexa doesn't understand the user's input.
    """

    def can_handle(self, handler_input):
        return is_intent_name("AMAZON.FallbackIntent")(handler_input)

    def handle(self, handler_input):
        logger.info("In FallbackIntentHandler")

        problem_speech = _current_problem_speech(handler_input)

        if problem_speech:
            speech = data.FALLBACK_MESSAGE + " " + problem_speech
            reprompt = problem_speech
        else:
            speech = data.FALLBACK_MESSAGE
            reprompt = data.REPROMPT_GENERAL

        handler_input.response_builder.speak(speech).ask(reprompt)
        return handler_input.response_builder.response


class IntentReflectorHandler(AbstractRequestHandler):
    """
    Handler for any intent no other handler claimed.

    Must be registered last.
    """

    def can_handle(self, handler_input):
        return is_request_type("IntentRequest")(handler_input)

    def handle(self, handler_input):
        intent_name = get_intent_name(handler_input)
        logger.warning(f"Unhandled intent: {intent_name}")

        problem_speech = _current_problem_speech(handler_input)
        reprompt = problem_speech or data.REPROMPT_GENERAL
        speech = data.REFLECTOR_MESSAGE + " " + reprompt

        handler_input.response_builder.speak(speech).ask(reprompt)
        return handler_input.response_builder.response
