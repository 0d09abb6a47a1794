"""Request/response interceptors and exception handlers for the Alexa skill."""

import logging

from ask_sdk_core.dispatch_components import (
    AbstractExceptionHandler,
    AbstractRequestInterceptor,
    AbstractResponseInterceptor,
)
from ask_sdk_core.utils import get_request_type

from blockymath import data
from blockymath.handlers.helpers import clear_session_state
from blockymath.problem_queue import ProblemQueueError

logger = logging.getLogger(__name__)


class CacheResponseForRepeatInterceptor(AbstractResponseInterceptor):
    """
    Cache the response for repeat functionality.

    Stores the response in session attributes so it can be
    repeated if the user asks.
    """

    def process(self, handler_input, response):
        session_attr = handler_input.attributes_manager.session_attributes
        session_attr["recent_response"] = response


class RequestLogger(AbstractRequestInterceptor):
    """Log incoming requests."""

    def process(self, handler_input):
        session_attr = handler_input.attributes_manager.session_attributes
        logger.info(
            f"Request: type={get_request_type(handler_input)}, state={session_attr.get('state')}"
        )
        logger.debug(f"Request Envelope: {handler_input.request_envelope}")


class ResponseLogger(AbstractResponseInterceptor):
    """Log outgoing responses."""

    def process(self, handler_input, response):
        logger.info(f"Response: {response}")


class ProblemQueueErrorHandler(AbstractExceptionHandler):
    """
    Handle problem queue contract violations.

    The game in the session can't be trusted anymore, so it is dropped
    and the player is asked to start a new one.
    """

    def can_handle(self, handler_input, exception):
        return isinstance(exception, ProblemQueueError)

    def handle(self, handler_input, exception):
        logger.error(f"Problem queue error: {exception}", exc_info=exception)

        clear_session_state(handler_input)

        speech = data.GAME_ERROR_MESSAGE
        handler_input.response_builder.speak(speech).ask(data.REPROMPT_GENERAL)
        return handler_input.response_builder.response


class CatchAllExceptionHandler(AbstractExceptionHandler):
    """
    Catch-all exception handler.

    Logs errors and provides a friendly error message.
    """

    def can_handle(self, handler_input, exception):
        return True

    def handle(self, handler_input, exception):
        logger.error(exception, exc_info=True)

        speech = data.ERROR_MESSAGE
        handler_input.response_builder.speak(speech).ask(speech)

        return handler_input.response_builder.response
