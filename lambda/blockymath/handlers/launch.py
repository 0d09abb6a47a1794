"""Launch request handler."""

import logging

from ask_sdk_core.dispatch_components import AbstractRequestHandler
from ask_sdk_core.utils import is_request_type

from blockymath import data
from blockymath.handlers.helpers import ATTR_STATE
from blockymath.persistence import get_persistence_manager

logger = logging.getLogger(__name__)


class LaunchRequestHandler(AbstractRequestHandler):
    """
    Handler for skill launch.

    First-time players get the rules, returning players hear how many
    blocks they have collected.
    """

    def can_handle(self, handler_input):
        return is_request_type("LaunchRequest")(handler_input)

    def handle(self, handler_input):
        logger.info("In LaunchRequestHandler")

        pm = get_persistence_manager(handler_input)
        session_attr = handler_input.attributes_manager.session_attributes
        session_attr[ATTR_STATE] = data.STATE_NONE

        if pm.is_first_time_user():
            # Create the profile so the next launch counts as returning
            pm.save_player_profile(pm.get_player_profile())
            pm.commit()
            speech = data.WELCOME_MESSAGE_FIRST_TIME
        else:
            blocks = pm.get_block_inventory().total
            if blocks > 0:
                speech = data.WELCOME_MESSAGE_RETURNING.format(blocks=blocks)
            else:
                speech = data.WELCOME_MESSAGE_RETURNING_NO_BLOCKS

        handler_input.response_builder.speak(speech).ask(data.REPROMPT_GENERAL)
        return handler_input.response_builder.response
