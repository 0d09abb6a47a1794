"""Handlers for the mistake review and the block inventory."""

import logging

from ask_sdk_core.dispatch_components import AbstractRequestHandler
from ask_sdk_core.utils import is_intent_name

from blockymath import data
from blockymath.block_awards import BLOCK_TYPES
from blockymath.handlers.helpers import format_choices, get_review_speech
from blockymath.persistence import get_persistence_manager

logger = logging.getLogger(__name__)


class SessionReviewHandler(AbstractRequestHandler):
    """
    Handler for reviewing the last completed game.

    Reads back every problem that was missed, with the correct answer
    and how often it was missed.
    """

    def can_handle(self, handler_input):
        return is_intent_name("ReviewIntent")(handler_input)

    def handle(self, handler_input):
        logger.info("In SessionReviewHandler")

        pm = get_persistence_manager(handler_input)
        record = pm.get_last_session()

        if record is None:
            speech = data.REVIEW_NO_SESSION
        else:
            speech = get_review_speech(record) + " " + data.REPROMPT_GENERAL

        handler_input.response_builder.speak(speech).ask(data.REPROMPT_GENERAL)
        return handler_input.response_builder.response


class InventoryHandler(AbstractRequestHandler):
    """Handler for "How many blocks do I have?"."""

    def can_handle(self, handler_input):
        return is_intent_name("InventoryIntent")(handler_input)

    def handle(self, handler_input):
        logger.info("In InventoryHandler")

        inventory = get_persistence_manager(handler_input).get_block_inventory()

        if inventory.total == 0:
            speech = data.INVENTORY_EMPTY
        else:
            details = [
                data.INVENTORY_ITEM.format(count=inventory.count(block.id), name=block.name)
                for block in BLOCK_TYPES
                if inventory.count(block.id) > 0
            ]
            speech = data.INVENTORY_REPORT.format(
                total=inventory.total, details=format_choices(details, conjunction="and")
            )

        speech += " " + data.REPROMPT_GENERAL
        handler_input.response_builder.speak(speech).ask(data.REPROMPT_GENERAL)
        return handler_input.response_builder.response
