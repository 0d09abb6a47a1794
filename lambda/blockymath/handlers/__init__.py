"""Alexa skill request handlers."""

from blockymath.handlers.game import AnswerIntentHandler, StartGameHandler
from blockymath.handlers.launch import LaunchRequestHandler
from blockymath.handlers.review import InventoryHandler, SessionReviewHandler
from blockymath.handlers.settings import SetDifficultyHandler, SetProblemCountHandler
from blockymath.handlers.standard import (
    ExitIntentHandler,
    FallbackIntentHandler,
    HelpIntentHandler,
    IntentReflectorHandler,
    NoIntentHandler,
    RepeatHandler,
    SessionEndedRequestHandler,
)

__all__ = [
    "LaunchRequestHandler",
    "StartGameHandler",
    "AnswerIntentHandler",
    "SetDifficultyHandler",
    "SetProblemCountHandler",
    "SessionReviewHandler",
    "InventoryHandler",
    "RepeatHandler",
    "HelpIntentHandler",
    "NoIntentHandler",
    "ExitIntentHandler",
    "SessionEndedRequestHandler",
    "FallbackIntentHandler",
    "IntentReflectorHandler",
]
