"""
Speech data and prompts for the Blocky Math Champ Alexa Skill.

This module contains all text strings used by the skill,
including welcome messages, feedback, review text, and help.
"""

# ============================================================================
# Welcome and Launch Messages
# ============================================================================

WELCOME_MESSAGE_FIRST_TIME = (
    "Welcome to Blocky Math Champ! Answer math problems to earn building blocks. "
    "Get a problem right twice in a row and you have mastered it. "
    "Say 'start' to play, or 'make it harder' to change the difficulty."
)

WELCOME_MESSAGE_RETURNING = (
    "Welcome back to Blocky Math Champ! You have collected {blocks} blocks so far. "
    "Ready for another round?"
)

WELCOME_MESSAGE_RETURNING_NO_BLOCKS = "Welcome back to Blocky Math Champ! Ready to play?"

# ============================================================================
# Game Messages
# ============================================================================

START_GAME_MESSAGE = "Let's go! {count} {difficulty} problems. Here is the first one: "

NEXT_PROBLEM = "Next problem: "

CHOICES_MESSAGE = "Is it {choices}?"

# ============================================================================
# Answer Feedback
# ============================================================================

CORRECT_ANSWER_TEMPLATES = [
    "Correct! You earned a {block}.",
    "Great job! {answer} is right. Here is a {block}.",
    "Yes, {answer}! A {block} for your collection.",
    "Awesome! That earns you a {block}.",
]

MASTERED_MESSAGE = "You have mastered that one!"

WRONG_ANSWER_TEMPLATES = [
    "Not quite. The answer is {answer}. We will come back to this one.",
    "Oops, that's not it. {answer} is the right answer. Let's try it again soon.",
    "Almost! The correct answer is {answer}.",
]

NOT_UNDERSTOOD_DURING_GAME = "I didn't catch a number. Please say just the answer."

# ============================================================================
# Session Review
# ============================================================================

SESSION_COMPLETE = (
    "You mastered all {count} problems in {attempts} answers and earned {blocks} blocks!"
)

REVIEW_PERFECT = "No mistakes at all. A perfect session!"

REVIEW_MISTAKES_INTRO = "Here are the problems to practice: "

REVIEW_MISTAKE_ITEM = "{question} The answer is {answer}. You missed it {count} {times}."

REVIEW_NO_SESSION = "You haven't finished a game yet. Say 'start' to play."

PLAY_AGAIN = "Do you want to play again?"

# ============================================================================
# Inventory
# ============================================================================

INVENTORY_EMPTY = "Your inventory is empty. Answer problems correctly to earn blocks!"

INVENTORY_REPORT = "You have {total} blocks: {details}."

INVENTORY_ITEM = "{count} {name}"

# ============================================================================
# Settings
# ============================================================================

DIFFICULTY_CHANGED = "Okay, problems are now {difficulty}."

DIFFICULTY_SAME = "You are already on the {direction} level."

DIFFICULTY_UNKNOWN = "You can choose easy, medium, or hard."

PROBLEM_COUNT_CHANGED = "Okay, each game now has {count} problems."

PROBLEM_COUNT_INVALID = "You can play {options} problems. How many would you like?"

SETTINGS_APPLY_NEXT_GAME = "This applies from your next game."

# ============================================================================
# Help Messages
# ============================================================================

HELP_MESSAGE = (
    "Answer math problems to earn building blocks. "
    "Say 'start' to play, 'review' to hear your last mistakes, "
    "'inventory' to count your blocks, "
    "or 'make it easier' or 'harder' to change the difficulty. "
    "What would you like to do?"
)

HELP_DURING_GAME = (
    "Just tell me the answer as a number. "
    "Say 'repeat' to hear the problem again, or 'stop' to quit."
)

# ============================================================================
# Repeat and Reprompt
# ============================================================================

REPEAT_PROBLEM = "Once more: {question}"

REPROMPT_GENERAL = "Would you like to play? Just say 'start'."

# ============================================================================
# Exit Messages
# ============================================================================

EXIT_SKILL_MESSAGE = "Goodbye! Come back soon to build some more!"

EXIT_DURING_GAME = (
    "Okay, let's stop here. You mastered {mastered} of {total} problems "
    "and earned {blocks} blocks. See you next time!"
)

# ============================================================================
# Error Messages
# ============================================================================

FALLBACK_MESSAGE = "Sorry, I didn't get that. Say 'help' if you are stuck."

ERROR_MESSAGE = "Sorry, something went wrong. Please try again."

GAME_ERROR_MESSAGE = "Sorry, I lost track of the game. Say 'start' to begin a new one."

REFLECTOR_MESSAGE = "Sorry, I can't help with that right now."

# ============================================================================
# Difficulty words
# ============================================================================

EASIER_WORDS = ["easier", "easy", "simpler"]
HARDER_WORDS = ["harder", "hard", "more difficult"]

DIFFICULTY_ORDER = ["easy", "medium", "hard"]

# ============================================================================
# Session States
# ============================================================================

STATE_NONE = "NONE"
STATE_GAME = "GAME"
