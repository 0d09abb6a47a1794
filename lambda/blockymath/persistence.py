"""
Persistence layer for the Blocky Math Champ Alexa Skill.

This module provides an abstraction over DynamoDB storage using the
ASK SDK persistence adapter. It handles:
- Player profiles (difficulty, problem count, totals)
- The block inventory earned through correct answers
- Records of recently completed sessions for the mistake review

Uses a single-table design with the user_id as partition key.
All data for a user is stored in a single DynamoDB item.
"""

import logging
from datetime import datetime
from typing import TYPE_CHECKING

from blockymath.block_awards import BlockInventory
from blockymath.models import PlayerProfile, SessionRecord

if TYPE_CHECKING:
    from ask_sdk_core.handler_input import HandlerInput

logger = logging.getLogger(__name__)

# Attribute keys in the persistent store
ATTR_PLAYER_PROFILE = "player_profile"
ATTR_BLOCK_INVENTORY = "block_inventory"
ATTR_SESSION_HISTORY = "session_history"

# Number of completed sessions kept for review, newest first
MAX_SESSION_HISTORY = 10


class PersistenceManager:
    """
    Manages persistence of player data for the game.

    Attributes are loaded lazily on first access and written back
    only when commit() is called after a change.
    """

    def __init__(self, handler_input: "HandlerInput"):
        self._handler_input = handler_input
        self._attributes_manager = handler_input.attributes_manager
        self._persistent_attrs: dict | None = None
        self._dirty = False  # Track if we have unsaved changes

    def _get_user_id(self) -> str:
        """Get the unique user ID from the request."""
        return self._handler_input.request_envelope.context.system.user.user_id

    def _load_persistent_attributes(self) -> dict:
        if self._persistent_attrs is None:
            self._persistent_attrs = self._attributes_manager.persistent_attributes
        return self._persistent_attrs

    def get_player_profile(self) -> PlayerProfile:
        """
        Load or create the player profile.

        Returns:
            PlayerProfile for the current user.
        """
        attrs = self._load_persistent_attributes()

        if ATTR_PLAYER_PROFILE in attrs:
            return PlayerProfile.from_dict(attrs[ATTR_PLAYER_PROFILE])

        # First-time player - create a new profile
        return PlayerProfile(
            user_id=self._get_user_id(),
            created_at=datetime.now(),
        )

    def save_player_profile(self, profile: PlayerProfile) -> None:
        attrs = self._load_persistent_attributes()
        attrs[ATTR_PLAYER_PROFILE] = profile.to_dict()
        self._dirty = True

    def get_block_inventory(self) -> BlockInventory:
        """Load the player's block inventory (empty for new players)."""
        attrs = self._load_persistent_attributes()
        return BlockInventory.from_dict(attrs.get(ATTR_BLOCK_INVENTORY, {}))

    def save_block_inventory(self, inventory: BlockInventory) -> None:
        attrs = self._load_persistent_attributes()
        attrs[ATTR_BLOCK_INVENTORY] = inventory.to_dict()
        self._dirty = True

    def get_session_history(self) -> list[SessionRecord]:
        """
        Load the records of recently completed sessions.

        Returns:
            List of SessionRecord, newest first.
        """
        attrs = self._load_persistent_attributes()
        return [SessionRecord.from_dict(record) for record in attrs.get(ATTR_SESSION_HISTORY, [])]

    def get_last_session(self) -> SessionRecord | None:
        """Return the most recently completed session, if any."""
        history = self.get_session_history()
        return history[0] if history else None

    def add_session_record(self, record: SessionRecord) -> None:
        """
        Store a completed session at the front of the history.

        Older records beyond MAX_SESSION_HISTORY are dropped.
        """
        attrs = self._load_persistent_attributes()
        history = attrs.get(ATTR_SESSION_HISTORY, [])
        attrs[ATTR_SESSION_HISTORY] = [record.to_dict(), *history][:MAX_SESSION_HISTORY]
        self._dirty = True

    def commit(self) -> None:
        """
        Commit all pending changes to DynamoDB.

        Should be called at the end of request handling to
        persist any changes made during the request.
        """
        if self._dirty and self._persistent_attrs is not None:
            self._attributes_manager.persistent_attributes = self._persistent_attrs
            self._attributes_manager.save_persistent_attributes()
            self._dirty = False
            logger.info(f"Persisted player data for {self._get_user_id()}")

    def is_first_time_user(self) -> bool:
        """
        Check if this is a first-time user.

        Returns:
            True if the user has no stored data.
        """
        attrs = self._load_persistent_attributes()
        return ATTR_PLAYER_PROFILE not in attrs


def get_persistence_manager(handler_input: "HandlerInput") -> PersistenceManager:
    """Factory function to get a PersistenceManager."""
    return PersistenceManager(handler_input)


def save_completed_session(handler_input: "HandlerInput", record: SessionRecord) -> PlayerProfile:
    """
    Store a completed session and add it to the player totals.

    Args:
        handler_input: The ASK SDK handler input.
        record: The completed session.

    Returns:
        The updated player profile.
    """
    pm = get_persistence_manager(handler_input)

    profile = pm.get_player_profile()
    profile.record_session(record)

    pm.save_player_profile(profile)
    pm.add_session_record(record)
    pm.commit()

    return profile
