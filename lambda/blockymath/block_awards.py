"""
Block awards for Blocky Math Champ.

Every correct answer earns the player one building block. Blocks are
collected per block type in an inventory that is saved with the player's
data and used by the structure-building part of the game.
"""

import random
from dataclasses import dataclass, field


@dataclass(frozen=True)
class BlockType:
    """A kind of building block the player can earn."""

    id: str
    name: str


BLOCK_TYPES: list[BlockType] = [
    BlockType(id="dirt", name="Dirt Block"),
    BlockType(id="stone", name="Stone Block"),
    BlockType(id="sand", name="Sand Block"),
    BlockType(id="log_spruce", name="Spruce Log"),
    BlockType(id="planks_spruce", name="Spruce Planks"),
    BlockType(id="leaves_spruce", name="Spruce Leaves"),
]

# Never stored in the inventory
AIR_BLOCK_ID = "air"


def get_block_type(block_type_id: str) -> BlockType | None:
    """Look up a block type by ID."""
    for block_type in BLOCK_TYPES:
        if block_type.id == block_type_id:
            return block_type
    return None


@dataclass
class BlockInventory:
    """Number of awarded blocks per block type."""

    counts: dict[str, int] = field(
        default_factory=lambda: {block_type.id: 0 for block_type in BLOCK_TYPES}
    )

    def award(self, block_type_id: str | None = None, rng=None) -> BlockType:
        """
        Add one block to the inventory.

        Args:
            block_type_id: The block type to award. If None, a random
                           block type is chosen.
            rng: Source of randomness with the random.Random interface.

        Returns:
            The awarded BlockType.

        Raises:
            ValueError: If the block type is unknown or air.
        """
        if block_type_id is None:
            block_type = (rng or random).choice(BLOCK_TYPES)
        else:
            block_type = get_block_type(block_type_id)
            if block_type is None:
                raise ValueError(f"Unknown block type: {block_type_id}")

        self.counts[block_type.id] = self.counts.get(block_type.id, 0) + 1
        return block_type

    def remove(self, block_type_id: str | None = None) -> str | None:
        """
        Take one block out of the inventory.

        Without a block type, the first type with blocks left is used.

        Returns:
            The ID of the removed block type, or None if nothing was removed.
        """
        if block_type_id is None:
            block_type_id = next(
                (type_id for type_id, count in self.counts.items() if count > 0), None
            )

        if block_type_id is None or self.counts.get(block_type_id, 0) <= 0:
            return None

        self.counts[block_type_id] -= 1
        return block_type_id

    def count(self, block_type_id: str) -> int:
        return self.counts.get(block_type_id, 0)

    @property
    def total(self) -> int:
        """Total number of blocks across all types."""
        return sum(self.counts.values())

    def to_dict(self) -> dict:
        """Convert to dictionary for persistence."""
        return dict(self.counts)

    @classmethod
    def from_dict(cls, data: dict) -> "BlockInventory":
        """Create from dictionary (from persistence)."""
        inventory = cls()
        for block_type_id, count in data.items():
            if block_type_id == AIR_BLOCK_ID:
                continue
            inventory.counts[block_type_id] = int(count)
        return inventory
