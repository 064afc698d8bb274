"""Queue item model: singles, collections and shuffle state."""

from .item import (
    Collection,
    Item,
    Single,
    item_from_provider,
    leaf_count,
    validate_position,
)
from .shuffle import ShuffleState
from .types import CursorState, ItemKind, QueueStatus, QueueVersion, RepeatMode

__all__ = [
    # Items
    "Collection",
    "Item",
    "Single",
    "item_from_provider",
    "leaf_count",
    "validate_position",
    # Shuffle
    "ShuffleState",
    # Types
    "CursorState",
    "ItemKind",
    "QueueStatus",
    "QueueVersion",
    "RepeatMode",
]
