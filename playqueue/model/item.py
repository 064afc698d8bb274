"""
Queue items.

An item is either a Single (a leaf, like a track or episode) or a
Collection (an album or playlist holding Single children). Only Collection
offers shuffle operations.
"""

import logging
import random
from dataclasses import dataclass, field
from typing import Any, Hashable, Mapping, Optional, Union

from playqueue.errors import (
    DuplicateIdError,
    InvalidPositionError,
    NotFoundError,
    UnsupportedOperationError,
)

from .shuffle import ShuffleState
from .types import ItemKind

logger = logging.getLogger(__name__)


def validate_position(position: Optional[int], length: int) -> int:
    """
    Resolve an insert position.

    Args:
        position: Requested index, or None for the end
        length: Length of the target sequence

    Returns:
        The position to insert at

    Raises:
        InvalidPositionError: If position is outside [0, length]
    """
    if position is None:
        return length
    if isinstance(position, bool) or not isinstance(position, int):
        raise InvalidPositionError(position, length)
    if not 0 <= position <= length:
        raise InvalidPositionError(position, length)
    return position


@dataclass
class Single:
    """
    A leaf item with no children.

    Attributes:
        item_id: Stable unique identifier
        metadata: Caller payload, stored verbatim
    """

    item_id: Hashable
    metadata: Any = None
    kind: ItemKind = field(default=ItemKind.SINGLE, init=False, repr=False)


@dataclass
class Collection:
    """
    An ordered container of Single children with its own shuffle state.

    `children` is the stored (original) order. Shuffling only changes the
    iteration order kept in `shuffle_state`.

    Once added to a queue the collection is owned by it: its mutators raise
    UnsupportedOperationError and changes go through the queue instead.
    """

    item_id: Hashable
    metadata: Any = None
    children: list[Single] = field(default_factory=list)
    shuffle_state: ShuffleState = field(init=False, repr=False)
    kind: ItemKind = field(default=ItemKind.COLLECTION, init=False, repr=False)

    def __post_init__(self) -> None:
        children = list(self.children)
        seen: set[Hashable] = set()
        for child in children:
            _check_child(child)
            if child.item_id in seen or child.item_id == self.item_id:
                raise DuplicateIdError(child.item_id)
            seen.add(child.item_id)
        self.children = children
        self.shuffle_state = ShuffleState.identity(len(children))
        self._owner: Optional[object] = None  # Queue holding this collection

    def __len__(self) -> int:
        return len(self.children)

    @property
    def is_shuffled(self) -> bool:
        """Whether iteration follows the shuffled order."""
        return self.shuffle_state.shuffled

    @property
    def is_attached(self) -> bool:
        """Whether a queue owns this collection."""
        return self._owner is not None

    # =========================================================================
    # Ownership
    # =========================================================================

    def _attach(self, owner: object) -> None:
        if self._owner is not None and self._owner is not owner:
            raise UnsupportedOperationError(
                f"Collection {self.item_id!r} already belongs to another queue"
            )
        self._owner = owner

    def _detach(self) -> None:
        self._owner = None

    def _ensure_detached(self, action: str) -> None:
        """Attached collections are changed through their queue only."""
        if self._owner is not None:
            raise UnsupportedOperationError(
                f"Cannot {action} collection {self.item_id!r} directly while it is "
                "queued; use the queue's methods"
            )

    # =========================================================================
    # Lookup
    # =========================================================================

    def index_of(self, item_id: Hashable) -> int:
        """Stored-order index of a child."""
        for i, child in enumerate(self.children):
            if child.item_id == item_id:
                return i
        raise NotFoundError(item_id)

    def position_of(self, item_id: Hashable) -> int:
        """Iteration position of a child, taking shuffle into account."""
        return self.shuffle_state.position_of(self.index_of(item_id))

    def get_at_index(self, position: int) -> Single:
        """Get the child at an iteration position, taking shuffle into account."""
        return self.children[self.shuffle_state.index_at(position)]

    def get_at_index_raw(self, index: int) -> Single:
        """Get the child at a stored-order index, ignoring shuffle."""
        return self.children[index]

    def effective_children(self) -> list[Single]:
        """Children in iteration order."""
        return [self.children[i] for i in self.shuffle_state.order()]

    # =========================================================================
    # Child mutation
    # =========================================================================

    def add_child(self, item: Single, position: Optional[int] = None) -> int:
        """
        Insert a child in stored order.

        When shuffled, the new child is appended to the end of the shuffled
        order without reshuffling the others.

        Returns:
            Stored-order index of the new child

        Raises:
            UnsupportedOperationError: If the collection is queued
        """
        self._ensure_detached("add children to")
        return self._insert_child(item, position)

    def remove_child(self, item_id: Hashable) -> Single:
        """Remove a child from stored and shuffled order."""
        self._ensure_detached("remove children from")
        return self._pop_child(item_id)

    def move_child(self, item_id: Hashable, new_position: int) -> None:
        """Move a child in stored order; the shuffled order is kept."""
        self._ensure_detached("reorder")
        self._reorder_child(item_id, new_position)

    def _insert_child(self, item: Single, position: Optional[int]) -> int:
        _check_child(item)
        if item.item_id == self.item_id or any(
            c.item_id == item.item_id for c in self.children
        ):
            raise DuplicateIdError(item.item_id)
        index = validate_position(position, len(self.children))

        self.children.insert(index, item)
        self.shuffle_state.on_insert(index, len(self.children))
        return index

    def _pop_child(self, item_id: Hashable) -> Single:
        index = self.index_of(item_id)
        child = self.children.pop(index)
        self.shuffle_state.on_remove(index, len(self.children))
        return child

    def _reorder_child(self, item_id: Hashable, new_position: int) -> None:
        old_index = self.index_of(item_id)
        new_index = validate_position(new_position, len(self.children) - 1)
        self.children.insert(new_index, self.children.pop(old_index))
        self.shuffle_state.on_move(old_index, new_index)

    # =========================================================================
    # Shuffle
    # =========================================================================

    def shuffle(
        self,
        rng: Optional[random.Random] = None,
        pivot_id: Optional[Hashable] = None,
    ) -> None:
        """
        Shuffle iteration order.

        Args:
            rng: Random source
            pivot_id: Child to place first in the new order

        Raises:
            UnsupportedOperationError: If the collection is queued
        """
        self._ensure_detached("shuffle")
        self._shuffle(rng, pivot_id)

    def unshuffle(self) -> None:
        """Restore stored order for iteration."""
        self._ensure_detached("unshuffle")
        self._unshuffle()

    def toggle_shuffle(self, rng: Optional[random.Random] = None) -> bool:
        """Toggle shuffle and return the new state."""
        self._ensure_detached("shuffle")
        return self._toggle_shuffle(rng)

    def _shuffle(self, rng: Optional[random.Random], pivot_id: Optional[Hashable]) -> None:
        pivot_index = self.index_of(pivot_id) if pivot_id is not None else None
        self.shuffle_state.shuffle(len(self.children), rng, pivot_index)

    def _unshuffle(self) -> None:
        self.shuffle_state.unshuffle(len(self.children))

    def _toggle_shuffle(self, rng: Optional[random.Random]) -> bool:
        if self.is_shuffled:
            self._unshuffle()
        else:
            self._shuffle(rng, None)
        return self.is_shuffled


Item = Union[Single, Collection]


def _check_child(child: Any) -> None:
    if isinstance(child, Collection):
        raise UnsupportedOperationError("Collections cannot contain collections")
    if not isinstance(child, Single):
        raise TypeError(f"Expected Single, got {type(child).__name__}")


def leaf_count(item: Item) -> int:
    """Number of leaves an item contributes to traversal."""
    if isinstance(item, Collection):
        return len(item.children)
    return 1


def item_from_provider(data: Mapping[str, Any]) -> Item:
    """
    Build an item from an item provider payload.

    Expected keys:
        id: Identifier (required)
        metadata: Opaque payload, stored verbatim
        collection: True for collection-capable items
        children: List of child payloads (collections only)

    Raises:
        ValueError: If the payload has no id
        UnsupportedOperationError: If children are given for a single or a
            child is itself collection-capable
    """
    if "id" not in data:
        raise ValueError("Provider item is missing 'id'")

    children_data = data.get("children") or []
    if not data.get("collection", False):
        if children_data:
            raise UnsupportedOperationError(
                f"Single {data['id']!r} cannot have children"
            )
        return Single(item_id=data["id"], metadata=data.get("metadata"))

    children = []
    for child_data in children_data:
        child = item_from_provider(child_data)
        if isinstance(child, Collection):
            raise UnsupportedOperationError("Collections cannot contain collections")
        children.append(child)

    return Collection(
        item_id=data["id"],
        metadata=data.get("metadata"),
        children=children,
    )
