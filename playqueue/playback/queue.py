"""
Playback order management for playqueue.

Handles top-level ordering, per-collection shuffle, repeat and the current
pointer.
"""

import logging
import random
import threading
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Callable, Hashable, Iterable, Iterator, Optional, Union

from playqueue.errors import (
    DuplicateIdError,
    NotFoundError,
    UnsupportedOperationError,
)
from playqueue.model import (
    Collection,
    CursorState,
    Item,
    QueueStatus,
    QueueVersion,
    RepeatMode,
    Single,
    leaf_count,
    validate_position,
)

from .snapshot import QueueSnapshot, build_snapshot
from .traversal import (
    Position,
    Traversal,
    first_position,
    last_position,
    leaf_at,
    next_position,
    previous_position,
)

if TYPE_CHECKING:
    from playqueue.config import Config

logger = logging.getLogger(__name__)


class ChangeReason(Enum):
    """Why the current leaf changed."""

    NEXT = "next"
    PREVIOUS = "previous"
    REMOVE = "remove"
    PLAY_NOW = "play_now"
    CLEAR = "clear"
    LOAD = "load"


@dataclass(frozen=True)
class CurrentChange:
    """
    Notification payload for playback drivers.

    Attributes:
        previous: Leaf that was current before the change
        current: Leaf that is current now (None at a boundary or when empty)
        reason: Operation that caused the change
        version: Queue version after the change
    """

    previous: Optional[Single]
    current: Optional[Single]
    reason: ChangeReason
    version: QueueVersion


# Type alias for listeners
CurrentChangeCallback = Callable[[CurrentChange], None]


class PlaybackQueue:
    """
    Playback queue manager.

    Handles:
    - Top-level ordering of singles and collections
    - Independent, reversible shuffle per collection
    - Current pointer tracked by identifier
    - Repeat modes (off, track, collection, all)
    - Change notifications for playback drivers

    All mutations go through one lock. `current()` and `snapshot()` read
    published state and do not block on it.
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        remove_empty_collections: bool = True,
        repeat_mode: RepeatMode = RepeatMode.OFF,
    ) -> None:
        """
        Initialize empty queue.

        Args:
            rng: Random source for shuffling
            remove_empty_collections: Drop a collection when its last child is removed
            repeat_mode: Initial repeat mode
        """
        # Item storage
        self._entries: list[Item] = []
        self._items: dict[Hashable, Item] = {}  # Every id, top-level and children
        self._parents: dict[Hashable, Optional[Hashable]] = {}  # id -> collection id
        self._leaf_total: int = 0

        # Lazily rebuilt after structural changes
        self._top_positions: Optional[dict[Hashable, int]] = None

        # Pointer
        self._current_id: Optional[Hashable] = None
        self._current_leaf: Optional[Single] = None
        self._position: Optional[Position] = None  # Cached position of current
        self._cursor: CursorState = CursorState.BEFORE_START

        # Mode settings
        self._repeat_mode: RepeatMode = repeat_mode
        self._remove_empty_collections = remove_empty_collections
        self._rng = rng or random.Random()

        # Version tracking
        self._version: QueueVersion = QueueVersion()
        self._snapshot: Optional[QueueSnapshot] = None

        # Listeners
        self._listeners: list[CurrentChangeCallback] = []

        # Mutation boundary
        self._lock = threading.Lock()

        logger.debug("PlaybackQueue initialized")

    @classmethod
    def from_config(cls, config: "Config") -> "PlaybackQueue":
        """Create a queue from configuration."""
        return cls(
            rng=random.Random(config.shuffle.seed),
            remove_empty_collections=config.collections.remove_when_empty,
            repeat_mode=RepeatMode(config.playback.repeat_mode),
        )

    # =========================================================================
    # Listener Registration
    # =========================================================================

    def add_current_listener(self, callback: CurrentChangeCallback) -> None:
        """Register a callback fired when the current leaf changes."""
        if callback not in self._listeners:
            self._listeners.append(callback)

    def remove_current_listener(self, callback: CurrentChangeCallback) -> None:
        """Unregister a current change callback."""
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _notify(self, change: Optional[CurrentChange]) -> None:
        """Fire listeners (must NOT hold lock)."""
        if change is None:
            return
        for callback in list(self._listeners):
            try:
                callback(change)
            except Exception as e:
                logger.error(f"Error in current change listener: {e}", exc_info=True)

    # =========================================================================
    # Queue Management
    # =========================================================================

    def add(self, item: Item, position: Optional[int] = None) -> Item:
        """
        Insert a single or collection at the top level.

        Args:
            item: Item to insert
            position: Top-level index (default: end)

        Returns:
            The inserted item

        Raises:
            DuplicateIdError: If the item id or any child id is already present
            InvalidPositionError: If position is outside [0, len]
            UnsupportedOperationError: If the collection belongs to another queue
        """
        with self._lock:
            for item_id, _ in self._walk_ids(item):
                if item_id in self._items:
                    raise DuplicateIdError(item_id)
            self._check_unowned(item)
            index = validate_position(position, len(self._entries))

            self._entries.insert(index, item)
            self._register(item)
            self._invalidate_structure()

        logger.info(f"Added {item.kind.value} {item.item_id!r} at {index}")
        return item

    def add_child(
        self,
        collection_id: Hashable,
        item: Single,
        position: Optional[int] = None,
    ) -> Single:
        """
        Insert a single into a collection already in the queue.

        Args:
            collection_id: Target collection
            item: Single to insert
            position: Stored-order index (default: end)

        Raises:
            NotFoundError: If the collection is absent
            UnsupportedOperationError: If the target is a single or item is a collection
            DuplicateIdError: If the id is already present anywhere in the queue
            InvalidPositionError: If position is outside [0, len]
        """
        with self._lock:
            collection = self._require_collection(collection_id, "add children to")
            if isinstance(item, Collection):
                raise UnsupportedOperationError("Collections cannot contain collections")
            if item.item_id in self._items:
                raise DuplicateIdError(item.item_id)

            index = collection._insert_child(item, position)
            self._items[item.item_id] = item
            self._parents[item.item_id] = collection_id
            self._leaf_total += 1
            self._invalidate_collection(collection_id, structural=True)

        logger.info(f"Added {item.item_id!r} to collection {collection_id!r} at {index}")
        return item

    def remove(self, item_id: Hashable) -> Item:
        """
        Remove a top-level item or a collection child.

        If the current leaf is removed (directly or with its collection),
        the pointer moves to the next leaf in traversal order, or becomes
        empty if none remains.

        Returns:
            The removed item

        Raises:
            NotFoundError: If the id is absent
        """
        with self._lock:
            item = self._items.get(item_id)
            if item is None:
                raise NotFoundError(item_id)

            before = self._current_leaf
            removed_ids = {i for i, _ in self._walk_ids(item)}
            affected = self._current_id in removed_ids
            successor_id = self._successor_id(removed_ids) if affected else None

            parent_id = self._parents[item_id]
            if parent_id is None:
                self._remove_top_level(item)
            else:
                self._remove_child(parent_id, item_id)

            if affected:
                if successor_id is not None:
                    self._move_pointer(self._position_of(successor_id), CursorState.AFTER_END)
                else:
                    self._move_pointer(None, CursorState.AFTER_END)
            elif self._leaf_total == 0:
                self._move_pointer(None, CursorState.BEFORE_START)
            change = self._pointer_changed(before, ChangeReason.REMOVE)

        logger.info(f"Removed {item.kind.value} {item_id!r}")
        self._notify(change)
        return item

    def move(self, item_id: Hashable, new_position: int) -> None:
        """
        Relocate a top-level item.

        Args:
            item_id: Top-level item to move
            new_position: Final index of the item, in [0, len - 1]

        Raises:
            NotFoundError: If the id is not a top-level item
            InvalidPositionError: If new_position is out of range
        """
        with self._lock:
            if item_id not in self._items or self._parents[item_id] is not None:
                raise NotFoundError(item_id, f"No top-level item: {item_id!r}")
            new_index = validate_position(new_position, len(self._entries) - 1)
            old_index = self._top_index(item_id)
            if old_index == new_index:
                return

            self._entries.insert(new_index, self._entries.pop(old_index))
            self._invalidate_structure()

        logger.info(f"Moved {item_id!r}: {old_index} -> {new_index}")

    def move_child(self, collection_id: Hashable, child_id: Hashable, new_position: int) -> None:
        """
        Relocate a child within its collection's stored order.

        The shuffled order, if any, is kept.

        Raises:
            NotFoundError: If the collection or child is absent
            UnsupportedOperationError: If the target is a single
            InvalidPositionError: If new_position is out of range
        """
        with self._lock:
            collection = self._require_collection(collection_id, "reorder")
            if self._parents.get(child_id) != collection_id:
                raise NotFoundError(child_id)
            collection._reorder_child(child_id, new_position)
            self._invalidate_collection(collection_id, structural=True)

        logger.info(f"Moved {child_id!r} in collection {collection_id!r} to {new_position}")

    def clear(self) -> None:
        """Clear the entire queue."""
        with self._lock:
            before = self._current_leaf
            for entry in self._entries:
                if isinstance(entry, Collection):
                    entry._detach()
            self._entries.clear()
            self._items.clear()
            self._parents.clear()
            self._leaf_total = 0
            self._invalidate_structure()
            self._move_pointer(None, CursorState.BEFORE_START)
            change = self._pointer_changed(before, ChangeReason.CLEAR)

        logger.info("Queue cleared")
        self._notify(change)

    def load(self, items: Iterable[Item], current_id: Optional[Hashable] = None) -> None:
        """
        Replace the whole queue.

        Without `current_id` the cursor starts before the first leaf, the same
        as a freshly populated queue: nothing is current until the first
        `next()`, which returns the first leaf.

        Args:
            items: New top-level entries
            current_id: Leaf (or collection) to make current (optional)

        Raises:
            DuplicateIdError: If ids repeat across the new entries
            NotFoundError: If current_id is not among them
            UnsupportedOperationError: If a collection belongs to another queue
        """
        items = list(items)
        staged_items: dict[Hashable, Item] = {}
        staged_parents: dict[Hashable, Optional[Hashable]] = {}
        for item in items:
            for item_id, parent_id in self._walk_ids(item):
                if item_id in staged_parents:
                    raise DuplicateIdError(item_id)
                staged_parents[item_id] = parent_id
            self._check_unowned(item)
            staged_items[item.item_id] = item
            if isinstance(item, Collection):
                staged_items.update((child.item_id, child) for child in item.children)

        if current_id is not None:
            target = staged_items.get(current_id)
            if target is None or (isinstance(target, Collection) and not target.children):
                raise NotFoundError(current_id)

        with self._lock:
            before = self._current_leaf
            for entry in self._entries:
                if isinstance(entry, Collection):
                    entry._detach()
            self._entries = items
            self._items = staged_items
            self._parents = staged_parents
            self._leaf_total = sum(leaf_count(item) for item in items)
            for item in items:
                if isinstance(item, Collection):
                    item._attach(self)
            self._invalidate_structure()

            if current_id is not None:
                self._move_pointer(self._leaf_position(current_id), CursorState.AFTER_END)
            else:
                self._move_pointer(None, CursorState.BEFORE_START)
            change = self._pointer_changed(before, ChangeReason.LOAD)

        logger.info(
            f"Loaded queue: {len(items)} entries, {self._leaf_total} leaves, "
            f"version {self._version}"
        )
        self._notify(change)

    # =========================================================================
    # Shuffle
    # =========================================================================

    def shuffle(self, item_id: Hashable, pivot_id: Optional[Hashable] = None) -> None:
        """
        Shuffle a collection's iteration order.

        Args:
            item_id: Collection to shuffle
            pivot_id: Child to place first in the new order (optional)

        Raises:
            NotFoundError: If the collection or pivot is absent
            UnsupportedOperationError: If item_id names a single
        """
        with self._lock:
            collection = self._require_collection(item_id, "shuffle")
            if pivot_id is not None and self._parents.get(pivot_id) != item_id:
                raise NotFoundError(pivot_id)
            collection._shuffle(self._rng, pivot_id)
            self._invalidate_collection(item_id, structural=False)

        logger.info(f"Shuffled collection {item_id!r}")

    def unshuffle(self, item_id: Hashable) -> None:
        """
        Restore a collection's stored order for iteration.

        Raises:
            NotFoundError: If the collection is absent
            UnsupportedOperationError: If item_id names a single
        """
        with self._lock:
            collection = self._require_collection(item_id, "unshuffle")
            collection._unshuffle()
            self._invalidate_collection(item_id, structural=False)

        logger.info(f"Unshuffled collection {item_id!r}")

    def toggle_shuffle(self, item_id: Hashable) -> bool:
        """Toggle a collection's shuffle and return the new state."""
        with self._lock:
            collection = self._require_collection(item_id, "shuffle")
            shuffled = collection._toggle_shuffle(self._rng)
            self._invalidate_collection(item_id, structural=False)

        logger.info(f"Collection {item_id!r} shuffle: {shuffled}")
        return shuffled

    # =========================================================================
    # Repeat Mode
    # =========================================================================

    def set_repeat_mode(self, mode: Union[RepeatMode, str]) -> None:
        """Set repeat mode."""
        mode = RepeatMode(mode)
        with self._lock:
            self._repeat_mode = mode
            self._version = self._version.bump_minor()
            self._snapshot = None
        logger.info(f"Repeat mode: {mode.value}")

    @property
    def repeat_mode(self) -> RepeatMode:
        """Current repeat mode."""
        return self._repeat_mode

    # =========================================================================
    # Navigation
    # =========================================================================

    def current(self) -> Optional[Single]:
        """Get the current leaf, or None."""
        return self._current_leaf

    @property
    def current_id(self) -> Optional[Hashable]:
        """Identifier of the current leaf, or None."""
        leaf = self._current_leaf
        return leaf.item_id if leaf is not None else None

    def next(self) -> Optional[Single]:
        """
        Advance to the next leaf respecting repeat mode.

        Returns:
            New current leaf, or None at the end of the queue
        """
        with self._lock:
            before = self._current_leaf
            self._move_pointer(self._step_forward(), CursorState.AFTER_END)
            change = self._pointer_changed(before, ChangeReason.NEXT)
            leaf = self._current_leaf
            position = self._position

        if leaf is None:
            logger.debug("End of queue reached")
        else:
            logger.debug(f"Advanced to {leaf.item_id!r} at {position}")
        self._notify(change)
        return leaf

    def previous(self) -> Optional[Single]:
        """
        Go back to the previous leaf respecting repeat mode.

        Returns:
            New current leaf, or None at the start of the queue
        """
        with self._lock:
            before = self._current_leaf
            self._move_pointer(self._step_backward(), CursorState.BEFORE_START)
            change = self._pointer_changed(before, ChangeReason.PREVIOUS)
            leaf = self._current_leaf
            position = self._position

        if leaf is None:
            logger.debug("At beginning of queue")
        else:
            logger.debug(f"Went back to {leaf.item_id!r} at {position}")
        self._notify(change)
        return leaf

    def play_now(self, item_id: Hashable) -> Single:
        """
        Make a leaf current immediately, keeping the rest of the queue.

        A collection id jumps to its first child in effective order.

        Raises:
            NotFoundError: If the id is absent or names an empty collection
        """
        with self._lock:
            before = self._current_leaf
            self._move_pointer(self._leaf_position(item_id), CursorState.AFTER_END)
            change = self._pointer_changed(before, ChangeReason.PLAY_NOW)
            leaf = self._current_leaf

        logger.info(f"Playing now: {leaf.item_id!r}")
        self._notify(change)
        return leaf

    def _step_forward(self) -> Optional[Position]:
        """Position after the current one (must hold lock)."""
        if self._cursor is CursorState.BEFORE_START:
            return first_position(self._entries)
        if self._cursor is CursorState.AFTER_END:
            if self._repeat_mode is RepeatMode.ALL:
                return first_position(self._entries)
            return None

        position = self._current_position()
        if self._repeat_mode is RepeatMode.TRACK:
            return position

        upcoming = next_position(self._entries, position)
        if self._repeat_mode is RepeatMode.COLLECTION and position.child is not None:
            if upcoming is None or upcoming.top != position.top:
                return Position(position.top, 0)
        if upcoming is None and self._repeat_mode is RepeatMode.ALL:
            logger.info("Queue wrapped to beginning (repeat all)")
            return first_position(self._entries)
        return upcoming

    def _step_backward(self) -> Optional[Position]:
        """Position before the current one (must hold lock)."""
        if self._cursor is CursorState.AFTER_END:
            return last_position(self._entries)
        if self._cursor is CursorState.BEFORE_START:
            if self._repeat_mode is RepeatMode.ALL:
                return last_position(self._entries)
            return None

        position = self._current_position()
        if self._repeat_mode is RepeatMode.TRACK:
            return position

        earlier = previous_position(self._entries, position)
        if self._repeat_mode is RepeatMode.COLLECTION and position.child is not None:
            if earlier is None or earlier.top != position.top:
                return Position(position.top, len(self._entries[position.top]) - 1)
        if earlier is None and self._repeat_mode is RepeatMode.ALL:
            logger.info("Queue wrapped to end (repeat all)")
            return last_position(self._entries)
        return earlier

    # =========================================================================
    # State Access
    # =========================================================================

    def snapshot(self) -> QueueSnapshot:
        """Get an immutable projection of the queue for display."""
        snapshot = self._snapshot
        if snapshot is not None:
            return snapshot
        with self._lock:
            if self._snapshot is None:
                self._snapshot = build_snapshot(
                    self._entries,
                    self._current_id,
                    self._cursor,
                    self._repeat_mode,
                    self._version,
                )
            return self._snapshot

    def traversal(self) -> Traversal:
        """Get a restartable, lazy flattening of the queue."""
        with self._lock:
            return Traversal(self._entries)

    def __iter__(self) -> Iterator[Single]:
        return iter(self.traversal())

    def entries(self) -> list[Item]:
        """Top-level entries in stored order."""
        with self._lock:
            return list(self._entries)

    def get(self, item_id: Hashable) -> Item:
        """Look up any item by id."""
        item = self._items.get(item_id)
        if item is None:
            raise NotFoundError(item_id)
        return item

    def parent_of(self, item_id: Hashable) -> Optional[Collection]:
        """Collection holding a child, or None for top-level items."""
        if item_id not in self._parents:
            raise NotFoundError(item_id)
        parent_id = self._parents[item_id]
        return self._items[parent_id] if parent_id is not None else None  # type: ignore[return-value]

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._items

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def leaf_count(self) -> int:
        """Number of leaves across the queue."""
        return self._leaf_total

    @property
    def status(self) -> QueueStatus:
        """Lifecycle status: empty when there are no leaves."""
        return QueueStatus.POPULATED if self._leaf_total else QueueStatus.EMPTY

    @property
    def is_empty(self) -> bool:
        """Check if queue has no leaves."""
        return self._leaf_total == 0

    @property
    def cursor_state(self) -> CursorState:
        """Where the pointer sits relative to the traversal."""
        return self._cursor

    @property
    def version(self) -> QueueVersion:
        """Current queue version."""
        return self._version

    # =========================================================================
    # Internals (must hold lock)
    # =========================================================================

    @staticmethod
    def _walk_ids(item: Item) -> Iterator[tuple[Hashable, Optional[Hashable]]]:
        """Yield (id, parent id) for an item and its children."""
        if not isinstance(item, (Single, Collection)):
            raise TypeError(f"Expected Single or Collection, got {type(item).__name__}")
        yield item.item_id, None
        if isinstance(item, Collection):
            for child in item.children:
                yield child.item_id, item.item_id

    def _check_unowned(self, item: Item) -> None:
        if isinstance(item, Collection) and item.is_attached and item._owner is not self:
            raise UnsupportedOperationError(
                f"Collection {item.item_id!r} already belongs to another queue"
            )

    def _register(self, item: Item) -> None:
        self._items[item.item_id] = item
        self._parents[item.item_id] = None
        if isinstance(item, Collection):
            item._attach(self)
            for child in item.children:
                self._items[child.item_id] = child
                self._parents[child.item_id] = item.item_id
        self._leaf_total += leaf_count(item)

    def _unregister(self, item: Item) -> None:
        for item_id, _ in self._walk_ids(item):
            del self._items[item_id]
            del self._parents[item_id]
        if isinstance(item, Collection):
            item._detach()
        self._leaf_total -= leaf_count(item)

    def _remove_top_level(self, item: Item) -> None:
        self._entries.pop(self._top_index(item.item_id))
        self._unregister(item)
        self._invalidate_structure()

    def _remove_child(self, collection_id: Hashable, child_id: Hashable) -> None:
        collection = self._items[collection_id]
        collection._pop_child(child_id)
        del self._items[child_id]
        del self._parents[child_id]
        self._leaf_total -= 1

        if not collection.children and self._remove_empty_collections:
            logger.debug(f"Collection {collection_id!r} is empty, removing it")
            self._remove_top_level(collection)
        else:
            self._invalidate_collection(collection_id, structural=True)

    def _require_collection(self, item_id: Hashable, action: str) -> Collection:
        item = self._items.get(item_id)
        if item is None:
            raise NotFoundError(item_id)
        if not isinstance(item, Collection):
            raise UnsupportedOperationError(f"Cannot {action} single {item_id!r}")
        return item

    def _top_index(self, item_id: Hashable) -> int:
        if self._top_positions is None:
            self._top_positions = {
                entry.item_id: i for i, entry in enumerate(self._entries)
            }
        return self._top_positions[item_id]

    def _position_of(self, leaf_id: Hashable) -> Position:
        parent_id = self._parents[leaf_id]
        if parent_id is None:
            return Position(self._top_index(leaf_id))
        collection = self._items[parent_id]
        return Position(self._top_index(parent_id), collection.position_of(leaf_id))

    def _leaf_position(self, item_id: Hashable) -> Position:
        """Position of a leaf, or of a collection's first leaf."""
        item = self._items.get(item_id)
        if item is None:
            raise NotFoundError(item_id)
        if isinstance(item, Collection):
            if not item.children:
                raise NotFoundError(item_id, f"Collection {item_id!r} has no leaves")
            return Position(self._top_index(item_id), 0)
        return self._position_of(item_id)

    def _current_position(self) -> Optional[Position]:
        if self._cursor is not CursorState.ACTIVE:
            return None
        if self._position is None:
            self._position = self._position_of(self._current_id)
        return self._position

    def _successor_id(self, removed_ids: set[Hashable]) -> Optional[Hashable]:
        """First leaf after the current one that survives a removal."""
        position = self._current_position()
        while position is not None:
            position = next_position(self._entries, position)
            if position is None:
                return None
            leaf = leaf_at(self._entries, position)
            if leaf.item_id not in removed_ids:
                return leaf.item_id
        return None

    def _move_pointer(self, position: Optional[Position], boundary: CursorState) -> None:
        """Point at `position`, or at the given boundary when None."""
        if position is None:
            self._position = None
            self._current_id = None
            self._current_leaf = None
            self._cursor = boundary if self._leaf_total else CursorState.BEFORE_START
            return
        leaf = leaf_at(self._entries, position)
        self._position = position
        self._current_id = leaf.item_id
        self._current_leaf = leaf
        self._cursor = CursorState.ACTIVE

    def _pointer_changed(
        self, before: Optional[Single], reason: ChangeReason
    ) -> Optional[CurrentChange]:
        self._snapshot = None
        after = self._current_leaf
        if before is after:
            return None
        self._version = self._version.bump_minor()
        return CurrentChange(previous=before, current=after, reason=reason, version=self._version)

    def _invalidate_structure(self) -> None:
        """Top-level order changed: drop index caches."""
        self._top_positions = None
        self._position = None
        self._snapshot = None
        self._version = self._version.bump_major()

    def _invalidate_collection(self, collection_id: Hashable, structural: bool) -> None:
        """A collection changed: only the active one affects the cached position."""
        if self._current_id is not None and self._parents.get(self._current_id) == collection_id:
            self._position = None
        self._snapshot = None
        if structural:
            self._version = self._version.bump_major()
        else:
            self._version = self._version.bump_minor()
