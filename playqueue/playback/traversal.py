"""
Leaf-level traversal over queue entries.

Positions are explicit (top-level index, child position) pairs so a single
step only looks at the entries around it. Child positions are iteration
positions, so they follow each collection's shuffle state.
"""

from typing import Iterator, NamedTuple, Optional, Sequence

from playqueue.model import Collection, Item, Single, leaf_count


class Position(NamedTuple):
    """Location of a leaf: top-level index and, inside a collection, its iteration position."""

    top: int
    child: Optional[int] = None


def _first_in(entries: Sequence[Item], start: int) -> Optional[Position]:
    for top in range(max(start, 0), len(entries)):
        entry = entries[top]
        if isinstance(entry, Collection):
            if entry.children:
                return Position(top, 0)
        else:
            return Position(top)
    return None


def _last_in(entries: Sequence[Item], start: int) -> Optional[Position]:
    for top in range(min(start, len(entries) - 1), -1, -1):
        entry = entries[top]
        if isinstance(entry, Collection):
            if entry.children:
                return Position(top, len(entry.children) - 1)
        else:
            return Position(top)
    return None


def first_position(entries: Sequence[Item]) -> Optional[Position]:
    """Position of the first leaf, skipping empty collections."""
    return _first_in(entries, 0)


def last_position(entries: Sequence[Item]) -> Optional[Position]:
    """Position of the last leaf, skipping empty collections."""
    return _last_in(entries, len(entries) - 1)


def next_position(entries: Sequence[Item], position: Position) -> Optional[Position]:
    """Position one leaf after `position`, or None at the end."""
    entry = entries[position.top]
    if (
        isinstance(entry, Collection)
        and position.child is not None
        and position.child + 1 < len(entry.children)
    ):
        return Position(position.top, position.child + 1)
    return _first_in(entries, position.top + 1)


def previous_position(entries: Sequence[Item], position: Position) -> Optional[Position]:
    """Position one leaf before `position`, or None at the start."""
    if position.child is not None and position.child > 0:
        return Position(position.top, position.child - 1)
    return _last_in(entries, position.top - 1)


def leaf_at(entries: Sequence[Item], position: Position) -> Single:
    """Resolve a position to its leaf."""
    entry = entries[position.top]
    if isinstance(entry, Collection):
        return entry.get_at_index(position.child or 0)
    return entry


def iter_leaves(
    entries: Sequence[Item], start: Optional[Position] = None
) -> Iterator[Single]:
    """
    Lazily yield leaves in traversal order.

    Args:
        entries: Top-level queue entries
        start: First position to yield (defaults to the first leaf)
    """
    position = start if start is not None else first_position(entries)
    while position is not None:
        yield leaf_at(entries, position)
        position = next_position(entries, position)


class Traversal:
    """
    Restartable flattened view of queue entries.

    Each iteration starts from the first leaf and reads collections lazily,
    so a shuffle applied between iterations is reflected in the next one.
    """

    def __init__(self, entries: Sequence[Item]):
        self._entries = tuple(entries)

    def __iter__(self) -> Iterator[Single]:
        return iter_leaves(self._entries)

    def __len__(self) -> int:
        return sum(leaf_count(entry) for entry in self._entries)

    def ids(self) -> list:
        """Identifiers of all leaves in traversal order."""
        return [leaf.item_id for leaf in self]
