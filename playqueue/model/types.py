"""
Queue model types and enumerations.
"""

from dataclasses import dataclass
from enum import Enum


class ItemKind(Enum):
    """Variant tag for queue items."""

    SINGLE = "single"  # Leaf, no children
    COLLECTION = "collection"  # Ordered Single children, shuffle-capable


class RepeatMode(Enum):
    """Queue repeat modes."""

    OFF = "off"  # Stop after last leaf
    TRACK = "track"  # Repeat current leaf
    COLLECTION = "collection"  # Loop the active collection
    ALL = "all"  # Loop entire queue


@dataclass
class QueueVersion:
    """
    Queue version for change tracking.

    Major increments on structural changes (add/remove/move).
    Minor increments on ordering and pointer changes (shuffle, next, repeat).
    """

    major: int = 0
    minor: int = 0

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}"

    def is_newer_than(self, other: "QueueVersion") -> bool:
        """Check if this version is newer than another."""
        if self.major != other.major:
            return self.major > other.major
        return self.minor > other.minor

    def bump_major(self) -> "QueueVersion":
        """Return the next structural version."""
        return QueueVersion(major=self.major + 1, minor=0)

    def bump_minor(self) -> "QueueVersion":
        """Return the next ordering version."""
        return QueueVersion(major=self.major, minor=self.minor + 1)


class QueueStatus(Enum):
    """Queue lifecycle status."""

    EMPTY = "empty"  # No leaves at all
    POPULATED = "populated"  # At least one leaf


class CursorState(Enum):
    """Where the current pointer sits relative to the traversal."""

    BEFORE_START = "before_start"  # Nothing started, or stepped back past the first leaf
    ACTIVE = "active"  # Pointing at a leaf
    AFTER_END = "after_end"  # Stepped past the last leaf
