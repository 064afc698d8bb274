"""
Queue error taxonomy.

All errors are local and recoverable; a failed operation leaves the queue
unchanged.
"""

from typing import Hashable, Optional


class QueueError(Exception):
    """Base class for queue errors."""

    pass


class NotFoundError(QueueError):
    """Raised when an identifier is not present in the queue."""

    def __init__(self, item_id: Hashable, message: Optional[str] = None):
        self.item_id = item_id
        super().__init__(message or f"Item not found: {item_id!r}")


class DuplicateIdError(QueueError):
    """Raised when an identifier is already present anywhere in the queue."""

    def __init__(self, item_id: Hashable):
        self.item_id = item_id
        super().__init__(f"Duplicate item id: {item_id!r}")


class UnsupportedOperationError(QueueError):
    """Raised when an operation is not offered by the item's variant."""

    pass


class InvalidPositionError(QueueError):
    """Raised when a position falls outside the valid range."""

    def __init__(self, position: object, length: int):
        self.position = position
        self.length = length
        super().__init__(f"Invalid position {position!r}, expected 0..{length}")
