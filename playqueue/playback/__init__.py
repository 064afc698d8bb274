"""Playback order, traversal and queue integration module."""

from .traversal import (
    Position,
    Traversal,
    first_position,
    iter_leaves,
    last_position,
    leaf_at,
    next_position,
    previous_position,
)
from .snapshot import (
    EntryView,
    LeafView,
    QueueSnapshot,
    build_snapshot,
)
from .queue import (
    ChangeReason,
    CurrentChange,
    CurrentChangeCallback,
    PlaybackQueue,
)
from .command_handler import CommandResult, QueueCommandHandler
from .state_reporter import CurrentItemReport, StateReporter

__all__ = [
    # Traversal
    "Position",
    "Traversal",
    "first_position",
    "iter_leaves",
    "last_position",
    "leaf_at",
    "next_position",
    "previous_position",
    # Snapshot
    "EntryView",
    "LeafView",
    "QueueSnapshot",
    "build_snapshot",
    # Queue
    "ChangeReason",
    "CurrentChange",
    "CurrentChangeCallback",
    "PlaybackQueue",
    # Handlers
    "CommandResult",
    "QueueCommandHandler",
    # State reporting
    "CurrentItemReport",
    "StateReporter",
]
