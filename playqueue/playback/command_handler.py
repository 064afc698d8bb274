"""
Queue command handler for UI integration.

Translates UI commands into queue operations and reports the outcome as a
typed result instead of raising.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from playqueue.errors import QueueError
from playqueue.model import Item, Single, item_from_provider

from .queue import PlaybackQueue

logger = logging.getLogger(__name__)

# UI command names
CMD_ADD = "add"
CMD_ADD_CHILD = "add_child"
CMD_REMOVE = "remove"
CMD_MOVE = "move"
CMD_MOVE_CHILD = "move_child"
CMD_SHUFFLE = "shuffle"
CMD_UNSHUFFLE = "unshuffle"
CMD_TOGGLE_SHUFFLE = "toggle_shuffle"
CMD_PLAY_NOW = "play_now"
CMD_NEXT = "next"
CMD_PREVIOUS = "previous"
CMD_SET_REPEAT = "set_repeat"
CMD_CLEAR = "clear"
CMD_SNAPSHOT = "snapshot"


@dataclass
class CommandResult:
    """
    Outcome of a UI command.

    Exactly one of `value` (on success) or `error` (on failure) is meaningful.
    """

    ok: bool
    value: Any = None
    error: Optional[QueueError] = None

    @classmethod
    def success(cls, value: Any = None) -> "CommandResult":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: QueueError) -> "CommandResult":
        return cls(ok=False, error=error)

    def unwrap(self) -> Any:
        """Return the value, or raise the stored error."""
        if self.error is not None:
            raise self.error
        return self.value


class QueueCommandHandler:
    """
    Handles queue commands from a UI layer.

    Items arrive as item provider payloads (see `item_from_provider`).
    """

    def __init__(self, queue: PlaybackQueue):
        """Initialize command handler."""
        self.queue = queue
        self._commands: dict[str, Callable[..., Any]] = {
            CMD_ADD: self._handle_add,
            CMD_ADD_CHILD: self._handle_add_child,
            CMD_REMOVE: lambda item_id: self.queue.remove(item_id),
            CMD_MOVE: lambda item_id, position: self.queue.move(item_id, position),
            CMD_MOVE_CHILD: lambda collection_id, item_id, position: self.queue.move_child(
                collection_id, item_id, position
            ),
            CMD_SHUFFLE: lambda item_id, pivot_id=None: self.queue.shuffle(item_id, pivot_id),
            CMD_UNSHUFFLE: lambda item_id: self.queue.unshuffle(item_id),
            CMD_TOGGLE_SHUFFLE: lambda item_id: self.queue.toggle_shuffle(item_id),
            CMD_PLAY_NOW: lambda item_id: self.queue.play_now(item_id),
            CMD_NEXT: self.queue.next,
            CMD_PREVIOUS: self.queue.previous,
            CMD_SET_REPEAT: lambda mode: self.queue.set_repeat_mode(mode),
            CMD_CLEAR: self.queue.clear,
            CMD_SNAPSHOT: self.queue.snapshot,
        }

    def get_commands(self) -> list[str]:
        """Get list of command names this handler processes."""
        return list(self._commands)

    def handle_command(self, command: str, params: Optional[dict[str, Any]] = None) -> CommandResult:
        """
        Run a UI command.

        Args:
            command: Command name (see CMD_* constants)
            params: Keyword parameters for the command

        Returns:
            CommandResult with the operation's return value or queue error

        Raises:
            ValueError: If the command is unknown
        """
        handler = self._commands.get(command)
        if handler is None:
            raise ValueError(f"Unknown queue command: {command}")

        try:
            value = handler(**(params or {}))
        except QueueError as e:
            logger.warning(f"Queue command {command} rejected: {e}")
            return CommandResult.failure(e)

        logger.debug(f"Queue command {command} applied")
        return CommandResult.success(value)

    def _handle_add(self, item: dict[str, Any], position: Optional[int] = None) -> Item:
        """Add a provider item at the top level."""
        return self.queue.add(item_from_provider(item), position)

    def _handle_add_child(
        self,
        collection_id: Any,
        item: dict[str, Any],
        position: Optional[int] = None,
    ) -> Single:
        """Add a provider item to a collection."""
        child = item_from_provider(item)
        return self.queue.add_child(collection_id, child, position)  # type: ignore[arg-type]
