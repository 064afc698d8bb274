"""Tests for the UI command handler."""

import pytest

from playqueue.errors import (
    DuplicateIdError,
    InvalidPositionError,
    NotFoundError,
    UnsupportedOperationError,
)
from playqueue.model import Collection, RepeatMode, Single
from playqueue.playback.command_handler import (
    CMD_ADD,
    CMD_ADD_CHILD,
    CMD_CLEAR,
    CMD_MOVE,
    CMD_MOVE_CHILD,
    CMD_NEXT,
    CMD_PLAY_NOW,
    CMD_PREVIOUS,
    CMD_REMOVE,
    CMD_SET_REPEAT,
    CMD_SHUFFLE,
    CMD_SNAPSHOT,
    CMD_TOGGLE_SHUFFLE,
    CMD_UNSHUFFLE,
    CommandResult,
    QueueCommandHandler,
)
from playqueue.playback.queue import PlaybackQueue


@pytest.fixture
def handler() -> QueueCommandHandler:
    """Handler over queue = [A, C=[B, D], E]."""
    handler = QueueCommandHandler(PlaybackQueue())
    handler.handle_command(CMD_ADD, {"item": {"id": "A"}})
    handler.handle_command(
        CMD_ADD,
        {"item": {"id": "C", "collection": True, "children": [{"id": "B"}, {"id": "D"}]}},
    )
    handler.handle_command(CMD_ADD, {"item": {"id": "E"}})
    return handler


class TestCommandResult:
    """Tests for CommandResult."""

    def test_success(self) -> None:
        result = CommandResult.success(42)
        assert result.ok is True
        assert result.unwrap() == 42

    def test_failure_unwrap_raises(self) -> None:
        error = NotFoundError("x")
        result = CommandResult.failure(error)
        assert result.ok is False
        assert result.error is error
        with pytest.raises(NotFoundError):
            result.unwrap()


class TestQueueCommandHandler:
    """Tests for QueueCommandHandler."""

    def test_get_commands(self, handler: QueueCommandHandler) -> None:
        commands = handler.get_commands()
        for command in (
            CMD_ADD,
            CMD_ADD_CHILD,
            CMD_REMOVE,
            CMD_MOVE,
            CMD_MOVE_CHILD,
            CMD_SHUFFLE,
            CMD_UNSHUFFLE,
            CMD_TOGGLE_SHUFFLE,
            CMD_PLAY_NOW,
            CMD_NEXT,
            CMD_PREVIOUS,
            CMD_SET_REPEAT,
            CMD_CLEAR,
            CMD_SNAPSHOT,
        ):
            assert command in commands

    def test_unknown_command(self, handler: QueueCommandHandler) -> None:
        with pytest.raises(ValueError):
            handler.handle_command("rewind")

    def test_add_builds_items(self, handler: QueueCommandHandler) -> None:
        entries = handler.queue.entries()
        assert isinstance(entries[0], Single)
        assert isinstance(entries[1], Collection)
        assert handler.queue.traversal().ids() == ["A", "B", "D", "E"]

    def test_add_returns_item(self, handler: QueueCommandHandler) -> None:
        result = handler.handle_command(
            CMD_ADD, {"item": {"id": "X", "metadata": {"title": "Ex"}}, "position": 0}
        )
        assert result.ok is True
        assert result.value.item_id == "X"
        assert handler.queue.entries()[0].metadata == {"title": "Ex"}

    def test_add_duplicate_is_failure(self, handler: QueueCommandHandler) -> None:
        result = handler.handle_command(CMD_ADD, {"item": {"id": "B"}})
        assert result.ok is False
        assert isinstance(result.error, DuplicateIdError)

    def test_add_invalid_position_is_failure(self, handler: QueueCommandHandler) -> None:
        result = handler.handle_command(CMD_ADD, {"item": {"id": "X"}, "position": 10})
        assert isinstance(result.error, InvalidPositionError)

    def test_add_child(self, handler: QueueCommandHandler) -> None:
        result = handler.handle_command(
            CMD_ADD_CHILD, {"collection_id": "C", "item": {"id": "F"}, "position": 0}
        )
        assert result.ok is True
        assert handler.queue.traversal().ids() == ["A", "F", "B", "D", "E"]

    def test_navigation(self, handler: QueueCommandHandler) -> None:
        assert handler.handle_command(CMD_NEXT).value.item_id == "A"
        assert handler.handle_command(CMD_NEXT).value.item_id == "B"
        assert handler.handle_command(CMD_PREVIOUS).value.item_id == "A"
        assert handler.handle_command(CMD_PLAY_NOW, {"item_id": "E"}).value.item_id == "E"
        result = handler.handle_command(CMD_NEXT)
        assert result.ok is True
        assert result.value is None

    def test_shuffle_single_is_failure(self, handler: QueueCommandHandler) -> None:
        result = handler.handle_command(CMD_SHUFFLE, {"item_id": "A"})
        assert result.ok is False
        assert isinstance(result.error, UnsupportedOperationError)
        assert handler.queue.traversal().ids() == ["A", "B", "D", "E"]

    def test_shuffle_and_unshuffle(self, handler: QueueCommandHandler) -> None:
        handler.handle_command(CMD_SHUFFLE, {"item_id": "C", "pivot_id": "D"})
        assert handler.queue.traversal().ids() == ["A", "D", "B", "E"]
        handler.handle_command(CMD_UNSHUFFLE, {"item_id": "C"})
        assert handler.queue.traversal().ids() == ["A", "B", "D", "E"]

    def test_toggle_shuffle(self, handler: QueueCommandHandler) -> None:
        assert handler.handle_command(CMD_TOGGLE_SHUFFLE, {"item_id": "C"}).value is True
        assert handler.handle_command(CMD_TOGGLE_SHUFFLE, {"item_id": "C"}).value is False

    def test_remove_and_move(self, handler: QueueCommandHandler) -> None:
        removed = handler.handle_command(CMD_REMOVE, {"item_id": "A"})
        assert removed.value.item_id == "A"
        handler.handle_command(CMD_MOVE, {"item_id": "E", "position": 0})
        handler.handle_command(
            CMD_MOVE_CHILD, {"collection_id": "C", "item_id": "D", "position": 0}
        )
        assert handler.queue.traversal().ids() == ["E", "D", "B"]

    def test_remove_missing_is_failure(self, handler: QueueCommandHandler) -> None:
        result = handler.handle_command(CMD_REMOVE, {"item_id": "Z"})
        assert isinstance(result.error, NotFoundError)

    def test_set_repeat(self, handler: QueueCommandHandler) -> None:
        handler.handle_command(CMD_SET_REPEAT, {"mode": "all"})
        assert handler.queue.repeat_mode is RepeatMode.ALL

    def test_snapshot_and_clear(self, handler: QueueCommandHandler) -> None:
        snapshot = handler.handle_command(CMD_SNAPSHOT).value
        assert snapshot.leaf_ids() == ["A", "B", "D", "E"]
        handler.handle_command(CMD_CLEAR)
        assert handler.queue.is_empty is True
