"""Tests for leaf-level traversal."""

import random

from playqueue.model import Collection, Single
from playqueue.playback.traversal import (
    Position,
    Traversal,
    first_position,
    iter_leaves,
    last_position,
    leaf_at,
    next_position,
    previous_position,
)


def _scenario() -> list:
    """[A, C=[B, D], E]"""
    return [
        Single("A"),
        Collection("C", children=[Single("B"), Single("D")]),
        Single("E"),
    ]


class TestPositions:
    """Tests for position stepping."""

    def test_first_and_last(self) -> None:
        entries = _scenario()
        assert first_position(entries) == Position(0)
        assert last_position(entries) == Position(2)

    def test_empty(self) -> None:
        assert first_position([]) is None
        assert last_position([]) is None

    def test_skips_empty_collections(self) -> None:
        entries = [Collection("empty"), Single("A"), Collection("empty2")]
        assert first_position(entries) == Position(1)
        assert last_position(entries) == Position(1)
        assert next_position(entries, Position(1)) is None
        assert previous_position(entries, Position(1)) is None

    def test_next_descends_into_collection(self) -> None:
        entries = _scenario()
        assert next_position(entries, Position(0)) == Position(1, 0)
        assert next_position(entries, Position(1, 0)) == Position(1, 1)
        assert next_position(entries, Position(1, 1)) == Position(2)
        assert next_position(entries, Position(2)) is None

    def test_previous_ascends_out_of_collection(self) -> None:
        entries = _scenario()
        assert previous_position(entries, Position(2)) == Position(1, 1)
        assert previous_position(entries, Position(1, 1)) == Position(1, 0)
        assert previous_position(entries, Position(1, 0)) == Position(0)
        assert previous_position(entries, Position(0)) is None

    def test_leaf_at_follows_shuffle(self) -> None:
        entries = _scenario()
        collection = entries[1]
        collection.shuffle_state.shuffled = True
        collection.shuffle_state.permutation = [1, 0]
        assert leaf_at(entries, Position(1, 0)).item_id == "D"
        assert leaf_at(entries, Position(1, 1)).item_id == "B"


class TestIterLeaves:
    """Tests for the lazy leaf generator."""

    def test_order(self) -> None:
        assert [leaf.item_id for leaf in iter_leaves(_scenario())] == ["A", "B", "D", "E"]

    def test_from_start_position(self) -> None:
        leaves = iter_leaves(_scenario(), start=Position(1, 1))
        assert [leaf.item_id for leaf in leaves] == ["D", "E"]

    def test_is_lazy(self) -> None:
        entries = _scenario()
        leaves = iter_leaves(entries)
        assert next(leaves).item_id == "A"
        # Shuffle applied mid-iteration is seen by the remaining steps
        entries[1].shuffle_state.shuffled = True
        entries[1].shuffle_state.permutation = [1, 0]
        assert [leaf.item_id for leaf in leaves] == ["D", "B", "E"]


class TestTraversal:
    """Tests for the restartable Traversal view."""

    def test_restartable(self) -> None:
        traversal = Traversal(_scenario())
        assert traversal.ids() == ["A", "B", "D", "E"]
        assert traversal.ids() == ["A", "B", "D", "E"]

    def test_len_is_leaf_count(self) -> None:
        assert len(Traversal(_scenario())) == 4
        assert len(Traversal([])) == 0

    def test_reflects_shuffle_between_iterations(self) -> None:
        entries = _scenario()
        traversal = Traversal(entries)
        entries[1].shuffle(random.Random(0))
        effective = [c.item_id for c in entries[1].effective_children()]
        assert traversal.ids() == ["A"] + effective + ["E"]

    def test_top_level_order_is_fixed_at_creation(self) -> None:
        entries = _scenario()
        traversal = Traversal(entries)
        entries.append(Single("F"))
        assert traversal.ids() == ["A", "B", "D", "E"]
