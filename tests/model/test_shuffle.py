"""Tests for per-collection shuffle state."""

import random

from playqueue.model.shuffle import ShuffleState


class TestShuffleStateInit:
    """Tests for ShuffleState construction."""

    def test_defaults(self) -> None:
        state = ShuffleState()
        assert state.shuffled is False
        assert state.permutation == []

    def test_identity(self) -> None:
        state = ShuffleState.identity(4)
        assert state.shuffled is False
        assert state.order() == [0, 1, 2, 3]


class TestShuffleStateShuffle:
    """Tests for shuffle and unshuffle."""

    def test_shuffle_is_permutation(self) -> None:
        state = ShuffleState.identity(10)
        state.shuffle(10, random.Random(1))
        assert state.shuffled is True
        assert sorted(state.permutation) == list(range(10))

    def test_shuffle_seeded_is_reproducible(self) -> None:
        a = ShuffleState.identity(8)
        b = ShuffleState.identity(8)
        a.shuffle(8, random.Random(42))
        b.shuffle(8, random.Random(42))
        assert a.permutation == b.permutation

    def test_unshuffle_restores_identity(self) -> None:
        state = ShuffleState.identity(6)
        state.shuffle(6, random.Random(3))
        state.unshuffle(6)
        assert state.shuffled is False
        assert state.order() == [0, 1, 2, 3, 4, 5]

    def test_pivot_goes_first(self) -> None:
        for seed in range(20):
            state = ShuffleState.identity(5)
            state.shuffle(5, random.Random(seed), pivot_index=3)
            assert state.permutation[0] == 3
            assert sorted(state.permutation) == [0, 1, 2, 3, 4]

    def test_shuffle_covers_all_orders(self) -> None:
        """Every ordering of three children shows up eventually."""
        rng = random.Random(7)
        seen = set()
        for _ in range(200):
            state = ShuffleState.identity(3)
            state.shuffle(3, rng)
            seen.add(tuple(state.permutation))
        assert len(seen) == 6

    def test_position_of(self) -> None:
        state = ShuffleState(shuffled=True, permutation=[2, 0, 1])
        assert state.position_of(2) == 0
        assert state.position_of(0) == 1
        assert state.index_at(2) == 1

    def test_position_of_unshuffled(self) -> None:
        state = ShuffleState.identity(3)
        assert state.position_of(2) == 2


class TestShuffleStateBookkeeping:
    """Tests for child insert/remove/move bookkeeping."""

    def test_insert_unshuffled_stays_identity(self) -> None:
        state = ShuffleState.identity(3)
        state.on_insert(1, 4)
        assert state.order() == [0, 1, 2, 3]

    def test_insert_shuffled_appends(self) -> None:
        state = ShuffleState(shuffled=True, permutation=[2, 0, 1])
        # New child stored at index 1; old 1 -> 2, old 2 -> 3
        state.on_insert(1, 4)
        assert state.permutation == [3, 0, 2, 1]

    def test_insert_shuffled_at_end(self) -> None:
        state = ShuffleState(shuffled=True, permutation=[1, 0])
        state.on_insert(2, 3)
        assert state.permutation == [1, 0, 2]

    def test_remove_shuffled_keeps_relative_order(self) -> None:
        state = ShuffleState(shuffled=True, permutation=[3, 0, 2, 1])
        state.on_remove(2, 3)
        assert state.permutation == [2, 0, 1]

    def test_remove_unshuffled(self) -> None:
        state = ShuffleState.identity(3)
        state.on_remove(0, 2)
        assert state.order() == [0, 1]

    def test_move_shuffled_keeps_order_of_children(self) -> None:
        # Stored [a, b, c], shuffled order c, a, b
        state = ShuffleState(shuffled=True, permutation=[2, 0, 1])
        # Move a (index 0) to index 2: stored [b, c, a]
        state.on_move(0, 2)
        # Shuffled order is still c, a, b -> indexes 1, 2, 0
        assert state.permutation == [1, 2, 0]

    def test_move_unshuffled_stays_identity(self) -> None:
        state = ShuffleState.identity(3)
        state.on_move(0, 2)
        assert state.order() == [0, 1, 2]
