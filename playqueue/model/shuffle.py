"""
Per-collection shuffle state.

Holds an iteration permutation over a collection's children. The children
themselves are never reordered here; only the permutation changes.
"""

import logging
import random
from dataclasses import dataclass, field
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass
class ShuffleState:
    """
    Shuffle overlay for one collection.

    Attributes:
        shuffled: Whether iteration follows the permutation
        permutation: Mapping position -> child index (identity when unshuffled)
    """

    shuffled: bool = False
    permutation: list[int] = field(default_factory=list)

    @classmethod
    def identity(cls, length: int) -> "ShuffleState":
        """Create an unshuffled state for `length` children."""
        return cls(shuffled=False, permutation=list(range(length)))

    def order(self) -> list[int]:
        """Child indexes in iteration order."""
        return list(self.permutation)

    def index_at(self, position: int) -> int:
        """Child index found at an iteration position."""
        return self.permutation[position]

    def position_of(self, index: int) -> int:
        """Iteration position of a child index."""
        if not self.shuffled:
            return index
        return self.permutation.index(index)

    # =========================================================================
    # Shuffle
    # =========================================================================

    def shuffle(
        self,
        length: int,
        rng: Optional[random.Random] = None,
        pivot_index: Optional[int] = None,
    ) -> None:
        """
        Compute a new uniformly random permutation.

        Args:
            length: Number of children
            rng: Random source (module-level random if omitted)
            pivot_index: Child index to place first in the permutation
        """
        indexes = list(range(length))
        (rng or random).shuffle(indexes)

        if pivot_index is not None and 0 <= pivot_index < length:
            pivot_position = indexes.index(pivot_index)
            indexes[0], indexes[pivot_position] = indexes[pivot_position], indexes[0]

        # Publish in one step
        self.permutation = indexes
        self.shuffled = True
        logger.debug(f"Shuffle applied, indexes: {indexes[:10]}...")

    def unshuffle(self, length: int) -> None:
        """Revert iteration to stored order."""
        self.permutation = list(range(length))
        self.shuffled = False

    # =========================================================================
    # Child bookkeeping
    # =========================================================================

    def on_insert(self, index: int, length: int) -> None:
        """
        Account for a child inserted at `index`.

        Args:
            index: Stored-order index of the new child
            length: Number of children after the insert
        """
        if not self.shuffled:
            self.permutation = list(range(length))
            return
        # New arrivals go to the end of the shuffled order
        shifted = [i + 1 if i >= index else i for i in self.permutation]
        shifted.append(index)
        self.permutation = shifted

    def on_remove(self, index: int, length: int) -> None:
        """
        Account for the child at `index` being removed.

        Args:
            index: Stored-order index of the removed child
            length: Number of children after the removal
        """
        if not self.shuffled:
            self.permutation = list(range(length))
            return
        self.permutation = [i - 1 if i > index else i for i in self.permutation if i != index]

    def on_move(self, old_index: int, new_index: int) -> None:
        """Account for a child moved in stored order, keeping shuffled order."""
        if not self.shuffled:
            return
        order = list(range(len(self.permutation)))
        order.insert(new_index, order.pop(old_index))
        remap = {old: new for new, old in enumerate(order)}
        self.permutation = [remap[i] for i in self.permutation]
