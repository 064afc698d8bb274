"""
Read-only queue projection for display.

Snapshots are immutable and can be handed to a UI layer without holding the
queue's mutation lock.
"""

from dataclasses import dataclass
from typing import Any, Hashable, Optional, Sequence

from playqueue.model import (
    Collection,
    CursorState,
    Item,
    ItemKind,
    QueueStatus,
    QueueVersion,
    RepeatMode,
)


@dataclass(frozen=True)
class LeafView:
    """A leaf as shown in the projection."""

    item_id: Hashable
    metadata: Any
    is_current: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.item_id,
            "metadata": self.metadata,
            "current": self.is_current,
        }


@dataclass(frozen=True)
class EntryView:
    """
    A top-level entry as shown in the projection.

    For collections, `children` are in effective (shuffle-aware) order.
    """

    item_id: Hashable
    kind: ItemKind
    metadata: Any
    shuffled: bool = False
    is_current: bool = False
    children: tuple[LeafView, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data: dict[str, Any] = {
            "id": self.item_id,
            "kind": self.kind.value,
            "metadata": self.metadata,
        }
        if self.kind is ItemKind.COLLECTION:
            data["shuffled"] = self.shuffled
            data["children"] = [child.to_dict() for child in self.children]
        else:
            data["current"] = self.is_current
        return data


@dataclass(frozen=True)
class QueueSnapshot:
    """Immutable snapshot of queue order and pointer state."""

    version: QueueVersion
    entries: tuple[EntryView, ...]
    current_id: Optional[Hashable]
    cursor_state: CursorState
    repeat_mode: RepeatMode
    leaf_count: int

    @property
    def status(self) -> QueueStatus:
        """Lifecycle status derived from leaf count."""
        return QueueStatus.POPULATED if self.leaf_count else QueueStatus.EMPTY

    def leaf_ids(self) -> list[Hashable]:
        """Identifiers of all leaves in traversal order."""
        ids: list[Hashable] = []
        for entry in self.entries:
            if entry.kind is ItemKind.COLLECTION:
                ids.extend(child.item_id for child in entry.children)
            else:
                ids.append(entry.item_id)
        return ids

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for display layers."""
        return {
            "version": {"major": self.version.major, "minor": self.version.minor},
            "status": self.status.value,
            "cursor": self.cursor_state.value,
            "repeatMode": self.repeat_mode.value,
            "currentId": self.current_id,
            "leafCount": self.leaf_count,
            "entries": [entry.to_dict() for entry in self.entries],
        }


def build_snapshot(
    entries: Sequence[Item],
    current_id: Optional[Hashable],
    cursor_state: CursorState,
    repeat_mode: RepeatMode,
    version: QueueVersion,
) -> QueueSnapshot:
    """Project queue entries into an immutable snapshot (caller holds the lock)."""
    views = []
    leaf_total = 0
    for entry in entries:
        if isinstance(entry, Collection):
            children = tuple(
                LeafView(
                    item_id=child.item_id,
                    metadata=child.metadata,
                    is_current=child.item_id == current_id,
                )
                for child in entry.effective_children()
            )
            leaf_total += len(children)
            views.append(
                EntryView(
                    item_id=entry.item_id,
                    kind=ItemKind.COLLECTION,
                    metadata=entry.metadata,
                    shuffled=entry.is_shuffled,
                    children=children,
                )
            )
        else:
            leaf_total += 1
            views.append(
                EntryView(
                    item_id=entry.item_id,
                    kind=ItemKind.SINGLE,
                    metadata=entry.metadata,
                    is_current=entry.item_id == current_id,
                )
            )

    return QueueSnapshot(
        version=QueueVersion(major=version.major, minor=version.minor),
        entries=tuple(views),
        current_id=current_id,
        cursor_state=cursor_state,
        repeat_mode=repeat_mode,
        leaf_count=leaf_total,
    )
