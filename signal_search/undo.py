"""Undo for bulk deletions.

Before a bulk delete, ``capture_deleted_anchors`` records each deleted
record together with the ids of its neighbours. ``restore_deleted_anchors``
puts the records back next to those neighbours, even if the list was edited
in between.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar

from .selection import record_id

T = TypeVar("T")


@dataclass
class DeletedAnchor(Generic[T]):
    """A deleted record and its neighbours at deletion time."""

    item: T
    before_id: str | None
    after_id: str | None


def capture_deleted_anchors(
    items: Sequence[T], deleted_ids: Sequence[str]
) -> list[DeletedAnchor[T]]:
    """Record neighbour anchors for each deleted item, in list order.

    Args:
        items: The list before deletion.
        deleted_ids: Ids about to be deleted.

    Returns:
        One anchor per deleted item found in ``items``.
    """
    if not items or not deleted_ids:
        return []
    deleted = set(deleted_ids)
    last = len(items) - 1
    anchors: list[DeletedAnchor[T]] = []
    for i, item in enumerate(items):
        if record_id(item) not in deleted:
            continue
        anchors.append(
            DeletedAnchor(
                item=item,
                before_id=record_id(items[i - 1]) if i > 0 else None,
                after_id=record_id(items[i + 1]) if i < last else None,
            )
        )
    return anchors


def restore_deleted_anchors(
    items: Sequence[T], deleted: Sequence[DeletedAnchor[T]]
) -> list[T]:
    """Reinsert deleted items next to their recorded neighbours.

    Each item goes right after ``before_id`` if present, else right before
    ``after_id``. An item that had no left neighbour goes to the front;
    anything else goes to the end. Anchors are processed in capture order so
    adjacent deletions can anchor on each other. Items already in the list
    are skipped.

    Args:
        items: The current list.
        deleted: Anchors from ``capture_deleted_anchors``.

    Returns:
        New list with the deleted items restored.
    """
    restored = list(items)
    if not deleted:
        return restored

    existing = {record_id(item) for item in restored}
    for anchor in deleted:
        anchor_id = record_id(anchor.item)
        if anchor_id in existing:
            continue

        positions = {record_id(item): index for index, item in enumerate(restored)}
        insert_at = len(restored)
        if anchor.before_id is not None and anchor.before_id in positions:
            insert_at = positions[anchor.before_id] + 1
        elif anchor.after_id is not None and anchor.after_id in positions:
            insert_at = positions[anchor.after_id]
        elif anchor.before_id is None:
            insert_at = 0

        restored.insert(insert_at, anchor.item)
        existing.add(anchor_id)
    return restored
