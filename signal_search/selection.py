"""Bulk updates and selection bookkeeping over caller-owned record lists.

Records may be dataclasses with an ``id`` attribute or mappings with an
``"id"`` key. Inputs are never mutated. Where nothing changes, the
selection helpers hand back the very same list so callers can skip work on
identity checks.
"""

from __future__ import annotations

from collections.abc import Callable, Collection, Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, TypeVar

T = TypeVar("T")

RECENT_QUERY_LIMIT = 5


def record_id(record: Any) -> str:
    """Return the id of a dataclass-style or mapping-style record."""
    if isinstance(record, Mapping):
        return record["id"]
    return record.id


# ---------------------------------------------------------------------------
# Bulk update
# ---------------------------------------------------------------------------


def apply_bulk_thread_update(
    records: Sequence[T],
    selected_ids: Iterable[str],
    updater: Callable[[T], T],
) -> list[T]:
    """Apply ``updater`` to the selected records.

    Args:
        records: All records, in display order.
        selected_ids: Ids of the records to update.
        updater: Returns the replacement for a record.

    Returns:
        New list; unselected records are the same objects as before.
    """
    selected = set(selected_ids)
    if not selected:
        return list(records)
    return [updater(r) if record_id(r) in selected else r for r in records]


# ---------------------------------------------------------------------------
# Selection reconciliation
# ---------------------------------------------------------------------------


@dataclass
class ActiveSelection:
    """Selected ids that still exist, and how many vanished."""

    active_ids: list[str]
    missing_count: int


def prune_selected_ids(
    selected_ids: list[str], valid_ids: Collection[str]
) -> list[str]:
    """Drop selected ids that are no longer valid.

    Returns ``selected_ids`` itself when every id is still valid.
    """
    if all(sid in valid_ids for sid in selected_ids):
        return selected_ids
    return [sid for sid in selected_ids if sid in valid_ids]


def toggle_visible_selection(
    selected_ids: list[str], visible_ids: Sequence[str], enabled: bool
) -> list[str]:
    """Select or deselect every visible id.

    Enabling appends the visible ids that are not yet selected, keeping the
    existing order. Disabling removes only the visible ids.

    Returns ``selected_ids`` itself when nothing changes.
    """
    if not visible_ids:
        return selected_ids

    if enabled:
        seen = set(selected_ids)
        additions: list[str] = []
        for vid in visible_ids:
            if vid not in seen:
                seen.add(vid)
                additions.append(vid)
        if not additions:
            return selected_ids
        return [*selected_ids, *additions]

    visible = set(visible_ids)
    remaining = [sid for sid in selected_ids if sid not in visible]
    if len(remaining) == len(selected_ids):
        return selected_ids
    return remaining


def resolve_active_selected_ids(
    selected_ids: Sequence[str], items: Iterable[Any]
) -> ActiveSelection:
    """Split a selection into ids present in ``items`` and a missing count.

    Active ids keep the selection order, not the item order.
    """
    present = {record_id(item) for item in items}
    active = [sid for sid in selected_ids if sid in present]
    return ActiveSelection(
        active_ids=active, missing_count=len(selected_ids) - len(active)
    )


# ---------------------------------------------------------------------------
# Thread space assignment
# ---------------------------------------------------------------------------


@dataclass
class SpaceAssignment:
    """Space id and name to store on a thread (both None to clear)."""

    space_id: str | None
    space_name: str | None


def resolve_thread_space_meta(
    next_space_id: str, spaces: Iterable[Any]
) -> SpaceAssignment:
    """Resolve a space id chosen for a thread into its id and name.

    A blank or unknown id clears the assignment.
    """
    target = next_space_id.strip()
    if not target:
        return SpaceAssignment(space_id=None, space_name=None)
    for space in spaces:
        if record_id(space) == target:
            name = space["name"] if isinstance(space, Mapping) else space.name
            return SpaceAssignment(space_id=target, space_name=name)
    return SpaceAssignment(space_id=None, space_name=None)


# ---------------------------------------------------------------------------
# Recent queries
# ---------------------------------------------------------------------------


def push_recent_query(
    recent: list[str], value: str, limit: int = RECENT_QUERY_LIMIT
) -> list[str]:
    """Move ``value`` to the front of the recent query list.

    Blank values leave the list untouched (same object is returned).
    """
    trimmed = value.strip()
    if not trimmed:
        return recent
    return [trimmed, *(item for item in recent if item != trimmed)][:limit]
