"""Line item CRUD operations used by the UI layer.

Every function takes a :class:`~budget_planner.models.Budget` explicitly
and returns a new budget with ``updated_at`` bumped.  Requests that do
not match anything (unknown ids, out-of-range indexes) return the input
budget unchanged.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Tuple

from .models import AssetType, Budget, LineItem, Section, clamp_discount, make_item

_PRICE_FIELDS = ('quantity', 'live_price', 'ticker')


def add_item(
    budget: Budget,
    section: Section,
    name: str = '',
    amount: Any = 0,
    frequency: Any = None,
    *,
    now: Optional[datetime] = None,
    **fields: Any,
) -> Budget:
    """Append a new item to ``section`` using the section's default frequency."""
    section = Section(section)
    item = make_item(name, amount, frequency or section.default_frequency, **fields)
    return budget.replace_section(section, budget.items(section) + (item,), now)


def update_item(
    budget: Budget,
    section: Section,
    item_id: str,
    *,
    now: Optional[datetime] = None,
    **changes: Any,
) -> Budget:
    """Apply ``changes`` to one item and recompute its derived values."""
    section = Section(section)
    items = budget.items(section)
    if not any(item.id == item_id for item in items):
        return budget

    if 'asset_type' in changes and changes['asset_type'] in (None, AssetType.MANUAL, AssetType.MANUAL.value):
        # switching back to a manual value drops any market pricing
        for name in _PRICE_FIELDS:
            changes.setdefault(name, None)

    updated = tuple(item.with_changes(**changes) if item.id == item_id else item for item in items)
    return budget.replace_section(section, updated, now)


def delete_item(budget: Budget, section: Section, item_id: str, *, now: Optional[datetime] = None) -> Budget:
    section = Section(section)
    items = budget.items(section)
    kept = tuple(item for item in items if item.id != item_id)
    if len(kept) == len(items):
        return budget
    return budget.replace_section(section, kept, now)


def reorder_items(
    budget: Budget,
    section: Section,
    from_index: int,
    to_index: int,
    *,
    now: Optional[datetime] = None,
) -> Budget:
    """Move the item at ``from_index`` to ``to_index`` (drag-and-drop)."""
    section = Section(section)
    items = list(budget.items(section))
    if not (0 <= from_index < len(items) and 0 <= to_index < len(items)) or from_index == to_index:
        return budget
    moved = items.pop(from_index)
    items.insert(to_index, moved)
    return budget.replace_section(section, items, now)


def set_discount(budget: Budget, percent: Any, *, now: Optional[datetime] = None) -> Budget:
    return budget.touch(now, non_liquid_discount=clamp_discount(percent))


def rename_budget(budget: Budget, name: str, *, now: Optional[datetime] = None) -> Budget:
    cleaned = (name or '').strip()
    if not cleaned or cleaned == budget.name:
        return budget
    return budget.touch(now, name=cleaned)


def find_item(budget: Budget, item_id: str) -> Optional[Tuple[Section, LineItem]]:
    for section, item in budget.iter_items():
        if item.id == item_id:
            return section, item
    return None
