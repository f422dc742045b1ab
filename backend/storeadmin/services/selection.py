"""Category-level bulk selection of permission ids.

The admin console shows one "select all / deselect all" button per permission category.
These helpers are pure: they never touch persistence, and the selected set they return is a
disposable view, not the role's system of record.

Usage:
    state = selection_state(category_ids, selected)
    selected = toggle_category(category_ids, selected)
"""
from __future__ import annotations
from typing import AbstractSet, FrozenSet, Hashable, Iterable, NamedTuple


class SelectionState(NamedTuple):
    selected: int
    total: int
    all_selected: bool

    @property
    def partial(self) -> bool:
        return 0 < self.selected < self.total


def selection_state(category_permission_ids: Iterable[Hashable], selected_ids: AbstractSet[Hashable]) -> SelectionState:
    category = frozenset(category_permission_ids)
    selected = len(category & frozenset(selected_ids))
    total = len(category)
    return SelectionState(selected=selected, total=total, all_selected=(selected == total and total > 0))


def toggle_category(category_permission_ids: Iterable[Hashable], selected_ids: AbstractSet[Hashable]) -> FrozenSet[Hashable]:
    """Deselect the whole category when it is fully selected, otherwise select all of it.

    A partially selected category is always completed, never cleared.
    """
    category = frozenset(category_permission_ids)
    current = frozenset(selected_ids)
    if selection_state(category, current).all_selected:
        return current - category
    return current | category


__all__ = ['SelectionState', 'selection_state', 'toggle_category']
