from __future__ import annotations
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple

from storeadmin.constants.permissions import CATEGORY_LAYOUT, entry_names
from storeadmin.services.errors import NotFoundError
from storeadmin.services.records import CatalogEntry, Category, PermissionRecord
from storeadmin.services.repository import RbacRepository


def build_categories() -> Tuple[Category, ...]:
    categories = []
    for name, name_ja, groups in CATEGORY_LAYOUT:
        entries = []
        for resource, actions in groups:
            for action in actions:
                names = entry_names(resource, action)
                entries.append(CatalogEntry(resource=resource, action=action, name=names['en'], name_i18n=names))
        categories.append(Category(name=name, name_i18n={'en': name, 'ja': name_ja}, entries=tuple(entries)))
    return tuple(categories)


CATEGORIES = build_categories()


class PermissionCatalog:
    """The fixed universe of ``resource:action`` entries, grouped into ordered categories.

    Static configuration: nothing here is mutated at runtime. Persisted PermissionRecords
    are looked up through the repository.
    """

    def __init__(self, repository: RbacRepository, categories: Optional[Iterable[Category]] = None):
        self.repository = repository
        self._categories = tuple(categories) if categories is not None else CATEGORIES
        self._index: Dict[Tuple[str, str], Tuple[Category, CatalogEntry]] = {}
        for cat in self._categories:
            for entry in cat.entries:
                self._index[(entry.resource, entry.action)] = (cat, entry)

    def list_categories(self) -> Tuple[Category, ...]:
        return self._categories

    def category_names(self) -> List[str]:
        return [c.name for c in self._categories]

    def has_category(self, name: str) -> bool:
        return any(c.name == name for c in self._categories)

    def get_category(self, name: str) -> Category:
        for cat in self._categories:
            if cat.name == name:
                return cat
        raise NotFoundError(f'Unknown permission category: {name}')

    def find_entry(self, resource: str, action: str) -> Optional[Tuple[Category, CatalogEntry]]:
        return self._index.get((resource, action))

    def resolve_permission(self, resource: str, action: str) -> Optional[PermissionRecord]:
        if (resource, action) not in self._index:
            return None
        return self.repository.find_permission_by_key(resource, action)

    def category_permission_ids(self, name: str) -> FrozenSet[int]:
        """Persisted ids filed under category ``name``; unknown names raise NotFoundError."""
        self.get_category(name)
        return frozenset(p.id for p in self.repository.list_permissions(category=name))

    def grouped(self, records: Iterable[PermissionRecord]) -> List[Tuple[str, List[PermissionRecord]]]:
        """Group records by category in catalog order; unknown categories trail alphabetically."""
        buckets: Dict[str, List[PermissionRecord]] = {}
        for rec in records:
            buckets.setdefault(rec.category, []).append(rec)
        order = self.category_names()
        extra = sorted(k for k in buckets if k not in order)
        return [(name, buckets[name]) for name in order + extra if name in buckets]


__all__ = ['CATEGORIES', 'build_categories', 'PermissionCatalog']
