"""Plain-data records exchanged between the RBAC core, its persistence collaborator and callers.

Nothing here holds a live ORM object; every field is serializable as-is.
"""
from __future__ import annotations
from dataclasses import dataclass, field, asdict, replace
from typing import Any, Dict, FrozenSet, Optional, Tuple


@dataclass(frozen=True)
class CatalogEntry:
    resource: str
    action: str
    name: str
    name_i18n: Dict[str, str] = field(default_factory=dict)

    @property
    def code(self) -> str:
        return f"{self.resource}:{self.action}"


@dataclass(frozen=True)
class Category:
    name: str
    name_i18n: Dict[str, str]
    entries: Tuple[CatalogEntry, ...]


@dataclass(frozen=True)
class PermissionRecord:
    resource: str
    action: str
    name: str
    category: str
    id: Optional[int] = None
    name_i18n: Dict[str, str] = field(default_factory=dict)
    description_i18n: Dict[str, str] = field(default_factory=dict)
    is_active: bool = True
    is_system: bool = False

    @property
    def code(self) -> str:
        return f"{self.resource}:{self.action}"

    def with_changes(self, **changes) -> 'PermissionRecord':
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['code'] = self.code
        return data


@dataclass(frozen=True)
class RoleAggregate:
    name: str
    level: int
    id: Optional[int] = None
    name_i18n: Dict[str, str] = field(default_factory=dict)
    description_i18n: Dict[str, str] = field(default_factory=dict)
    is_active: bool = True
    is_system: bool = False
    permissions: FrozenSet[int] = frozenset()
    user_count: int = 0
    version: int = 0

    def with_changes(self, **changes) -> 'RoleAggregate':
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['permissions'] = sorted(self.permissions)
        return data


__all__ = ['CatalogEntry', 'Category', 'PermissionRecord', 'RoleAggregate']
