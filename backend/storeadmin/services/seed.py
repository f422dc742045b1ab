"""Idempotent seeding of catalog permissions and the default system roles.

Used by ``scripts/seed_rbac.py`` and by tests. Existing records are left untouched.
"""
from __future__ import annotations
from typing import Dict, List, Tuple

from storeadmin.constants.permissions import DEFAULT_ROLES
from storeadmin.services.catalog import PermissionCatalog
from storeadmin.services.records import PermissionRecord, RoleAggregate
from storeadmin.services.repository import RbacRepository


def seed_catalog(repository: RbacRepository, catalog: PermissionCatalog) -> Tuple[List[PermissionRecord], int]:
    """Persist every catalog entry as an active system permission.

    Returns (all catalog records, number newly created).
    """
    records: List[PermissionRecord] = []
    created = 0
    for cat in catalog.list_categories():
        for entry in cat.entries:
            existing = repository.find_permission_by_key(entry.resource, entry.action)
            if existing is None:
                existing = repository.insert_permission(PermissionRecord(
                    resource=entry.resource,
                    action=entry.action,
                    name=entry.name,
                    name_i18n=dict(entry.name_i18n),
                    category=cat.name,
                    is_active=True,
                    is_system=True,
                ))
                created += 1
            records.append(existing)
    return records, created


def _select(records: List[PermissionRecord], selector) -> frozenset:
    if selector == '*':
        return frozenset(r.id for r in records)
    kind, values = selector
    if kind == 'exclude':
        return frozenset(r.id for r in records if r.code not in values)
    if kind == 'categories':
        return frozenset(r.id for r in records if r.category in values)
    if kind == 'actions':
        return frozenset(r.id for r in records if r.action in values)
    raise ValueError(f'Unknown role selector: {kind}')


def seed_default_roles(repository: RbacRepository, records: List[PermissionRecord]) -> Dict[str, RoleAggregate]:
    roles: Dict[str, RoleAggregate] = {}
    for name, (level, name_ja, description, selector) in DEFAULT_ROLES.items():
        role = repository.find_role_by_name(name)
        if role is None:
            role = repository.insert_role(RoleAggregate(
                name=name,
                name_i18n={'en': name, 'ja': name_ja},
                description_i18n={'en': description},
                level=level,
                is_active=True,
                is_system=True,
                permissions=_select(records, selector),
            ))
        roles[name] = role
    return roles


def seed_all(repository: RbacRepository, catalog: PermissionCatalog):
    with repository.transaction():
        records, created = seed_catalog(repository, catalog)
        roles = seed_default_roles(repository, records)
    return records, created, roles


__all__ = ['seed_catalog', 'seed_default_roles', 'seed_all']
