"""Management of persisted PermissionRecords.

Records reference the static catalog vocabulary: ``resource`` and ``action`` come from fixed
lists and ``category`` must be a catalog category name. The pair (resource, action) is unique.
System records keep their resource/action forever and cannot be deleted; a record that any
role still references cannot be deleted either.
"""
from __future__ import annotations
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from storeadmin.constants.permissions import ACTIONS, RESOURCES
from storeadmin.services.catalog import PermissionCatalog
from storeadmin.services.errors import ConflictError, NotFoundError, RbacError, ValidationError
from storeadmin.services.records import PermissionRecord
from storeadmin.services.repository import RbacRepository
from storeadmin.utils.validation import Violations, clean_bool, clean_i18n, clean_text, validate_choice

NAME_MAX = 100
DESCRIPTION_MAX = 500


class PermissionManager:
    def __init__(self, repository: RbacRepository, catalog: PermissionCatalog):
        self.repository = repository
        self.catalog = catalog

    # ---------------- queries ---------------- #
    def get_permission(self, permission_id: int) -> Tuple[PermissionRecord, int]:
        """Return (record, number of roles referencing it)."""
        rec = self.repository.find_permission(permission_id)
        if rec is None:
            raise NotFoundError(f'Permission {permission_id} not found')
        return rec, self.repository.count_roles_with_permission(rec.id)

    def list_permissions(self, **filters) -> List[Tuple[PermissionRecord, int]]:
        records = self.repository.list_permissions(**filters)
        return [(r, self.repository.count_roles_with_permission(r.id)) for r in records]

    def permissions_by_category(self, is_active: Optional[bool] = None) -> List[Tuple[str, List[PermissionRecord]]]:
        return self.catalog.grouped(self.repository.list_permissions(is_active=is_active))

    def permission_stats(self) -> Dict[str, Any]:
        records = self.repository.list_permissions()
        by_category: Dict[str, Dict[str, int]] = {}
        by_resource: Dict[str, Dict[str, Any]] = {}
        for r in records:
            cat = by_category.setdefault(r.category, {'count': 0, 'active': 0})
            cat['count'] += 1
            cat['active'] += 1 if r.is_active else 0
            res = by_resource.setdefault(r.resource, {'count': 0, 'actions': []})
            res['count'] += 1
            if r.action not in res['actions']:
                res['actions'].append(r.action)
        return {
            'total': len(records),
            'active': sum(1 for r in records if r.is_active),
            'system': sum(1 for r in records if r.is_system),
            'user_created': sum(1 for r in records if not r.is_system),
            'category_distribution': sorted(
                ({'category': k, **v} for k, v in by_category.items()), key=lambda d: (-d['count'], d['category'])),
            'resource_distribution': sorted(
                ({'resource': k, **v} for k, v in by_resource.items()), key=lambda d: (-d['count'], d['resource'])),
        }

    # ---------------- validation ---------------- #
    def _clean_fields(self, data: Mapping[str, Any], creating: bool) -> Dict[str, Any]:
        v = Violations()
        if not isinstance(data, Mapping):
            v.add('body', 'expected an object')
            v.raise_if_any()
        resource = clean_text(v, data, 'resource', required=creating, max_len=50, lower=True)
        action = clean_text(v, data, 'action', required=creating, max_len=32, lower=True)
        category = clean_text(v, data, 'category', required=creating, max_len=100)
        cleaned = {
            'name': clean_text(v, data, 'name', required=creating, max_len=NAME_MAX),
            'name_i18n': clean_i18n(v, data, 'name_i18n', max_len=NAME_MAX),
            'description_i18n': clean_i18n(v, data, 'description_i18n', max_len=DESCRIPTION_MAX),
            'resource': validate_choice(v, resource, RESOURCES, 'resource'),
            'action': validate_choice(v, action, ACTIONS, 'action'),
            'category': validate_choice(v, category, self.catalog.category_names(), 'category'),
            'is_active': clean_bool(v, data, 'is_active'),
            'is_system': clean_bool(v, data, 'is_system'),
        }
        v.raise_if_any()
        return {k: val for k, val in cleaned.items() if val is not None}

    def _assert_key_free(self, resource: str, action: str, own_id: Optional[int] = None):
        other = self.repository.find_permission_by_key(resource, action)
        if other is not None and other.id != own_id:
            raise ConflictError(f'Permission for {resource}:{action} already exists')

    # ---------------- commands ---------------- #
    def create_permission(self, data: Mapping[str, Any]) -> PermissionRecord:
        """Records created here are never system records; only seeding creates those."""
        with self.repository.transaction():
            fields = self._clean_fields(data, creating=True)
            self._assert_key_free(fields['resource'], fields['action'])
            return self.repository.insert_permission(PermissionRecord(
                resource=fields['resource'],
                action=fields['action'],
                name=fields['name'],
                category=fields['category'],
                name_i18n=fields.get('name_i18n', {}),
                description_i18n=fields.get('description_i18n', {}),
                is_active=fields.get('is_active', True),
                is_system=False,
            ))

    def update_permission(self, permission_id: int, patch: Mapping[str, Any]) -> PermissionRecord:
        with self.repository.transaction():
            current = self.repository.find_permission(permission_id)
            if current is None:
                raise NotFoundError(f'Permission {permission_id} not found')
            fields = self._clean_fields(patch, creating=False)
            key_changed = (fields.get('resource', current.resource), fields.get('action', current.action)) \
                != (current.resource, current.action)
            if current.is_system:
                if key_changed:
                    raise ConflictError('Resource and action of a system permission cannot change')
                if fields.get('is_system') is False:
                    raise ConflictError('System protection cannot be removed from a permission')
            elif fields.get('is_system'):
                raise ConflictError('Permissions cannot be promoted to system permissions')
            if key_changed:
                self._assert_key_free(fields.get('resource', current.resource),
                                      fields.get('action', current.action), own_id=current.id)
            return self.repository.update_permission(current.with_changes(**fields))

    def delete_permission(self, permission_id: int) -> None:
        with self.repository.transaction():
            rec = self.repository.find_permission(permission_id)
            if rec is None:
                raise NotFoundError(f'Permission {permission_id} not found')
            if rec.is_system:
                raise ConflictError('Cannot delete system permission')
            role_count = self.repository.count_roles_with_permission(rec.id)
            if role_count > 0:
                raise ConflictError(f'Cannot delete permission used by {role_count} roles. Please remove from roles first.')
            self.repository.delete_permission(rec.id)

    def bulk_create_permissions(self, items: Sequence[Mapping[str, Any]]) -> Tuple[List[PermissionRecord], List[str]]:
        """Create each item on its own; failures are reported per item (1-based) and do not stop the batch."""
        if isinstance(items, (str, bytes)) or not isinstance(items, Sequence) or not items:
            v = Violations()
            v.add('permissions', 'permissions array is required')
            v.raise_if_any()
        created: List[PermissionRecord] = []
        errors: List[str] = []
        for i, item in enumerate(items, start=1):
            if not isinstance(item, Mapping):
                errors.append(f'Permission {i}: expected an object')
                continue
            try:
                created.append(self.create_permission(item))
            except ValidationError as e:
                errors.append(f"Permission {i}: {'; '.join(x.message for x in e.violations)}")
            except RbacError as e:
                errors.append(f'Permission {i}: {e}')
        return created, errors


__all__ = ['PermissionManager']
