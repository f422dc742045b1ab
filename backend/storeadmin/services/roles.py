"""Role Manager: the only component allowed to create, change or remove a RoleAggregate.

Each public operation runs inside one repository transaction: every check (field validation,
name uniqueness, permission references, protection flags) and the write happen together, and
any failure leaves nothing behind.

Policy for system roles (``is_system``):
  - never deletable, never renamable, protection cannot be switched off;
  - level, is_active, localized texts and permissions stay editable, unless the manager is
    built with ``lock_system_permissions=True``, which also freezes the permission set.
"""
from __future__ import annotations
from collections.abc import Iterable as IterableABC
from typing import Any, Dict, List, Mapping, Optional

from storeadmin.services.errors import ConflictError, NotFoundError
from storeadmin.services.records import RoleAggregate
from storeadmin.services.repository import RbacRepository, UserDirectory
from storeadmin.utils.validation import (
    MISSING, Violations, clean_bool, clean_i18n, clean_int_range, clean_text,
)

LEVEL_MIN = 0
LEVEL_MAX = 100
NAME_MAX = 100
DESCRIPTION_MAX = 500


class RoleManager:
    def __init__(self, repository: RbacRepository, users: UserDirectory, lock_system_permissions: bool = False):
        self.repository = repository
        self.users = users
        self.lock_system_permissions = lock_system_permissions

    # ---------------- queries ---------------- #
    def _with_count(self, role: RoleAggregate) -> RoleAggregate:
        return role.with_changes(user_count=self.users.count_users_with_role(role.id))

    def get_role(self, role_id: int) -> RoleAggregate:
        role = self.repository.find_role(role_id)
        if role is None:
            raise NotFoundError(f'Role {role_id} not found')
        return self._with_count(role)

    def list_roles(self, is_active: Optional[bool] = None, is_system: Optional[bool] = None,
                   level: Optional[int] = None) -> List[RoleAggregate]:
        """Roles sorted by level (highest first), then name."""
        roles = self.repository.list_roles(is_active=is_active, is_system=is_system, level=level)
        return [self._with_count(r) for r in roles]

    def role_stats(self) -> Dict[str, Any]:
        roles = self.list_roles()
        distribution = sorted(
            ({'id': r.id, 'name': r.name, 'level': r.level, 'is_active': r.is_active, 'user_count': r.user_count}
             for r in roles),
            key=lambda d: (-d['user_count'], d['name']),
        )
        return {
            'total': len(roles),
            'active': sum(1 for r in roles if r.is_active),
            'system': sum(1 for r in roles if r.is_system),
            'user_created': sum(1 for r in roles if not r.is_system),
            'distribution': distribution,
        }

    # ---------------- validation ---------------- #
    def _clean_permission_ids(self, v: Violations, data: Mapping[str, Any]):
        value = data.get('permission_ids', MISSING)
        if value is MISSING:
            return None
        if value is None:
            return frozenset()
        if isinstance(value, (str, bytes, dict)) or not isinstance(value, IterableABC):
            v.add('permission_ids', 'permission_ids must be a list of permission ids')
            return None
        ids = list(value)
        if any(isinstance(i, bool) or not isinstance(i, int) for i in ids):
            v.add('permission_ids', 'permission_ids must contain integer ids')
            return None
        found = self.repository.find_permissions(set(ids))
        unknown = sorted(set(ids) - set(found))
        inactive = sorted(pid for pid, rec in found.items() if not rec.is_active)
        if unknown:
            v.add('permission_ids', f'Unknown permission ids: {unknown}')
        if inactive:
            v.add('permission_ids', f'Inactive permission ids: {inactive}')
        if unknown or inactive:
            return None
        return frozenset(ids)

    def _clean_fields(self, data: Mapping[str, Any], creating: bool) -> Dict[str, Any]:
        """Validate every recognized field present in ``data``; raise one ValidationError for all problems."""
        if not isinstance(data, Mapping):
            v = Violations()
            v.add('body', 'expected an object')
            v.raise_if_any()
        v = Violations()
        cleaned = {
            'name': clean_text(v, data, 'name', required=creating, max_len=NAME_MAX),
            'name_i18n': clean_i18n(v, data, 'name_i18n', max_len=NAME_MAX),
            'description_i18n': clean_i18n(v, data, 'description_i18n', max_len=DESCRIPTION_MAX),
            'level': clean_int_range(v, data, 'level', LEVEL_MIN, LEVEL_MAX, required=creating),
            'is_active': clean_bool(v, data, 'is_active'),
            'is_system': clean_bool(v, data, 'is_system'),
            'permissions': self._clean_permission_ids(v, data),
        }
        v.raise_if_any()
        return {k: val for k, val in cleaned.items() if val is not None}

    def _assert_name_free(self, name: str, own_id: Optional[int] = None):
        other = self.repository.find_role_by_name(name)
        if other is not None and other.id != own_id:
            raise ConflictError(f"Role name '{name}' already exists")

    # ---------------- commands ---------------- #
    def create_role(self, data: Mapping[str, Any]) -> RoleAggregate:
        """Create a role from ``name``, ``level`` and optional ``name_i18n``, ``description_i18n``,
        ``is_active`` (default True), ``is_system`` (default False) and ``permission_ids``.
        """
        with self.repository.transaction():
            fields = self._clean_fields(data, creating=True)
            self._assert_name_free(fields['name'])
            role = self.repository.insert_role(RoleAggregate(
                name=fields['name'],
                level=fields['level'],
                name_i18n=fields.get('name_i18n', {}),
                description_i18n=fields.get('description_i18n', {}),
                is_active=fields.get('is_active', True),
                is_system=fields.get('is_system', False),
                permissions=fields.get('permissions', frozenset()),
            ))
        return role.with_changes(user_count=0)

    def update_role(self, role_id: int, patch: Mapping[str, Any], expected_version: Optional[int] = None) -> RoleAggregate:
        """Apply the fields present in ``patch``; absent fields keep their value.

        ``expected_version`` (optional) must equal the stored version or ConflictError is raised.
        """
        with self.repository.transaction():
            current = self.repository.find_role(role_id)
            if current is None:
                raise NotFoundError(f'Role {role_id} not found')
            fields = self._clean_fields(patch, creating=False)
            renaming = 'name' in fields and fields['name'] != current.name
            if current.is_system:
                if renaming:
                    raise ConflictError('System roles cannot be renamed')
                if fields.get('is_system') is False:
                    raise ConflictError('System protection cannot be removed from a role')
                if (self.lock_system_permissions and 'permissions' in fields
                        and fields['permissions'] != current.permissions):
                    raise ConflictError('Permissions of system roles are locked')
            if renaming:
                self._assert_name_free(fields['name'], own_id=current.id)
            updated = self.repository.update_role(current.with_changes(**fields), expected_version=expected_version)
        return self._with_count(updated)

    def delete_role(self, role_id: int) -> None:
        """Hard delete. Refused for system roles and for roles that still have users."""
        with self.repository.transaction():
            role = self.repository.find_role(role_id)
            if role is None:
                raise NotFoundError(f'Role {role_id} not found')
            if role.is_system:
                raise ConflictError('Cannot delete system role')
            user_count = self.users.count_users_with_role(role.id)
            if user_count > 0:
                raise ConflictError(f'Cannot delete role with {user_count} users. Please reassign users first.')
            self.repository.delete_role(role.id)

    def clone_role(self, role_id: int, overrides: Mapping[str, Any]) -> RoleAggregate:
        """Copy permissions, descriptions and (unless overridden) level and localized names
        under a new ``name``. The clone is active, never a system role, and has no users.
        """
        with self.repository.transaction():
            source = self.repository.find_role(role_id)
            if source is None:
                raise NotFoundError(f'Role {role_id} not found')
            v = Violations()
            name = clean_text(v, overrides, 'name', required=True, max_len=NAME_MAX)
            name_i18n = clean_i18n(v, overrides, 'name_i18n', max_len=NAME_MAX)
            level = clean_int_range(v, overrides, 'level', LEVEL_MIN, LEVEL_MAX)
            v.raise_if_any()
            self._assert_name_free(name)
            clone = self.repository.insert_role(RoleAggregate(
                name=name,
                level=source.level if level is None else level,
                name_i18n=dict(source.name_i18n) if name_i18n is None else name_i18n,
                description_i18n=dict(source.description_i18n),
                is_active=True,
                is_system=False,
                permissions=source.permissions,
            ))
        return clone.with_changes(user_count=0)


__all__ = ['RoleManager', 'LEVEL_MIN', 'LEVEL_MAX']
