"""In-memory stand-ins for the persistence and user-management collaborators.

``transaction()`` snapshots both collections and restores them when the block raises, so
tests can assert that a failed operation left nothing behind.
"""
from __future__ import annotations
import itertools
from contextlib import contextmanager
from typing import Dict

from storeadmin.services.errors import ConflictError, NotFoundError
from storeadmin.services.records import PermissionRecord, RoleAggregate
from storeadmin.services.repository import RbacRepository, UserDirectory


class InMemoryRepository(RbacRepository):
    def __init__(self):
        self.roles: Dict[int, RoleAggregate] = {}
        self.permissions: Dict[int, PermissionRecord] = {}
        self._role_ids = itertools.count(1)
        self._perm_ids = itertools.count(1)
        self.commits = 0
        self.rollbacks = 0

    @contextmanager
    def transaction(self):
        snapshot = (dict(self.roles), dict(self.permissions))
        try:
            yield self
        except Exception:
            self.roles, self.permissions = snapshot
            self.rollbacks += 1
            raise
        self.commits += 1

    # roles
    def find_role(self, role_id):
        return self.roles.get(role_id)

    def find_role_by_name(self, name):
        return next((r for r in self.roles.values() if r.name == name), None)

    def list_roles(self, is_active=None, is_system=None, level=None):
        out = [
            r for r in self.roles.values()
            if (is_active is None or r.is_active == is_active)
            and (is_system is None or r.is_system == is_system)
            and (level is None or r.level == level)
        ]
        return sorted(out, key=lambda r: (-r.level, r.name))

    def insert_role(self, role):
        if self.find_role_by_name(role.name):
            raise ConflictError('duplicate role name')
        stored = role.with_changes(id=next(self._role_ids), version=1, user_count=0)
        self.roles[stored.id] = stored
        return stored

    def update_role(self, role, expected_version=None):
        current = self.roles.get(role.id)
        if current is None:
            raise NotFoundError(f'Role {role.id} not found')
        if expected_version is not None and current.version != expected_version:
            raise ConflictError('version mismatch')
        stored = role.with_changes(version=current.version + 1, user_count=0)
        self.roles[stored.id] = stored
        return stored

    def delete_role(self, role_id):
        if self.roles.pop(role_id, None) is None:
            raise NotFoundError(f'Role {role_id} not found')

    # permissions
    def find_permission(self, permission_id):
        return self.permissions.get(permission_id)

    def find_permissions(self, permission_ids):
        return {pid: self.permissions[pid] for pid in permission_ids if pid in self.permissions}

    def find_permission_by_key(self, resource, action):
        return next((p for p in self.permissions.values() if (p.resource, p.action) == (resource, action)), None)

    def list_permissions(self, is_active=None, is_system=None, category=None, resource=None, action=None):
        out = [
            p for p in self.permissions.values()
            if (is_active is None or p.is_active == is_active)
            and (is_system is None or p.is_system == is_system)
            and (not category or p.category == category)
            and (not resource or p.resource == resource)
            and (not action or p.action == action)
        ]
        return sorted(out, key=lambda p: (p.category, p.resource, p.action))

    def insert_permission(self, record):
        if self.find_permission_by_key(record.resource, record.action):
            raise ConflictError('duplicate resource/action')
        stored = record.with_changes(id=next(self._perm_ids))
        self.permissions[stored.id] = stored
        return stored

    def update_permission(self, record):
        if record.id not in self.permissions:
            raise NotFoundError(f'Permission {record.id} not found')
        self.permissions[record.id] = record
        return record

    def delete_permission(self, permission_id):
        if self.permissions.pop(permission_id, None) is None:
            raise NotFoundError(f'Permission {permission_id} not found')

    def count_roles_with_permission(self, permission_id):
        return sum(1 for r in self.roles.values() if permission_id in r.permissions)

    # test conveniences
    def add_permission(self, resource, action, category='Product Management', **kw):
        return self.insert_permission(PermissionRecord(
            resource=resource, action=action, name=kw.pop('name', f'{action} {resource}'), category=category, **kw))


class FakeUserDirectory(UserDirectory):
    def __init__(self):
        self.counts: Dict[int, int] = {}

    def assign(self, role_id, users=1):
        self.counts[role_id] = self.counts.get(role_id, 0) + users

    def count_users_with_role(self, role_id):
        return self.counts.get(role_id, 0)
