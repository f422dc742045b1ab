"""Persistence seam for the RBAC core.

The managers only talk to ``RbacRepository`` and ``UserDirectory``; the SQLAlchemy
implementations below back the Flask app, tests substitute an in-memory fake.
"""
from __future__ import annotations
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Dict, Iterable, Iterator, List, Optional

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from storeadmin.models.authz import Permission, Role, RolePermission, User
from storeadmin.services.errors import ConflictError, NotFoundError
from storeadmin.services.records import PermissionRecord, RoleAggregate


class RbacRepository(ABC):
    """find/insert/update/delete over the ``roles`` and ``permissions`` collections."""

    @abstractmethod
    def transaction(self):
        """Context manager: commit on success, roll back and re-raise on any error."""

    # roles
    @abstractmethod
    def find_role(self, role_id: int) -> Optional[RoleAggregate]: ...

    @abstractmethod
    def find_role_by_name(self, name: str) -> Optional[RoleAggregate]: ...

    @abstractmethod
    def list_roles(self, is_active: Optional[bool] = None, is_system: Optional[bool] = None,
                   level: Optional[int] = None) -> List[RoleAggregate]: ...

    @abstractmethod
    def insert_role(self, role: RoleAggregate) -> RoleAggregate: ...

    @abstractmethod
    def update_role(self, role: RoleAggregate, expected_version: Optional[int] = None) -> RoleAggregate: ...

    @abstractmethod
    def delete_role(self, role_id: int) -> None: ...

    # permissions
    @abstractmethod
    def find_permission(self, permission_id: int) -> Optional[PermissionRecord]: ...

    @abstractmethod
    def find_permissions(self, permission_ids: Iterable[int]) -> Dict[int, PermissionRecord]: ...

    @abstractmethod
    def find_permission_by_key(self, resource: str, action: str) -> Optional[PermissionRecord]: ...

    @abstractmethod
    def list_permissions(self, is_active: Optional[bool] = None, is_system: Optional[bool] = None,
                         category: Optional[str] = None, resource: Optional[str] = None,
                         action: Optional[str] = None) -> List[PermissionRecord]: ...

    @abstractmethod
    def insert_permission(self, record: PermissionRecord) -> PermissionRecord: ...

    @abstractmethod
    def update_permission(self, record: PermissionRecord) -> PermissionRecord: ...

    @abstractmethod
    def delete_permission(self, permission_id: int) -> None: ...

    @abstractmethod
    def count_roles_with_permission(self, permission_id: int) -> int: ...


class UserDirectory(ABC):
    """Read-only view onto user management, which owns role assignments."""

    @abstractmethod
    def count_users_with_role(self, role_id: int) -> int: ...


# ---------------- SQLAlchemy implementation ---------------- #

def _role_record(row: Role) -> RoleAggregate:
    return RoleAggregate(
        id=row.id,
        name=row.name,
        name_i18n=dict(row.name_i18n or {}),
        description_i18n=dict(row.description_i18n or {}),
        level=row.level,
        is_active=bool(row.is_active),
        is_system=bool(row.is_system),
        permissions=frozenset(rp.permission_id for rp in row.permissions),
        version=row.version,
    )


def _permission_record(row: Permission) -> PermissionRecord:
    return PermissionRecord(
        id=row.id,
        resource=row.resource,
        action=row.action,
        name=row.name,
        name_i18n=dict(row.name_i18n or {}),
        description_i18n=dict(row.description_i18n or {}),
        category=row.category,
        is_active=bool(row.is_active),
        is_system=bool(row.is_system),
    )


class SqlAlchemyRepository(RbacRepository):
    def __init__(self, session: Session):
        self.session = session

    @contextmanager
    def transaction(self) -> Iterator['SqlAlchemyRepository']:
        try:
            yield self
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            raise ConflictError('Write rejected by a uniqueness or reference constraint') from e
        except StaleDataError as e:
            self.session.rollback()
            raise ConflictError('Record was modified by another request') from e
        except Exception:
            self.session.rollback()
            raise

    # --- roles ---
    def find_role(self, role_id):
        row = self.session.get(Role, role_id)
        return _role_record(row) if row else None

    def find_role_by_name(self, name):
        row = self.session.execute(select(Role).where(Role.name == name)).scalar_one_or_none()
        return _role_record(row) if row else None

    def list_roles(self, is_active=None, is_system=None, level=None):
        q = select(Role)
        if is_active is not None:
            q = q.where(Role.is_active == is_active)
        if is_system is not None:
            q = q.where(Role.is_system == is_system)
        if level is not None:
            q = q.where(Role.level == level)
        q = q.order_by(Role.level.desc(), Role.name.asc())
        return [_role_record(r) for r in self.session.execute(q).scalars()]

    def insert_role(self, role):
        row = Role(
            name=role.name,
            name_i18n=dict(role.name_i18n),
            description_i18n=dict(role.description_i18n),
            level=role.level,
            is_active=role.is_active,
            is_system=role.is_system,
            version=1,
        )
        row.permissions = [RolePermission(permission_id=pid) for pid in sorted(role.permissions)]
        self.session.add(row)
        self.session.flush()
        return _role_record(row)

    def update_role(self, role, expected_version=None):
        row = self.session.get(Role, role.id)
        if row is None:
            raise NotFoundError(f'Role {role.id} not found')
        if expected_version is not None and row.version != expected_version:
            raise ConflictError(f'Role {role.id} version mismatch (expected {expected_version}, found {row.version})')
        row.name = role.name
        row.name_i18n = dict(role.name_i18n)
        row.description_i18n = dict(role.description_i18n)
        row.level = role.level
        row.is_active = role.is_active
        row.is_system = role.is_system
        existing = {rp.permission_id: rp for rp in row.permissions}
        for pid, link in existing.items():
            if pid not in role.permissions:
                row.permissions.remove(link)
        for pid in sorted(set(role.permissions) - set(existing)):
            row.permissions.append(RolePermission(permission_id=pid))
        row.version = row.version + 1
        self.session.flush()
        return _role_record(row)

    def delete_role(self, role_id):
        row = self.session.get(Role, role_id)
        if row is None:
            raise NotFoundError(f'Role {role_id} not found')
        self.session.delete(row)
        self.session.flush()

    # --- permissions ---
    def find_permission(self, permission_id):
        row = self.session.get(Permission, permission_id)
        return _permission_record(row) if row else None

    def find_permissions(self, permission_ids):
        ids = list(permission_ids)
        if not ids:
            return {}
        rows = self.session.execute(select(Permission).where(Permission.id.in_(ids))).scalars()
        return {r.id: _permission_record(r) for r in rows}

    def find_permission_by_key(self, resource, action):
        row = self.session.execute(
            select(Permission).where(Permission.resource == resource, Permission.action == action)
        ).scalar_one_or_none()
        return _permission_record(row) if row else None

    def list_permissions(self, is_active=None, is_system=None, category=None, resource=None, action=None):
        q = select(Permission)
        if is_active is not None:
            q = q.where(Permission.is_active == is_active)
        if is_system is not None:
            q = q.where(Permission.is_system == is_system)
        if category:
            q = q.where(Permission.category == category)
        if resource:
            q = q.where(Permission.resource == resource)
        if action:
            q = q.where(Permission.action == action)
        q = q.order_by(Permission.category.asc(), Permission.resource.asc(), Permission.action.asc())
        return [_permission_record(p) for p in self.session.execute(q).scalars()]

    def insert_permission(self, record):
        row = Permission(
            resource=record.resource,
            action=record.action,
            name=record.name,
            name_i18n=dict(record.name_i18n),
            description_i18n=dict(record.description_i18n),
            category=record.category,
            is_active=record.is_active,
            is_system=record.is_system,
        )
        self.session.add(row)
        self.session.flush()
        return _permission_record(row)

    def update_permission(self, record):
        row = self.session.get(Permission, record.id)
        if row is None:
            raise NotFoundError(f'Permission {record.id} not found')
        row.resource = record.resource
        row.action = record.action
        row.name = record.name
        row.name_i18n = dict(record.name_i18n)
        row.description_i18n = dict(record.description_i18n)
        row.category = record.category
        row.is_active = record.is_active
        row.is_system = record.is_system
        self.session.flush()
        return _permission_record(row)

    def delete_permission(self, permission_id):
        row = self.session.get(Permission, permission_id)
        if row is None:
            raise NotFoundError(f'Permission {permission_id} not found')
        self.session.delete(row)
        self.session.flush()

    def count_roles_with_permission(self, permission_id):
        return self.session.execute(
            select(func.count(RolePermission.id)).where(RolePermission.permission_id == permission_id)
        ).scalar_one()


class SqlUserDirectory(UserDirectory):
    def __init__(self, session: Session):
        self.session = session

    def count_users_with_role(self, role_id):
        return self.session.execute(select(func.count(User.id)).where(User.role_id == role_id)).scalar_one()


__all__ = ['RbacRepository', 'UserDirectory', 'SqlAlchemyRepository', 'SqlUserDirectory']
