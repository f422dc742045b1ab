"""Build the RBAC managers for the current request, bound to the scoped DB session."""
from __future__ import annotations
from flask import current_app

from storeadmin import get_db
from storeadmin.services.catalog import PermissionCatalog
from storeadmin.services.permissions import PermissionManager
from storeadmin.services.repository import SqlAlchemyRepository, SqlUserDirectory
from storeadmin.services.roles import RoleManager


def repository() -> SqlAlchemyRepository:
    return SqlAlchemyRepository(get_db())


def permission_catalog() -> PermissionCatalog:
    return PermissionCatalog(repository())


def role_manager() -> RoleManager:
    session = get_db()
    return RoleManager(
        SqlAlchemyRepository(session),
        SqlUserDirectory(session),
        lock_system_permissions=bool(current_app.config.get('RBAC_LOCK_SYSTEM_ROLE_PERMISSIONS')),
    )


def permission_manager() -> PermissionManager:
    repo = repository()
    return PermissionManager(repo, PermissionCatalog(repo))
