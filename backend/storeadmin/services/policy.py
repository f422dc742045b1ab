from __future__ import annotations
from typing import Iterable, Set
from flask_jwt_extended import get_jwt
from sqlalchemy import select
from storeadmin.models.authz import User, Role, RolePermission, Permission
from storeadmin import get_db


def current_permissions() -> Set[str]:
    claims = get_jwt()
    return set(claims.get('perms', []))


def grants(held: Iterable[str], code: str) -> bool:
    """True when ``code`` (resource:action) is held directly or via ``resource:manage``."""
    held = set(held)
    if code in held:
        return True
    resource, _, _action = code.partition(':')
    return f'{resource}:manage' in held


def has_permissions(*codes: str) -> bool:
    perms = current_permissions()
    return all(grants(perms, c) for c in codes)


def compute_effective_permissions(user_id: int) -> Set[str]:
    """Active permission codes of the user's role; empty when the role is missing or inactive.

    Tokens are issued by the external auth service, which embeds this set as the ``perms`` claim.
    """
    session = get_db()
    user = session.get(User, user_id)
    if user is None or user.role_id is None:
        return set()
    role = session.get(Role, user.role_id)
    if role is None or not role.is_active:
        return set()
    rows = session.execute(
        select(Permission)
        .join(RolePermission, RolePermission.permission_id == Permission.id)
        .where(RolePermission.role_id == role.id, Permission.is_active.is_(True))
    ).scalars()
    return {f'{p.resource}:{p.action}' for p in rows}
