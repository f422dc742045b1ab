"""Audit logging decorator for the role/permission admin views.

Usage:

@audit_log('ROLE.CREATE', entity='Role', meta_keys=['name', 'level'])
def create_role(): ... return {'id': role.id, 'name': role.name, ...}, 201

@audit_log('ROLE.UPDATE', entity='Role', entity_id_arg='role_id',
           diff_keys=['name', 'level', 'permissions'], pre_fetch=lambda kw: snapshot(kw['role_id']))
def update_role(role_id): ...

Parameters:
  action: audit action code (ROLE.CREATE, ROLE.DELETE, PERMISSION.UPDATE, ...)
  entity: Role or Permission
  entity_id_arg: view keyword argument holding the id; otherwise the payload's ``id`` is used
  meta_keys: keys projected from the returned JSON into meta
  diff_keys / pre_fetch: snapshot before the view runs, then store before/after for changed keys

The audit row is written only when the view returns normally; domain errors propagate untouched.
The view's own change is already committed, so an audit failure is logged and never turns a
successful response into an error.
"""
from __future__ import annotations
from functools import wraps
from typing import Any, Callable, Dict, Iterable, Optional

from flask import current_app

from storeadmin import get_db
from storeadmin.services.audit import add_audit


def _payload(rv: Any):
    if isinstance(rv, tuple) and rv:
        return rv[0]
    return rv


def audit_log(
    action: str,
    *,
    entity: str,
    entity_id_arg: Optional[str] = None,
    meta_keys: Optional[Iterable[str]] = None,
    diff_keys: Optional[Iterable[str]] = None,
    pre_fetch: Optional[Callable[[Dict[str, Any]], Dict[str, Any]]] = None,
):
    def outer(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            before = pre_fetch(kwargs) if (diff_keys and pre_fetch) else None
            rv = fn(*args, **kwargs)
            data = _payload(rv)
            data = data if isinstance(data, dict) else {}
            entity_id = kwargs.get(entity_id_arg) if entity_id_arg else data.get('id')
            meta = {k: data[k] for k in (meta_keys or []) if k in data}
            if before:
                changes = {
                    k: {'before': before.get(k), 'after': data.get(k)}
                    for k in diff_keys
                    if k in before and k in data and before.get(k) != data.get(k)
                }
                if changes:
                    meta['changes'] = changes
            session = get_db()
            try:
                add_audit(action, entity, entity_id, meta)
                session.commit()
            except Exception:
                session.rollback()
                current_app.logger.exception('Audit write failed for %s %s', action, entity_id)
            return rv
        return wrapper
    return outer
