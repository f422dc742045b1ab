from __future__ import annotations
from typing import Any, Dict, Optional
from flask_jwt_extended import get_jwt_identity, get_jwt
from storeadmin import get_db
from storeadmin.models.audit import AuditLog


def add_audit(action: str, entity: str, entity_id: Optional[Any] = None, meta: Optional[Dict[str, Any]] = None):
    """Stage an audit row in the current DB session.

    Parameters:
      action: short action code e.g. ROLE.CREATE, ROLE.CLONE, PERMISSION.DELETE
      entity: Role or Permission
      entity_id: id of the affected record
      meta: additional JSON-safe dictionary (will be shallow copied)

    The actor and their permission snapshot come from the verified bearer token.
    """
    claims = get_jwt() or {}
    ident = get_jwt_identity()
    log = AuditLog(
        actor=str(ident) if ident is not None else None,
        action=action,
        entity=entity,
        entity_id=str(entity_id) if entity_id is not None else None,
        actor_perms=sorted(claims.get('perms', [])),
        meta=dict(meta or {}),
    )
    get_db().add(log)
    # No commit here; caller's transaction boundary controls durability.
    return log
