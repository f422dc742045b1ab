from functools import wraps
from flask import abort
from flask_jwt_extended import verify_jwt_in_request
from storeadmin.services.policy import has_permissions


def require_permissions(*codes: str):
    """Guard an admin view with ``resource:action`` codes.

    A request without a valid bearer token is answered 401 through the loaders registered in ``create_app``. A token whose
    ``perms`` claim lacks any of the codes (held directly or via ``resource:manage``) gets 403.
    """
    needed = ', '.join(codes)

    def outer(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            if not has_permissions(*codes):
                abort(403, description=f'Role or permission administration requires: {needed}')
            return fn(*args, **kwargs)
        return wrapper
    return outer
