from functools import wraps
from flask import abort, g
from flask_jwt_extended import verify_jwt_in_request
from dealernet.services.policy import has_permissions, actor_scope


def require_permissions(*codes: str):
    """Verify the bearer token, check every code in ``codes`` and expose ``g.actor``."""
    def outer(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            if not has_permissions(*codes):
                abort(403, description='Missing permission')
            g.actor = actor_scope()
            return fn(*args, **kwargs)
        return wrapper
    return outer
