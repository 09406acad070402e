from functools import wraps

from flask import current_app, request
from flask_jwt_extended import get_jwt, get_jwt_identity, verify_jwt_in_request

from lending.utils.responses import json_error


def current_identity():
    """(user_id, is_admin) of the caller, from the access token."""
    user_id = int(get_jwt_identity())
    role = (get_jwt() or {}).get("role")
    return user_id, role == "admin"


def role_required(*roles):
    """Like jwt_required, but the token's role claim must be one of ``roles``."""
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            role = (get_jwt() or {}).get("role")
            if role not in roles:
                current_app.logger.info(f"[api] role {role!r} refused on {request.path}")
                return json_error("Forbidden", 403)
            return fn(*args, **kwargs)
        return wrapper
    return decorator


admin_required = role_required("admin")
