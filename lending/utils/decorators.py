from functools import wraps

from flask import jsonify
from flask_jwt_extended import get_jwt, get_jwt_identity, verify_jwt_in_request


def role_required(*roles):
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            role = (get_jwt() or {}).get("role")
            if role not in roles:
                return jsonify({"success": False, "code": "FORBIDDEN", "message": "Forbidden"}), 403
            return fn(*args, **kwargs)
        return wrapper
    return decorator


def current_user_id() -> int:
    return int(get_jwt_identity())


def current_role():
    return (get_jwt() or {}).get("role")
