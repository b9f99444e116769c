import logging
from functools import wraps
from flask import jsonify, session

logger = logging.getLogger(__name__)


def login_required(f):
    """Decorator to ensure a valid session exists before accessing an API route."""

    @wraps(f)
    def decorated_function(*args, **kwargs):
        if "user_id" not in session:
            return jsonify({"error": "Unauthorized"}), 401
        return f(*args, **kwargs)

    return decorated_function


def role_required(role):
    """Decorator rejecting sessions whose role does not match. Implies login_required."""

    def decorator(f):
        @wraps(f)
        @login_required
        def decorated_function(*args, **kwargs):
            if session.get("role") != role:
                logger.warning(
                    f"User {session.get('user_id')} with role {session.get('role')} denied access to {role} route"
                )
                return (
                    jsonify({"error": f"Access denied. {role.title()} privileges required."}),
                    403,
                )
            return f(*args, **kwargs)

        return decorated_function

    return decorator


def current_user_id():
    return session.get("user_id")
