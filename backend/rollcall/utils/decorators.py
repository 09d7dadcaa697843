"""Custom decorators for authorization."""
from functools import wraps
from flask import g
from flask_jwt_extended import get_jwt_identity
from rollcall.models.user import User, UserRole
from rollcall.utils.helpers import error_response

def get_current_user() -> User:
    """User behind the JWT of the current request."""
    identity = get_jwt_identity()
    if identity is None:
        return None
    return User.get_by_id(int(identity))

def _require(check, denied_message):
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            user = get_current_user()

            if not user or not user.is_active:
                return error_response("User not found", 404)

            if not check(user):
                return error_response(denied_message, 403)

            g.current_user = user
            return f(*args, **kwargs)
        return decorated_function
    return decorator

def admin_required(f):
    """Decorator to require admin role."""
    return _require(lambda user: user.role == UserRole.ADMIN, "Admin access required")(f)

def teacher_required(f):
    """Decorator to require teacher role or higher."""
    return _require(lambda user: user.is_teacher(), "Teacher access required")(f)
