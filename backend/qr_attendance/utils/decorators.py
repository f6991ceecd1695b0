"""Custom decorators for authorization."""
from functools import wraps

from flask import g
from flask_jwt_extended import get_jwt_identity

from qr_attendance.models.user import User, UserRole
from qr_attendance.services.identity_store import IdentityStore
from qr_attendance.utils.helpers import error_response

def current_user() -> User:
    """Account loaded by the role decorators for this request."""
    return g.current_user

def role_required(*roles: UserRole):
    """Require an authenticated, active account with one of ``roles``.
    
    Must be stacked under ``@jwt_required()``.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            user = IdentityStore.find_by_id(User, get_jwt_identity())
            
            if not user:
                return error_response("User not found", 401, code='unauthenticated')
            
            if not user.is_active:
                return error_response("User account is deactivated", 401, code='unauthenticated')
            
            if user.role not in roles:
                return error_response(
                    f"User role '{user.role.value}' is not authorized to access this route",
                    403, code='forbidden'
                )
            
            g.current_user = user
            return f(*args, **kwargs)
        return decorated_function
    return decorator

def any_role_required(f):
    """Any authenticated, active account."""
    return role_required(*UserRole)(f)

def teacher_required(f):
    """Teachers and admins."""
    return role_required(UserRole.TEACHER, UserRole.ADMIN)(f)

def student_required(f):
    return role_required(UserRole.STUDENT)(f)
