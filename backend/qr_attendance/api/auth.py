"""Authentication API."""
from flask import Blueprint, request
from flask_jwt_extended import jwt_required, get_jwt_identity

from qr_attendance import limiter
from qr_attendance.models.user import User, UserRole
from qr_attendance.services.auth_service import AuthService
from qr_attendance.services.identity_store import IdentityStore
from qr_attendance.utils.decorators import any_role_required, current_user
from qr_attendance.utils.helpers import success_response, error_response

auth_bp = Blueprint("auth", __name__)

@auth_bp.route("/health", methods=["GET"])
def health_check():
    """Health check endpoint."""
    return success_response(message="Auth service is running")

@auth_bp.route("/register", methods=["POST"])
@limiter.limit("10 per hour")
def register():
    """Register a student or teacher account with its profile."""
    data = request.get_json(silent=True)
    
    if not data:
        return error_response("Request body must be JSON", 400, code='validation_error')
    
    user, error = AuthService.register(data)
    
    if error:
        return error_response(error, 400, code='validation_error')
    
    return success_response(
        data={
            **AuthService.issue_tokens(user),
            "user": user.to_dict()
        },
        message="Registration successful",
        status_code=201
    )

@auth_bp.route("/login", methods=["POST"])
@limiter.limit("5 per minute")
def login():
    """Login with email and password."""
    data = request.get_json(silent=True)
    
    if not data:
        return error_response("Request body must be JSON", 400, code='validation_error')
    
    email = (data.get("email") or "").strip()
    password = data.get("password") or ""
    
    if not email or not password:
        return error_response("Email and password are required", 400, code='validation_error')
    
    result, error = AuthService.login(email, password)
    
    if error:
        return error_response(error, 401, code='unauthenticated')
    
    return success_response(data=result, message="Login successful")

@auth_bp.route("/me", methods=["GET"])
@jwt_required()
@any_role_required
def get_current_user():
    """Get current user with role profile."""
    user = current_user()
    response_data = user.to_dict()
    
    profile = IdentityStore.find_profile_by_account(user, user.role)
    if profile is not None:
        key = 'student_profile' if user.role == UserRole.STUDENT else 'teacher_profile'
        response_data[key] = profile.to_dict()
    
    return success_response(data=response_data)

@auth_bp.route("/refresh", methods=["POST"])
@jwt_required(refresh=True)
def refresh_token():
    """Refresh access token."""
    user = IdentityStore.find_by_id(User, get_jwt_identity())
    
    if not user or not user.is_active:
        return error_response("User not found or inactive", 401, code='unauthenticated')
    
    return success_response(
        data={"access_token": AuthService.issue_tokens(user)["access_token"]},
        message="Token refreshed"
    )

@auth_bp.route("/password", methods=["PUT"])
@jwt_required()
@any_role_required
def change_password():
    """Change the current user's password."""
    data = request.get_json(silent=True) or {}
    
    error = AuthService.change_password(
        current_user(),
        data.get("current_password"),
        data.get("new_password")
    )
    
    if error:
        return error_response(error, 400, code='validation_error')
    
    return success_response(message="Password updated successfully")
