"""Authentication API."""
from flask import Blueprint, request
from flask_jwt_extended import jwt_required
from rollcall import limiter
from rollcall.utils.decorators import get_current_user
from rollcall.utils.helpers import success_response, error_response
from rollcall.services.auth_service import AuthService

auth_bp = Blueprint("auth", __name__)

@auth_bp.route("/health", methods=["GET"])
def health_check():
    """Health check endpoint."""
    return success_response(message="Auth service is running")

@auth_bp.route("/login", methods=["POST"])
@limiter.limit("5 per minute")
def login():
    """Staff login (teachers, admins)."""
    data = request.get_json(silent=True)

    if not data:
        return error_response("Request body must be JSON", 400)

    email = data.get("email", "").strip()
    password = data.get("password", "")

    if not email or not password:
        return error_response("Email and password are required", 400)

    result, error = AuthService.login(email, password)

    if error:
        return error_response(error, 401)

    return success_response(
        data=result,
        message="Login successful"
    )

@auth_bp.route("/me", methods=["GET"])
@jwt_required()
def get_current_user_profile():
    """Get current user profile."""
    user = get_current_user()

    if not user:
        return error_response("User not found", 404)

    return success_response(data=user.to_dict())
