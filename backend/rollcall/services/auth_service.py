"""Authentication service for staff accounts."""
from flask_jwt_extended import create_access_token
from rollcall.models.user import User, UserRole
from rollcall.utils.validators import Validator
from datetime import datetime

class AuthService:
    @staticmethod
    def login(email: str, password: str) -> tuple[dict, str]:
        """Authenticate user and return an access token."""
        # Validate input
        if not email or not password:
            return None, "Email and password are required"

        if not Validator.validate_email(email):
            return None, "Invalid email format"

        # Find user
        user = User.query.filter_by(email=email.lower().strip()).first()

        if not user or not user.check_password(password):
            return None, "Invalid email or password"

        # Check if account is active
        if not user.is_active:
            return None, "Account is deactivated"

        user.update(last_login=datetime.utcnow())

        access_token = create_access_token(
            identity=str(user.id),
            additional_claims={'role': user.role.value}
        )

        return {
            "access_token": access_token,
            "user": user.to_dict()
        }, None

    @staticmethod
    def create_user(email: str, password: str, name: str,
                    role: UserRole = UserRole.TEACHER, specialization: str = None) -> tuple[dict, str]:
        """Create a staff account."""
        if not all([email, password, name]):
            return None, "Email, password and name are required"

        if not Validator.validate_email(email):
            return None, "Invalid email format"

        password_check = Validator.validate_password(password)
        if not password_check['is_valid']:
            return None, password_check['errors'][0]

        if len(name.strip()) < 2:
            return None, "Name must be at least 2 characters long"

        # Check if email already exists
        email = email.lower().strip()
        if User.query.filter_by(email=email).first():
            return None, "Email already exists"

        user = User(
            email=email,
            name=name.strip(),
            role=role,
            specialization=specialization
        )
        user.set_password(password)
        user.save()

        return user.to_dict(), None
