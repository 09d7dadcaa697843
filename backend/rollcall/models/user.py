"""User model for authentication and authorization."""
from enum import Enum
from werkzeug.security import generate_password_hash, check_password_hash
from rollcall import db
from rollcall.models.base import BaseModel

class UserRole(Enum):
    """User roles enumeration."""
    TEACHER = 'teacher'
    ADMIN = 'admin'

class User(BaseModel):
    """Staff account: administrators and teachers."""

    __tablename__ = 'users'

    # Basic Information
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    name = db.Column(db.String(255), nullable=False)

    # Role
    role = db.Column(db.Enum(UserRole), nullable=False, default=UserRole.TEACHER)
    specialization = db.Column(db.String(255), nullable=True)

    # Security and Authentication
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    last_login = db.Column(db.DateTime, nullable=True)

    def set_password(self, password: str) -> None:
        """Set user password with hashing."""
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        """Check if provided password matches user's password."""
        return check_password_hash(self.password_hash, password)

    def is_teacher(self) -> bool:
        """Teachers and admins may take attendance."""
        return self.role in [UserRole.TEACHER, UserRole.ADMIN]

    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def to_dict(self, exclude: list = None) -> dict:
        """Convert to dictionary excluding sensitive data."""
        default_exclude = ['password_hash']
        exclude = (exclude or []) + default_exclude
        return super().to_dict(exclude=exclude)

    def __repr__(self) -> str:
        return f'<User {self.email}>'
