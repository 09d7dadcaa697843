"""Validation utilities for the application."""
import math
import re
from datetime import date, datetime, time
from typing import Dict, List, Any, Optional

from rollcall.models.attendance import AttendanceStatus

class ValidationError(Exception):
    """Custom validation error."""
    pass

class Validator:
    """Validation helper class."""

    @staticmethod
    def validate_email(email: str) -> bool:
        """Validate email format."""
        if not email:
            return False
        pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
        return bool(re.match(pattern, email))

    @staticmethod
    def validate_password(password: str) -> Dict[str, Any]:
        """Validate password strength."""
        errors = []

        if not password:
            errors.append("Password is required")
        elif len(password) < 6:
            errors.append("Password must be at least 6 characters long")
        elif len(password) > 128:
            errors.append("Password is too long")

        return {
            "is_valid": len(errors) == 0,
            "errors": errors
        }

    @staticmethod
    def validate_required_fields(data: Dict, required_fields: List[str]) -> Dict[str, Any]:
        """Validate required fields in data."""
        errors = []

        for field in required_fields:
            if field not in data or data[field] in (None, ''):
                errors.append(f"{field} is required")

        return {
            "is_valid": len(errors) == 0,
            "errors": errors
        }

    @staticmethod
    def parse_date(value, field: str = 'date') -> Optional[date]:
        """Parse a YYYY-MM-DD string; None passes through."""
        if value in (None, ''):
            return None
        if isinstance(value, date):
            return value
        try:
            return datetime.strptime(str(value), '%Y-%m-%d').date()
        except ValueError:
            raise ValidationError(f"Invalid {field}, expected YYYY-MM-DD")

    @staticmethod
    def parse_time(value, field: str = 'time') -> time:
        """Parse an HH:MM string."""
        try:
            return datetime.strptime(str(value), '%H:%M').time()
        except ValueError:
            raise ValidationError(f"Invalid {field}, expected HH:MM")

    @staticmethod
    def parse_status(value) -> AttendanceStatus:
        """Parse present/absent/late."""
        try:
            return AttendanceStatus(str(value).strip().lower())
        except ValueError:
            raise ValidationError(f"Invalid attendance status: {value}")

    @staticmethod
    def parse_records(records) -> Dict[int, AttendanceStatus]:
        """Parse a {student_id: status} mapping from a JSON body."""
        if not isinstance(records, dict) or not records:
            raise ValidationError("records must be a non-empty object of student id to status")

        parsed = {}
        for student_id, status in records.items():
            try:
                key = int(student_id)
            except (TypeError, ValueError):
                raise ValidationError(f"Invalid student id: {student_id}")
            parsed[key] = Validator.parse_status(status)
        return parsed

    @staticmethod
    def parse_coordinate(value, field: str) -> Optional[float]:
        """Parse a latitude (within 90) or longitude (within 180) in degrees."""
        if value in (None, ''):
            return None
        try:
            coordinate = float(value)
        except (TypeError, ValueError):
            raise ValidationError(f"Invalid {field}")

        limit = 90 if field == 'latitude' else 180
        if not math.isfinite(coordinate) or abs(coordinate) > limit:
            raise ValidationError(f"{field} must be between -{limit} and {limit}")
        return coordinate
