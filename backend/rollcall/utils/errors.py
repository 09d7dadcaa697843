"""Attendance error taxonomy surfaced to request handlers."""

class AttendanceError(Exception):
    """Base class for anticipated attendance failures."""

    status_code = 400
    error_code = 'attendance_error'
    default_message = 'Attendance request failed'

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)

class InvalidSession(AttendanceError):
    """QR code unknown or session inactive."""
    status_code = 404
    error_code = 'invalid_session'
    default_message = 'This QR session does not exist or has been stopped.'

class InvalidToken(AttendanceError):
    """Token matches neither the current nor the previous rotating token."""
    status_code = 400
    error_code = 'invalid_token'
    default_message = 'Invalid or expired QR code. Scan the code on screen again.'

TokenExpired = InvalidToken

class NotAllowed(AttendanceError):
    status_code = 403
    error_code = 'not_allowed'
    default_message = 'You are not in the allowed list for this session.'

class StudentNotFound(AttendanceError):
    status_code = 404
    error_code = 'student_not_found'
    default_message = 'No student found with this identifier.'

class OutOfRange(AttendanceError):
    """Geofence check failed."""
    status_code = 403
    error_code = 'out_of_range'
    default_message = 'You are too far from the classroom. Attendance denied.'

class StorageFailure(AttendanceError):
    """Underlying persistence call failed."""
    status_code = 500
    error_code = 'storage_failure'
    default_message = 'Attendance storage is unavailable. Please try again.'
