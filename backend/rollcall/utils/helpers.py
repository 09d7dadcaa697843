"""Helper functions for the application."""
from datetime import date, datetime
from flask import jsonify
from typing import Any, Optional

def handle_error(error, status_code: int):
    """Handle application errors with consistent format."""
    return jsonify({
        'error': True,
        'message': str(error),
        'status_code': status_code
    }), status_code

def success_response(data: Any = None, message: str = "Success"):
    """Return consistent success response."""
    response = {
        'error': False,
        'message': message
    }

    if data is not None:
        response['data'] = data

    return jsonify(response)

def error_response(message: str, status_code: int = 400, error_code: Optional[str] = None):
    """Return consistent error response."""
    response = {
        'error': True,
        'message': message,
        'status_code': status_code
    }

    if error_code:
        response['error_code'] = error_code

    return jsonify(response), status_code

def today() -> date:
    """Current calendar date in UTC."""
    return datetime.utcnow().date()
