"""QR check-in API endpoints."""
from flask import Blueprint, request, g
from flask_jwt_extended import jwt_required
from rollcall import limiter
from rollcall.services.qr_session_service import QRSessionService
from rollcall.utils.decorators import admin_required
from rollcall.utils.helpers import success_response, error_response
from rollcall.utils.validators import Validator

qr_bp = Blueprint('qr', __name__)

@qr_bp.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return success_response(message='QR service is running')

@qr_bp.route('/create', methods=['POST'])
@jwt_required()
@admin_required
@limiter.limit("30 per hour")
def create_session():
    """Start a rotating QR check-in session."""
    data = request.get_json(silent=True)
    if not data:
        return error_response("Request body must be JSON", 400)

    allowed = data.get('allowed_students') or []
    if not isinstance(allowed, list):
        return error_response("allowed_students must be a list", 400)

    qr_session = QRSessionService.create_session(
        subject=data.get('subject'),
        section_id=data.get('section_id'),
        teacher_id=data.get('teacher_id') or g.current_user.id,
        allowed_students=allowed,
        latitude=Validator.parse_coordinate(data.get('latitude'), 'latitude'),
        longitude=Validator.parse_coordinate(data.get('longitude'), 'longitude'),
        radius_meters=data.get('radius_meters')
    )

    return success_response(
        data=qr_session.to_dict(),
        message="QR session started"
    ), 201

@qr_bp.route('/status', methods=['GET'])
@jwt_required()
@admin_required
@limiter.exempt
def session_status():
    """Poll a session; rotates the token when it is stale."""
    return success_response(data=QRSessionService.get_session_status(request.args.get('code')))

@qr_bp.route('/stop', methods=['POST'])
@jwt_required()
@admin_required
def stop_session():
    """Stop a session."""
    data = request.get_json(silent=True) or {}
    if not data.get('code'):
        return error_response("Code required", 400)

    qr_session = QRSessionService.stop_session(data['code'])
    return success_response(data=qr_session.to_dict(), message="QR session stopped")

@qr_bp.route('/mark', methods=['POST'])
@limiter.limit("60 per minute")
def mark_attendance():
    """Student self check-in from a scanned QR code."""
    data = request.get_json(silent=True)
    if not data:
        return error_response("Request body must be JSON", 400)

    if not data.get('university_id'):
        return error_response("university_id is required", 400)

    result = QRSessionService.redeem_check_in(
        code=data.get('code'),
        token=data.get('token'),
        identifier=data.get('university_id'),
        latitude=Validator.parse_coordinate(data.get('latitude'), 'latitude'),
        longitude=Validator.parse_coordinate(data.get('longitude'), 'longitude')
    )

    message = "Already marked present." if result['already_marked'] else "Attendance marked."
    return success_response(data=result, message=message)
