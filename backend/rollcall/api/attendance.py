"""Attendance marking and reporting API for teachers and admins."""
from flask import Blueprint, request, g
from flask_jwt_extended import jwt_required
from rollcall.services.attendance_service import AttendanceService
from rollcall.utils.decorators import admin_required, teacher_required
from rollcall.utils.helpers import success_response, error_response
from rollcall.utils.validators import Validator

teacher_bp = Blueprint('teacher', __name__)
admin_attendance_bp = Blueprint('admin_attendance', __name__)

@teacher_bp.route('/attendance', methods=['POST'])
@jwt_required()
@teacher_required
def submit_attendance():
    """Submit a batch of marks, as draft or final."""
    data = request.get_json(silent=True)
    if not data:
        return error_response("Request body must be JSON", 400)

    result = AttendanceService.submit_attendance(
        records=Validator.parse_records(data.get('records')),
        section_id=data.get('section_id'),
        subject=data.get('subject'),
        teacher_id=g.current_user.id,
        on_date=Validator.parse_date(data.get('date')),
        timetable_id=data.get('timetable_id'),
        is_draft=bool(data.get('is_draft', False))
    )

    message = "Attendance saved as draft" if result['is_draft'] else "Attendance submitted"
    return success_response(data=result, message=message)

@teacher_bp.route('/attendance/finalize', methods=['POST'])
@jwt_required()
@teacher_required
def finalize_teacher_attendance():
    """Finalize drafts the current teacher saved."""
    return _finalize(request.get_json(silent=True) or {}, teacher_id=g.current_user.id)

@teacher_bp.route('/reports', methods=['GET'])
@jwt_required()
@teacher_required
def get_teacher_reports():
    """Records taken by the current teacher."""
    return success_response(data=AttendanceService.list_records(
        section_id=request.args.get('section_id', type=int),
        on_date=Validator.parse_date(request.args.get('date')),
        teacher_id=g.current_user.id
    ))

@admin_attendance_bp.route('/attendance/save', methods=['POST'])
@jwt_required()
@admin_required
def save_attendance_corrections():
    """Admin corrections; always finalized and recomputed."""
    data = request.get_json(silent=True)
    if not data:
        return error_response("Request body must be JSON", 400)

    on_date = Validator.parse_date(data.get('date'))
    if not on_date:
        return error_response("date is required", 400)

    result = AttendanceService.save_corrections(
        records=Validator.parse_records(data.get('records')),
        section_id=data.get('section_id'),
        subject=data.get('subject'),
        teacher_id=data.get('teacher_id'),
        on_date=on_date,
        timetable_id=data.get('timetable_id')
    )

    return success_response(data=result, message="Attendance corrections saved")

@admin_attendance_bp.route('/attendance/finalize', methods=['POST'])
@jwt_required()
@admin_required
def finalize_admin_attendance():
    """Finalize draft marks for a session."""
    return _finalize(request.get_json(silent=True) or {})

@admin_attendance_bp.route('/attendance/sessions', methods=['GET'])
@jwt_required()
@admin_required
def get_attendance_sessions():
    """Summary of marked sessions."""
    return success_response(data=AttendanceService.list_sessions(
        start_date=Validator.parse_date(request.args.get('start_date'), 'start_date'),
        end_date=Validator.parse_date(request.args.get('end_date'), 'end_date'),
        section_id=request.args.get('section_id', type=int)
    ))

@admin_attendance_bp.route('/reports', methods=['GET'])
@jwt_required()
@admin_required
def get_admin_reports():
    """All attendance records with optional filters."""
    return success_response(data=AttendanceService.list_records(
        section_id=request.args.get('section_id', type=int),
        on_date=Validator.parse_date(request.args.get('date')),
        teacher_id=request.args.get('teacher_id', type=int)
    ))

def _finalize(data, teacher_id=None):
    on_date = Validator.parse_date(data.get('date'))
    if not on_date:
        return error_response("date is required", 400)
    if not data.get('subject') and not data.get('timetable_id'):
        return error_response("subject or timetable_id is required", 400)

    result = AttendanceService.finalize_drafts(
        on_date=on_date,
        subject=data.get('subject'),
        section_id=data.get('section_id'),
        timetable_id=data.get('timetable_id'),
        teacher_id=teacher_id
    )
    return success_response(data=result, message=f"Finalized {result['finalized']} records")
