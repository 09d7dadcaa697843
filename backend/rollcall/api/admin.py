"""Admin management API: sections, students, teachers and timetable."""
from flask import Blueprint, request, current_app
from flask_jwt_extended import jwt_required
from rollcall.models.section import Section
from rollcall.models.student import Student
from rollcall.models.user import User, UserRole
from rollcall.services.auth_service import AuthService
from rollcall.services.attendance_stats_service import AttendanceStatsService
from rollcall.services.student_service import StudentService
from rollcall.utils.decorators import admin_required
from rollcall.utils.helpers import success_response, error_response

admin_bp = Blueprint('admin', __name__)

@admin_bp.route('/sections', methods=['GET'])
@jwt_required()
@admin_required
def get_sections():
    """List all sections."""
    sections = Section.query.order_by(Section.name).all()
    return success_response(data=[section.to_dict() for section in sections])

@admin_bp.route('/sections', methods=['POST'])
@jwt_required()
@admin_required
def create_section():
    """Create a section."""
    data = request.get_json(silent=True) or {}
    result, error = StudentService.create_section(data.get('name'))

    if error:
        return error_response(error, 400)

    return success_response(data=result, message="Section created successfully"), 201

@admin_bp.route('/students', methods=['GET'])
@jwt_required()
@admin_required
def get_students():
    """Get students with optional section filter."""
    page = request.args.get('page', 1, type=int)
    per_page = min(
        request.args.get('per_page', current_app.config['DEFAULT_PAGE_SIZE'], type=int),
        current_app.config['MAX_PAGE_SIZE']
    )

    return success_response(data=StudentService.list_students(
        section_id=request.args.get('section_id', type=int),
        page=page,
        per_page=per_page
    ))

@admin_bp.route('/students', methods=['POST'])
@jwt_required()
@admin_required
def create_student():
    """Create single student."""
    data = request.get_json(silent=True) or {}

    result, error = StudentService.create_student(
        university_id=data.get('university_id'),
        full_name=data.get('full_name'),
        email=data.get('email'),
        section_id=data.get('section_id'),
        batch=data.get('batch'),
        year=data.get('year'),
        phone=data.get('phone')
    )

    if error:
        return error_response(error, 400)

    return success_response(data=result, message="Student created successfully"), 201

@admin_bp.route('/students/bulk', methods=['POST'])
@jwt_required()
@admin_required
def bulk_enroll_students():
    """Enroll many students at once from a JSON list."""
    data = request.get_json(silent=True) or {}
    result, error = StudentService.bulk_enroll(data.get('students'))

    if error:
        return error_response(error, 400)

    return success_response(
        data=result,
        message=f"Successfully enrolled {result['count']} students"
    ), 201

@admin_bp.route('/students/<int:student_id>/subject-stats', methods=['GET'])
@jwt_required()
@admin_required
def get_subject_stats(student_id):
    """Per-subject attendance statistics for one student."""
    student = Student.get_or_404(student_id)

    return success_response(data={
        'student': student.to_dict(),
        'subject_stats': AttendanceStatsService.get_subject_stats(student.id)
    })

@admin_bp.route('/teachers', methods=['GET'])
@jwt_required()
@admin_required
def get_teachers():
    """List teacher accounts."""
    teachers = User.query.filter_by(role=UserRole.TEACHER).order_by(User.name).all()
    return success_response(data=[teacher.to_dict() for teacher in teachers])

@admin_bp.route('/teachers', methods=['POST'])
@jwt_required()
@admin_required
def create_teacher():
    """Create a teacher account."""
    data = request.get_json(silent=True) or {}

    result, error = AuthService.create_user(
        email=data.get('email'),
        password=data.get('password'),
        name=data.get('name'),
        role=UserRole.TEACHER,
        specialization=data.get('specialization')
    )

    if error:
        return error_response(error, 400)

    return success_response(data=result, message="Teacher created successfully"), 201

@admin_bp.route('/admins', methods=['GET'])
@jwt_required()
@admin_required
def get_admins():
    """List admin accounts."""
    admins = User.query.filter_by(role=UserRole.ADMIN).order_by(User.name).all()
    return success_response(data=[admin.to_dict() for admin in admins])

@admin_bp.route('/admins', methods=['POST'])
@jwt_required()
@admin_required
def create_admin():
    """Create another admin account."""
    data = request.get_json(silent=True) or {}

    result, error = AuthService.create_user(
        email=data.get('email'),
        password=data.get('password'),
        name=data.get('name'),
        role=UserRole.ADMIN
    )

    if error:
        return error_response(error, 400)

    return success_response(data=result, message="Admin created successfully"), 201

@admin_bp.route('/timetable', methods=['GET'])
@jwt_required()
@admin_required
def get_timetable():
    """List timetable entries."""
    return success_response(data=StudentService.list_timetable(
        section_id=request.args.get('section_id', type=int),
        teacher_id=request.args.get('teacher_id', type=int)
    ))

@admin_bp.route('/timetable', methods=['POST'])
@jwt_required()
@admin_required
def create_timetable_entry():
    """Schedule a subject for a section."""
    data = request.get_json(silent=True) or {}
    result, error = StudentService.create_timetable_entry(data)

    if error:
        return error_response(error, 400)

    return success_response(data=result, message="Timetable entry created successfully"), 201
