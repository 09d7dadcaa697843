"""Student, section and timetable management service."""
from typing import Dict, List, Tuple, Optional
from sqlalchemy.exc import IntegrityError
from rollcall import db
from rollcall.models.section import Section
from rollcall.models.student import Student
from rollcall.models.timetable import Timetable, WeekDay
from rollcall.models.user import User
from rollcall.utils.validators import Validator, ValidationError

class StudentService:
    """Service for managing students and the class structure around them."""

    @staticmethod
    def create_section(name: str) -> Tuple[Optional[Dict], Optional[str]]:
        """Create a named section."""
        name = (name or '').strip()
        if not name:
            return None, "Section name is required"
        if Section.query.filter_by(name=name).first():
            return None, "Section already exists"

        section = Section(name=name).save()
        return section.to_dict(), None

    @staticmethod
    def create_student(
        university_id: str,
        full_name: str,
        email: str = None,
        section_id: int = None,
        batch: str = None,
        year: str = None,
        phone: str = None
    ) -> Tuple[Optional[Dict], Optional[str]]:
        """Create a new student."""
        university_id = Student.normalize_identifier(university_id)
        if not university_id:
            return None, "University ID is required"
        if not full_name or not full_name.strip():
            return None, "Full name is required"
        if email and not Validator.validate_email(email):
            return None, "Invalid email format"
        if section_id and not Section.get_by_id(section_id):
            return None, "Section not found"

        student = Student(
            university_id=university_id,
            full_name=full_name.strip(),
            email=email.lower().strip() if email else None,
            section_id=section_id,
            batch=batch,
            year=year,
            phone=phone
        )

        try:
            student.save()
        except IntegrityError:
            db.session.rollback()
            return None, "A student with this university ID or email already exists"

        return student.to_dict(), None

    @staticmethod
    def bulk_enroll(entries: List[Dict]) -> Tuple[Optional[Dict], Optional[str]]:
        """
        Enroll a list of students in one transaction.

        Each entry carries ``university_id``, ``full_name`` and optionally
        ``email``, ``batch``, ``year``, ``phone`` and ``section_name``. Section
        names are matched case-insensitively; unknown names leave the student
        without a section. Nothing is written if any entry is rejected.
        """
        if not isinstance(entries, list) or not entries:
            return None, "Invalid or empty student list"

        sections = {section.name.lower(): section.id for section in Section.query.all()}

        students, seen = [], set()
        for position, entry in enumerate(entries, start=1):
            if not isinstance(entry, dict):
                return None, f"Entry {position} must be an object"

            university_id = Student.normalize_identifier(entry.get('university_id'))
            full_name = (entry.get('full_name') or '').strip()
            email = entry.get('email')

            if not university_id or not full_name:
                return None, f"Entry {position}: university_id and full_name are required"
            if email and not Validator.validate_email(email):
                return None, f"Entry {position}: invalid email format"
            if university_id in seen:
                return None, f"Duplicate university ID in list: {university_id}"
            seen.add(university_id)

            section_name = (entry.get('section_name') or '').strip().lower()
            students.append(Student(
                university_id=university_id,
                full_name=full_name,
                email=email.lower().strip() if email else None,
                section_id=sections.get(section_name),
                batch=entry.get('batch'),
                year=entry.get('year'),
                phone=entry.get('phone')
            ))

        try:
            db.session.add_all(students)
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            return None, "One or more university IDs or emails already exist"

        return {
            'count': len(students),
            'unassigned': [s.university_id for s in students if s.section_id is None]
        }, None

    @staticmethod
    def list_students(section_id: int = None, page: int = 1, per_page: int = 20) -> Dict:
        """Paginated students, optionally for one section."""
        query = Student.query
        if section_id:
            query = query.filter_by(section_id=section_id)

        pagination = query.order_by(Student.university_id).paginate(
            page=page, per_page=per_page, error_out=False
        )

        return {
            'students': [student.to_dict() for student in pagination.items],
            'total': pagination.total,
            'pages': pagination.pages,
            'current_page': page
        }

    @staticmethod
    def create_timetable_entry(data: Dict) -> Tuple[Optional[Dict], Optional[str]]:
        """Schedule a subject for a section."""
        check = Validator.validate_required_fields(
            data, ['section_id', 'teacher_id', 'subject', 'day_of_week', 'start_time', 'end_time']
        )
        if not check['is_valid']:
            return None, ', '.join(check['errors'])

        if not Section.get_by_id(data['section_id']):
            return None, "Section not found"
        teacher = User.get_by_id(data['teacher_id'])
        if not teacher or not teacher.is_teacher():
            return None, "Teacher not found"

        try:
            day = WeekDay(str(data['day_of_week']).strip().capitalize())
        except ValueError:
            return None, f"Invalid day of week: {data['day_of_week']}"

        try:
            start_time = Validator.parse_time(data['start_time'], 'start_time')
            end_time = Validator.parse_time(data['end_time'], 'end_time')
            on_date = Validator.parse_date(data.get('date'))
        except ValidationError as e:
            return None, str(e)

        if end_time <= start_time:
            return None, "end_time must be after start_time"

        entry = Timetable(
            section_id=data['section_id'],
            teacher_id=teacher.id,
            subject=str(data['subject']).strip(),
            day_of_week=day,
            date=on_date,
            start_time=start_time,
            end_time=end_time
        ).save()

        return entry.to_dict(), None

    @staticmethod
    def list_timetable(section_id: int = None, teacher_id: int = None) -> List[Dict]:
        query = Timetable.query
        if section_id:
            query = query.filter_by(section_id=section_id)
        if teacher_id:
            query = query.filter_by(teacher_id=teacher_id)
        return [entry.to_dict() for entry in query.order_by(Timetable.start_time).all()]
