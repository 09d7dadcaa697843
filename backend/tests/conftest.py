"""Shared fixtures."""
import itertools
from datetime import date, timedelta

import pytest
from flask_jwt_extended import create_access_token

from rollcall import create_app, db
from rollcall.models import (
    AttendanceRecord, AttendanceStatus, Section, Student, User, UserRole
)

@pytest.fixture
def app():
    """Create test app."""
    app = create_app('testing')
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()

@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()

@pytest.fixture
def admin_user(app):
    user = User(email='admin@example.com', name='Admin User', role=UserRole.ADMIN)
    user.set_password('admin123')
    return user.save()

@pytest.fixture
def teacher_user(app):
    user = User(email='teacher@example.com', name='Teacher User', role=UserRole.TEACHER)
    user.set_password('teacher123')
    return user.save()

@pytest.fixture
def section(app):
    return Section(name='CSE-A').save()

@pytest.fixture
def students(app, section):
    """Three students in the same section."""
    created = []
    for sequence in range(1, 4):
        created.append(Student(
            university_id=f'1RC24CS00{sequence}',
            full_name=f'Student {sequence}',
            email=f'student{sequence}@example.com',
            section_id=section.id
        ).save())
    return created

@pytest.fixture
def student(students):
    return students[0]

@pytest.fixture
def admin_headers(admin_user):
    token = create_access_token(identity=str(admin_user.id))
    return {'Authorization': f'Bearer {token}'}

@pytest.fixture
def teacher_headers(teacher_user):
    token = create_access_token(identity=str(teacher_user.id))
    return {'Authorization': f'Bearer {token}'}

@pytest.fixture
def add_marks(app):
    """Insert raw attendance records: add_marks(student, subject, present=.., late=.., absent=..)."""
    days = itertools.count(1)

    def _add(student, subject, present=0, late=0, absent=0, is_draft=False):
        for status, count in ((AttendanceStatus.PRESENT, present),
                              (AttendanceStatus.LATE, late),
                              (AttendanceStatus.ABSENT, absent)):
            for _ in range(count):
                db.session.add(AttendanceRecord(
                    student_id=student.id,
                    section_id=student.section_id,
                    date=date(2024, 1, 1) + timedelta(days=next(days)),
                    status=status,
                    subject=subject,
                    is_draft=is_draft
                ))
        db.session.commit()
    return _add
