"""Database seeding service for demo data."""
from datetime import time
from rollcall import db
from rollcall.models.user import User, UserRole
from rollcall.models.section import Section
from rollcall.models.student import Student
from rollcall.models.timetable import Timetable, WeekDay

class SeedService:
    """Service to seed database with demo data."""

    SECTION_NAME = 'CSE-A'
    TEACHER_EMAIL = 'teacher@school.edu'

    @staticmethod
    def seed_all() -> dict:
        """Seed all demo data."""
        section = SeedService.seed_section()
        teacher = SeedService.seed_teacher()
        students = SeedService.seed_students(section)
        SeedService.seed_timetable(section, teacher)
        return {'section': section.name, 'students': students}

    @staticmethod
    def seed_section() -> Section:
        section = Section.query.filter_by(name=SeedService.SECTION_NAME).first()
        if not section:
            section = Section(name=SeedService.SECTION_NAME).save()
        return section

    @staticmethod
    def seed_teacher() -> User:
        teacher = User.query.filter_by(email=SeedService.TEACHER_EMAIL).first()
        if not teacher:
            teacher = User(
                email=SeedService.TEACHER_EMAIL,
                name='Demo Teacher',
                role=UserRole.TEACHER,
                specialization='Computer Science'
            )
            teacher.set_password('teacher123')
            teacher.save()
        return teacher

    @staticmethod
    def seed_students(section: Section, count: int = 10) -> int:
        for sequence in range(1, count + 1):
            university_id = f"1RC24CS{sequence:03d}"
            if Student.query.filter_by(university_id=university_id).first():
                continue
            db.session.add(Student(
                university_id=university_id,
                full_name=f"Student {sequence}",
                email=f"{university_id.lower()}@school.edu",
                section_id=section.id,
                batch='2024',
                year='1'
            ))
        db.session.commit()
        return section.students.count()

    @staticmethod
    def seed_timetable(section: Section, teacher: User) -> None:
        if Timetable.query.filter_by(section_id=section.id).first():
            return

        for day, subject in [(WeekDay.MONDAY, 'Mathematics'), (WeekDay.WEDNESDAY, 'Physics')]:
            db.session.add(Timetable(
                section_id=section.id,
                teacher_id=teacher.id,
                subject=subject,
                day_of_week=day,
                start_time=time(9, 0),
                end_time=time(10, 0)
            ))
        db.session.commit()
