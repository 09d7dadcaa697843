"""Student model."""
from rollcall import db
from rollcall.models.base import BaseModel

class Student(BaseModel):
    """Student with a university identifier and a global attendance percentage."""

    __tablename__ = 'students'

    # University Credentials
    university_id = db.Column(db.String(50), unique=True, nullable=False, index=True)

    # Personal Info
    full_name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=True)
    phone = db.Column(db.String(20), nullable=True)

    # Academic Info
    batch = db.Column(db.String(20), nullable=True)
    year = db.Column(db.String(20), nullable=True)
    section_id = db.Column(db.Integer, db.ForeignKey('sections.id', ondelete='SET NULL'), nullable=True)

    # Aggregated across all subjects, recomputed from non-draft records
    attendance_percentage = db.Column(db.Integer, default=0, nullable=False)

    # Relationships
    attendance_records = db.relationship('AttendanceRecord', backref='student', lazy='dynamic')
    subject_stats = db.relationship('SubjectStat', backref='student', lazy='dynamic')

    @staticmethod
    def normalize_identifier(identifier) -> str:
        """Identifiers are matched trimmed and upper-cased."""
        if identifier is None:
            return ''
        return str(identifier).strip().upper()

    @classmethod
    def find_by_identifier(cls, identifier) -> 'Student':
        return cls.query.filter_by(university_id=cls.normalize_identifier(identifier)).first()

    @classmethod
    def set_attendance_percentage(cls, student_id: int, percentage: int) -> None:
        """Overwrite the global percentage; unknown ids are a no-op."""
        cls.query.filter_by(id=student_id).update(
            {'attendance_percentage': percentage},
            synchronize_session='fetch'
        )
        db.session.commit()

    def to_dict(self):
        """Convert to dictionary."""
        return {
            'id': self.id,
            'university_id': self.university_id,
            'full_name': self.full_name,
            'email': self.email,
            'phone': self.phone,
            'batch': self.batch,
            'year': self.year,
            'section_id': self.section_id,
            'section': self.section.name if self.section else None,
            'attendance_percentage': self.attendance_percentage,
            'created_at': self.created_at.isoformat()
        }
