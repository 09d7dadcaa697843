"""Timetable model for scheduled class sessions."""
from rollcall import db
from rollcall.models.base import BaseModel
import enum

class WeekDay(enum.Enum):
    """Days of the week."""
    SUNDAY = 'Sunday'
    MONDAY = 'Monday'
    TUESDAY = 'Tuesday'
    WEDNESDAY = 'Wednesday'
    THURSDAY = 'Thursday'
    FRIDAY = 'Friday'
    SATURDAY = 'Saturday'

class Timetable(BaseModel):
    """A scheduled session of one subject for one section."""

    __tablename__ = 'timetable'

    # Relations
    section_id = db.Column(db.Integer, db.ForeignKey('sections.id', ondelete='CASCADE'), nullable=False)
    teacher_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False)

    # Basic Info
    subject = db.Column(db.String(255), nullable=False)

    # Time Info
    day_of_week = db.Column(db.Enum(WeekDay), nullable=False)
    date = db.Column(db.Date, nullable=True)  # one-off session; null means weekly
    start_time = db.Column(db.Time, nullable=False)
    end_time = db.Column(db.Time, nullable=False)

    # Relationships
    teacher = db.relationship('User', backref='timetable_entries')
    section = db.relationship('Section', backref='timetable_entries')

    def to_dict(self):
        """Convert to dictionary."""
        return {
            'id': self.id,
            'subject': self.subject,
            'section_id': self.section_id,
            'section': self.section.name if self.section else None,
            'teacher_id': self.teacher_id,
            'teacher': self.teacher.name if self.teacher else None,
            'day': self.day_of_week.value if self.day_of_week else None,
            'date': self.date.isoformat() if self.date else None,
            'start_time': self.start_time.strftime('%H:%M') if self.start_time else None,
            'end_time': self.end_time.strftime('%H:%M') if self.end_time else None
        }
