"""Attendance record and per-subject statistics models."""
from datetime import datetime
from enum import Enum
from typing import Dict, Optional
from sqlalchemy import func
from rollcall import db
from rollcall.models.base import BaseModel

class AttendanceStatus(Enum):
    """Mark recorded for one student in one session."""
    PRESENT = 'present'
    ABSENT = 'absent'
    LATE = 'late'

class AttendanceRecord(BaseModel):
    """One mark for one student, one subject, one calendar date."""

    __tablename__ = 'attendance_records'

    student_id = db.Column(db.Integer, db.ForeignKey('students.id', ondelete='CASCADE'), nullable=False, index=True)
    section_id = db.Column(db.Integer, db.ForeignKey('sections.id', ondelete='CASCADE'), nullable=True)
    teacher_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    timetable_id = db.Column(db.Integer, db.ForeignKey('timetable.id'), nullable=True)

    date = db.Column(db.Date, nullable=False, index=True)
    subject = db.Column(db.String(255), nullable=True)
    status = db.Column(db.Enum(AttendanceStatus), nullable=False)

    # Drafts are saved but excluded from every percentage
    is_draft = db.Column(db.Boolean, default=False, nullable=False)

    # Relationships
    teacher = db.relationship('User')
    section = db.relationship('Section')

    @classmethod
    def count_by_status(cls, student_id: int, subject: Optional[str] = None,
                        include_drafts: bool = False) -> Dict[str, int]:
        """Grouped count of marks for a student, optionally for one subject."""
        query = db.session.query(cls.status, func.count(cls.id)).filter(cls.student_id == student_id)

        if subject is not None:
            query = query.filter(cls.subject == subject)
        if not include_drafts:
            query = query.filter(cls.is_draft.is_(False))

        counts = {status.value: 0 for status in AttendanceStatus}
        for status, count in query.group_by(cls.status).all():
            counts[status.value] = count
        return counts

    @classmethod
    def find_existing(cls, student_id: int, date, subject: Optional[str] = None,
                      timetable_id: Optional[int] = None) -> Optional['AttendanceRecord']:
        """Look up the record for (student, date, timetable) or (student, date, subject)."""
        query = cls.query.filter_by(student_id=student_id, date=date)
        if timetable_id:
            query = query.filter_by(timetable_id=timetable_id)
        else:
            query = query.filter_by(subject=subject)
        return query.first()

    def to_dict(self):
        """Convert to dictionary."""
        data = super().to_dict()
        data['student_name'] = self.student.full_name if self.student else None
        data['section_name'] = self.section.name if self.section else None
        return data

    def __repr__(self):
        return f'<AttendanceRecord {self.student_id} {self.date} {self.subject}>'

class SubjectStat(BaseModel):
    """Persisted aggregate for one (student, subject) pair."""

    __tablename__ = 'subject_stats'

    student_id = db.Column(db.Integer, db.ForeignKey('students.id', ondelete='CASCADE'), nullable=False, index=True)
    subject = db.Column(db.String(255), nullable=False)

    present_count = db.Column(db.Integer, default=0, nullable=False)
    late_count = db.Column(db.Integer, default=0, nullable=False)
    absent_count = db.Column(db.Integer, default=0, nullable=False)
    total_sessions = db.Column(db.Integer, default=0, nullable=False)
    percentage = db.Column(db.Integer, default=0, nullable=False)

    @classmethod
    def upsert(cls, student_id: int, subject: str, counts: Dict[str, int], percentage: int) -> 'SubjectStat':
        """Overwrite the row for (student, subject), inserting it on first use."""
        present = counts.get('present', 0)
        late = counts.get('late', 0)
        absent = counts.get('absent', 0)

        stat = cls.query.filter_by(student_id=student_id, subject=subject).first()
        if stat is None:
            stat = cls(student_id=student_id, subject=subject)
            db.session.add(stat)

        stat.present_count = present
        stat.late_count = late
        stat.absent_count = absent
        stat.total_sessions = present + late + absent
        stat.percentage = percentage
        stat.updated_at = datetime.utcnow()

        db.session.commit()
        return stat

    def __repr__(self):
        return f'<SubjectStat {self.student_id} {self.subject} {self.percentage}%>'
