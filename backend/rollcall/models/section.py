"""Section model."""
from rollcall import db
from rollcall.models.base import BaseModel

class Section(BaseModel):
    """A class group students belong to."""

    __tablename__ = 'sections'

    name = db.Column(db.String(100), unique=True, nullable=False)

    # Relationships
    students = db.relationship('Student', backref='section', lazy='dynamic')

    def to_dict(self):
        """Convert to dictionary."""
        return {
            'id': self.id,
            'name': self.name,
            'student_count': self.students.count()
        }

    def __repr__(self):
        return f'<Section {self.name}>'
