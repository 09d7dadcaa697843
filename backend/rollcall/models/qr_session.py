"""QR self check-in sessions with rotating tokens."""
from datetime import datetime
from typing import Optional
import secrets
from rollcall import db
from rollcall.models.base import BaseModel

class QrSession(BaseModel):
    """A self check-in campaign published as a rotating QR code."""

    __tablename__ = 'qr_sessions'

    section_id = db.Column(db.Integer, db.ForeignKey('sections.id', ondelete='CASCADE'), nullable=True)
    subject = db.Column(db.String(255), nullable=False)
    teacher_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)

    # Stable public code used in the shareable link
    code = db.Column(db.String(64), unique=True, nullable=False, index=True)

    # Short-lived token plus one-step grace buffer
    rotating_token = db.Column(db.String(64), nullable=True)
    previous_token = db.Column(db.String(64), nullable=True)
    token_updated_at = db.Column(db.DateTime, nullable=True)

    is_active = db.Column(db.Boolean, default=True, nullable=False)

    # Optional geofence
    latitude = db.Column(db.Float, nullable=True)
    longitude = db.Column(db.Float, nullable=True)
    radius_meters = db.Column(db.Integer, nullable=True)

    # Relationships
    section = db.relationship('Section')
    teacher = db.relationship('User')
    allowed_students = db.relationship(
        'AllowListEntry', backref='qr_session', lazy='dynamic', cascade='all, delete-orphan'
    )

    @staticmethod
    def generate_code() -> str:
        """Generate unique public code."""
        return secrets.token_urlsafe(16)

    @staticmethod
    def generate_token() -> str:
        return secrets.token_urlsafe(8)

    @property
    def has_geofence(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @classmethod
    def find_active(cls, code: Optional[str] = None) -> Optional['QrSession']:
        """Active session by code, or the most recently created active one."""
        query = cls.query.filter_by(is_active=True)
        if code:
            return query.filter_by(code=code).first()
        return query.order_by(cls.created_at.desc(), cls.id.desc()).first()

    @classmethod
    def update_token(cls, session_id: int, new_token: str, previous_token: Optional[str],
                     updated_at: datetime, observed_updated_at: Optional[datetime]) -> bool:
        """Rotate only if nobody rotated since ``observed_updated_at`` was read."""
        rows = cls.query.filter(
            cls.id == session_id,
            cls.token_updated_at == observed_updated_at
        ).update({
            'rotating_token': new_token,
            'previous_token': previous_token,
            'token_updated_at': updated_at
        }, synchronize_session=False)
        db.session.commit()
        return rows == 1

    def to_dict(self):
        """Convert to dictionary."""
        return {
            'id': self.id,
            'code': self.code,
            'subject': self.subject,
            'section_id': self.section_id,
            'teacher_id': self.teacher_id,
            'is_active': self.is_active,
            'geofence': {
                'latitude': self.latitude,
                'longitude': self.longitude,
                'radius_meters': self.radius_meters
            } if self.has_geofence else None,
            'allowed_students': [entry.university_id for entry in self.allowed_students],
            'created_at': self.created_at.isoformat()
        }

class AllowListEntry(BaseModel):
    """Restricts a QR session to listed identifiers."""

    __tablename__ = 'qr_session_allowed_students'

    qr_session_id = db.Column(db.Integer, db.ForeignKey('qr_sessions.id', ondelete='CASCADE'), nullable=False, index=True)
    university_id = db.Column(db.String(50), nullable=False)

    @classmethod
    def has_entries(cls, qr_session_id: int) -> bool:
        return cls.query.filter_by(qr_session_id=qr_session_id).first() is not None

    @classmethod
    def is_allowed(cls, qr_session_id: int, university_id: str) -> bool:
        return cls.query.filter_by(
            qr_session_id=qr_session_id,
            university_id=university_id
        ).first() is not None
