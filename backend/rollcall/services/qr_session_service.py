"""QR self check-in sessions: rotating tokens, redemption and QR rendering."""
import base64
import io
import logging
import secrets
from datetime import date, datetime
from typing import Dict, Iterable, Optional
from urllib.parse import urlencode

import qrcode
from flask import current_app, has_app_context
from sqlalchemy.exc import SQLAlchemyError

from rollcall import db
from rollcall.models.attendance import AttendanceRecord, AttendanceStatus
from rollcall.models.qr_session import QrSession, AllowListEntry
from rollcall.models.student import Student
from rollcall.services.attendance_stats_service import AttendanceStatsService
from rollcall.services.gps_service import GPSService
from rollcall.utils.errors import (
    InvalidSession, InvalidToken, NotAllowed, StudentNotFound, OutOfRange, StorageFailure
)
from rollcall.utils.helpers import today
from rollcall.utils.validators import ValidationError, Validator

logger = logging.getLogger(__name__)

TOKEN_ROTATION_INTERVAL_SECONDS = 30
DEFAULT_GEOFENCE_RADIUS_METERS = 100

def _config(key: str, default):
    if has_app_context():
        return current_app.config.get(key, default)
    return default

class QRSessionService:
    """Service for QR check-in session operations."""

    @staticmethod
    def create_session(
        subject: str,
        section_id: Optional[int] = None,
        teacher_id: Optional[int] = None,
        allowed_students: Optional[Iterable[str]] = None,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        radius_meters: Optional[int] = None
    ) -> QrSession:
        """Start a new active session with a fresh public code and token."""
        if not subject or not str(subject).strip():
            raise ValidationError("subject is required")
        if (latitude is None) != (longitude is None):
            raise ValidationError("latitude and longitude must be given together")
        latitude = Validator.parse_coordinate(latitude, 'latitude')
        longitude = Validator.parse_coordinate(longitude, 'longitude')

        if latitude is not None and not radius_meters:
            radius_meters = _config('DEFAULT_GEOFENCE_RADIUS_METERS', DEFAULT_GEOFENCE_RADIUS_METERS)

        qr_session = QrSession(
            section_id=section_id,
            subject=str(subject).strip(),
            teacher_id=teacher_id,
            code=QrSession.generate_code(),
            rotating_token=QrSession.generate_token(),
            token_updated_at=datetime.utcnow(),
            is_active=True,
            latitude=latitude,
            longitude=longitude,
            radius_meters=radius_meters if latitude is not None else None
        )
        db.session.add(qr_session)
        db.session.flush()

        identifiers = {Student.normalize_identifier(i) for i in (allowed_students or [])}
        for identifier in sorted(identifiers):
            if identifier:
                db.session.add(AllowListEntry(qr_session_id=qr_session.id, university_id=identifier))

        db.session.commit()
        logger.info(f"QR session {qr_session.code} started for {qr_session.subject}")
        return qr_session

    @staticmethod
    def stop_session(code: str) -> QrSession:
        """Deactivate a session; stopped sessions accept no check-ins."""
        qr_session = QrSession.query.filter_by(code=code).first()
        if not qr_session:
            raise InvalidSession()

        qr_session.update(is_active=False)
        logger.info(f"QR session {code} stopped")
        return qr_session

    @staticmethod
    def get_or_rotate_token(session_id: int, now: Optional[datetime] = None) -> Dict:
        """
        Return the current token, rotating it first when it is stale.

        Rotation is driven by whoever polls; there is no background timer.
        The replaced token stays valid as ``previous_token`` for one more window.
        """
        qr_session = QrSession.get_by_id(session_id)
        if not qr_session:
            raise InvalidSession()

        now = now or datetime.utcnow()
        interval = _config('TOKEN_ROTATION_INTERVAL_SECONDS', TOKEN_ROTATION_INTERVAL_SECONDS)
        observed = qr_session.token_updated_at
        rotated = False

        if qr_session.is_active and (observed is None or (now - observed).total_seconds() > interval):
            new_token = QrSession.generate_token()
            rotated = QrSession.update_token(
                qr_session.id,
                new_token=new_token,
                previous_token=qr_session.rotating_token,
                updated_at=now,
                observed_updated_at=observed
            )
            if rotated:
                logger.debug(f"Rotated token for QR session {qr_session.code}")
            else:
                # Another poll rotated first; re-read what it stored
                db.session.refresh(qr_session)

        return {
            'current_token': qr_session.rotating_token,
            'previous_token': qr_session.previous_token,
            'rotated': rotated
        }

    @staticmethod
    def get_session_status(code: Optional[str] = None, now: Optional[datetime] = None) -> Dict:
        """
        Status for the session display.

        With no ``code`` the most recently created active session is used.
        """
        if code:
            qr_session = QrSession.query.filter_by(code=code).first()
        else:
            qr_session = QrSession.find_active()

        if not qr_session:
            return {'is_active': False, 'students': []}

        tokens = QRSessionService.get_or_rotate_token(qr_session.id, now=now)
        checkin_url = QRSessionService.build_checkin_url(qr_session.code, tokens['current_token'])
        on_date = (now or datetime.utcnow()).date()

        present = (
            db.session.query(Student.university_id, Student.full_name, AttendanceRecord.created_at)
            .join(AttendanceRecord, AttendanceRecord.student_id == Student.id)
            .filter(
                AttendanceRecord.date == on_date,
                AttendanceRecord.subject == qr_session.subject,
                AttendanceRecord.status == AttendanceStatus.PRESENT
            )
            .order_by(AttendanceRecord.created_at)
            .all()
        )

        return {
            'is_active': qr_session.is_active,
            'code': qr_session.code,
            'rotating_token': tokens['current_token'],
            'subject': qr_session.subject,
            'checkin_url': checkin_url,
            'qr_image': QRSessionService.generate_qr_image(checkin_url) if qr_session.is_active else None,
            'students': [
                {
                    'university_id': university_id,
                    'name': full_name,
                    'timestamp': created_at.isoformat()
                }
                for university_id, full_name, created_at in present
            ]
        }

    @staticmethod
    def redeem_check_in(
        code: str,
        token: str,
        identifier: str,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        on_date: Optional[date] = None
    ) -> Dict:
        """
        Mark a student present through a scanned QR code.

        Repeat scans for the same student, date and subject succeed without
        creating another record.

        Raises:
            InvalidSession, InvalidToken, OutOfRange, NotAllowed,
            StudentNotFound, StorageFailure
        """
        university_id = Student.normalize_identifier(identifier)

        try:
            qr_session = QrSession.find_active(code) if code else None
            if not qr_session:
                raise InvalidSession()

            if not QRSessionService._token_matches(qr_session, token):
                logger.info(f"Rejected check-in for {university_id}: stale token on {code}")
                raise InvalidToken()

            if qr_session.has_geofence:
                QRSessionService._check_geofence(qr_session, latitude, longitude)

            if AllowListEntry.has_entries(qr_session.id) and \
                    not AllowListEntry.is_allowed(qr_session.id, university_id):
                logger.info(f"Rejected check-in for {university_id}: not on allow-list of {code}")
                raise NotAllowed()

            student = Student.find_by_identifier(university_id)
            if not student:
                raise StudentNotFound()

            on_date = on_date or today()
            existing = AttendanceRecord.find_existing(student.id, on_date, subject=qr_session.subject)
            if existing:
                return {
                    'student_name': student.full_name,
                    'already_marked': True
                }

            record = AttendanceRecord(
                student_id=student.id,
                section_id=qr_session.section_id or student.section_id,
                teacher_id=qr_session.teacher_id,
                date=on_date,
                status=AttendanceStatus.PRESENT,
                subject=qr_session.subject,
                is_draft=False
            )
            record.save()
            student_id, student_name, subject = student.id, student.full_name, qr_session.subject

        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Check-in storage failure on {code}: {e}")
            raise StorageFailure() from e

        logger.info(f"Checked in {university_id} for {subject} via QR")
        AttendanceStatsService.recalculate_stats(student_id, subject)

        return {
            'student_name': student_name,
            'already_marked': False
        }

    @staticmethod
    def _token_matches(qr_session: QrSession, token: Optional[str]) -> bool:
        if not token:
            return False
        token = str(token)
        return any(
            candidate and secrets.compare_digest(candidate, token)
            for candidate in (qr_session.rotating_token, qr_session.previous_token)
        )

    @staticmethod
    def _check_geofence(qr_session: QrSession, latitude: Optional[float], longitude: Optional[float]) -> None:
        if latitude is None or longitude is None:
            raise OutOfRange(
                'Location access is required for this session. Please enable GPS and try again.'
            )

        radius = qr_session.radius_meters or _config(
            'DEFAULT_GEOFENCE_RADIUS_METERS', DEFAULT_GEOFENCE_RADIUS_METERS
        )
        result = GPSService.verify_location(
            latitude, longitude, qr_session.latitude, qr_session.longitude, radius
        )
        if not result['is_inside']:
            raise OutOfRange(
                f"You are too far from the classroom ({round(result['distance'])}m). Attendance denied."
            )

    @staticmethod
    def build_checkin_url(code: str, token: Optional[str]) -> str:
        base_url = _config('CHECKIN_BASE_URL', '/attendance/mark')
        return f"{base_url}?{urlencode({'code': code, 'token': token or ''})}"

    @staticmethod
    def generate_qr_image(data: str) -> str:
        """Render ``data`` as a PNG data URI."""
        qr = qrcode.QRCode(
            version=None,  # Auto-determine size
            error_correction=qrcode.constants.ERROR_CORRECT_M,
            box_size=10,
            border=4,
        )
        qr.add_data(data)
        qr.make(fit=True)

        img = qr.make_image(fill_color="black", back_color="white")

        buffered = io.BytesIO()
        img.save(buffered, format="PNG")
        img_str = base64.b64encode(buffered.getvalue()).decode()

        return f"data:image/png;base64,{img_str}"
