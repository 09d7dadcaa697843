"""Tests for rotating-token QR check-in sessions."""
from datetime import datetime, timedelta

import pytest

from rollcall import db
from rollcall.models import AllowListEntry, AttendanceRecord, QrSession, Student, SubjectStat
from rollcall.services.qr_session_service import QRSessionService
from rollcall.utils.errors import (
    InvalidSession, InvalidToken, NotAllowed, OutOfRange, StudentNotFound
)
from rollcall.utils.validators import ValidationError

CAMPUS = (12.9716, 77.5946)

@pytest.fixture
def qr_session(app, section, teacher_user):
    return QRSessionService.create_session('Math', section_id=section.id, teacher_id=teacher_user.id)

def _age_token(qr_session, seconds):
    qr_session.token_updated_at = datetime.utcnow() - timedelta(seconds=seconds)
    qr_session.save()

def _redeem(qr_session, identifier, token=None, **kwargs):
    return QRSessionService.redeem_check_in(
        qr_session.code, token or qr_session.rotating_token, identifier, **kwargs
    )

def test_create_session_starts_with_token(app, qr_session):
    assert qr_session.is_active is True
    assert qr_session.code
    assert qr_session.rotating_token
    assert qr_session.previous_token is None
    assert qr_session.token_updated_at is not None

def test_create_session_normalizes_allow_list(app, section):
    qr_session = QRSessionService.create_session(
        'Math', section_id=section.id, allowed_students=[' 1rc24cs001 ', '1RC24CS001', '1rc24cs002']
    )
    assert sorted(e.university_id for e in qr_session.allowed_students) == ['1RC24CS001', '1RC24CS002']

def test_create_session_requires_subject(app):
    with pytest.raises(ValidationError):
        QRSessionService.create_session('  ')

def test_geofence_radius_defaults(app):
    qr_session = QRSessionService.create_session('Math', latitude=CAMPUS[0], longitude=CAMPUS[1])
    assert qr_session.radius_meters == 100

def test_stale_token_rotates(app, qr_session):
    old_token = qr_session.rotating_token
    _age_token(qr_session, 31)

    tokens = QRSessionService.get_or_rotate_token(qr_session.id)

    assert tokens['rotated'] is True
    assert tokens['current_token'] != old_token
    assert tokens['previous_token'] == old_token
    stored = db.session.get(QrSession, qr_session.id)
    assert stored.rotating_token == tokens['current_token']
    assert stored.previous_token == old_token

def test_fresh_token_is_returned_unchanged(app, qr_session):
    old_token = qr_session.rotating_token
    stamp = qr_session.token_updated_at

    tokens = QRSessionService.get_or_rotate_token(qr_session.id, now=stamp + timedelta(seconds=30))

    assert tokens == {'current_token': old_token, 'previous_token': None, 'rotated': False}
    assert db.session.get(QrSession, qr_session.id).token_updated_at == stamp

def test_stopped_session_does_not_rotate(app, qr_session):
    old_token = qr_session.rotating_token
    QRSessionService.stop_session(qr_session.code)
    _age_token(qr_session, 120)

    assert QRSessionService.get_or_rotate_token(qr_session.id)['current_token'] == old_token

def test_lost_rotation_race_returns_winner_token(app, qr_session):
    stale_stamp = qr_session.token_updated_at - timedelta(seconds=60)

    assert QrSession.update_token(
        qr_session.id, 'winner', qr_session.rotating_token, datetime.utcnow(), stale_stamp
    ) is False
    assert db.session.get(QrSession, qr_session.id).rotating_token != 'winner'

def test_previous_token_is_accepted_after_rotation(app, qr_session, student):
    old_token = qr_session.rotating_token
    _age_token(qr_session, 31)
    QRSessionService.get_or_rotate_token(qr_session.id)

    result = _redeem(qr_session, student.university_id, token=old_token)

    assert result == {'student_name': 'Student 1', 'already_marked': False}

def test_token_older_than_grace_is_rejected(app, qr_session, student):
    oldest = qr_session.rotating_token
    for _ in range(2):
        _age_token(qr_session, 31)
        QRSessionService.get_or_rotate_token(qr_session.id)

    with pytest.raises(InvalidToken):
        _redeem(qr_session, student.university_id, token=oldest)

def test_unknown_token_is_rejected(app, qr_session, student):
    with pytest.raises(InvalidToken):
        _redeem(qr_session, student.university_id, token='forged')

def test_missing_token_is_rejected(app, qr_session, student):
    with pytest.raises(InvalidToken):
        QRSessionService.redeem_check_in(qr_session.code, None, student.university_id)

def test_unknown_or_stopped_session(app, qr_session, student):
    with pytest.raises(InvalidSession):
        QRSessionService.redeem_check_in('no-such-code', 'x', student.university_id)

    token = qr_session.rotating_token
    QRSessionService.stop_session(qr_session.code)
    with pytest.raises(InvalidSession):
        QRSessionService.redeem_check_in(qr_session.code, token, student.university_id)

def test_token_is_checked_before_allow_list(app, section, student):
    qr_session = QRSessionService.create_session('Math', allowed_students=['SOMEONE-ELSE'])
    with pytest.raises(InvalidToken):
        _redeem(qr_session, student.university_id, token='forged')

def test_allow_list_restricts_check_in(app, students):
    qr_session = QRSessionService.create_session('Math', allowed_students=[students[0].university_id])

    assert _redeem(qr_session, students[0].university_id)['already_marked'] is False
    with pytest.raises(NotAllowed):
        _redeem(qr_session, students[1].university_id)

def test_empty_allow_list_is_open(app, qr_session, students):
    assert AllowListEntry.has_entries(qr_session.id) is False
    for student in students:
        assert _redeem(qr_session, student.university_id)['already_marked'] is False

def test_unknown_student(app, qr_session):
    with pytest.raises(StudentNotFound):
        _redeem(qr_session, 'NOBODY')

def test_repeat_scan_is_idempotent(app, qr_session, student):
    first = _redeem(qr_session, student.university_id)
    second = _redeem(qr_session, student.university_id.lower())

    assert first['already_marked'] is False
    assert second == {'student_name': 'Student 1', 'already_marked': True}
    assert AttendanceRecord.query.filter_by(student_id=student.id).count() == 1

def test_check_in_record_and_stats(app, qr_session, student, teacher_user, section):
    _redeem(qr_session, student.university_id)

    record = AttendanceRecord.query.one()
    assert record.status.value == 'present'
    assert record.subject == 'Math'
    assert record.section_id == section.id
    assert record.teacher_id == teacher_user.id
    assert record.is_draft is False
    assert SubjectStat.query.filter_by(student_id=student.id, subject='Math').one().percentage == 100
    assert db.session.get(Student, student.id).attendance_percentage == 100

def test_check_in_falls_back_to_home_section(app, student):
    qr_session = QRSessionService.create_session('Math')
    _redeem(qr_session, student.university_id)
    assert AttendanceRecord.query.one().section_id == student.section_id

def test_geofence(app, student):
    qr_session = QRSessionService.create_session(
        'Math', latitude=CAMPUS[0], longitude=CAMPUS[1], radius_meters=50
    )

    with pytest.raises(OutOfRange):
        _redeem(qr_session, student.university_id)
    with pytest.raises(OutOfRange):
        _redeem(qr_session, student.university_id, latitude=12.9816, longitude=77.5946)

    result = _redeem(qr_session, student.university_id, latitude=12.9717, longitude=77.5946)
    assert result['already_marked'] is False

def test_status_by_code_and_fallback(app, qr_session, student):
    later = QRSessionService.create_session('Physics')
    _redeem(qr_session, student.university_id)

    status = QRSessionService.get_session_status(qr_session.code)
    assert status['is_active'] is True
    assert status['subject'] == 'Math'
    assert status['rotating_token'] == qr_session.rotating_token
    assert 'code=' in status['checkin_url'] and 'token=' in status['checkin_url']
    assert status['qr_image'].startswith('data:image/png;base64,')
    assert [s['university_id'] for s in status['students']] == [student.university_id]

    fallback = QRSessionService.get_session_status()
    assert fallback['code'] == later.code

def test_status_without_sessions(app):
    assert QRSessionService.get_session_status() == {'is_active': False, 'students': []}

def test_status_rotates_stale_token(app, qr_session):
    old_token = qr_session.rotating_token
    _age_token(qr_session, 31)

    status = QRSessionService.get_session_status(qr_session.code)

    assert status['rotating_token'] != old_token
