"""
Attendance marking service.

Teacher batches may be saved as drafts; drafts are stored but left out of every
percentage until they are finalized by a later final submission, an admin
correction or an explicit finalize call.
"""
import logging
from datetime import date
from typing import Dict, List, Optional

from sqlalchemy import func, case
from sqlalchemy.exc import SQLAlchemyError

from rollcall import db
from rollcall.models.attendance import AttendanceRecord, AttendanceStatus
from rollcall.models.section import Section
from rollcall.models.student import Student
from rollcall.models.timetable import Timetable
from rollcall.models.user import User
from rollcall.services.attendance_stats_service import AttendanceStatsService
from rollcall.utils.errors import StorageFailure
from rollcall.utils.helpers import today
from rollcall.utils.validators import ValidationError

logger = logging.getLogger(__name__)

DEFAULT_SUBJECT = 'General'

class AttendanceService:
    """Service class for attendance marking and reporting."""

    @staticmethod
    def submit_attendance(
        records: Dict[int, AttendanceStatus],
        section_id: Optional[int],
        subject: Optional[str],
        teacher_id: Optional[int],
        on_date: Optional[date] = None,
        timetable_id: Optional[int] = None,
        is_draft: bool = False
    ) -> Dict:
        """
        Save a teacher's batch of marks.

        A draft batch never reopens a record that is already final; such
        students are reported under ``locked`` and left unchanged.

        Returns:
            dict: saved count, locked student ids and per-student percentages
        """
        on_date = on_date or today()
        subject = AttendanceService._resolve_subject(subject, timetable_id)

        AttendanceService._ensure_students_exist(records.keys())

        saved, locked, stats = 0, [], {}
        try:
            for student_id, status in records.items():
                existing = AttendanceRecord.find_existing(
                    student_id, on_date, subject=subject, timetable_id=timetable_id
                )

                if existing and is_draft and not existing.is_draft:
                    locked.append(student_id)
                    continue

                record = AttendanceService._upsert_record(
                    existing, student_id, status, section_id, subject, teacher_id,
                    on_date, timetable_id, is_draft
                )
                saved += 1

                # A timetable-keyed hit keeps the subject it was first stored with
                if not is_draft:
                    stats[student_id] = AttendanceStatsService.recalculate_stats(
                        student_id, record.subject
                    )

        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Attendance submission failed for {subject} on {on_date}: {e}")
            raise StorageFailure() from e

        logger.info(
            f"Saved {saved} {'draft' if is_draft else 'final'} marks for {subject} on {on_date}"
            + (f", {len(locked)} locked" if locked else '')
        )
        return {
            'date': on_date.isoformat(),
            'subject': subject,
            'is_draft': is_draft,
            'saved': saved,
            'locked': locked,
            'stats': stats
        }

    @staticmethod
    def save_corrections(
        records: Dict[int, AttendanceStatus],
        section_id: Optional[int],
        subject: Optional[str],
        teacher_id: Optional[int],
        on_date: date,
        timetable_id: Optional[int] = None
    ) -> Dict:
        """Admin correction: overwrite, finalize and recompute every student."""
        return AttendanceService.submit_attendance(
            records, section_id, subject, teacher_id,
            on_date=on_date, timetable_id=timetable_id, is_draft=False
        )

    @staticmethod
    def finalize_drafts(
        on_date: date,
        subject: Optional[str] = None,
        section_id: Optional[int] = None,
        timetable_id: Optional[int] = None,
        teacher_id: Optional[int] = None
    ) -> Dict:
        """
        Flip matching draft records to final and recompute affected students.

        Stats are rebuilt for the subject each draft was stored with, which can
        differ from the timetable's subject. ``teacher_id`` limits the call to
        drafts taken by that teacher.
        """
        subject = AttendanceService._resolve_subject(subject, timetable_id)

        try:
            query = AttendanceRecord.query.filter_by(date=on_date, is_draft=True)
            if timetable_id:
                query = query.filter_by(timetable_id=timetable_id)
            else:
                query = query.filter_by(subject=subject)
            if section_id:
                query = query.filter_by(section_id=section_id)
            if teacher_id:
                query = query.filter_by(teacher_id=teacher_id)

            drafts = query.all()
            touched = sorted({(record.student_id, record.subject) for record in drafts})
            for record in drafts:
                record.is_draft = False
            db.session.commit()

            stats = {}
            for student_id, record_subject in touched:
                stats[student_id] = AttendanceStatsService.recalculate_stats(student_id, record_subject)

        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Finalize failed for {subject} on {on_date}: {e}")
            raise StorageFailure() from e

        logger.info(f"Finalized {len(drafts)} draft marks for {subject} on {on_date}")
        return {
            'date': on_date.isoformat(),
            'subject': subject,
            'finalized': len(drafts),
            'stats': stats
        }

    @staticmethod
    def list_sessions(
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        section_id: Optional[int] = None
    ) -> List[Dict]:
        """Marked sessions grouped by timetable, date, teacher, subject and section."""
        status = AttendanceRecord.status
        query = (
            db.session.query(
                AttendanceRecord.timetable_id,
                AttendanceRecord.date,
                AttendanceRecord.teacher_id,
                User.name,
                AttendanceRecord.section_id,
                Section.name,
                AttendanceRecord.subject,
                func.sum(case((status == AttendanceStatus.PRESENT, 1), else_=0)),
                func.sum(case((status == AttendanceStatus.ABSENT, 1), else_=0)),
                func.sum(case((status == AttendanceStatus.LATE, 1), else_=0)),
                func.count(AttendanceRecord.id),
                func.max(case((AttendanceRecord.is_draft.is_(True), 1), else_=0)),
                func.max(AttendanceRecord.updated_at)
            )
            .outerjoin(User, AttendanceRecord.teacher_id == User.id)
            .outerjoin(Section, AttendanceRecord.section_id == Section.id)
        )

        if start_date:
            query = query.filter(AttendanceRecord.date >= start_date)
        if end_date:
            query = query.filter(AttendanceRecord.date <= end_date)
        if section_id:
            query = query.filter(AttendanceRecord.section_id == section_id)

        rows = (
            query.group_by(
                AttendanceRecord.timetable_id, AttendanceRecord.date, AttendanceRecord.teacher_id,
                User.name, AttendanceRecord.subject, AttendanceRecord.section_id, Section.name
            )
            .order_by(AttendanceRecord.date.desc(), func.max(AttendanceRecord.updated_at).desc())
            .all()
        )

        return [
            {
                'timetable_id': timetable_id,
                'date': row_date.isoformat(),
                'teacher_id': teacher_id,
                'teacher_name': teacher_name,
                'section_id': row_section_id,
                'section_name': section_name,
                'subject': subject,
                'present_count': int(present or 0),
                'absent_count': int(absent or 0),
                'late_count': int(late or 0),
                'total_students': total,
                'is_draft': bool(has_draft),
                'updated_at': updated_at.isoformat() if updated_at else None
            }
            for (timetable_id, row_date, teacher_id, teacher_name, row_section_id, section_name,
                 subject, present, absent, late, total, has_draft, updated_at) in rows
        ]

    @staticmethod
    def list_records(
        section_id: Optional[int] = None,
        on_date: Optional[date] = None,
        teacher_id: Optional[int] = None
    ) -> List[Dict]:
        """Flat listing of attendance records for reports."""
        query = AttendanceRecord.query
        if section_id:
            query = query.filter_by(section_id=section_id)
        if on_date:
            query = query.filter_by(date=on_date)
        if teacher_id:
            query = query.filter_by(teacher_id=teacher_id)

        records = query.order_by(AttendanceRecord.date.desc(), AttendanceRecord.id).all()
        return [
            {
                'id': record.id,
                'date': record.date.isoformat(),
                'status': record.status.value,
                'subject': record.subject,
                'is_draft': record.is_draft,
                'student_name': record.student.full_name if record.student else None,
                'section_name': record.section.name if record.section else None
            }
            for record in records
        ]

    @staticmethod
    def _resolve_subject(subject: Optional[str], timetable_id: Optional[int]) -> str:
        if subject and str(subject).strip():
            return str(subject).strip()
        if timetable_id:
            entry = Timetable.get_by_id(timetable_id)
            if not entry:
                raise ValidationError(f"Unknown timetable entry: {timetable_id}")
            return entry.subject
        return DEFAULT_SUBJECT

    @staticmethod
    def _ensure_students_exist(student_ids) -> None:
        student_ids = set(student_ids)
        known = {
            row[0] for row in db.session.query(Student.id).filter(Student.id.in_(student_ids)).all()
        }
        missing = sorted(student_ids - known)
        if missing:
            raise ValidationError(f"Unknown students: {', '.join(str(i) for i in missing)}")

    @staticmethod
    def _upsert_record(existing, student_id, status, section_id, subject, teacher_id,
                       on_date, timetable_id, is_draft) -> AttendanceRecord:
        if existing:
            existing.status = status
            # Finalized records never revert to draft
            existing.is_draft = existing.is_draft and is_draft
            return existing.save()

        record = AttendanceRecord(
            student_id=student_id,
            section_id=section_id,
            teacher_id=teacher_id,
            timetable_id=timetable_id,
            date=on_date,
            status=status,
            subject=subject,
            is_draft=is_draft
        )
        return record.save()
