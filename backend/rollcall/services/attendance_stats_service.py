"""Attendance scoring: percentages with a lateness penalty and their persisted rollups.

Every recompute re-scans the full non-draft history of a student, so calling it
redundantly is harmless. Concurrent recomputes for the same student are
read-then-overwrite and the last writer wins; no locking is applied.
"""
import logging
import math
from typing import Dict, List

from flask import current_app, has_app_context
from sqlalchemy.exc import SQLAlchemyError

from rollcall import db
from rollcall.models.attendance import AttendanceRecord, SubjectStat
from rollcall.models.student import Student
from rollcall.utils.errors import StorageFailure

logger = logging.getLogger(__name__)

# Every group of this many late marks counts as one additional absence
LATE_PENALTY_GROUP_SIZE = 3

def calculate_attendance_percentage(present: int, late: int, absent: int,
                                    late_group_size: int = LATE_PENALTY_GROUP_SIZE) -> int:
    """
    Score a population of marks as an integer percentage.

    Late marks are not counted as present, and each full group of
    ``late_group_size`` lates adds one effective absence on top.
    Rounds half up.
    """
    total = present + late + absent
    if total == 0:
        return 0

    penalty_absences = late // late_group_size
    effective_absences = absent + penalty_absences
    effective_present = total - effective_absences

    return int(math.floor(effective_present / total * 100 + 0.5))

def _late_group_size() -> int:
    if has_app_context():
        return current_app.config.get('LATE_PENALTY_GROUP_SIZE', LATE_PENALTY_GROUP_SIZE)
    return LATE_PENALTY_GROUP_SIZE

class AttendanceStatsService:
    """Service for recomputing and reading attendance statistics."""

    @staticmethod
    def recalculate_stats(student_id: int, subject: str) -> Dict[str, int]:
        """
        Recompute the subject and global percentages of a student from scratch.

        Returns:
            dict: ``subject_percentage`` and ``global_percentage``
        """
        group_size = _late_group_size()

        try:
            subject_counts = AttendanceRecord.count_by_status(student_id, subject=subject)
            subject_percentage = calculate_attendance_percentage(
                subject_counts['present'], subject_counts['late'], subject_counts['absent'],
                late_group_size=group_size
            )
            SubjectStat.upsert(student_id, subject, subject_counts, subject_percentage)

            global_counts = AttendanceRecord.count_by_status(student_id)
            global_percentage = calculate_attendance_percentage(
                global_counts['present'], global_counts['late'], global_counts['absent'],
                late_group_size=group_size
            )
            Student.set_attendance_percentage(student_id, global_percentage)

        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Recompute failed for student {student_id} ({subject}): {e}")
            raise StorageFailure() from e

        logger.debug(
            f"Recomputed student {student_id}: {subject}={subject_percentage}% global={global_percentage}%"
        )
        return {
            'subject_percentage': subject_percentage,
            'global_percentage': global_percentage
        }

    @staticmethod
    def get_subject_stats(student_id: int) -> List[Dict]:
        """Persisted per-subject statistics for one student."""
        stats = SubjectStat.query.filter_by(student_id=student_id).order_by(SubjectStat.subject).all()
        return [stat.to_dict() for stat in stats]
