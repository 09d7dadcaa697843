"""Models package with all models."""
from .base import BaseModel
from .user import User, UserRole
from .section import Section
from .student import Student
from .timetable import Timetable, WeekDay
from .attendance import AttendanceRecord, AttendanceStatus, SubjectStat
from .qr_session import QrSession, AllowListEntry

__all__ = [
    'BaseModel', 'User', 'UserRole', 'Section', 'Student',
    'Timetable', 'WeekDay', 'AttendanceRecord', 'AttendanceStatus',
    'SubjectStat', 'QrSession', 'AllowListEntry'
]
