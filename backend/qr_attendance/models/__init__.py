"""Models package with all models."""
from .base import BaseModel
from .user import User, UserRole
from .branch import Branch, Subject
from .student import StudentProfile
from .teacher import TeacherProfile, TeacherSubject, teacher_branches
from .lecture_session import LectureSession, SessionState
from .attendance import AttendanceRecord, AttendanceStatus

__all__ = [
    'BaseModel', 'User', 'UserRole',
    'Branch', 'Subject', 'StudentProfile',
    'TeacherProfile', 'TeacherSubject', 'teacher_branches',
    'LectureSession', 'SessionState',
    'AttendanceRecord', 'AttendanceStatus'
]
