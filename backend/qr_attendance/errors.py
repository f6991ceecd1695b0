"""Domain exceptions raised by the attendance services.

Every exception carries a machine readable ``code`` and the HTTP status the
API layer answers with, so blueprints can simply let them propagate to the
application error handler.
"""
from typing import Any, Optional

class AttendanceError(Exception):
    """Base class for expected, user-facing failures."""
    
    code = 'attendance_error'
    status_code = 400
    default_message = 'Attendance request failed'
    
    def __init__(self, message: Optional[str] = None, data: Any = None):
        self.message = message or self.default_message
        self.data = data
        super().__init__(self.message)

class ValidationError(AttendanceError):
    """Malformed or missing request input."""
    code = 'validation_error'
    default_message = 'Invalid request data'

class InvalidDuration(ValidationError):
    code = 'invalid_duration'
    default_message = 'Validity minutes must be a whole number between 1 and 1440'

class MalformedPayload(ValidationError):
    code = 'malformed_payload'
    default_message = 'Invalid QR code format'

class PermissionDenied(AttendanceError):
    code = 'permission_denied'
    status_code = 403
    default_message = 'You are not allowed to perform this action'

class NotFoundError(AttendanceError):
    code = 'not_found'
    status_code = 404
    default_message = 'Resource not found'

class TeacherNotFound(NotFoundError):
    code = 'teacher_not_found'
    default_message = 'Teacher profile not found'

class StudentProfileNotFound(NotFoundError):
    code = 'student_profile_not_found'
    default_message = 'Student profile not found'

class BranchNotFound(NotFoundError):
    code = 'branch_not_found'
    default_message = 'Branch not found'

class SessionNotFound(NotFoundError):
    code = 'session_not_found'
    default_message = 'Lecture session not found'

class AttendanceNotFound(NotFoundError):
    code = 'attendance_not_found'
    default_message = 'Attendance record not found'

class SessionClosedError(AttendanceError):
    """A closed session can never become active again."""
    code = 'session_closed'
    status_code = 409
    default_message = 'Lecture session is closed'

class AlreadyMarked(AttendanceError):
    """Raised when the storage constraint rejects a second record."""
    code = 'already_marked'
    status_code = 409
    default_message = 'Attendance already marked for this lecture'
