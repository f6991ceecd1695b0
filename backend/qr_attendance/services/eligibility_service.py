"""Decides whether a scanning student may mark attendance for a session."""
import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Union

from qr_attendance.errors import MalformedPayload
from qr_attendance.models.attendance import AttendanceRecord
from qr_attendance.models.lecture_session import LectureSession
from qr_attendance.models.student import StudentProfile
from qr_attendance.models.user import UserRole
from qr_attendance.services.identity_store import IdentityStore
from qr_attendance.services.qr_service import QRPayload
from qr_attendance.services.session_service import SessionService
from qr_attendance.utils import clock

logger = logging.getLogger(__name__)

class RejectionReason(Enum):
    """Why a scan was refused: (code, HTTP status, message)."""
    
    MALFORMED_PAYLOAD = ('malformed_payload', 400, 'Invalid QR code format')
    SESSION_EXPIRED = ('session_expired', 400,
                       'QR code has expired. Please ask your teacher for a new one.')
    SESSION_NOT_FOUND = ('session_not_found', 404,
                         'Lecture not found or QR code is no longer active')
    STUDENT_PROFILE_NOT_FOUND = ('student_profile_not_found', 404, 'Student profile not found')
    BRANCH_MISMATCH = ('branch_mismatch', 403, 'You are not enrolled in this branch')
    SEMESTER_MISMATCH = ('semester_mismatch', 403, 'This lecture is for a different semester')
    SECTION_MISMATCH = ('section_mismatch', 403, 'This lecture is for a different section')
    ALREADY_MARKED = ('already_marked', 409, 'Attendance already marked for this lecture')
    
    def __init__(self, code, status_code, message):
        self.code = code
        self.status_code = status_code
        self.message = message

@dataclass
class ValidationResult:
    """Outcome of an eligibility check."""
    
    session: Optional[LectureSession] = None
    student: Optional[StudentProfile] = None
    reason: Optional[RejectionReason] = None
    existing_record: Optional[AttendanceRecord] = None
    
    @property
    def ok(self) -> bool:
        return self.reason is None
    
    @classmethod
    def reject(cls, reason: RejectionReason, **kwargs) -> 'ValidationResult':
        return cls(reason=reason, **kwargs)

class EligibilityService:
    """Runs the scan checks in order; the first failure wins."""
    
    @staticmethod
    def validate(raw_payload: Union[str, Dict[str, Any]], student_account,
                 now: Optional[datetime] = None) -> ValidationResult:
        now = now or clock.utcnow()
        
        # 1. payload shape
        try:
            payload = QRPayload.parse(raw_payload)
        except MalformedPayload:
            return EligibilityService._rejected(RejectionReason.MALFORMED_PAYLOAD, student_account)
        
        # 2. client-side expiry
        if now >= payload.expires_at:
            return EligibilityService._rejected(RejectionReason.SESSION_EXPIRED, student_account)
        
        # 3. persisted session; its own expiry overrides the payload
        session = SessionService.find_by_token(payload.token)
        if session is None:
            return EligibilityService._rejected(RejectionReason.SESSION_NOT_FOUND, student_account)
        if session.is_expired(now):
            return EligibilityService._rejected(RejectionReason.SESSION_EXPIRED, student_account,
                                                session=session)
        if not session.is_active:
            return EligibilityService._rejected(RejectionReason.SESSION_NOT_FOUND, student_account,
                                                session=session)
        
        # 4. student profile
        student = IdentityStore.find_profile_by_account(student_account, UserRole.STUDENT)
        if student is None:
            return EligibilityService._rejected(RejectionReason.STUDENT_PROFILE_NOT_FOUND,
                                                student_account, session=session)
        
        # 5-7. cohort gating
        if student.branch_id != session.branch_id:
            reason = RejectionReason.BRANCH_MISMATCH
        elif student.semester != session.semester:
            reason = RejectionReason.SEMESTER_MISMATCH
        elif student.section != session.section:
            reason = RejectionReason.SECTION_MISMATCH
        else:
            reason = None
        if reason is not None:
            return EligibilityService._rejected(reason, student_account,
                                                session=session, student=student)
        
        # 8. early duplicate exit; the unique constraint is the real guard
        existing = AttendanceRecord.query.filter_by(session_id=session.id,
                                                    student_id=student.id).first()
        if existing is not None:
            return EligibilityService._rejected(RejectionReason.ALREADY_MARKED, student_account,
                                                session=session, student=student,
                                                existing_record=existing)
        
        return ValidationResult(session=session, student=student)
    
    @staticmethod
    def _rejected(reason: RejectionReason, student_account, **kwargs) -> ValidationResult:
        account_id = getattr(student_account, 'id', student_account)
        logger.info("Scan by account %s rejected: %s", account_id, reason.code)
        return ValidationResult.reject(reason, **kwargs)
