"""Lecture session issuance and lifecycle."""
import logging
from datetime import date, datetime, timedelta
from typing import Optional, Tuple

from flask import current_app

from qr_attendance import db
from qr_attendance.constants import (
    DEFAULT_SECTION, DEFAULT_TIMEZONE, DEFAULT_VALIDITY_MINUTES, MAX_VALIDITY_MINUTES
)
from qr_attendance.errors import (
    BranchNotFound, InvalidDuration, PermissionDenied, SessionNotFound,
    TeacherNotFound, ValidationError
)
from qr_attendance.models.attendance import AttendanceRecord, AttendanceStatus
from qr_attendance.models.lecture_session import LectureSession
from qr_attendance.models.student import StudentProfile
from qr_attendance.models.user import User, UserRole
from qr_attendance.services.identity_store import IdentityStore
from qr_attendance.services.qr_service import QRPayload
from qr_attendance.utils import clock
from qr_attendance.utils.validators import Validator

logger = logging.getLogger(__name__)

class SessionService:
    """Creates lecture sessions and manages their lifecycle."""
    
    @staticmethod
    def create_session(
        teacher: User,
        branch_id: int,
        subject_code: str,
        subject_name: str,
        semester: int,
        section: Optional[str] = None,
        start_time: str = None,
        end_time: str = None,
        validity_minutes: Optional[int] = None,
        tz_name: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> Tuple[LectureSession, QRPayload]:
        """Issue a new lecture session and the QR payload handed to students."""
        if validity_minutes is None:
            validity_minutes = DEFAULT_VALIDITY_MINUTES
        elif not Validator.is_positive_int(validity_minutes) or validity_minutes > MAX_VALIDITY_MINUTES:
            raise InvalidDuration()
        
        if not subject_code or not str(subject_code).strip():
            raise ValidationError("subject_code is required")
        if not subject_name or not str(subject_name).strip():
            raise ValidationError("subject_name is required")
        if not Validator.is_positive_int(semester):
            raise ValidationError("semester must be a positive integer")
        for label, value in (('start_time', start_time), ('end_time', end_time)):
            if not Validator.validate_time_of_day(value):
                raise ValidationError(f"{label} must use the HH:MM format")
        if branch_id is None:
            raise ValidationError("branch_id is required")
        if section is not None and not isinstance(section, str):
            raise ValidationError("section must be a string")
        section = (section or '').strip() or DEFAULT_SECTION
        
        profile = IdentityStore.find_profile_by_account(teacher, UserRole.TEACHER)
        if profile is None:
            raise TeacherNotFound()
        
        branch = IdentityStore.find_branch(branch_id)
        if branch is None:
            raise BranchNotFound()
        
        now = now or clock.utcnow()
        tz_name = tz_name or current_app.config.get('TIMEZONE', DEFAULT_TIMEZONE)
        session = LectureSession(
            teacher_id=profile.id,
            branch_id=branch.id,
            subject_code=str(subject_code).strip(),
            subject_name=str(subject_name).strip(),
            semester=semester,
            section=section,
            date=clock.to_local(now, tz_name).date(),
            start_time=_normalise_time(start_time),
            end_time=_normalise_time(end_time),
            timezone=tz_name,
            token=LectureSession.generate_token(),
            created_at=now,
            updated_at=now,
            expires_at=now + timedelta(minutes=validity_minutes),
            is_active=True
        )
        db.session.add(session)
        db.session.commit()
        
        logger.info(
            "Lecture session %s issued by teacher %s for %s sem %s sec %s, valid %s min",
            session.id, profile.id, session.subject_code, session.semester,
            session.section, validity_minutes
        )
        return session, QRPayload.for_session(session)
    
    @staticmethod
    def find_by_token(token: str) -> Optional[LectureSession]:
        return LectureSession.query.filter_by(token=token).first()
    
    @staticmethod
    def can_manage(session: LectureSession, user: User) -> bool:
        """Only the issuing teacher or an admin may manage a session."""
        if user.is_admin():
            return True
        profile = IdentityStore.find_profile_by_account(user, UserRole.TEACHER)
        return profile is not None and profile.id == session.teacher_id
    
    @staticmethod
    def get_managed_session(session_id: int, user: User) -> LectureSession:
        session = IdentityStore.find_by_id(LectureSession, session_id)
        if session is None:
            raise SessionNotFound()
        if not SessionService.can_manage(session, user):
            raise PermissionDenied("You can only manage your own lecture sessions")
        return session
    
    @staticmethod
    def close_session(session_id: int, user: User, now: Optional[datetime] = None) -> LectureSession:
        """Close a session early. Closing twice is a no-op."""
        session = SessionService.get_managed_session(session_id, user)
        if session.close(now):
            db.session.commit()
            logger.info("Lecture session %s closed by user %s", session.id, user.id)
        return session
    
    @staticmethod
    def list_sessions(
        teacher: User,
        on_date: Optional[date] = None,
        branch_id: Optional[int] = None,
        subject_code: Optional[str] = None,
        page: int = 1,
        per_page: int = 10
    ):
        """Paginate the teacher's own sessions, newest first."""
        profile = IdentityStore.find_profile_by_account(teacher, UserRole.TEACHER)
        if profile is None:
            raise TeacherNotFound()
        
        query = LectureSession.query.filter_by(teacher_id=profile.id)
        if on_date:
            query = query.filter(LectureSession.date == on_date)
        if branch_id:
            query = query.filter(LectureSession.branch_id == branch_id)
        if subject_code:
            query = query.filter(LectureSession.subject_code == subject_code)
        
        query = query.order_by(LectureSession.date.desc(), LectureSession.start_time.desc(),
                               LectureSession.id.desc())
        return query.paginate(page=page, per_page=per_page, error_out=False)
    
    @staticmethod
    def session_counts(session: LectureSession) -> dict:
        """Attendance and cohort size for a session listing."""
        attended = IdentityStore.count_where(
            AttendanceRecord,
            AttendanceRecord.status.in_([AttendanceStatus.PRESENT, AttendanceStatus.LATE]),
            session_id=session.id
        )
        total = IdentityStore.count_where(
            StudentProfile,
            branch_id=session.branch_id,
            semester=session.semester,
            section=session.section
        )
        return {'attendance_count': attended, 'total_students': total}

def _normalise_time(value: str) -> str:
    hour, minute = value.strip().split(':')
    return f"{int(hour):02d}:{minute}"
