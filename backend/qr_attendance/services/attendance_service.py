"""Attendance recording, manual overrides and per-student reporting."""
import logging
from collections import OrderedDict
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Optional, Tuple, Union

from sqlalchemy.exc import IntegrityError

from qr_attendance import db
from qr_attendance.constants import LATE_THRESHOLD
from qr_attendance.errors import (
    AlreadyMarked, AttendanceNotFound, PermissionDenied, ValidationError
)
from qr_attendance.models.attendance import AttendanceRecord, AttendanceStatus
from qr_attendance.models.lecture_session import LectureSession
from qr_attendance.models.student import StudentProfile
from qr_attendance.models.user import User
from qr_attendance.services.identity_store import IdentityStore
from qr_attendance.services.session_service import SessionService
from qr_attendance.utils import clock

logger = logging.getLogger(__name__)

class AttendanceService:
    """Writes attendance records and derives reports from them."""
    
    @staticmethod
    def classify(session: LectureSession, observed_at: datetime) -> AttendanceStatus:
        """Late only when strictly more than the threshold after the start."""
        if observed_at - session.lecture_start > LATE_THRESHOLD:
            return AttendanceStatus.LATE
        return AttendanceStatus.PRESENT
    
    @staticmethod
    def parse_location(location: Any) -> Tuple[Optional[float], Optional[float]]:
        """Validate an optional ``{latitude, longitude}`` object."""
        if location is None:
            return None, None
        if not isinstance(location, dict):
            raise ValidationError("location must be an object with latitude and longitude")
        try:
            latitude = float(location['latitude'])
            longitude = float(location['longitude'])
        except (KeyError, TypeError, ValueError):
            raise ValidationError("location must be an object with latitude and longitude")
        if not (-90 <= latitude <= 90 and -180 <= longitude <= 180):
            raise ValidationError("location coordinates are out of range")
        return latitude, longitude
    
    @staticmethod
    def parse_status(status: Union[str, AttendanceStatus]) -> AttendanceStatus:
        if isinstance(status, AttendanceStatus):
            return status
        try:
            return AttendanceStatus(str(status).lower())
        except ValueError:
            raise ValidationError("status must be one of present, late, absent")
    
    @staticmethod
    def record(
        session: LectureSession,
        student: StudentProfile,
        observed_at: Optional[datetime] = None,
        location: Optional[Dict[str, float]] = None,
        device_info: Optional[str] = None
    ) -> AttendanceRecord:
        """Persist a self-scan. A second record for the pair raises AlreadyMarked."""
        observed_at = observed_at or clock.utcnow()
        latitude, longitude = AttendanceService.parse_location(location)
        status = AttendanceService.classify(session, observed_at)
        session_id, student_id = session.id, student.id
        
        record = AttendanceRecord(
            session_id=session_id,
            student_id=student_id,
            status=status,
            marked_at=observed_at,
            verification_method='qr',
            latitude=latitude,
            longitude=longitude,
            device_info=str(device_info)[:255] if device_info else None
        )
        db.session.add(record)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            existing = AttendanceRecord.query.filter_by(session_id=session_id,
                                                        student_id=student_id).first()
            logger.warning("Duplicate scan for session %s student %s rejected by constraint",
                           session_id, student_id)
            raise AlreadyMarked(data=existing.to_dict() if existing else None)
        
        logger.info("Attendance for session %s student %s marked %s",
                    session_id, student_id, status.value)
        return record
    
    @staticmethod
    def mark_manually(
        session: LectureSession,
        student: StudentProfile,
        status: Union[str, AttendanceStatus],
        marked_by: Optional[User] = None,
        now: Optional[datetime] = None
    ) -> AttendanceRecord:
        """Teacher override: create or update, never rejected as a duplicate."""
        status = AttendanceService.parse_status(status)
        session_id, student_id = session.id, student.id
        marked_by_id = marked_by.id if marked_by is not None else None
        
        record = AttendanceRecord.query.filter_by(session_id=session_id,
                                                  student_id=student_id).first()
        if record is None:
            record = AttendanceRecord(
                session_id=session_id,
                student_id=student_id,
                status=status,
                marked_at=now or clock.utcnow(),
                verification_method='manual',
                marked_by=marked_by_id
            )
            db.session.add(record)
            try:
                db.session.commit()
            except IntegrityError:
                # a scan landed first; fall back to updating it
                db.session.rollback()
                record = AttendanceRecord.query.filter_by(session_id=session_id,
                                                          student_id=student_id).one()
                record.status = status
                record.marked_by = marked_by_id
                db.session.commit()
        else:
            record.status = status
            record.marked_by = marked_by_id
            db.session.commit()
        
        logger.info("Attendance for session %s student %s manually set to %s",
                    session_id, student_id, status.value)
        return record
    
    @staticmethod
    def get_managed_record(record_id: int, user: User) -> AttendanceRecord:
        record = IdentityStore.find_by_id(AttendanceRecord, record_id)
        if record is None:
            raise AttendanceNotFound()
        if not SessionService.can_manage(record.session, user):
            raise PermissionDenied("Only the issuing teacher or an admin can change this record")
        return record
    
    @staticmethod
    def update_status(record_id: int, status: Union[str, AttendanceStatus],
                      user: User) -> AttendanceRecord:
        status = AttendanceService.parse_status(status)
        record = AttendanceService.get_managed_record(record_id, user)
        record.status = status
        record.marked_by = user.id
        db.session.commit()
        logger.info("Attendance record %s updated to %s by user %s", record.id, status.value, user.id)
        return record
    
    @staticmethod
    def delete_record(record_id: int, user: User) -> None:
        record = AttendanceService.get_managed_record(record_id, user)
        record.delete()
        logger.info("Attendance record %s deleted by user %s", record_id, user.id)
    
    @staticmethod
    def roster(session: LectureSession) -> Dict[str, Any]:
        """Whole cohort with each student's status, sorted by roll number."""
        students = IdentityStore.find_cohort(session.branch_id, session.semester, session.section)
        records = {r.student_id: r for r in session.records}
        
        entries = []
        counts = {status.value: 0 for status in AttendanceStatus}
        for student in students:
            record = records.get(student.id)
            status = record.status if record else AttendanceStatus.ABSENT
            counts[status.value] += 1
            entries.append({
                'student': {
                    'id': student.id,
                    'roll_number': student.roll_number,
                    'name': student.user.name,
                    'email': student.user.email
                },
                'attendance_id': record.id if record else None,
                'status': status.value,
                'marked_at': record.marked_at.isoformat() if record else None
            })
        
        return {
            'attendance': entries,
            'summary': {
                'total': len(students),
                'present': counts['present'],
                'late': counts['late'],
                'absent': counts['absent']
            }
        }
    
    @staticmethod
    def history(
        student: StudentProfile,
        subject_code: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        page: int = 1,
        per_page: int = 20
    ):
        """Paginate a student's own records, newest first."""
        query = (AttendanceRecord.query
                 .join(LectureSession, AttendanceRecord.session_id == LectureSession.id)
                 .filter(AttendanceRecord.student_id == student.id))
        if subject_code:
            query = query.filter(LectureSession.subject_code == subject_code)
        if start_date:
            query = query.filter(AttendanceRecord.marked_at >= datetime.combine(start_date, datetime.min.time()))
        if end_date:
            query = query.filter(AttendanceRecord.marked_at < datetime.combine(end_date + timedelta(days=1),
                                                                               datetime.min.time()))
        query = query.order_by(AttendanceRecord.marked_at.desc())
        return query.paginate(page=page, per_page=per_page, error_out=False)
    
    @staticmethod
    def summary(student: StudentProfile) -> Dict[str, Any]:
        """Subject-wise and overall attendance over the student's cohort sessions."""
        sessions = (LectureSession.query
                    .filter_by(branch_id=student.branch_id, semester=student.semester,
                               section=student.section)
                    .order_by(LectureSession.subject_code)
                    .all())
        statuses = {
            r.session_id: r.status
            for r in student.attendance_records
        }
        
        subjects = OrderedDict()
        overall = _empty_tally()
        for session in sessions:
            tally = subjects.setdefault(session.subject_code, {
                'subject_code': session.subject_code,
                'subject_name': session.subject_name,
                **_empty_tally()
            })
            status = statuses.get(session.id)
            for bucket in (tally, overall):
                bucket['total_lectures'] += 1
                if status == AttendanceStatus.PRESENT:
                    bucket['present'] += 1
                elif status == AttendanceStatus.LATE:
                    bucket['late'] += 1
        
        for bucket in list(subjects.values()) + [overall]:
            _finish_tally(bucket)
        
        return {
            'subjects': list(subjects.values()),
            'overall': overall,
            'student': {
                'roll_number': student.roll_number,
                'branch': student.branch.code if student.branch else None,
                'semester': student.semester,
                'section': student.section
            }
        }

def attendance_percentage(attended: int, total: int) -> int:
    """Whole-number percentage, halves rounded up; 0 when nothing was held."""
    if total <= 0:
        return 0
    value = Decimal(100 * attended) / Decimal(total)
    return int(value.quantize(Decimal('1'), rounding=ROUND_HALF_UP))

def _empty_tally() -> Dict[str, int]:
    return {'total_lectures': 0, 'present': 0, 'late': 0, 'absent': 0, 'percentage': 0}

def _finish_tally(tally: Dict[str, int]) -> None:
    attended = tally['present'] + tally['late']
    tally['absent'] = tally['total_lectures'] - attended
    tally['percentage'] = attendance_percentage(attended, tally['total_lectures'])
