"""Student API: QR scan, attendance history and summary."""
from flask import Blueprint, request
from flask_jwt_extended import jwt_required

from qr_attendance import limiter
from qr_attendance.api import pagination_args
from qr_attendance.constants import MAX_QR_DATA_LENGTH
from qr_attendance.errors import MalformedPayload, StudentProfileNotFound, ValidationError
from qr_attendance.models.user import UserRole
from qr_attendance.services.attendance_service import AttendanceService
from qr_attendance.services.eligibility_service import EligibilityService
from qr_attendance.services.identity_store import IdentityStore
from qr_attendance.utils import clock
from qr_attendance.utils.decorators import current_user, student_required
from qr_attendance.utils.helpers import error_response, pagination_meta, success_response
from qr_attendance.utils.validators import Validator

student_bp = Blueprint('student', __name__)

def _student_profile():
    profile = IdentityStore.find_profile_by_account(current_user(), UserRole.STUDENT)
    if profile is None:
        raise StudentProfileNotFound()
    return profile

@student_bp.route('/profile', methods=['GET'])
@jwt_required()
@student_required
def get_profile():
    return success_response(data=_student_profile().to_dict())

@student_bp.route('/scan', methods=['POST'])
@jwt_required()
@student_required
@limiter.limit("20 per minute")
def scan_attendance():
    """Scan a lecture QR code and mark attendance."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or data.get('qr_data') in (None, ''):
        raise ValidationError("qr_data is required")
    if isinstance(data['qr_data'], str) and len(data['qr_data']) > MAX_QR_DATA_LENGTH:
        raise MalformedPayload()
    
    location = data.get('location')
    AttendanceService.parse_location(location)
    
    now = clock.utcnow()
    result = EligibilityService.validate(data['qr_data'], current_user(), now=now)
    
    if not result.ok:
        reason = result.reason
        existing = result.existing_record.to_dict() if result.existing_record else None
        return error_response(reason.message, reason.status_code, code=reason.code, data=existing)
    
    session = result.session
    record = AttendanceService.record(
        session,
        result.student,
        observed_at=now,
        location=location,
        device_info=data.get('device_info')
    )
    
    return success_response(
        data={
            'attendance': record.to_dict(),
            'lecture': {
                'subject': {'code': session.subject_code, 'name': session.subject_name},
                'date': session.date.isoformat(),
                'time': f"{session.start_time} - {session.end_time}"
            }
        },
        message=f"Attendance marked as {record.status.value}!",
        status_code=201
    )

@student_bp.route('/attendance', methods=['GET'])
@jwt_required()
@student_required
def get_attendance_history():
    """Own attendance history, newest first."""
    student = _student_profile()
    page, per_page = pagination_args(default_per_page=20)
    
    dates = {}
    for name in ('start_date', 'end_date'):
        raw = request.args.get(name)
        dates[name] = Validator.parse_date(raw)
        if raw and dates[name] is None:
            raise ValidationError(f"Invalid {name}. Use YYYY-MM-DD")
    
    pagination = AttendanceService.history(
        student,
        subject_code=request.args.get('subject'),
        page=page,
        per_page=per_page,
        **dates
    )
    
    records = []
    for record in pagination.items:
        session = record.session
        records.append({
            **record.to_dict(),
            'lecture': {
                'subject': {'code': session.subject_code, 'name': session.subject_name},
                'branch': session.branch.code if session.branch else None,
                'date': session.date.isoformat(),
                'time': f"{session.start_time} - {session.end_time}"
            }
        })
    
    return success_response(data=records, pagination=pagination_meta(pagination))

@student_bp.route('/attendance/summary', methods=['GET'])
@jwt_required()
@student_required
def get_attendance_summary():
    """Subject-wise and overall attendance percentages."""
    return success_response(data=AttendanceService.summary(_student_profile()))
