"""Teacher API: lecture sessions, QR codes and attendance management."""
from flask import Blueprint, current_app, request
from flask_jwt_extended import jwt_required

from qr_attendance import limiter
from qr_attendance.api import pagination_args
from qr_attendance.errors import StudentProfileNotFound, TeacherNotFound, ValidationError
from qr_attendance.models.student import StudentProfile
from qr_attendance.models.user import UserRole
from qr_attendance.services.attendance_service import AttendanceService
from qr_attendance.services.identity_store import IdentityStore
from qr_attendance.services.qr_service import QRService
from qr_attendance.services.session_service import SessionService
from qr_attendance.utils.decorators import current_user, teacher_required
from qr_attendance.utils.helpers import pagination_meta, success_response
from qr_attendance.utils.validators import Validator

teacher_bp = Blueprint('teacher', __name__)

def _json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be JSON")
    return data

def _teacher_profile():
    profile = IdentityStore.find_profile_by_account(current_user(), UserRole.TEACHER)
    if profile is None:
        raise TeacherNotFound()
    return profile

@teacher_bp.route('/profile', methods=['GET'])
@jwt_required()
@teacher_required
def get_profile():
    """Get teacher profile with assigned branches."""
    return success_response(data=_teacher_profile().to_dict())

@teacher_bp.route('/assigned', methods=['GET'])
@jwt_required()
@teacher_required
def get_assigned():
    """Branches and subjects assigned to the teacher."""
    profile = _teacher_profile()
    return success_response(data={
        'branches': [b.to_dict(include_subjects=True) for b in profile.branches],
        'subjects': [s.to_dict() for s in profile.subjects]
    })

@teacher_bp.route('/sessions', methods=['POST'])
@jwt_required()
@teacher_required
@limiter.limit("30 per hour")
def create_session():
    """Issue a lecture session and render its QR code."""
    data = _json_body()
    
    validity = data.get('valid_minutes', data.get('validity_minutes'))
    
    session, payload = SessionService.create_session(
        teacher=current_user(),
        branch_id=data.get('branch_id'),
        subject_code=data.get('subject_code'),
        subject_name=data.get('subject_name'),
        semester=data.get('semester'),
        section=data.get('section'),
        start_time=data.get('start_time'),
        end_time=data.get('end_time'),
        validity_minutes=validity
    )
    
    qr_data = payload.to_json()
    qr_image = QRService.render_image(
        qr_data,
        box_size=current_app.config.get('QR_IMAGE_BOX_SIZE', 10),
        border=current_app.config.get('QR_IMAGE_BORDER', 2)
    )
    
    return success_response(
        data={
            'session': session.to_dict(include_token=True),
            'qr_code': qr_image,
            'qr_payload': payload.to_dict(),
            'qr_data': qr_data,
            'expires_at': session.expires_at.isoformat()
        },
        message="QR Code generated successfully",
        status_code=201
    )

@teacher_bp.route('/sessions', methods=['GET'])
@jwt_required()
@teacher_required
def list_sessions():
    """List own sessions filtered by date, branch and subject."""
    page, per_page = pagination_args()
    raw_date = request.args.get('date')
    on_date = Validator.parse_date(raw_date)
    if raw_date and on_date is None:
        raise ValidationError("Invalid date format. Use YYYY-MM-DD")
    
    pagination = SessionService.list_sessions(
        current_user(),
        on_date=on_date,
        branch_id=request.args.get('branch', type=int),
        subject_code=request.args.get('subject'),
        page=page,
        per_page=per_page
    )
    
    sessions = [
        {**s.to_dict(), **SessionService.session_counts(s)}
        for s in pagination.items
    ]
    return success_response(data=sessions, pagination=pagination_meta(pagination))

@teacher_bp.route('/sessions/<int:session_id>', methods=['GET'])
@jwt_required()
@teacher_required
def get_session(session_id):
    session = SessionService.get_managed_session(session_id, current_user())
    return success_response(data={**session.to_dict(), **SessionService.session_counts(session)})

@teacher_bp.route('/sessions/<int:session_id>/close', methods=['POST'])
@jwt_required()
@teacher_required
def close_session(session_id):
    """Close a session before it expires."""
    session = SessionService.close_session(session_id, current_user())
    return success_response(data=session.to_dict(), message="Lecture session closed")

@teacher_bp.route('/sessions/<int:session_id>/attendance', methods=['GET'])
@jwt_required()
@teacher_required
def get_session_attendance(session_id):
    """Full cohort roster with present/late/absent status."""
    session = SessionService.get_managed_session(session_id, current_user())
    roster = AttendanceService.roster(session)
    return success_response(data={'session': session.to_dict(), **roster})

@teacher_bp.route('/sessions/<int:session_id>/attendance', methods=['POST'])
@jwt_required()
@teacher_required
def mark_attendance_manually(session_id):
    """Create or update a student's record, bypassing the scan checks."""
    data = _json_body()
    validation = Validator.validate_required_fields(data, ['student_id', 'status'])
    if not validation['is_valid']:
        raise ValidationError(', '.join(validation['errors']))
    
    session = SessionService.get_managed_session(session_id, current_user())
    student = IdentityStore.find_by_id(StudentProfile, data['student_id'])
    if student is None:
        raise StudentProfileNotFound()
    
    record = AttendanceService.mark_manually(session, student, data['status'],
                                             marked_by=current_user())
    return success_response(data=record.to_dict(), message="Attendance marked successfully")

@teacher_bp.route('/attendance/<int:attendance_id>', methods=['PUT'])
@jwt_required()
@teacher_required
def update_attendance(attendance_id):
    data = _json_body()
    if not data.get('status'):
        raise ValidationError("status is required")
    
    record = AttendanceService.update_status(attendance_id, data['status'], current_user())
    return success_response(data=record.to_dict(), message="Attendance updated successfully")

@teacher_bp.route('/attendance/<int:attendance_id>', methods=['DELETE'])
@jwt_required()
@teacher_required
def delete_attendance(attendance_id):
    AttendanceService.delete_record(attendance_id, current_user())
    return success_response(message="Attendance deleted successfully")
