"""Attendance record model."""
from enum import Enum

from qr_attendance import db
from qr_attendance.models.base import BaseModel
from qr_attendance.utils import clock

class AttendanceStatus(Enum):
    PRESENT = 'present'
    LATE = 'late'
    ABSENT = 'absent'  # only through manual override

class AttendanceRecord(BaseModel):
    """One student's attendance for one lecture session."""
    
    __tablename__ = 'attendance_records'
    __table_args__ = (
        db.UniqueConstraint('session_id', 'student_id', name='uq_attendance_session_student'),
    )
    
    session_id = db.Column(db.Integer, db.ForeignKey('lecture_sessions.id'), nullable=False, index=True)
    student_id = db.Column(db.Integer, db.ForeignKey('student_profiles.id'), nullable=False, index=True)
    status = db.Column(db.Enum(AttendanceStatus), nullable=False, default=AttendanceStatus.PRESENT)
    marked_at = db.Column(db.DateTime, nullable=False, default=clock.utcnow)
    
    # qr or manual
    verification_method = db.Column(db.String(20), nullable=False, default='qr')
    marked_by = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    
    # Location where the scan happened
    latitude = db.Column(db.Float, nullable=True)
    longitude = db.Column(db.Float, nullable=True)
    device_info = db.Column(db.String(255), nullable=True)
    
    def to_dict(self):
        data = {
            'id': self.id,
            'session_id': self.session_id,
            'student_id': self.student_id,
            'status': self.status.value,
            'marked_at': self.marked_at.isoformat(),
            'verification_method': self.verification_method,
            'device_info': self.device_info
        }
        if self.latitude is not None and self.longitude is not None:
            data['location'] = {'latitude': self.latitude, 'longitude': self.longitude}
        else:
            data['location'] = None
        return data
    
    def __repr__(self):
        return f'<AttendanceRecord {self.session_id}-{self.student_id}>'
