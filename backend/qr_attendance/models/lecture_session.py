"""Lecture session issued by a teacher and scanned through a QR code."""
import secrets
from datetime import datetime, time
from enum import Enum
from typing import Optional

from sqlalchemy.orm import validates

from qr_attendance import db
from qr_attendance.constants import DEFAULT_SECTION, DEFAULT_TIMEZONE, SESSION_TOKEN_BYTES
from qr_attendance.errors import SessionClosedError
from qr_attendance.models.base import BaseModel
from qr_attendance.utils import clock

class SessionState(Enum):
    """Lifecycle state. EXPIRED is derived from the clock, never stored."""
    ACTIVE = 'active'
    EXPIRED = 'expired'
    CLOSED = 'closed'

class LectureSession(BaseModel):
    """A single lecture whose QR code students scan to mark attendance.
    
    ``subject_code`` and ``subject_name`` are a copy taken at creation time,
    so later catalogue edits leave historical sessions untouched.
    ``is_active`` only records manual closure; expiry always comes from
    ``expires_at``.
    """
    
    __tablename__ = 'lecture_sessions'
    __table_args__ = (
        db.Index('ix_lecture_sessions_date_branch_subject', 'date', 'branch_id', 'subject_code'),
    )
    
    teacher_id = db.Column(db.Integer, db.ForeignKey('teacher_profiles.id'), nullable=False, index=True)
    branch_id = db.Column(db.Integer, db.ForeignKey('branches.id'), nullable=False)
    
    # Subject snapshot
    subject_code = db.Column(db.String(20), nullable=False)
    subject_name = db.Column(db.String(255), nullable=False)
    
    # Cohort
    semester = db.Column(db.Integer, nullable=False)
    section = db.Column(db.String(10), nullable=False, default=DEFAULT_SECTION)
    
    # Schedule
    date = db.Column(db.Date, nullable=False, index=True)
    start_time = db.Column(db.String(5), nullable=False)
    end_time = db.Column(db.String(5), nullable=False)
    # zone in which date, start_time and end_time are wall-clock values
    timezone = db.Column(db.String(64), nullable=False, default=DEFAULT_TIMEZONE)
    
    # Credential
    token = db.Column(db.String(64), unique=True, nullable=False, index=True)
    expires_at = db.Column(db.DateTime, nullable=False)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    closed_at = db.Column(db.DateTime, nullable=True)
    
    branch = db.relationship('Branch', backref=db.backref('lecture_sessions', lazy='dynamic'))
    records = db.relationship('AttendanceRecord', backref='session', lazy='dynamic',
                              cascade='all, delete-orphan')
    
    @staticmethod
    def generate_token() -> str:
        """Generate an unguessable session token."""
        return secrets.token_urlsafe(SESSION_TOKEN_BYTES)
    
    @validates('token')
    def _validate_token(self, key, value):
        if self.token is not None and value != self.token:
            raise ValueError('Session token is immutable')
        return value
    
    @validates('is_active')
    def _validate_is_active(self, key, value):
        if value and self.is_active is False:
            raise SessionClosedError('A closed lecture session cannot be reopened')
        return value
    
    @property
    def issued_at(self) -> datetime:
        return self.created_at
    
    @property
    def lecture_start(self) -> datetime:
        """Scheduled start as naive UTC, comparable with scan timestamps."""
        hour, minute = (int(part) for part in self.start_time.split(':'))
        local_start = datetime.combine(self.date, time(hour, minute))
        return clock.to_utc(local_start, self.timezone or DEFAULT_TIMEZONE)
    
    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """Check if the validity window has elapsed."""
        now = now or clock.utcnow()
        return now >= self.expires_at
    
    def state(self, now: Optional[datetime] = None) -> SessionState:
        if not self.is_active:
            return SessionState.CLOSED
        if self.is_expired(now):
            return SessionState.EXPIRED
        return SessionState.ACTIVE
    
    def close(self, now: Optional[datetime] = None) -> bool:
        """Close the session; returns False when it was already closed."""
        if not self.is_active:
            return False
        self.is_active = False
        self.closed_at = now or clock.utcnow()
        return True
    
    def to_dict(self, now: Optional[datetime] = None, include_token: bool = False):
        """Convert to dictionary."""
        data = {
            'id': self.id,
            'teacher_id': self.teacher_id,
            'branch_id': self.branch_id,
            'branch': self.branch.code if self.branch else None,
            'subject': {
                'code': self.subject_code,
                'name': self.subject_name
            },
            'semester': self.semester,
            'section': self.section,
            'date': self.date.isoformat(),
            'start_time': self.start_time,
            'end_time': self.end_time,
            'timezone': self.timezone,
            'issued_at': self.issued_at.isoformat() if self.issued_at else None,
            'expires_at': self.expires_at.isoformat(),
            'is_active': self.is_active,
            'state': self.state(now).value
        }
        if include_token:
            data['token'] = self.token
        return data
    
    def __repr__(self):
        return f'<LectureSession {self.subject_code} {self.date}>'
