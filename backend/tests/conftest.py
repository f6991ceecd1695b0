"""Shared fixtures for the API and service tests."""
from datetime import datetime, timedelta

import pytest

from qr_attendance import create_app, db
from qr_attendance.models.branch import Branch, Subject
from qr_attendance.models.user import UserRole
from qr_attendance.services.auth_service import AuthService
from qr_attendance.services.identity_store import IdentityStore
from qr_attendance.utils import clock

LECTURE_DAY = datetime(2025, 3, 10, 9, 0)

class FrozenClock:
    """Replaces ``clock.utcnow`` with a value the test controls."""
    
    def __init__(self, now):
        self.now = now
    
    def __call__(self):
        return self.now
    
    def set(self, now):
        self.now = now
    
    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)
        return self.now

@pytest.fixture
def app():
    """Create test app."""
    app = create_app('testing')
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()

@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()

@pytest.fixture
def frozen_clock(monkeypatch):
    frozen = FrozenClock(LECTURE_DAY)
    monkeypatch.setattr(clock, 'utcnow', frozen)
    return frozen

@pytest.fixture
def branch(app):
    branch = Branch(code='CSE', name='Computer Science and Engineering').save()
    Subject(branch_id=branch.id, code='CS301', name='Advanced Programming').save()
    return branch

@pytest.fixture
def other_branch(app):
    return Branch(code='ECE', name='Electronics and Communication Engineering').save()

@pytest.fixture
def teacher(app, branch):
    """Teacher account with a profile assigned to the CSE branch."""
    user = IdentityStore.create_account('teacher@university.edu', 'password123', 'Dr. Teacher',
                                        UserRole.TEACHER, employee_id='EMP001')
    user.teacher_profile.branches.append(branch)
    db.session.commit()
    return user

@pytest.fixture
def other_teacher(app):
    return IdentityStore.create_account('other@university.edu', 'password123', 'Dr. Other',
                                        UserRole.TEACHER, employee_id='EMP002')

@pytest.fixture
def admin(app):
    return IdentityStore.create_account('admin@university.edu', 'password123', 'Admin',
                                        UserRole.ADMIN)

@pytest.fixture
def make_student(app, branch):
    """Factory for student accounts; defaults to CSE semester 3 section A."""
    counter = {'n': 0}
    
    def _make(branch_id=None, semester=3, section='A', roll_number=None):
        counter['n'] += 1
        roll_number = roll_number or f"CSE3{section}{counter['n']:02d}"
        return IdentityStore.create_account(
            f"{roll_number.lower()}@student.university.edu", 'password123',
            f"Student {roll_number}", UserRole.STUDENT,
            roll_number=roll_number, branch_id=branch_id or branch.id,
            semester=semester, section=section
        )
    return _make

@pytest.fixture
def auth_headers(app):
    """Build an Authorization header for a user."""
    def _headers(user):
        token = AuthService.issue_tokens(user)['access_token']
        return {'Authorization': f'Bearer {token}'}
    return _headers

@pytest.fixture
def issue_session(teacher, branch, frozen_clock):
    """Issue a CSE semester 3 lecture at the frozen time."""
    from qr_attendance.services.session_service import SessionService
    
    def _issue(validity_minutes=30, section='A', start_time='09:00', **kwargs):
        return SessionService.create_session(
            teacher,
            branch_id=kwargs.pop('branch_id', branch.id),
            subject_code=kwargs.pop('subject_code', 'CS301'),
            subject_name=kwargs.pop('subject_name', 'Advanced Programming'),
            semester=kwargs.pop('semester', 3),
            section=section,
            start_time=start_time,
            end_time=kwargs.pop('end_time', '10:00'),
            validity_minutes=validity_minutes,
            **kwargs
        )
    return _issue
