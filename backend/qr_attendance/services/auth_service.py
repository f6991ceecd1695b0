"""Authentication service for user management."""
from typing import Dict, Optional, Tuple

from flask_jwt_extended import create_access_token, create_refresh_token
from sqlalchemy.exc import IntegrityError

from qr_attendance import db
from qr_attendance.constants import DEFAULT_SECTION
from qr_attendance.models.user import User, UserRole
from qr_attendance.services.identity_store import IdentityStore
from qr_attendance.utils import clock
from qr_attendance.utils.validators import Validator

SELF_REGISTER_ROLES = (UserRole.STUDENT, UserRole.TEACHER)

class AuthService:
    
    @staticmethod
    def issue_tokens(user: User) -> Dict[str, str]:
        """Access and refresh JWTs; the identity is the account id."""
        claims = {'role': user.role.value}
        return {
            "access_token": create_access_token(identity=str(user.id), additional_claims=claims),
            "refresh_token": create_refresh_token(identity=str(user.id), additional_claims=claims)
        }
    
    @staticmethod
    def login(email: str, password: str) -> Tuple[Optional[dict], Optional[str]]:
        """Authenticate user and return tokens."""
        if not email or not password:
            return None, "Email and password are required"
        
        if not Validator.validate_email(email):
            return None, "Invalid email format"
        
        user = IdentityStore.find_account_by_email(email)
        
        if not user or not user.check_password(password):
            return None, "Invalid email or password"
        
        if not user.is_active:
            return None, "Account is deactivated"
        
        user.last_login = clock.utcnow()
        db.session.commit()
        
        return {
            **AuthService.issue_tokens(user),
            "user": user.to_dict()
        }, None
    
    @staticmethod
    def register(data: dict) -> Tuple[Optional[User], Optional[str]]:
        """Register a student or teacher together with the role profile."""
        email = (data.get('email') or '').strip()
        password = data.get('password') or ''
        name = data.get('name') or ''
        
        if not Validator.validate_email(email):
            return None, "Invalid email format"
        
        password_check = Validator.validate_password(password)
        if not password_check['is_valid']:
            return None, password_check['errors'][0]
        
        name_check = Validator.validate_name(name)
        if not name_check['is_valid']:
            return None, name_check['errors'][0]
        
        try:
            role = UserRole((data.get('role') or UserRole.STUDENT.value).lower())
        except ValueError:
            return None, "Invalid role"
        if role not in SELF_REGISTER_ROLES:
            return None, "Only students and teachers can register"
        
        if IdentityStore.find_account_by_email(email):
            return None, "User already exists"
        
        if role == UserRole.STUDENT:
            profile, error = AuthService._student_fields(data)
        else:
            profile, error = AuthService._teacher_fields(data)
        if error:
            return None, error
        
        try:
            user = IdentityStore.create_account(email, password, name, role, **profile)
        except IntegrityError:
            db.session.rollback()
            return None, "Roll number or employee ID already exists"
        
        return user, None
    
    @staticmethod
    def _student_fields(data: dict) -> Tuple[dict, Optional[str]]:
        validation = Validator.validate_required_fields(data, ['roll_number', 'branch_id'])
        if not validation['is_valid']:
            return {}, ', '.join(validation['errors'])
        
        branch = IdentityStore.find_branch(data['branch_id'])
        if branch is None:
            return {}, "Branch not found"
        
        semester = data.get('semester', 1)
        if not Validator.is_positive_int(semester):
            return {}, "semester must be a positive integer"
        
        return {
            'roll_number': str(data['roll_number']).strip().upper(),
            'branch_id': branch.id,
            'semester': semester,
            'section': (data.get('section') or DEFAULT_SECTION).strip()
        }, None
    
    @staticmethod
    def _teacher_fields(data: dict) -> Tuple[dict, Optional[str]]:
        validation = Validator.validate_required_fields(data, ['employee_id'])
        if not validation['is_valid']:
            return {}, ', '.join(validation['errors'])
        
        return {
            'employee_id': str(data['employee_id']).strip(),
            'department': data.get('department')
        }, None
    
    @staticmethod
    def change_password(user: User, current_password: str,
                        new_password: str) -> Optional[str]:
        """Change the password; returns an error message on failure."""
        if not user.check_password(current_password or ''):
            return "Current password is incorrect"
        
        check = Validator.validate_password(new_password)
        if not check['is_valid']:
            return check['errors'][0]
        
        user.set_password(new_password)
        db.session.commit()
        return None
