"""Identity store: accounts and role profiles.

The attendance services only reach accounts and profiles through this
class, never through ad hoc queries.
"""
from typing import Optional, Union

from qr_attendance import db
from qr_attendance.models.branch import Branch
from qr_attendance.models.student import StudentProfile
from qr_attendance.models.teacher import TeacherProfile
from qr_attendance.models.user import User, UserRole

PROFILE_MODELS = {
    UserRole.STUDENT: StudentProfile,
    UserRole.TEACHER: TeacherProfile,
}

class IdentityStore:
    """Lookup and persistence primitives for identities."""
    
    @staticmethod
    def find_account_by_email(email: str) -> Optional[User]:
        if not email:
            return None
        return User.query.filter_by(email=email.lower().strip()).first()
    
    @staticmethod
    def find_by_id(model, id) -> Optional[db.Model]:
        """Fetch any identity record (account, profile, branch) by primary key."""
        try:
            id = int(id)
        except (TypeError, ValueError):
            return None
        return db.session.get(model, id)
    
    @staticmethod
    def create_account(email: str, password: str, name: str,
                       role: UserRole = UserRole.STUDENT, **profile_fields) -> User:
        """Create an account plus its role profile in one commit."""
        user = User(email=email.lower().strip(), name=name.strip(), role=role)
        user.set_password(password)
        db.session.add(user)
        db.session.flush()  # Get user.id
        
        profile_model = PROFILE_MODELS.get(role)
        if profile_model is not None:
            db.session.add(profile_model(user_id=user.id, **profile_fields))
        
        db.session.commit()
        return user
    
    @staticmethod
    def find_profile_by_account(account: Union[User, int, None],
                                role: UserRole) -> Optional[Union[StudentProfile, TeacherProfile]]:
        """Role profile of an account, or None when it has none."""
        profile_model = PROFILE_MODELS.get(role)
        if profile_model is None or account is None:
            return None
        user_id = account.id if isinstance(account, User) else account
        return profile_model.query.filter_by(user_id=user_id).first()
    
    @staticmethod
    def count_where(model, *criteria, **filters) -> int:
        """Count rows of ``model`` matching SQLAlchemy criteria and equality filters."""
        return model.query.filter(*criteria).filter_by(**filters).count()
    
    @staticmethod
    def find_branch(branch_id) -> Optional[Branch]:
        return IdentityStore.find_by_id(Branch, branch_id)
    
    @staticmethod
    def find_cohort(branch_id: int, semester: int, section: str):
        """All student profiles in a cohort, ordered by roll number."""
        return (StudentProfile.query
                .filter_by(branch_id=branch_id, semester=semester, section=section)
                .order_by(StudentProfile.roll_number)
                .all())
