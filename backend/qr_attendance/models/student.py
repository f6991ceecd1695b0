"""Student academic profile."""
from qr_attendance import db
from qr_attendance.constants import DEFAULT_SECTION
from qr_attendance.models.base import BaseModel

class StudentProfile(BaseModel):
    """Student profile; (branch, semester, section) is the student's cohort."""
    
    __tablename__ = 'student_profiles'
    
    # Link to User
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, unique=True)
    
    roll_number = db.Column(db.String(50), unique=True, nullable=False, index=True)
    
    # Cohort
    branch_id = db.Column(db.Integer, db.ForeignKey('branches.id'), nullable=False, index=True)
    semester = db.Column(db.Integer, nullable=False, default=1)
    section = db.Column(db.String(10), nullable=False, default=DEFAULT_SECTION)
    
    # Relationships
    user = db.relationship('User', backref=db.backref('student_profile', uselist=False))
    branch = db.relationship('Branch', backref=db.backref('students', lazy='dynamic'))
    attendance_records = db.relationship('AttendanceRecord', backref='student', lazy='dynamic',
                                         cascade='all, delete-orphan')
    
    @property
    def cohort(self):
        return self.branch_id, self.semester, self.section
    
    def to_dict(self):
        """Convert to dictionary."""
        return {
            'id': self.id,
            'roll_number': self.roll_number,
            'name': self.user.name if self.user else None,
            'email': self.user.email if self.user else None,
            'branch': self.branch.to_dict() if self.branch else None,
            'semester': self.semester,
            'section': self.section
        }
    
    def __repr__(self):
        return f'<StudentProfile {self.roll_number}>'
