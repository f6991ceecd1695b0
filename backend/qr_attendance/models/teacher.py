"""Teacher profile with branch and subject assignments."""
from qr_attendance import db
from qr_attendance.models.base import BaseModel

teacher_branches = db.Table(
    'teacher_branches',
    db.Column('teacher_id', db.Integer, db.ForeignKey('teacher_profiles.id'), primary_key=True),
    db.Column('branch_id', db.Integer, db.ForeignKey('branches.id'), primary_key=True)
)

class TeacherProfile(BaseModel):
    """Teacher profile linked to a teacher account."""
    
    __tablename__ = 'teacher_profiles'
    
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, unique=True)
    employee_id = db.Column(db.String(50), unique=True, nullable=False, index=True)
    department = db.Column(db.String(100), nullable=True)
    
    user = db.relationship('User', backref=db.backref('teacher_profile', uselist=False))
    branches = db.relationship('Branch', secondary=teacher_branches, lazy='subquery')
    subjects = db.relationship('TeacherSubject', backref='teacher', lazy='dynamic',
                               cascade='all, delete-orphan')
    sessions = db.relationship('LectureSession', backref='teacher', lazy='dynamic')
    
    def to_dict(self):
        return {
            'id': self.id,
            'employee_id': self.employee_id,
            'department': self.department,
            'name': self.user.name if self.user else None,
            'email': self.user.email if self.user else None,
            'branches': [b.to_dict() for b in self.branches]
        }
    
    def __repr__(self):
        return f'<TeacherProfile {self.employee_id}>'

class TeacherSubject(BaseModel):
    """A subject a teacher is assigned to teach for one branch."""
    
    __tablename__ = 'teacher_subjects'
    
    teacher_id = db.Column(db.Integer, db.ForeignKey('teacher_profiles.id'), nullable=False)
    branch_id = db.Column(db.Integer, db.ForeignKey('branches.id'), nullable=False)
    subject_code = db.Column(db.String(20), nullable=False)
    subject_name = db.Column(db.String(255), nullable=False)
    
    def to_dict(self):
        return {
            'branch_id': self.branch_id,
            'subject_code': self.subject_code,
            'subject_name': self.subject_name
        }
