"""Branch master data and its subject catalogue."""
from qr_attendance import db
from qr_attendance.models.base import BaseModel

class Branch(BaseModel):
    """Academic branch (department programme) such as CSE or ECE."""
    
    __tablename__ = 'branches'
    
    code = db.Column(db.String(20), unique=True, nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    
    subjects = db.relationship('Subject', backref='branch', lazy='dynamic',
                               cascade='all, delete-orphan')
    
    def to_dict(self, include_subjects: bool = False):
        data = {
            'id': self.id,
            'code': self.code,
            'name': self.name,
            'is_active': self.is_active
        }
        if include_subjects:
            data['subjects'] = [s.to_dict() for s in self.subjects.order_by(Subject.code)]
        return data
    
    def __repr__(self):
        return f'<Branch {self.code}>'

class Subject(BaseModel):
    """Catalogue entry; lecture sessions copy code and name at creation."""
    
    __tablename__ = 'subjects'
    __table_args__ = (
        db.UniqueConstraint('branch_id', 'code', name='uq_subject_branch_code'),
    )
    
    branch_id = db.Column(db.Integer, db.ForeignKey('branches.id'), nullable=False)
    code = db.Column(db.String(20), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    
    def to_dict(self):
        return {'code': self.code, 'name': self.name}
