"""Database seeding service for demo data."""
import logging

from qr_attendance import db
from qr_attendance.models.branch import Branch, Subject
from qr_attendance.models.teacher import TeacherSubject
from qr_attendance.models.user import UserRole
from qr_attendance.services.identity_store import IdentityStore

logger = logging.getLogger(__name__)

BRANCHES = [
    ('CSE', 'Computer Science and Engineering', [
        ('CS301', 'Advanced Programming'),
        ('CS302', 'Database Systems'),
        ('CS303', 'Computer Networks'),
    ]),
    ('ECE', 'Electronics and Communication Engineering', [
        ('EC301', 'Signals and Systems'),
        ('EC302', 'Digital Electronics'),
    ]),
]

TEACHERS = [
    ('Dr. Anita Rao', 'anita.rao@university.edu', 'EMP001', 'CSE', ['CS301', 'CS302']),
    ('Dr. Vikram Shah', 'vikram.shah@university.edu', 'EMP002', 'ECE', ['EC301', 'EC302']),
]

DEMO_PASSWORD = 'password123'
STUDENTS_PER_SECTION = 5

class SeedService:
    """Service to seed the database with demo data. Existing rows are left alone."""
    
    @staticmethod
    def seed_all():
        """Seed branches, teachers and students; return how many of each were created."""
        return {
            'branches': SeedService.seed_branches(),
            'teachers': SeedService.seed_teachers(),
            'students': SeedService.seed_students(),
        }
    
    @staticmethod
    def seed_branches() -> int:
        created = 0
        for code, name, subjects in BRANCHES:
            branch = Branch.query.filter_by(code=code).first()
            if branch is None:
                branch = Branch(code=code, name=name)
                db.session.add(branch)
                db.session.flush()
                created += 1
            for subject_code, subject_name in subjects:
                if not branch.subjects.filter_by(code=subject_code).first():
                    db.session.add(Subject(branch_id=branch.id, code=subject_code, name=subject_name))
        
        db.session.commit()
        logger.info("Seeded %s branches", created)
        return created
    
    @staticmethod
    def seed_teachers() -> int:
        created = 0
        for name, email, employee_id, branch_code, subject_codes in TEACHERS:
            if IdentityStore.find_account_by_email(email):
                continue
            branch = Branch.query.filter_by(code=branch_code).first()
            
            user = IdentityStore.create_account(email, DEMO_PASSWORD, name, UserRole.TEACHER,
                                                employee_id=employee_id, department=branch.name)
            profile = user.teacher_profile
            profile.branches.append(branch)
            for subject in branch.subjects.filter(Subject.code.in_(subject_codes)):
                db.session.add(TeacherSubject(teacher_id=profile.id, branch_id=branch.id,
                                              subject_code=subject.code, subject_name=subject.name))
            db.session.commit()
            created += 1
        
        logger.info("Seeded %s teachers", created)
        return created
    
    @staticmethod
    def seed_students() -> int:
        """Semester 3, sections A and B, for every branch."""
        created = 0
        for branch in Branch.query.order_by(Branch.code).all():
            for section in ('A', 'B'):
                for i in range(1, STUDENTS_PER_SECTION + 1):
                    roll_number = f"{branch.code}3{section}{i:02d}"
                    email = f"{roll_number.lower()}@student.university.edu"
                    if IdentityStore.find_account_by_email(email):
                        continue
                    IdentityStore.create_account(
                        email, DEMO_PASSWORD, f"Student {roll_number}", UserRole.STUDENT,
                        roll_number=roll_number, branch_id=branch.id, semester=3, section=section
                    )
                    created += 1
        
        logger.info("Seeded %s students", created)
        return created
