import logging
import sys

# Add current directory to sys.path to resolve 'gradebook' modules
sys.path.append(".")

from gradebook.core.db import SessionLocal
from gradebook.core.security import create_access_token
from gradebook.models.classroom import ClassGroup, SchoolClass
from gradebook.models.program import AssessmentSystem, AssessmentSystemType, Program
from gradebook.models.role import Role
from gradebook.models.student import Student
from gradebook.models.subject import Subject, SubjectAssessmentConfig
from gradebook.models.term import AcademicTerm, AssessmentPeriod, TermStructure
from gradebook.models.user import User

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

ROLE_DEFINITIONS = [
    ("admin", "Full access"),
    ("coordinator", "Manages grade books and class subjects"),
    ("teacher", "Enters and reads grades"),
    ("student", "Student account"),
]

DEMO_SUBJECTS = [
    ("MATH", "Mathematics", 4.0, {"QUIZ": 1, "ASSIGNMENT": 2, "EXAM": 3}),
    ("SCI", "Science", 3.0, {"QUIZ": 1, "PROJECT": 2, "EXAM": 3}),
    ("ART", "Art", 0.0, {"PROJECT": 1}),
]

DEMO_STUDENTS = 5


def _get_or_create_role(db, name: str, description: str) -> Role:
    role = db.query(Role).filter_by(name=name).first()
    if not role:
        role = Role(name=name, description=description)
        db.add(role)
        db.flush()
        logger.info(f"Created Role: {name}")
    return role


def _get_or_create_user(db, email: str, full_name: str, role: Role) -> User:
    user = db.query(User).filter_by(email=email).first()
    if not user:
        user = User(email=email, full_name=full_name, role_id=role.id, is_active=True)
        db.add(user)
        db.flush()
        logger.info(f"Created User: {email}")
    return user


def seed_db():
    db = SessionLocal()
    try:
        logger.info("Seeding database...")

        # 1. Roles and staff users
        roles = {name: _get_or_create_role(db, name, desc) for name, desc in ROLE_DEFINITIONS}
        admin = _get_or_create_user(db, "admin@gradebook.local", "Admin", roles["admin"])
        teacher = _get_or_create_user(db, "teacher@gradebook.local", "Teacher", roles["teacher"])
        db.commit()

        # 2. Demo program with grading configuration
        program = db.query(Program).filter_by(name="Demo Program").first()
        if program:
            logger.info("Demo program already present, skipping academic data")
        else:
            program = Program(name="Demo Program")
            db.add(program)
            db.flush()

            db.add(
                AssessmentSystem(
                    program_id=program.id,
                    name="Four point CGPA",
                    type=AssessmentSystemType.CGPA.value,
                )
            )

            structure = TermStructure(program_id=program.id, name="Two semesters")
            for term_order, term_name in enumerate(["Semester 1", "Semester 2"]):
                term = AcademicTerm(name=term_name, order=term_order)
                term.assessment_periods = [
                    AssessmentPeriod(name="Midterm", order=0, weight=40.0),
                    AssessmentPeriod(name="Final", order=1, weight=60.0),
                ]
                structure.academic_terms.append(term)
            db.add(structure)

            group = ClassGroup(program_id=program.id, name="Grade 9")
            for code, name, credits, weights in DEMO_SUBJECTS:
                subject = Subject(code=code, name=name, credits=credits)
                subject.subject_config = SubjectAssessmentConfig(
                    weightage_distribution=weights,
                    passing_criteria={"minPercentage": 50},
                )
                group.subjects.append(subject)
            db.add(group)
            db.flush()

            school_class = SchoolClass(class_group_id=group.id, name="9A")
            db.add(school_class)
            db.flush()

            for index in range(DEMO_STUDENTS):
                user = _get_or_create_user(
                    db,
                    f"student{index + 1}@gradebook.local",
                    f"Student {index + 1}",
                    roles["student"],
                )
                db.add(Student(user_id=user.id, class_id=school_class.id))

            db.commit()
            logger.info(f"Created demo class 9A ({school_class.id})")

        logger.info(f"Admin token: {create_access_token(admin.id)}")
        logger.info(f"Teacher token: {create_access_token(teacher.id)}")
        logger.info("Seeding complete!")
    except Exception as e:
        logger.error(f"Error seeding database: {e}")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed_db()
