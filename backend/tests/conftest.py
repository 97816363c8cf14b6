import os
import tempfile
from pathlib import Path

# Must be set before gradebook.core.config is imported.
_TEST_DB_DIR = Path(tempfile.mkdtemp(prefix="gradebook-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_TEST_DB_DIR / 'gradebook.db'}"
os.environ["ASYNC_QUEUE_ENABLED"] = "false"
os.environ["GRADEBOOK_BATCH_DELAY_SECONDS"] = "0"

import uuid  # noqa: E402
from dataclasses import dataclass  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from gradebook.core.db import Base, SessionLocal, engine  # noqa: E402
from gradebook.core.security import create_access_token  # noqa: E402
from gradebook.main import app  # noqa: E402
from gradebook.models.activity import Activity, ActivitySubmission, SubmissionStatus  # noqa: E402
from gradebook.models.classroom import ClassGroup, SchoolClass  # noqa: E402
from gradebook.models.program import (  # noqa: E402
    AssessmentSystem,
    AssessmentSystemType,
    Program,
)
from gradebook.models.role import Role  # noqa: E402
from gradebook.models.student import Student  # noqa: E402
from gradebook.models.subject import Subject, SubjectAssessmentConfig  # noqa: E402
from gradebook.models.term import AcademicTerm, AssessmentPeriod, TermStructure  # noqa: E402
from gradebook.models.user import User  # noqa: E402

FOUR_POINT_BANDS = [
    {"minPercentage": 0, "gradePoints": 0.0, "letter": "F"},
    {"minPercentage": 50, "gradePoints": 2.0, "letter": "C"},
    {"minPercentage": 65, "gradePoints": 3.0, "letter": "B"},
    {"minPercentage": 80, "gradePoints": 4.0, "letter": "A"},
]


@dataclass
class School:
    """A configured program with one class, two subjects and a roster."""

    program: Program
    assessment_system: AssessmentSystem | None
    term_structure: TermStructure | None
    class_group: ClassGroup
    school_class: SchoolClass
    math: Subject
    science: Subject
    students: list[Student]

    @property
    def term(self) -> AcademicTerm:
        return self.term_structure.academic_terms[0]

    @property
    def second_term(self) -> AcademicTerm:
        return self.term_structure.academic_terms[1]

    @property
    def periods(self) -> list[AssessmentPeriod]:
        return self.term.assessment_periods


class Builder:
    def __init__(self, db: Session):
        self.db = db

    def _save(self, obj):
        self.db.add(obj)
        self.db.commit()
        return obj

    def role(self, name: str) -> Role:
        role = self.db.query(Role).filter_by(name=name).first()
        if not role:
            role = self._save(Role(name=name))
        return role

    def user(self, role_name: str = "admin", is_active: bool = True) -> User:
        role = self.role(role_name)
        return self._save(
            User(
                email=f"{role_name}_{uuid.uuid4().hex[:8]}@example.com",
                full_name=role_name.title(),
                role_id=role.id,
                is_active=is_active,
            )
        )

    def auth_headers(self, role_name: str = "admin") -> dict[str, str]:
        return self.headers_for(self.user(role_name))

    def headers_for(self, user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}

    def program(self, name: str = "Secondary") -> Program:
        return self._save(Program(name=name))

    def assessment_system(
        self,
        program: Program,
        system_type: AssessmentSystemType = AssessmentSystemType.MARKING_SCHEME,
        bands: list[dict] | None = FOUR_POINT_BANDS,
        status: str = "ACTIVE",
    ) -> AssessmentSystem:
        return self._save(
            AssessmentSystem(
                program_id=program.id,
                name=f"{system_type.value.title()} system",
                type=system_type.value,
                status=status,
                cgpa_config={"bands": bands} if bands is not None else None,
            )
        )

    def term_structure(
        self,
        program: Program,
        period_weights: list[list[float | None]],
        order: int = 0,
        status: str = "ACTIVE",
    ) -> TermStructure:
        """One term per entry of `period_weights`, one period per weight."""
        structure = TermStructure(program_id=program.id, name="Year", order=order, status=status)
        for term_order, weights in enumerate(period_weights):
            term = AcademicTerm(name=f"Term {term_order + 1}", order=term_order)
            term.assessment_periods = [
                AssessmentPeriod(name=f"Period {period_order + 1}", order=period_order, weight=weight)
                for period_order, weight in enumerate(weights)
            ]
            structure.academic_terms.append(term)
        return self._save(structure)

    def subject(
        self,
        name: str,
        credits: float | None = 3.0,
        weights: dict[str, float] | None = None,
        min_percentage: float | None = None,
        configured: bool = True,
    ) -> Subject:
        subject = Subject(code=name[:4].upper(), name=name, credits=credits)
        if configured:
            subject.subject_config = SubjectAssessmentConfig(
                weightage_distribution=weights or {},
                passing_criteria=(
                    {"minPercentage": min_percentage} if min_percentage is not None else {}
                ),
            )
        return self._save(subject)

    def class_group(self, program: Program, subjects: list[Subject]) -> ClassGroup:
        group = ClassGroup(program_id=program.id, name="Grade 9")
        group.subjects.extend(subjects)
        return self._save(group)

    def school_class(self, class_group: ClassGroup, name: str = "9A") -> SchoolClass:
        return self._save(SchoolClass(class_group_id=class_group.id, name=name))

    def students(self, school_class: SchoolClass, count: int) -> list[Student]:
        students = [Student(class_id=school_class.id) for _ in range(count)]
        self.db.add_all(students)
        self.db.commit()
        return students

    def activity(
        self,
        subject: Subject,
        period: AssessmentPeriod,
        school_class: SchoolClass | None = None,
        assessment_type: str = "QUIZ",
        total_marks: float | None = 100.0,
    ) -> Activity:
        return self._save(
            Activity(
                subject_id=subject.id,
                class_id=school_class.id if school_class else None,
                assessment_period_id=period.id,
                title=f"{assessment_type.title()} {uuid.uuid4().hex[:6]}",
                assessment_type=assessment_type,
                total_marks=total_marks,
            )
        )

    def submission(
        self,
        activity: Activity,
        student: Student,
        obtained_marks: float | None,
        total_marks: float | None = None,
        status: SubmissionStatus = SubmissionStatus.GRADED,
    ) -> ActivitySubmission:
        return self._save(
            ActivitySubmission(
                activity_id=activity.id,
                student_id=student.id,
                obtained_marks=obtained_marks,
                total_marks=total_marks,
                status=status.value,
            )
        )

    def graded(
        self,
        subject: Subject,
        period: AssessmentPeriod,
        student: Student,
        obtained_marks: float,
        assessment_type: str = "QUIZ",
        total_marks: float = 100.0,
        school_class: SchoolClass | None = None,
    ) -> ActivitySubmission:
        activity = self.activity(subject, period, school_class, assessment_type, total_marks)
        return self.submission(activity, student, obtained_marks)

    def school(
        self,
        student_count: int = 3,
        with_assessment_system: bool = True,
        with_term_structure: bool = True,
    ) -> School:
        """
        Term 1 has periods weighted 60/40, term 2 has 50/50.

        Mathematics: 4 credits, Quiz x1 / Exam x3, passes at 50% (default).
        Science: 3 credits, quiz x1 / project x2, passes at 60%.
        """
        program = self.program()
        assessment_system = self.assessment_system(program) if with_assessment_system else None
        term_structure = (
            self.term_structure(program, [[60.0, 40.0], [50.0, 50.0]])
            if with_term_structure
            else None
        )
        math = self.subject("Mathematics", credits=4.0, weights={"Quiz": 1, "Exam": 3})
        science = self.subject(
            "Science", credits=3.0, weights={"quiz": 1, "project": 2}, min_percentage=60
        )
        class_group = self.class_group(program, [math, science])
        school_class = self.school_class(class_group)
        students = self.students(school_class, student_count)
        return School(
            program=program,
            assessment_system=assessment_system,
            term_structure=term_structure,
            class_group=class_group,
            school_class=school_class,
            math=math,
            science=science,
            students=students,
        )


@pytest.fixture(autouse=True)
def _reset_schema():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db_session(_reset_schema) -> Session:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def build(db_session: Session) -> Builder:
    return Builder(db_session)


@pytest.fixture
def school(build: Builder) -> School:
    return build.school()


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)
