import logging
import time
import uuid
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload, sessionmaker

from gradebook.core.config import settings
from gradebook.core.db import transaction
from gradebook.core.errors import (
    AlreadyExistsError,
    GradeValidationError,
    MissingConfigurationError,
    NotFoundError,
)
from gradebook.models.activity import Activity, ActivitySubmission, SubmissionStatus
from gradebook.models.classroom import ClassGroup, SchoolClass
from gradebook.models.grade_history import GradeHistory
from gradebook.models.gradebook import GradeBook, SubjectGradeRecord
from gradebook.models.program import AssessmentSystem
from gradebook.models.result import TermResult
from gradebook.models.student import Student
from gradebook.models.subject import Subject
from gradebook.models.term import AssessmentPeriod, TermStructure
from gradebook.schemas.gradebook import (
    BatchFailure,
    BatchRecomputeResult,
    CumulativeGrade,
    SubjectTermGrade,
)
from gradebook.services.subject_grade_service import SYSTEM_ACTOR, subject_grade_service

logger = logging.getLogger(__name__)

ACTIVE = "ACTIVE"


class GradeBookService:
    """Gradebook lifecycle, cumulative (term GPA) grades and batch recomputation."""

    def get_gradebook(self, db: Session, class_id: uuid.UUID) -> GradeBook:
        gradebook = self.find_gradebook_for_class(db, class_id)
        if not gradebook:
            raise NotFoundError("Grade book for class", class_id)
        return gradebook

    def find_gradebook_for_class(self, db: Session, class_id: uuid.UUID) -> GradeBook | None:
        return (
            db.query(GradeBook)
            .options(selectinload(GradeBook.subject_records))
            .filter(GradeBook.class_id == class_id)
            .first()
        )

    def _require_gradebook(self, db: Session, gradebook_id: uuid.UUID) -> GradeBook:
        gradebook = db.get(GradeBook, gradebook_id)
        if not gradebook:
            raise NotFoundError("Grade book", gradebook_id)
        return gradebook

    def _class_subjects(self, db: Session, class_id: uuid.UUID) -> list[Subject]:
        school_class = db.get(SchoolClass, class_id)
        if not school_class:
            raise NotFoundError("Class", class_id)
        return list(school_class.class_group.subjects)

    def resolve_assessment_system(self, db: Session, program_id: uuid.UUID) -> AssessmentSystem | None:
        return (
            db.query(AssessmentSystem)
            .filter(AssessmentSystem.program_id == program_id, AssessmentSystem.status == ACTIVE)
            .order_by(AssessmentSystem.created_at, AssessmentSystem.id)
            .first()
        )

    def resolve_term_structure(self, db: Session, program_id: uuid.UUID) -> TermStructure | None:
        return (
            db.query(TermStructure)
            .filter(TermStructure.program_id == program_id, TermStructure.status == ACTIVE)
            .order_by(TermStructure.order, TermStructure.id)
            .first()
        )

    def initialize_gradebook(self, db: Session, class_id: uuid.UUID) -> GradeBook:
        """
        Create the class's gradebook with one SubjectGradeRecord per subject.

        Not idempotent: a second call for the same class raises
        AlreadyExistsError. The unique constraint on `grade_books.class_id`
        backs the existence check when two calls race.
        """
        school_class = (
            db.query(SchoolClass)
            .options(selectinload(SchoolClass.class_group).selectinload(ClassGroup.subjects))
            .filter(SchoolClass.id == class_id)
            .first()
        )
        if not school_class:
            raise NotFoundError("Class", class_id)

        if self.find_gradebook_for_class(db, class_id):
            raise AlreadyExistsError(f"Grade book already exists for class {class_id}")

        program_id = school_class.class_group.program_id
        assessment_system = self.resolve_assessment_system(db, program_id)
        term_structure = self.resolve_term_structure(db, program_id)
        if not assessment_system or not term_structure:
            raise MissingConfigurationError(
                f"Assessment system or term structure not found for program {program_id}"
            )

        try:
            with transaction(db):
                gradebook = GradeBook(
                    class_id=class_id,
                    assessment_system_id=assessment_system.id,
                    term_structure_id=term_structure.id,
                )
                db.add(gradebook)
                db.flush()

                for subject in school_class.class_group.subjects:
                    db.add(
                        SubjectGradeRecord(
                            gradebook_id=gradebook.id,
                            subject_id=subject.id,
                            term_grades=None,
                            assessment_period_grades=None,
                        )
                    )

                school_class.term_structure_id = term_structure.id
                db.add(school_class)
        except IntegrityError as exc:
            if self.find_gradebook_for_class(db, class_id):
                raise AlreadyExistsError(
                    f"Grade book already exists for class {class_id}"
                ) from exc
            raise

        logger.info(
            f"Initialized grade book {gradebook.id} for class {class_id} "
            f"with {len(school_class.class_group.subjects)} subjects"
        )
        return self.get_gradebook(db, class_id)

    def calculate_cumulative_grade(
        self,
        db: Session,
        gradebook_id: uuid.UUID,
        student_id: uuid.UUID,
        term_id: uuid.UUID,
    ) -> CumulativeGrade:
        """
        Term GPA across every subject of the class, persisted as a TermResult.

        gpa = sum(grade_points x credits) / sum(credits), 0 without credits.
        Subjects with zero credits are reported in `zero_credit_subject_ids`.
        """
        gradebook = self._require_gradebook(db, gradebook_id)
        subjects = self._class_subjects(db, gradebook.class_id)

        subject_grades: dict[str, SubjectTermGrade] = {}
        zero_credit_subject_ids: list[uuid.UUID] = []
        total_grade_points = 0.0
        total_credits = 0.0
        earned_credits = 0.0

        for subject in subjects:
            term_grade = subject_grade_service.calculate_subject_term_grade(
                db, subject.id, term_id, student_id, gradebook.assessment_system_id
            )
            subject_grades[str(subject.id)] = term_grade
            if term_grade.credits <= 0:
                zero_credit_subject_ids.append(subject.id)
                logger.warning(
                    f"Subject {subject.id} has no credits; it does not count towards GPA "
                    f"(grade book {gradebook_id}, term {term_id})"
                )
            total_grade_points += term_grade.grade_points * term_grade.credits
            total_credits += term_grade.credits
            if term_grade.is_passing:
                earned_credits += term_grade.credits

        gpa = total_grade_points / total_credits if total_credits > 0 else 0.0

        self.record_term_result(db, student_id, term_id, gpa, total_credits, earned_credits)

        return CumulativeGrade(
            gpa=gpa,
            total_credits=total_credits,
            earned_credits=earned_credits,
            subject_grades=subject_grades,
            zero_credit_subject_ids=zero_credit_subject_ids,
        )

    def _write_term_result(
        self,
        db: Session,
        student_id: uuid.UUID,
        term_id: uuid.UUID,
        gpa: float,
        total_credits: float,
        earned_credits: float,
    ) -> TermResult:
        with transaction(db):
            result = (
                db.query(TermResult)
                .filter(
                    TermResult.student_id == student_id,
                    TermResult.program_term_id == term_id,
                )
                .with_for_update()
                .first()
            )
            if result is None:
                result = TermResult(student_id=student_id, program_term_id=term_id)
                db.add(result)
            result.gpa = gpa
            result.total_credits = total_credits
            result.earned_credits = earned_credits
            result.updated_at = datetime.utcnow()
        return result

    def record_term_result(
        self,
        db: Session,
        student_id: uuid.UUID,
        term_id: uuid.UUID,
        gpa: float,
        total_credits: float,
        earned_credits: float,
    ) -> TermResult:
        """Upsert keyed by (student, term); repeated calls overwrite the same row."""
        try:
            return self._write_term_result(
                db, student_id, term_id, gpa, total_credits, earned_credits
            )
        except IntegrityError:
            # A concurrent writer inserted the row first; the retry updates it.
            return self._write_term_result(
                db, student_id, term_id, gpa, total_credits, earned_credits
            )

    def list_roster(self, db: Session, gradebook_id: uuid.UUID) -> list[uuid.UUID]:
        gradebook = self._require_gradebook(db, gradebook_id)
        rows = (
            db.query(Student.id)
            .filter(Student.class_id == gradebook.class_id)
            .order_by(Student.enrollment_date, Student.id)
            .all()
        )
        return [row[0] for row in rows]

    def _recompute_student(
        self,
        session_factory: sessionmaker,
        gradebook_id: uuid.UUID,
        student_id: uuid.UUID,
        term_id: uuid.UUID,
    ) -> CumulativeGrade:
        with session_factory() as db:
            return self.calculate_cumulative_grade(db, gradebook_id, student_id, term_id)

    def batch_calculate_cumulative_grades(
        self,
        session_factory: sessionmaker,
        gradebook_id: uuid.UUID,
        term_id: uuid.UUID,
        batch_size: int | None = None,
        delay_seconds: float | None = None,
        max_workers: int | None = None,
    ) -> BatchRecomputeResult:
        """
        Recompute the cumulative grade of every student in the gradebook's class.

        Students are processed `batch_size` at a time, with a pause between
        batches. Within a batch at most `max_workers` students run in parallel,
        each with its own session, so the window stays within the connection
        pool. A student whose computation fails is logged and reported in
        `failed`; the rest of the batch and the remaining batches still run.
        """
        if batch_size is None:
            batch_size = settings.GRADEBOOK_BATCH_SIZE
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        if max_workers is None:
            max_workers = settings.GRADEBOOK_MAX_WORKERS
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        if delay_seconds is None:
            delay_seconds = settings.GRADEBOOK_BATCH_DELAY_SECONDS

        with session_factory() as db:
            roster = self.list_roster(db, gradebook_id)

        result = BatchRecomputeResult(
            gradebook_id=gradebook_id,
            term_id=term_id,
            total_students=len(roster),
            batches=0,
        )

        for start in range(0, len(roster), batch_size):
            batch = roster[start : start + batch_size]
            result.batches += 1

            with ThreadPoolExecutor(max_workers=min(len(batch), max_workers)) as executor:
                future_to_student = {
                    executor.submit(
                        self._recompute_student, session_factory, gradebook_id, student_id, term_id
                    ): student_id
                    for student_id in batch
                }
                for future in as_completed(future_to_student):
                    student_id = future_to_student[future]
                    try:
                        future.result()
                    except Exception as exc:  # noqa: BLE001
                        logger.exception(
                            f"Failed to calculate grades for student {student_id} "
                            f"(grade book {gradebook_id}, term {term_id})"
                        )
                        result.failed.append(BatchFailure(student_id=student_id, error=str(exc)))
                    else:
                        result.succeeded.append(student_id)

            logger.info(
                f"Grade book {gradebook_id}: batch {result.batches} done "
                f"({len(result.succeeded)} ok, {len(result.failed)} failed so far)"
            )

            if start + batch_size < len(roster):
                time.sleep(delay_seconds)

        return result

    def update_activity_grade(
        self,
        db: Session,
        activity_id: uuid.UUID,
        student_id: uuid.UUID,
        obtained_marks: float,
        graded_by: str = SYSTEM_ACTOR,
        reason: str | None = None,
    ) -> ActivitySubmission:
        """
        Record a grade for an activity and refresh the student's subject term grade.

        The submission upsert and its GradeHistory row commit together. When
        the class has a gradebook, the term grade refresh is checked before
        anything is written, so a misconfigured subject rejects the grade
        instead of saving it and failing afterwards.
        """
        activity = db.get(Activity, activity_id)
        if not activity:
            raise NotFoundError("Activity", activity_id)
        if not db.get(Student, student_id):
            raise NotFoundError("Student", student_id)
        if obtained_marks < 0:
            raise GradeValidationError("Obtained marks cannot be negative")

        refresh_target = self._term_grade_target(db, activity)
        if refresh_target:
            gradebook, term_id = refresh_target
            subject_grade_service.check_record_target(db, gradebook, activity.subject_id, term_id)

        with transaction(db):
            submission = (
                db.query(ActivitySubmission)
                .filter(
                    ActivitySubmission.activity_id == activity_id,
                    ActivitySubmission.student_id == student_id,
                )
                .with_for_update()
                .first()
            )
            total_marks = activity.total_marks
            if submission is not None and submission.total_marks is not None:
                total_marks = submission.total_marks
            if total_marks is not None and obtained_marks > total_marks:
                raise GradeValidationError(
                    f"Obtained marks {obtained_marks} exceed total marks {total_marks}"
                )

            old_value = submission.obtained_marks if submission else None
            if submission is None:
                submission = ActivitySubmission(activity_id=activity_id, student_id=student_id)
                db.add(submission)
            submission.obtained_marks = obtained_marks
            submission.status = SubmissionStatus.GRADED.value
            submission.graded_at = datetime.utcnow()
            submission.graded_by = graded_by

            db.add(
                GradeHistory(
                    student_id=student_id,
                    subject_id=activity.subject_id,
                    assessment_id=activity_id,
                    grade_value=obtained_marks,
                    old_value=old_value,
                    modified_by=graded_by,
                    reason=reason or "Activity grade update",
                )
            )

        if refresh_target:
            gradebook, term_id = refresh_target
            subject_grade_service.update_subject_grade_record(
                db, gradebook.id, activity.subject_id, term_id, student_id, graded_by
            )
        db.refresh(submission)
        return submission

    def _term_grade_target(
        self, db: Session, activity: Activity
    ) -> tuple[GradeBook, uuid.UUID] | None:
        """The gradebook and term whose stored grade an activity feeds, if any."""
        if not activity.class_id or not activity.assessment_period_id:
            return None
        gradebook = self.find_gradebook_for_class(db, activity.class_id)
        period = db.get(AssessmentPeriod, activity.assessment_period_id)
        if not gradebook or not period:
            return None
        return gradebook, period.term_id

    def list_term_results(
        self, db: Session, gradebook_id: uuid.UUID, term_id: uuid.UUID
    ) -> list[TermResult]:
        gradebook = self._require_gradebook(db, gradebook_id)
        return (
            db.query(TermResult)
            .join(Student, Student.id == TermResult.student_id)
            .filter(Student.class_id == gradebook.class_id, TermResult.program_term_id == term_id)
            .order_by(TermResult.student_id)
            .all()
        )

    def list_grade_history(
        self,
        db: Session,
        student_id: uuid.UUID | None = None,
        subject_id: uuid.UUID | None = None,
        limit: int = 100,
    ) -> list[GradeHistory]:
        query = db.query(GradeHistory)
        if student_id:
            query = query.filter(GradeHistory.student_id == student_id)
        if subject_id:
            query = query.filter(GradeHistory.subject_id == subject_id)
        return query.order_by(GradeHistory.created_at.desc()).limit(limit).all()


gradebook_service = GradeBookService()
