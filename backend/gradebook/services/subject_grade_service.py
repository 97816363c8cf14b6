import uuid
from datetime import datetime

from sqlalchemy.orm import Session

from gradebook.core.db import transaction
from gradebook.core.errors import NotFoundError
from gradebook.models.activity import Activity, ActivitySubmission, SubmissionStatus
from gradebook.models.grade_history import GradeHistory
from gradebook.models.gradebook import GradeBook, SubjectGradeRecord
from gradebook.models.subject import Subject
from gradebook.models.term import AcademicTerm, AssessmentPeriod
from gradebook.schemas.assessment import SubjectAssessmentConfigSchema
from gradebook.schemas.gradebook import (
    AssessmentPeriodGrade,
    PeriodGradeContainer,
    SubjectTermGrade,
    TermGradeContainer,
)
from gradebook.services.assessment_service import assessment_service

SYSTEM_ACTOR = "SYSTEM"


def submission_percentage(submission: ActivitySubmission, activity: Activity) -> float:
    """obtained/total x 100; a submission without positive total marks counts as 0%."""
    total_marks = submission.total_marks
    if total_marks is None:
        total_marks = activity.total_marks
    if not total_marks or total_marks <= 0:
        return 0.0
    return (submission.obtained_marks or 0.0) / total_marks * 100


class SubjectGradeService:
    """Period and term grades for one student in one subject."""

    def _get_graded_submissions(
        self,
        db: Session,
        subject_id: uuid.UUID,
        period_id: uuid.UUID,
        student_id: uuid.UUID,
    ) -> list[tuple[ActivitySubmission, Activity]]:
        return (
            db.query(ActivitySubmission, Activity)
            .join(Activity, ActivitySubmission.activity_id == Activity.id)
            .filter(
                Activity.subject_id == subject_id,
                Activity.assessment_period_id == period_id,
                ActivitySubmission.student_id == student_id,
                ActivitySubmission.status == SubmissionStatus.GRADED.value,
            )
            .order_by(Activity.created_at, Activity.id)
            .all()
        )

    def calculate_assessment_period_grade(
        self,
        db: Session,
        subject_id: uuid.UUID,
        period_id: uuid.UUID,
        student_id: uuid.UUID,
        assessment_system_id: uuid.UUID,
        config: SubjectAssessmentConfigSchema,
    ) -> AssessmentPeriodGrade:
        """
        Weighted average of the student's graded submissions in one period.

        Each submission contributes its percentage times the weight of its
        activity's assessment type. A period without graded submissions (or
        whose weights sum to 0) grades as 0%. `obtained_marks`/`total_marks`
        are the raw weighted sums, kept for audit display.
        """
        period = db.get(AssessmentPeriod, period_id)
        if not period:
            raise NotFoundError("Assessment period", period_id)

        total_weighted_score = 0.0
        total_weight = 0.0
        for submission, activity in self._get_graded_submissions(
            db, subject_id, period_id, student_id
        ):
            weight = assessment_service.weight_of(
                activity.assessment_type, config.weightage_distribution
            )
            total_weighted_score += submission_percentage(submission, activity) * weight
            total_weight += weight

        percentage = total_weighted_score / total_weight if total_weight > 0 else 0.0

        return AssessmentPeriodGrade(
            period_id=period_id,
            obtained_marks=total_weighted_score,
            total_marks=total_weight * 100,
            percentage=percentage,
            weight=period.weight or 0.0,
            is_passing=assessment_service.is_passing(percentage, config),
            grade_points=assessment_service.gpa_for(db, percentage, assessment_system_id),
        )

    def calculate_subject_term_grade(
        self,
        db: Session,
        subject_id: uuid.UUID,
        term_id: uuid.UUID,
        student_id: uuid.UUID,
        assessment_system_id: uuid.UUID,
    ) -> SubjectTermGrade:
        """
        Combine the period grades of a term, weighted by each period's weight.

        Raises MissingConfigurationError when the subject has no assessment
        config. Subjects without credits report `credits=0`.
        """
        subject = db.get(Subject, subject_id)
        if not subject:
            raise NotFoundError("Subject", subject_id)
        if not db.get(AcademicTerm, term_id):
            raise NotFoundError("Academic term", term_id)
        config = assessment_service.get_subject_config(db, subject_id)

        periods = (
            db.query(AssessmentPeriod)
            .filter(AssessmentPeriod.term_id == term_id)
            .order_by(AssessmentPeriod.order, AssessmentPeriod.id)
            .all()
        )

        period_grades: dict[str, AssessmentPeriodGrade] = {}
        weighted_total = 0.0
        weight_sum = 0.0
        for period in periods:
            grade = self.calculate_assessment_period_grade(
                db, subject_id, period.id, student_id, assessment_system_id, config
            )
            period_grades[str(period.id)] = grade
            weighted_total += grade.percentage * grade.weight
            weight_sum += grade.weight

        final_percentage = weighted_total / weight_sum if weight_sum > 0 else 0.0

        return SubjectTermGrade(
            term_id=term_id,
            period_grades=period_grades,
            final_grade=final_percentage,
            total_marks=sum(grade.total_marks for grade in period_grades.values()),
            percentage=final_percentage,
            is_passing=assessment_service.is_passing(final_percentage, config),
            grade_points=assessment_service.gpa_for(db, final_percentage, assessment_system_id),
            credits=subject.credits or 0.0,
        )

    def _lock_record(
        self, db: Session, gradebook_id: uuid.UUID, subject_id: uuid.UUID
    ) -> SubjectGradeRecord:
        record = (
            db.query(SubjectGradeRecord)
            .filter(
                SubjectGradeRecord.gradebook_id == gradebook_id,
                SubjectGradeRecord.subject_id == subject_id,
            )
            .with_for_update()
            .first()
        )
        if record is None:
            raise NotFoundError(f"Subject grade record in grade book {gradebook_id}", subject_id)
        return record

    def _require_gradebook(self, db: Session, gradebook_id: uuid.UUID) -> GradeBook:
        gradebook = db.get(GradeBook, gradebook_id)
        if not gradebook:
            raise NotFoundError("Grade book", gradebook_id)
        return gradebook

    def _require_term(self, db: Session, gradebook: GradeBook, term_id: uuid.UUID) -> AcademicTerm:
        term = db.get(AcademicTerm, term_id)
        if not term or term.term_structure_id != gradebook.term_structure_id:
            raise NotFoundError(f"Academic term of grade book {gradebook.id}", term_id)
        return term

    def check_record_target(
        self, db: Session, gradebook: GradeBook, subject_id: uuid.UUID, term_id: uuid.UUID
    ) -> None:
        """
        Raise if a term grade for this subject and term cannot be stored.

        The subject must have a grade record in the gradebook, the term must
        belong to the gradebook's term structure, and the subject config and
        GPA scale must be usable.
        """
        self._require_term(db, gradebook, term_id)
        exists = (
            db.query(SubjectGradeRecord.id)
            .filter(
                SubjectGradeRecord.gradebook_id == gradebook.id,
                SubjectGradeRecord.subject_id == subject_id,
            )
            .first()
        )
        if not exists:
            raise NotFoundError(f"Subject grade record in grade book {gradebook.id}", subject_id)
        assessment_service.get_subject_config(db, subject_id)
        assessment_service.get_gpa_scale(gradebook.assessment_system)

    def update_subject_grade_record(
        self,
        db: Session,
        gradebook_id: uuid.UUID,
        subject_id: uuid.UUID,
        term_id: uuid.UUID,
        student_id: uuid.UUID,
        modified_by: str = SYSTEM_ACTOR,
    ) -> SubjectTermGrade:
        """
        Recompute a term grade and merge it into the subject's grade record.

        Only subjects that already have a record in the gradebook and terms of
        the gradebook's term structure are accepted; anything else is a
        NotFoundError and nothing is written.
        """
        gradebook = self._require_gradebook(db, gradebook_id)
        self._require_term(db, gradebook, term_id)

        with transaction(db):
            record = self._lock_record(db, gradebook_id, subject_id)
            term_grade = self.calculate_subject_term_grade(
                db, subject_id, term_id, student_id, gradebook.assessment_system_id
            )

            container = TermGradeContainer.from_storage(record.term_grades)
            previous = container.get(term_id, student_id)
            container.put(term_id, student_id, term_grade)
            record.term_grades = container.to_storage()
            record.updated_at = datetime.utcnow()

            db.add(
                GradeHistory(
                    student_id=student_id,
                    subject_id=subject_id,
                    assessment_id=term_id,
                    grade_value=term_grade.final_grade,
                    old_value=previous.final_grade if previous else None,
                    modified_by=modified_by,
                    reason="Term grade calculation",
                )
            )

        return term_grade

    def snapshot_assessment_period_grade(
        self,
        db: Session,
        gradebook_id: uuid.UUID,
        subject_id: uuid.UUID,
        period_id: uuid.UUID,
        student_id: uuid.UUID,
        modified_by: str = SYSTEM_ACTOR,
    ) -> AssessmentPeriodGrade:
        """Store an in-progress period grade before its term closes."""
        gradebook = self._require_gradebook(db, gradebook_id)
        period = db.get(AssessmentPeriod, period_id)
        if not period:
            raise NotFoundError("Assessment period", period_id)
        self._require_term(db, gradebook, period.term_id)
        config = assessment_service.get_subject_config(db, subject_id)

        with transaction(db):
            record = self._lock_record(db, gradebook_id, subject_id)
            period_grade = self.calculate_assessment_period_grade(
                db, subject_id, period_id, student_id, gradebook.assessment_system_id, config
            )

            container = PeriodGradeContainer.from_storage(record.assessment_period_grades)
            previous = container.get(period_id, student_id)
            container.put(period_id, student_id, period_grade)
            record.assessment_period_grades = container.to_storage()
            record.updated_at = datetime.utcnow()

            db.add(
                GradeHistory(
                    student_id=student_id,
                    subject_id=subject_id,
                    assessment_id=period_id,
                    grade_value=period_grade.percentage,
                    old_value=previous.percentage if previous else None,
                    modified_by=modified_by,
                    reason="Assessment period snapshot",
                )
            )

        return period_grade

    def read_term_grade(
        self,
        db: Session,
        gradebook_id: uuid.UUID,
        subject_id: uuid.UUID,
        term_id: uuid.UUID,
        student_id: uuid.UUID,
    ) -> SubjectTermGrade | None:
        record = (
            db.query(SubjectGradeRecord)
            .filter(
                SubjectGradeRecord.gradebook_id == gradebook_id,
                SubjectGradeRecord.subject_id == subject_id,
            )
            .first()
        )
        if record is None:
            return None
        return TermGradeContainer.from_storage(record.term_grades).get(term_id, student_id)


subject_grade_service = SubjectGradeService()
