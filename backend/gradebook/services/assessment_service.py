import uuid
from typing import Any

from pydantic import ValidationError
from sqlalchemy.orm import Session

from gradebook.core.config import settings
from gradebook.core.errors import ConfigurationError, MissingConfigurationError, NotFoundError
from gradebook.models.program import AssessmentSystem, AssessmentSystemType
from gradebook.models.subject import Subject
from gradebook.schemas.assessment import GpaBand, GpaScale, SubjectAssessmentConfigSchema

NEUTRAL_WEIGHT = 1.0

# 4.0 scale used when a marking-scheme, rubric or hybrid system has no bands configured.
DEFAULT_FOUR_POINT_SCALE = GpaScale(
    bands=[
        GpaBand(min_percentage=0, grade_points=0.0, letter="F"),
        GpaBand(min_percentage=50, grade_points=1.0, letter="D"),
        GpaBand(min_percentage=60, grade_points=2.0, letter="C"),
        GpaBand(min_percentage=70, grade_points=3.0, letter="B"),
        GpaBand(min_percentage=80, grade_points=3.5, letter="A-"),
        GpaBand(min_percentage=90, grade_points=4.0, letter="A"),
    ]
)

# 10-point scale used by CGPA systems without configured bands.
DEFAULT_TEN_POINT_SCALE = GpaScale(
    bands=[
        GpaBand(min_percentage=0, grade_points=0.0, letter="F"),
        GpaBand(min_percentage=40, grade_points=5.0, letter="E"),
        GpaBand(min_percentage=50, grade_points=6.0, letter="D"),
        GpaBand(min_percentage=60, grade_points=7.0, letter="C"),
        GpaBand(min_percentage=70, grade_points=8.0, letter="B"),
        GpaBand(min_percentage=80, grade_points=9.0, letter="A"),
        GpaBand(min_percentage=90, grade_points=10.0, letter="S"),
    ]
)


def normalize_assessment_type(assessment_type: str | None) -> str:
    return (assessment_type or "").strip().casefold()


def clamp_percentage(percentage: float) -> float:
    return max(0.0, min(100.0, percentage))


class AssessmentService:
    """Grading configuration lookups: per-type weights, passing rules and GPA mapping."""

    def weight_of(
        self, assessment_type: str | None, weightage_distribution: dict[str, Any] | None
    ) -> float:
        """
        Weight of an assessment type in a subject's weight map.

        Keys are matched case-insensitively. Unknown types get the neutral
        weight 1; a type explicitly weighted 0 keeps its 0.
        """
        key = normalize_assessment_type(assessment_type)
        for type_name, weight in (weightage_distribution or {}).items():
            if normalize_assessment_type(type_name) == key:
                try:
                    return float(weight)
                except (TypeError, ValueError):
                    return NEUTRAL_WEIGHT
        return NEUTRAL_WEIGHT

    def is_passing(self, percentage: float, config: SubjectAssessmentConfigSchema) -> bool:
        min_percentage = config.passing_criteria.min_percentage
        if min_percentage is None:
            min_percentage = settings.DEFAULT_PASSING_PERCENTAGE
        return percentage >= min_percentage

    def grade_points_from_scale(self, percentage: float, scale: GpaScale) -> float:
        points = 0.0
        clamped = clamp_percentage(percentage)
        for band in scale.bands:
            if clamped < band.min_percentage:
                break
            points = band.grade_points
        return points

    def get_gpa_scale(self, assessment_system: AssessmentSystem) -> GpaScale:
        config = assessment_system.cgpa_config or {}
        if not config.get("bands"):
            if assessment_system.type == AssessmentSystemType.CGPA.value:
                return DEFAULT_TEN_POINT_SCALE
            return DEFAULT_FOUR_POINT_SCALE
        try:
            return GpaScale.model_validate(config)
        except ValidationError as exc:
            raise ConfigurationError(
                f"Invalid GPA scale for assessment system {assessment_system.id}: {exc}"
            ) from exc

    def gpa_for(self, db: Session, percentage: float, assessment_system_id: uuid.UUID) -> float:
        """Map a 0-100 percentage to grade points on the assessment system's scale."""
        assessment_system = db.get(AssessmentSystem, assessment_system_id)
        if not assessment_system:
            raise NotFoundError("Assessment system", assessment_system_id)
        return self.grade_points_from_scale(percentage, self.get_gpa_scale(assessment_system))

    def get_subject_config(self, db: Session, subject_id: uuid.UUID) -> SubjectAssessmentConfigSchema:
        subject = db.get(Subject, subject_id)
        if not subject:
            raise NotFoundError("Subject", subject_id)
        if not subject.subject_config:
            raise MissingConfigurationError(
                f"Subject configuration not found for subject {subject_id}"
            )
        try:
            return SubjectAssessmentConfigSchema(
                weightage_distribution=subject.subject_config.weightage_distribution,
                passing_criteria=subject.subject_config.passing_criteria,
            )
        except ValidationError as exc:
            raise ConfigurationError(
                f"Invalid assessment configuration for subject {subject_id}: {exc}"
            ) from exc


assessment_service = AssessmentService()
