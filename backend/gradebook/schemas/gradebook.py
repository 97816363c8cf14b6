import uuid
from datetime import datetime
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel

from gradebook.core.errors import ConfigurationError

GRADE_CONTAINER_VERSION = 1


class GradeStruct(BaseModel):
    """Computed grade values; serialized with camelCase keys in storage and responses."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AssessmentPeriodGrade(GradeStruct):
    period_id: uuid.UUID
    obtained_marks: float
    total_marks: float
    percentage: float
    weight: float
    is_passing: bool
    grade_points: float | None = None


class SubjectTermGrade(GradeStruct):
    term_id: uuid.UUID
    period_grades: dict[str, AssessmentPeriodGrade] = Field(default_factory=dict)
    final_grade: float
    # Raw sum of period total marks, kept for audit; not derived from percentage.
    total_marks: float
    percentage: float
    is_passing: bool
    grade_points: float
    credits: float


class CumulativeGrade(GradeStruct):
    gpa: float
    total_credits: float
    earned_credits: float
    subject_grades: dict[str, SubjectTermGrade] = Field(default_factory=dict)
    zero_credit_subject_ids: list[uuid.UUID] = Field(default_factory=list)


GradeT = TypeVar("GradeT", bound=GradeStruct)


class GradeContainer(GradeStruct, Generic[GradeT]):
    """
    Storage shape for SubjectGradeRecord JSON columns:

        {"version": 1, "grades": {<term or period id>: {<student id>: <grade>}}}
    """

    version: int = GRADE_CONTAINER_VERSION
    grades: dict[str, dict[str, GradeT]] = Field(default_factory=dict)

    @classmethod
    def from_storage(cls, raw: dict[str, Any] | None):
        if not raw:
            return cls()
        version = raw.get("version")
        if version != GRADE_CONTAINER_VERSION:
            raise ConfigurationError(f"Unsupported grade container version: {version!r}")
        return cls.model_validate(raw)

    def to_storage(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)

    def get(self, key: uuid.UUID, student_id: uuid.UUID) -> GradeT | None:
        return self.grades.get(str(key), {}).get(str(student_id))

    def put(self, key: uuid.UUID, student_id: uuid.UUID, grade: GradeT) -> None:
        self.grades.setdefault(str(key), {})[str(student_id)] = grade


TermGradeContainer = GradeContainer[SubjectTermGrade]
PeriodGradeContainer = GradeContainer[AssessmentPeriodGrade]


class AssessmentSystemResponse(BaseModel):
    id: uuid.UUID
    name: str
    type: str
    cgpa_config: dict | None = None

    model_config = ConfigDict(from_attributes=True)


class SubjectGradeRecordResponse(BaseModel):
    id: uuid.UUID
    subject_id: uuid.UUID
    term_grades: dict | None = None
    assessment_period_grades: dict | None = None

    model_config = ConfigDict(from_attributes=True)


class GradeBookResponse(BaseModel):
    id: uuid.UUID
    class_id: uuid.UUID
    assessment_system_id: uuid.UUID
    term_structure_id: uuid.UUID
    created_at: datetime | None = None
    assessment_system: AssessmentSystemResponse | None = None
    subject_records: list[SubjectGradeRecordResponse] = []

    model_config = ConfigDict(from_attributes=True)


class BatchRecomputeRequest(BaseModel):
    batch_size: int | None = Field(default=None, ge=1, le=500)


class BatchFailure(BaseModel):
    student_id: uuid.UUID
    error: str


class BatchRecomputeResult(BaseModel):
    gradebook_id: uuid.UUID
    term_id: uuid.UUID
    total_students: int
    batches: int
    succeeded: list[uuid.UUID] = []
    failed: list[BatchFailure] = []


class BatchRecomputeQueued(BaseModel):
    job_id: str
    status: str = "queued"


class TermResultResponse(BaseModel):
    id: uuid.UUID
    student_id: uuid.UUID
    program_term_id: uuid.UUID
    gpa: float
    total_credits: float
    earned_credits: float
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class TermWeightIssue(BaseModel):
    term_id: uuid.UUID
    term_name: str
    weight_sum: float


class ConfigurationAudit(BaseModel):
    class_id: uuid.UUID
    zero_credit_subject_ids: list[uuid.UUID] = []
    unconfigured_subject_ids: list[uuid.UUID] = []
    unbalanced_terms: list[TermWeightIssue] = []
    gpa_scale_error: str | None = None
    missing_configuration: list[str] = []

    @computed_field  # type: ignore[misc]
    @property
    def is_valid(self) -> bool:
        return not (
            self.zero_credit_subject_ids
            or self.unconfigured_subject_ids
            or self.unbalanced_terms
            or self.gpa_scale_error
            or self.missing_configuration
        )
