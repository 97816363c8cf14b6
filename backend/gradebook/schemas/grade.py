import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ActivityGradeUpdate(BaseModel):
    obtained_marks: float = Field(..., ge=0)
    reason: str | None = None


class ActivitySubmissionResponse(BaseModel):
    id: uuid.UUID
    activity_id: uuid.UUID
    student_id: uuid.UUID
    obtained_marks: float | None = None
    total_marks: float | None = None
    status: str
    graded_at: datetime | None = None
    graded_by: str | None = None

    model_config = ConfigDict(from_attributes=True)


class GradeHistoryResponse(BaseModel):
    id: uuid.UUID
    student_id: uuid.UUID
    subject_id: uuid.UUID
    assessment_id: uuid.UUID
    grade_value: float
    old_value: float | None = None
    modified_by: str
    reason: str | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SubjectSyncRequest(BaseModel):
    subject_ids: list[uuid.UUID]


class SubjectSyncResult(BaseModel):
    added: int
    removed: int
