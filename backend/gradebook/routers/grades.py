import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from gradebook.core.db import get_db
from gradebook.core.deps import get_current_staff
from gradebook.models.user import User
from gradebook.schemas.grade import (
    ActivityGradeUpdate,
    ActivitySubmissionResponse,
    GradeHistoryResponse,
)
from gradebook.services.gradebook_service import gradebook_service

router = APIRouter(prefix="/grades", tags=["grades"])


@router.put(
    "/activities/{activity_id}/students/{student_id}",
    response_model=ActivitySubmissionResponse,
)
def update_activity_grade(
    activity_id: uuid.UUID,
    student_id: uuid.UUID,
    payload: ActivityGradeUpdate,
    current_user: User = Depends(get_current_staff),
    db: Session = Depends(get_db),
):
    return gradebook_service.update_activity_grade(
        db,
        activity_id,
        student_id,
        payload.obtained_marks,
        graded_by=str(current_user.id),
        reason=payload.reason,
    )


@router.get("/history", response_model=list[GradeHistoryResponse])
def list_grade_history(
    student_id: uuid.UUID | None = None,
    subject_id: uuid.UUID | None = None,
    limit: int = Query(100, ge=1, le=1000),
    current_user: User = Depends(get_current_staff),
    db: Session = Depends(get_db),
):
    return gradebook_service.list_grade_history(
        db, student_id=student_id, subject_id=subject_id, limit=limit
    )
