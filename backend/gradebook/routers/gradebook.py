import logging
import uuid

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session, sessionmaker

from gradebook.core.config import settings
from gradebook.core.db import get_db, get_session_factory
from gradebook.core.deps import get_current_manager, get_current_staff
from gradebook.core.queue import enqueue_batch_recompute, is_async_queue_enabled
from gradebook.models.user import User
from gradebook.schemas.gradebook import (
    BatchRecomputeQueued,
    BatchRecomputeRequest,
    BatchRecomputeResult,
    ConfigurationAudit,
    CumulativeGrade,
    GradeBookResponse,
    SubjectTermGrade,
    TermResultResponse,
)
from gradebook.services.gradebook_service import gradebook_service
from gradebook.services.subject_grade_service import subject_grade_service
from gradebook.services.validation_service import validation_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/gradebook", tags=["gradebook"])


@router.post("/{class_id}", response_model=GradeBookResponse, status_code=status.HTTP_201_CREATED)
def initialize_gradebook(
    class_id: uuid.UUID,
    current_user: User = Depends(get_current_manager),
    db: Session = Depends(get_db),
):
    return gradebook_service.initialize_gradebook(db, class_id)


@router.get("/{class_id}", response_model=GradeBookResponse)
def get_gradebook(
    class_id: uuid.UUID,
    current_user: User = Depends(get_current_staff),
    db: Session = Depends(get_db),
):
    return gradebook_service.get_gradebook(db, class_id)


@router.get("/{class_id}/validation", response_model=ConfigurationAudit)
def validate_class_configuration(
    class_id: uuid.UUID,
    current_user: User = Depends(get_current_staff),
    db: Session = Depends(get_db),
):
    return validation_service.audit_class_configuration(db, class_id)


@router.post(
    "/{gradebook_id}/terms/{term_id}/recompute",
    response_model=BatchRecomputeResult | BatchRecomputeQueued,
)
def recompute_term(
    gradebook_id: uuid.UUID,
    term_id: uuid.UUID,
    response: Response,
    payload: BatchRecomputeRequest | None = None,
    current_user: User = Depends(get_current_manager),
    session_factory: sessionmaker = Depends(get_session_factory),
):
    batch_size = (payload.batch_size if payload else None) or settings.GRADEBOOK_BATCH_SIZE

    if is_async_queue_enabled():
        job_id = enqueue_batch_recompute(
            gradebook_id=gradebook_id, term_id=term_id, batch_size=batch_size
        )
        logger.info(f"Queued recompute job {job_id} for grade book {gradebook_id}")
        response.status_code = status.HTTP_202_ACCEPTED
        return BatchRecomputeQueued(job_id=job_id)

    return gradebook_service.batch_calculate_cumulative_grades(
        session_factory, gradebook_id, term_id, batch_size=batch_size
    )


@router.post(
    "/{gradebook_id}/terms/{term_id}/students/{student_id}/cumulative",
    response_model=CumulativeGrade,
)
def calculate_cumulative_grade(
    gradebook_id: uuid.UUID,
    term_id: uuid.UUID,
    student_id: uuid.UUID,
    current_user: User = Depends(get_current_staff),
    db: Session = Depends(get_db),
):
    return gradebook_service.calculate_cumulative_grade(db, gradebook_id, student_id, term_id)


@router.post(
    "/{gradebook_id}/subjects/{subject_id}/terms/{term_id}/students/{student_id}",
    response_model=SubjectTermGrade,
)
def update_subject_term_grade(
    gradebook_id: uuid.UUID,
    subject_id: uuid.UUID,
    term_id: uuid.UUID,
    student_id: uuid.UUID,
    current_user: User = Depends(get_current_staff),
    db: Session = Depends(get_db),
):
    return subject_grade_service.update_subject_grade_record(
        db, gradebook_id, subject_id, term_id, student_id, modified_by=str(current_user.id)
    )


@router.get("/{gradebook_id}/terms/{term_id}/results", response_model=list[TermResultResponse])
def list_term_results(
    gradebook_id: uuid.UUID,
    term_id: uuid.UUID,
    current_user: User = Depends(get_current_staff),
    db: Session = Depends(get_db),
):
    return gradebook_service.list_term_results(db, gradebook_id, term_id)
