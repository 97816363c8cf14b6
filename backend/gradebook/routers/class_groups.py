import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from gradebook.core.db import get_db
from gradebook.core.deps import get_current_manager
from gradebook.models.user import User
from gradebook.schemas.grade import SubjectSyncRequest, SubjectSyncResult
from gradebook.services.subject_sync_service import subject_sync_service

router = APIRouter(prefix="/class-groups", tags=["class-groups"])


@router.put("/{class_group_id}/subjects", response_model=SubjectSyncResult)
def sync_class_group_subjects(
    class_group_id: uuid.UUID,
    payload: SubjectSyncRequest,
    current_user: User = Depends(get_current_manager),
    db: Session = Depends(get_db),
):
    return subject_sync_service.sync_subjects(db, class_group_id, payload.subject_ids)
