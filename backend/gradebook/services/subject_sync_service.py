import logging
import uuid

from sqlalchemy.orm import Session

from gradebook.core.db import transaction
from gradebook.core.errors import NotFoundError
from gradebook.models.classroom import ClassGroup, SchoolClass
from gradebook.models.gradebook import GradeBook, SubjectGradeRecord
from gradebook.models.subject import Subject
from gradebook.schemas.grade import SubjectSyncResult

logger = logging.getLogger(__name__)


class SubjectSyncService:
    def sync_subjects(
        self, db: Session, class_group_id: uuid.UUID, subject_ids: list[uuid.UUID]
    ) -> SubjectSyncResult:
        """
        Make a class group's subject list match `subject_ids`.

        Newly connected subjects also get a SubjectGradeRecord in every
        existing gradebook of the group's classes. Records of disconnected
        subjects are kept so their computed grades stay readable.
        """
        class_group = db.get(ClassGroup, class_group_id)
        if not class_group:
            raise NotFoundError("Class group", class_group_id)

        wanted = list(dict.fromkeys(subject_ids))
        wanted_ids = set(wanted)
        current_ids = {subject.id for subject in class_group.subjects}

        new_subjects: list[Subject] = []
        for subject_id in wanted:
            if subject_id in current_ids:
                continue
            subject = db.get(Subject, subject_id)
            if not subject:
                raise NotFoundError("Subject", subject_id)
            new_subjects.append(subject)

        removed = [subject for subject in class_group.subjects if subject.id not in wanted_ids]

        with transaction(db):
            for subject in removed:
                class_group.subjects.remove(subject)
            class_group.subjects.extend(new_subjects)

            if new_subjects:
                gradebooks = (
                    db.query(GradeBook)
                    .join(SchoolClass, SchoolClass.id == GradeBook.class_id)
                    .filter(SchoolClass.class_group_id == class_group_id)
                    .all()
                )
                for gradebook in gradebooks:
                    existing = {
                        row[0]
                        for row in db.query(SubjectGradeRecord.subject_id).filter(
                            SubjectGradeRecord.gradebook_id == gradebook.id
                        )
                    }
                    for subject in new_subjects:
                        if subject.id not in existing:
                            db.add(
                                SubjectGradeRecord(gradebook_id=gradebook.id, subject_id=subject.id)
                            )

        logger.info(
            f"Synced subjects for class group {class_group_id}: "
            f"{len(new_subjects)} added, {len(removed)} removed"
        )
        return SubjectSyncResult(added=len(new_subjects), removed=len(removed))


subject_sync_service = SubjectSyncService()
