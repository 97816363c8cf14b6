import uuid

import pytest

from gradebook.core.errors import NotFoundError
from gradebook.models.gradebook import SubjectGradeRecord
from gradebook.services.gradebook_service import gradebook_service
from gradebook.services.subject_sync_service import subject_sync_service


def _record_subject_ids(db, gradebook_id):
    return {
        row[0]
        for row in db.query(SubjectGradeRecord.subject_id).filter(
            SubjectGradeRecord.gradebook_id == gradebook_id
        )
    }


def test_sync_adds_and_removes_subjects(db_session, build, school):
    art = build.subject("Art", credits=1.0, weights={"project": 1})

    result = subject_sync_service.sync_subjects(
        db_session, school.class_group.id, [school.math.id, art.id]
    )

    assert (result.added, result.removed) == (1, 1)
    db_session.refresh(school.class_group)
    assert {subject.id for subject in school.class_group.subjects} == {school.math.id, art.id}


def test_sync_creates_records_in_existing_gradebooks(db_session, build, school):
    gradebook = gradebook_service.initialize_gradebook(db_session, school.school_class.id)
    art = build.subject("Art", credits=1.0, weights={"project": 1})

    subject_sync_service.sync_subjects(db_session, school.class_group.id, [school.math.id, art.id])

    # Science keeps its record so already computed grades stay readable.
    assert _record_subject_ids(db_session, gradebook.id) == {
        school.math.id,
        school.science.id,
        art.id,
    }


def test_sync_with_same_subjects_is_a_no_op(db_session, school):
    result = subject_sync_service.sync_subjects(
        db_session, school.class_group.id, [school.science.id, school.math.id, school.math.id]
    )

    assert (result.added, result.removed) == (0, 0)


def test_sync_unknown_subject_changes_nothing(db_session, school):
    with pytest.raises(NotFoundError):
        subject_sync_service.sync_subjects(
            db_session, school.class_group.id, [school.math.id, uuid.uuid4()]
        )

    db_session.refresh(school.class_group)
    assert len(school.class_group.subjects) == 2


def test_sync_unknown_class_group(db_session):
    with pytest.raises(NotFoundError):
        subject_sync_service.sync_subjects(db_session, uuid.uuid4(), [])
