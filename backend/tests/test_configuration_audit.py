import uuid

import pytest

from gradebook.core.errors import NotFoundError
from gradebook.services.gradebook_service import gradebook_service
from gradebook.services.validation_service import validation_service


def test_configured_school_passes_audit(db_session, school):
    audit = validation_service.audit_class_configuration(db_session, school.school_class.id)

    assert audit.is_valid
    assert audit.zero_credit_subject_ids == []
    assert audit.unbalanced_terms == []


def test_audit_flags_zero_credit_and_unconfigured_subjects(db_session, build, school):
    art = build.subject("Art", credits=None, weights={"project": 1})
    history = build.subject("History", configured=False)
    school.class_group.subjects.extend([art, history])
    db_session.commit()

    audit = validation_service.audit_class_configuration(db_session, school.school_class.id)

    assert not audit.is_valid
    assert audit.zero_credit_subject_ids == [art.id]
    assert audit.unconfigured_subject_ids == [history.id]


def test_audit_flags_unbalanced_period_weights(db_session, school):
    school.periods[1].weight = 30.0
    db_session.commit()

    audit = validation_service.audit_class_configuration(db_session, school.school_class.id)

    assert [issue.term_id for issue in audit.unbalanced_terms] == [school.term.id]
    assert audit.unbalanced_terms[0].weight_sum == pytest.approx(90.0)


def test_audit_reports_invalid_gpa_scale(db_session, school):
    school.assessment_system.cgpa_config = {
        "bands": [
            {"minPercentage": 0, "gradePoints": 4},
            {"minPercentage": 60, "gradePoints": 1},
        ]
    }
    db_session.commit()

    audit = validation_service.audit_class_configuration(db_session, school.school_class.id)

    assert audit.gpa_scale_error
    assert not audit.is_valid


def test_audit_checks_the_gradebook_assessment_system(db_session, build, school):
    gradebook_service.initialize_gradebook(db_session, school.school_class.id)
    school.assessment_system.status = "ARCHIVED"
    school.assessment_system.cgpa_config = {
        "bands": [
            {"minPercentage": 0, "gradePoints": 4},
            {"minPercentage": 60, "gradePoints": 1},
        ]
    }
    db_session.commit()
    build.assessment_system(school.program)

    audit = validation_service.audit_class_configuration(db_session, school.school_class.id)

    assert audit.gpa_scale_error
    assert audit.missing_configuration == []


def test_audit_reports_missing_configuration(db_session, build):
    school = build.school(with_assessment_system=False, with_term_structure=False)

    audit = validation_service.audit_class_configuration(db_session, school.school_class.id)

    assert len(audit.missing_configuration) == 2
    assert not audit.is_valid


def test_audit_unknown_class(db_session):
    with pytest.raises(NotFoundError):
        validation_service.audit_class_configuration(db_session, uuid.uuid4())
