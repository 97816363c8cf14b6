import pytest

from gradebook.core.errors import ConfigurationError, MissingConfigurationError, NotFoundError
from gradebook.models.activity import SubmissionStatus
from gradebook.models.grade_history import GradeHistory
from gradebook.models.gradebook import SubjectGradeRecord
from gradebook.schemas.gradebook import TermGradeContainer
from gradebook.services.assessment_service import assessment_service
from gradebook.services.gradebook_service import gradebook_service
from gradebook.services.subject_grade_service import subject_grade_service


def _period_grade(db, school, subject, period, student):
    config = assessment_service.get_subject_config(db, subject.id)
    return subject_grade_service.calculate_assessment_period_grade(
        db, subject.id, period.id, student.id, school.assessment_system.id, config
    )


def _term_grade(db, school, subject, student, term=None):
    term = term or school.term
    return subject_grade_service.calculate_subject_term_grade(
        db, subject.id, term.id, student.id, school.assessment_system.id
    )


def test_period_grade_is_weighted_by_assessment_type(db_session, build, school):
    student = school.students[0]
    period = school.periods[0]
    build.graded(school.math, period, student, 100, assessment_type="quiz")
    build.graded(school.math, period, student, 60, assessment_type="EXAM")

    grade = _period_grade(db_session, school, school.math, period, student)

    # (100 x 1 + 60 x 3) / 4
    assert grade.percentage == pytest.approx(70.0)
    assert grade.obtained_marks == pytest.approx(280.0)
    assert grade.total_marks == pytest.approx(400.0)
    assert grade.weight == 60.0
    assert grade.is_passing
    assert grade.grade_points == 3.0


def test_unknown_assessment_type_gets_neutral_weight(db_session, build, school):
    student = school.students[0]
    period = school.periods[0]
    build.graded(school.math, period, student, 90, assessment_type="PROJECT")
    build.graded(school.math, period, student, 30, assessment_type="Quiz")

    grade = _period_grade(db_session, school, school.math, period, student)

    assert grade.percentage == pytest.approx(60.0)


def test_zero_total_marks_submission_counts_as_zero_percent(db_session, build, school):
    student = school.students[0]
    period = school.periods[0]
    activity = build.activity(school.math, period, total_marks=0)
    build.submission(activity, student, obtained_marks=0)

    grade = _period_grade(db_session, school, school.math, period, student)

    assert grade.percentage == 0.0
    assert grade.obtained_marks == 0.0
    assert grade.total_marks == 100.0
    assert not grade.is_passing


def test_submission_total_marks_overrides_activity(db_session, build, school):
    student = school.students[0]
    period = school.periods[0]
    activity = build.activity(school.math, period, total_marks=100)
    build.submission(activity, student, obtained_marks=40, total_marks=50)

    grade = _period_grade(db_session, school, school.math, period, student)

    assert grade.percentage == pytest.approx(80.0)


def test_only_graded_submissions_count(db_session, build, school):
    student = school.students[0]
    period = school.periods[0]
    build.graded(school.math, period, student, 80)
    pending = build.activity(school.math, period)
    build.submission(pending, student, obtained_marks=0, status=SubmissionStatus.SUBMITTED)

    grade = _period_grade(db_session, school, school.math, period, student)

    assert grade.percentage == pytest.approx(80.0)


def test_period_without_submissions_grades_as_zero(db_session, school):
    grade = _period_grade(db_session, school, school.math, school.periods[1], school.students[0])

    assert grade.percentage == 0.0
    assert grade.total_marks == 0.0
    assert grade.weight == 40.0


def test_all_zero_type_weights_yield_zero_percent(db_session, build, school):
    subject = build.subject("Music", weights={"quiz": 0, "exam": 0})
    student = school.students[0]
    period = school.periods[0]
    build.graded(subject, period, student, 95, assessment_type="quiz")
    build.graded(subject, period, student, 85, assessment_type="exam")

    grade = _period_grade(db_session, school, subject, period, student)

    assert grade.percentage == 0.0
    assert grade.total_marks == 0.0


def test_term_grade_weights_periods(db_session, build, school):
    student = school.students[0]
    p1, p2 = school.periods
    build.graded(school.math, p1, student, 80, assessment_type="Exam")
    build.graded(school.math, p2, student, 50, assessment_type="Quiz")

    grade = _term_grade(db_session, school, school.math, student)

    # (80 x 60 + 50 x 40) / 100
    assert grade.percentage == pytest.approx(68.0)
    assert grade.final_grade == pytest.approx(68.0)
    assert grade.grade_points == 3.0
    assert grade.is_passing
    assert grade.credits == 4.0
    assert grade.term_id == school.term.id
    assert set(grade.period_grades) == {str(p1.id), str(p2.id)}
    # Audit sum of the period weight totals, independent of the percentage.
    assert grade.total_marks == pytest.approx(300.0 + 100.0)


def test_term_grade_uses_subject_passing_criteria(db_session, build, school):
    student = school.students[0]
    build.graded(school.science, school.periods[0], student, 90, assessment_type="project")

    grade = _term_grade(db_session, school, school.science, student)

    assert grade.percentage == pytest.approx(54.0)
    assert not grade.is_passing
    assert grade.grade_points == 2.0


def test_term_without_period_weights_yields_zero(db_session, build, school):
    structure = build.term_structure(school.program, [[None, 0.0]], order=5)
    term = structure.academic_terms[0]
    student = school.students[0]
    for period in term.assessment_periods:
        build.graded(school.math, period, student, 100)

    grade = _term_grade(db_session, school, school.math, student, term=term)

    assert grade.percentage == 0.0
    assert grade.grade_points == 0.0


def test_term_grade_requires_subject_config(db_session, build, school):
    subject = build.subject("History", configured=False)

    with pytest.raises(MissingConfigurationError):
        _term_grade(db_session, school, subject, school.students[0])


def test_term_grade_reports_zero_credits_for_unset_credits(db_session, build, school):
    subject = build.subject("Art", credits=None, weights={"project": 1})

    grade = _term_grade(db_session, school, subject, school.students[0])

    assert grade.credits == 0.0


def test_update_subject_grade_record_round_trips(db_session, build, school):
    gradebook = gradebook_service.initialize_gradebook(db_session, school.school_class.id)
    student = school.students[0]
    build.graded(school.math, school.periods[0], student, 80, assessment_type="Exam")
    build.graded(school.math, school.periods[1], student, 50)

    computed = subject_grade_service.update_subject_grade_record(
        db_session, gradebook.id, school.math.id, school.term.id, student.id
    )
    stored = subject_grade_service.read_term_grade(
        db_session, gradebook.id, school.math.id, school.term.id, student.id
    )

    assert stored == computed

    record = (
        db_session.query(SubjectGradeRecord)
        .filter_by(gradebook_id=gradebook.id, subject_id=school.math.id)
        .one()
    )
    assert record.term_grades["version"] == 1
    raw = record.term_grades["grades"][str(school.term.id)][str(student.id)]
    assert raw["finalGrade"] == pytest.approx(68.0)
    assert raw["isPassing"] is True
    assert set(raw["periodGrades"]) == {str(p.id) for p in school.periods}


def test_update_subject_grade_record_merges_terms_and_students(db_session, build, school):
    gradebook = gradebook_service.initialize_gradebook(db_session, school.school_class.id)
    first, second = school.students[0], school.students[1]
    build.graded(school.math, school.periods[0], first, 70)
    build.graded(school.math, school.second_term.assessment_periods[0], first, 90)
    build.graded(school.math, school.periods[0], second, 40)

    for term, student in [(school.term, first), (school.second_term, first), (school.term, second)]:
        subject_grade_service.update_subject_grade_record(
            db_session, gradebook.id, school.math.id, term.id, student.id
        )

    record = (
        db_session.query(SubjectGradeRecord)
        .filter_by(gradebook_id=gradebook.id, subject_id=school.math.id)
        .one()
    )
    container = TermGradeContainer.from_storage(record.term_grades)
    assert container.get(school.term.id, first.id).percentage == pytest.approx(42.0)
    assert container.get(school.second_term.id, first.id).percentage == pytest.approx(45.0)
    assert container.get(school.term.id, second.id).percentage == pytest.approx(24.0)


def test_update_subject_grade_record_appends_history(db_session, build, school):
    gradebook = gradebook_service.initialize_gradebook(db_session, school.school_class.id)
    student = school.students[0]
    build.graded(school.math, school.periods[0], student, 50)

    subject_grade_service.update_subject_grade_record(
        db_session, gradebook.id, school.math.id, school.term.id, student.id, modified_by="teacher-1"
    )
    build.graded(school.math, school.periods[1], student, 100)
    subject_grade_service.update_subject_grade_record(
        db_session, gradebook.id, school.math.id, school.term.id, student.id, modified_by="teacher-1"
    )

    history = (
        db_session.query(GradeHistory)
        .filter_by(student_id=student.id, assessment_id=school.term.id)
        .order_by(GradeHistory.created_at)
        .all()
    )
    assert len(history) == 2
    assert history[0].old_value is None
    assert history[0].grade_value == pytest.approx(30.0)
    assert history[1].old_value == pytest.approx(30.0)
    assert history[1].grade_value == pytest.approx(70.0)
    assert {row.modified_by for row in history} == {"teacher-1"}
    assert {row.reason for row in history} == {"Term grade calculation"}


def test_snapshot_assessment_period_grade(db_session, build, school):
    gradebook = gradebook_service.initialize_gradebook(db_session, school.school_class.id)
    student = school.students[0]
    period = school.periods[0]
    build.graded(school.math, period, student, 75)

    snapshot = subject_grade_service.snapshot_assessment_period_grade(
        db_session, gradebook.id, school.math.id, period.id, student.id
    )

    record = (
        db_session.query(SubjectGradeRecord)
        .filter_by(gradebook_id=gradebook.id, subject_id=school.math.id)
        .one()
    )
    stored = record.assessment_period_grades["grades"][str(period.id)][str(student.id)]
    assert stored["percentage"] == pytest.approx(75.0)
    assert snapshot.percentage == pytest.approx(75.0)
    assert record.term_grades is None


def test_update_subject_grade_record_requires_subject_of_the_class(db_session, build, school):
    gradebook = gradebook_service.initialize_gradebook(db_session, school.school_class.id)
    art = build.subject("Art", weights={"project": 1})
    build.graded(art, school.periods[0], school.students[0], 90, assessment_type="project")

    with pytest.raises(NotFoundError):
        subject_grade_service.update_subject_grade_record(
            db_session, gradebook.id, art.id, school.term.id, school.students[0].id
        )

    assert db_session.query(SubjectGradeRecord).filter_by(gradebook_id=gradebook.id).count() == 2
    assert db_session.query(GradeHistory).count() == 0


def test_update_subject_grade_record_requires_term_of_the_gradebook(db_session, build, school):
    gradebook = gradebook_service.initialize_gradebook(db_session, school.school_class.id)
    other_structure = build.term_structure(school.program, [[100.0]], order=1, status="INACTIVE")
    other_term = other_structure.academic_terms[0]

    with pytest.raises(NotFoundError):
        subject_grade_service.update_subject_grade_record(
            db_session, gradebook.id, school.math.id, other_term.id, school.students[0].id
        )

    record = (
        db_session.query(SubjectGradeRecord)
        .filter_by(gradebook_id=gradebook.id, subject_id=school.math.id)
        .one()
    )
    assert record.term_grades is None
    assert db_session.query(GradeHistory).count() == 0


def test_snapshot_requires_period_of_the_gradebook(db_session, build, school):
    gradebook = gradebook_service.initialize_gradebook(db_session, school.school_class.id)
    other_structure = build.term_structure(school.program, [[100.0]], order=1, status="INACTIVE")
    other_period = other_structure.academic_terms[0].assessment_periods[0]

    with pytest.raises(NotFoundError):
        subject_grade_service.snapshot_assessment_period_grade(
            db_session, gradebook.id, school.math.id, other_period.id, school.students[0].id
        )

    assert db_session.query(GradeHistory).count() == 0


def test_unknown_container_version_fails_loudly():
    with pytest.raises(ConfigurationError):
        TermGradeContainer.from_storage({"version": 2, "grades": {}})
