"""initial gradebook schema

Revision ID: 0a1f3c5e7b90
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""

from __future__ import annotations

import sqlalchemy as sa

from alembic import op

revision: str = "0a1f3c5e7b90"
down_revision: str | None = None
branch_labels: str | None = None
depends_on: str | None = None


def _id() -> sa.Column:
    return sa.Column("id", sa.Uuid(), nullable=False)


def _created_at(name: str = "created_at") -> sa.Column:
    return sa.Column(
        name,
        sa.DateTime(),
        server_default=sa.text("CURRENT_TIMESTAMP"),
        nullable=True,
    )


def upgrade() -> None:
    op.create_table(
        "roles",
        _id(),
        sa.Column("name", sa.String(length=50), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name", name="roles_name_key"),
    )

    op.create_table(
        "users",
        _id(),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("full_name", sa.String(length=255), nullable=True),
        sa.Column("role_id", sa.Uuid(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(["role_id"], ["roles.id"], name="users_role_id_fkey"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email", name="users_email_key"),
    )
    op.create_index("idx_users_role", "users", ["role_id"])

    op.create_table(
        "programs",
        _id(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("status", sa.String(length=50), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "assessment_systems",
        _id(),
        sa.Column("program_id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("type", sa.String(length=50), nullable=False),
        sa.Column("status", sa.String(length=50), nullable=False),
        sa.Column("cgpa_config", sa.JSON(), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(
            ["program_id"],
            ["programs.id"],
            name="assessment_systems_program_id_fkey",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_assessment_systems_program", "assessment_systems", ["program_id"])

    op.create_table(
        "term_structures",
        _id(),
        sa.Column("program_id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("order", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=50), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(
            ["program_id"],
            ["programs.id"],
            name="term_structures_program_id_fkey",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "academic_terms",
        _id(),
        sa.Column("term_structure_id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("order", sa.Integer(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.ForeignKeyConstraint(
            ["term_structure_id"],
            ["term_structures.id"],
            name="academic_terms_term_structure_id_fkey",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "assessment_periods",
        _id(),
        sa.Column("term_id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("order", sa.Integer(), nullable=False),
        sa.Column("weight", sa.Float(), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.ForeignKeyConstraint(
            ["term_id"],
            ["academic_terms.id"],
            name="assessment_periods_term_id_fkey",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "subjects",
        _id(),
        sa.Column("code", sa.String(length=50), nullable=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("credits", sa.Float(), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "subject_assessment_configs",
        _id(),
        sa.Column("subject_id", sa.Uuid(), nullable=False),
        sa.Column("weightage_distribution", sa.JSON(), nullable=True),
        sa.Column("passing_criteria", sa.JSON(), nullable=True),
        _created_at("updated_at"),
        sa.ForeignKeyConstraint(
            ["subject_id"],
            ["subjects.id"],
            name="subject_assessment_configs_subject_id_fkey",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("subject_id", name="subject_assessment_configs_subject_id_key"),
    )

    op.create_table(
        "class_groups",
        _id(),
        sa.Column("program_id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(
            ["program_id"],
            ["programs.id"],
            name="class_groups_program_id_fkey",
            ondelete="RESTRICT",
        ),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "class_group_subjects",
        sa.Column("class_group_id", sa.Uuid(), nullable=False),
        sa.Column("subject_id", sa.Uuid(), nullable=False),
        sa.ForeignKeyConstraint(
            ["class_group_id"],
            ["class_groups.id"],
            name="class_group_subjects_class_group_id_fkey",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["subject_id"],
            ["subjects.id"],
            name="class_group_subjects_subject_id_fkey",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("class_group_id", "subject_id"),
    )

    op.create_table(
        "classes",
        _id(),
        sa.Column("class_group_id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("status", sa.String(length=50), nullable=False),
        sa.Column("term_structure_id", sa.Uuid(), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(
            ["class_group_id"],
            ["class_groups.id"],
            name="classes_class_group_id_fkey",
            ondelete="RESTRICT",
        ),
        sa.ForeignKeyConstraint(
            ["term_structure_id"],
            ["term_structures.id"],
            name="classes_term_structure_id_fkey",
        ),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "students",
        _id(),
        sa.Column("user_id", sa.Uuid(), nullable=True),
        sa.Column("class_id", sa.Uuid(), nullable=True),
        _created_at("enrollment_date"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="students_user_id_fkey"),
        sa.ForeignKeyConstraint(
            ["class_id"],
            ["classes.id"],
            name="students_class_id_fkey",
            ondelete="SET NULL",
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", name="students_user_id_key"),
    )
    op.create_index("idx_students_class", "students", ["class_id"])

    op.create_table(
        "activities",
        _id(),
        sa.Column("subject_id", sa.Uuid(), nullable=False),
        sa.Column("class_id", sa.Uuid(), nullable=True),
        sa.Column("assessment_period_id", sa.Uuid(), nullable=True),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("assessment_type", sa.String(length=50), nullable=False),
        sa.Column("total_marks", sa.Float(), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(
            ["subject_id"],
            ["subjects.id"],
            name="activities_subject_id_fkey",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["class_id"],
            ["classes.id"],
            name="activities_class_id_fkey",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["assessment_period_id"],
            ["assessment_periods.id"],
            name="activities_assessment_period_id_fkey",
            ondelete="SET NULL",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "idx_activities_subject_period", "activities", ["subject_id", "assessment_period_id"]
    )

    op.create_table(
        "activity_submissions",
        _id(),
        sa.Column("activity_id", sa.Uuid(), nullable=False),
        sa.Column("student_id", sa.Uuid(), nullable=False),
        sa.Column("obtained_marks", sa.Float(), nullable=True),
        sa.Column("total_marks", sa.Float(), nullable=True),
        sa.Column("status", sa.String(length=50), nullable=False),
        sa.Column("graded_at", sa.DateTime(), nullable=True),
        sa.Column("graded_by", sa.String(length=255), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(
            ["activity_id"],
            ["activities.id"],
            name="activity_submissions_activity_id_fkey",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["student_id"],
            ["students.id"],
            name="activity_submissions_student_id_fkey",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "activity_id", "student_id", name="activity_submissions_activity_student_key"
        ),
    )
    op.create_index(
        "idx_activity_submissions_student", "activity_submissions", ["student_id"]
    )

    op.create_table(
        "grade_books",
        _id(),
        sa.Column("class_id", sa.Uuid(), nullable=False),
        sa.Column("assessment_system_id", sa.Uuid(), nullable=False),
        sa.Column("term_structure_id", sa.Uuid(), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(
            ["class_id"],
            ["classes.id"],
            name="grade_books_class_id_fkey",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["assessment_system_id"],
            ["assessment_systems.id"],
            name="grade_books_assessment_system_id_fkey",
        ),
        sa.ForeignKeyConstraint(
            ["term_structure_id"],
            ["term_structures.id"],
            name="grade_books_term_structure_id_fkey",
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("class_id", name="grade_books_class_id_key"),
    )

    op.create_table(
        "subject_grade_records",
        _id(),
        sa.Column("gradebook_id", sa.Uuid(), nullable=False),
        sa.Column("subject_id", sa.Uuid(), nullable=False),
        sa.Column("term_grades", sa.JSON(), nullable=True),
        sa.Column("assessment_period_grades", sa.JSON(), nullable=True),
        _created_at("updated_at"),
        sa.ForeignKeyConstraint(
            ["gradebook_id"],
            ["grade_books.id"],
            name="subject_grade_records_gradebook_id_fkey",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["subject_id"],
            ["subjects.id"],
            name="subject_grade_records_subject_id_fkey",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "gradebook_id", "subject_id", name="subject_grade_records_gradebook_subject_key"
        ),
    )

    op.create_table(
        "term_results",
        _id(),
        sa.Column("student_id", sa.Uuid(), nullable=False),
        sa.Column("program_term_id", sa.Uuid(), nullable=False),
        sa.Column("gpa", sa.Float(), nullable=False),
        sa.Column("total_credits", sa.Float(), nullable=False),
        sa.Column("earned_credits", sa.Float(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(
            ["student_id"],
            ["students.id"],
            name="term_results_student_id_fkey",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["program_term_id"],
            ["academic_terms.id"],
            name="term_results_program_term_id_fkey",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("student_id", "program_term_id", name="term_results_student_term_key"),
    )

    op.create_table(
        "grade_history",
        _id(),
        sa.Column("student_id", sa.Uuid(), nullable=False),
        sa.Column("subject_id", sa.Uuid(), nullable=False),
        sa.Column("assessment_id", sa.Uuid(), nullable=False),
        sa.Column("grade_value", sa.Float(), nullable=False),
        sa.Column("old_value", sa.Float(), nullable=True),
        sa.Column("modified_by", sa.String(length=255), nullable=False),
        sa.Column("reason", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "idx_grade_history_student_subject", "grade_history", ["student_id", "subject_id"]
    )


def downgrade() -> None:
    op.drop_index("idx_grade_history_student_subject", table_name="grade_history")
    op.drop_table("grade_history")
    op.drop_table("term_results")
    op.drop_table("subject_grade_records")
    op.drop_table("grade_books")
    op.drop_index("idx_activity_submissions_student", table_name="activity_submissions")
    op.drop_table("activity_submissions")
    op.drop_index("idx_activities_subject_period", table_name="activities")
    op.drop_table("activities")
    op.drop_index("idx_students_class", table_name="students")
    op.drop_table("students")
    op.drop_table("classes")
    op.drop_table("class_group_subjects")
    op.drop_table("class_groups")
    op.drop_table("subject_assessment_configs")
    op.drop_table("subjects")
    op.drop_table("assessment_periods")
    op.drop_table("academic_terms")
    op.drop_table("term_structures")
    op.drop_index("idx_assessment_systems_program", table_name="assessment_systems")
    op.drop_table("assessment_systems")
    op.drop_table("programs")
    op.drop_index("idx_users_role", table_name="users")
    op.drop_table("users")
    op.drop_table("roles")
