import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import (
    DateTime,
    Float,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gradebook.core.db import Base


class SubmissionStatus(str, Enum):
    PENDING = "PENDING"
    SUBMITTED = "SUBMITTED"
    GRADED = "GRADED"


class Activity(Base):
    __tablename__ = "activities"
    __table_args__ = (
        Index("idx_activities_subject_period", "subject_id", "assessment_period_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    subject_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("subjects.id", name="activities_subject_id_fkey", ondelete="CASCADE"),
        nullable=False,
    )
    class_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("classes.id", name="activities_class_id_fkey", ondelete="CASCADE"),
        nullable=True,
    )
    assessment_period_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey(
            "assessment_periods.id",
            name="activities_assessment_period_id_fkey",
            ondelete="SET NULL",
        ),
        nullable=True,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    # QUIZ, ASSIGNMENT, DISCUSSION, PROJECT, EXAM ... (key into weightage_distribution)
    assessment_type: Mapped[str] = mapped_column(String(50), nullable=False)
    total_marks: Mapped[float | None] = mapped_column(Float, nullable=True)
    created_at: Mapped[datetime | None] = mapped_column(
        DateTime, server_default=text("CURRENT_TIMESTAMP"), nullable=True
    )


class ActivitySubmission(Base):
    __tablename__ = "activity_submissions"
    __table_args__ = (
        UniqueConstraint(
            "activity_id", "student_id", name="activity_submissions_activity_student_key"
        ),
        Index("idx_activity_submissions_student", "student_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    activity_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("activities.id", name="activity_submissions_activity_id_fkey", ondelete="CASCADE"),
        nullable=False,
    )
    student_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("students.id", name="activity_submissions_student_id_fkey", ondelete="CASCADE"),
        nullable=False,
    )
    obtained_marks: Mapped[float | None] = mapped_column(Float, nullable=True)
    # Falls back to Activity.total_marks when unset.
    total_marks: Mapped[float | None] = mapped_column(Float, nullable=True)
    status: Mapped[str] = mapped_column(
        String(50), default=SubmissionStatus.PENDING.value, nullable=False
    )
    graded_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    graded_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime | None] = mapped_column(
        DateTime, server_default=text("CURRENT_TIMESTAMP"), nullable=True
    )

    activity: Mapped["Activity"] = relationship("Activity")
