import uuid
from datetime import datetime

from sqlalchemy import JSON, DateTime, ForeignKey, UniqueConstraint, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gradebook.core.db import Base
from gradebook.models.program import AssessmentSystem


class GradeBook(Base):
    __tablename__ = "grade_books"
    # One gradebook per class, enforced by the store as well as by the service.
    __table_args__ = (UniqueConstraint("class_id", name="grade_books_class_id_key"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    class_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("classes.id", name="grade_books_class_id_fkey", ondelete="CASCADE"),
        nullable=False,
    )
    assessment_system_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("assessment_systems.id", name="grade_books_assessment_system_id_fkey"),
        nullable=False,
    )
    term_structure_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("term_structures.id", name="grade_books_term_structure_id_fkey"),
        nullable=False,
    )
    created_at: Mapped[datetime | None] = mapped_column(
        DateTime, server_default=text("CURRENT_TIMESTAMP"), nullable=True
    )

    assessment_system: Mapped["AssessmentSystem"] = relationship("AssessmentSystem")
    subject_records: Mapped[list["SubjectGradeRecord"]] = relationship(
        "SubjectGradeRecord",
        back_populates="gradebook",
        cascade="all, delete-orphan",
    )


class SubjectGradeRecord(Base):
    __tablename__ = "subject_grade_records"
    __table_args__ = (
        UniqueConstraint(
            "gradebook_id", "subject_id", name="subject_grade_records_gradebook_subject_key"
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    gradebook_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("grade_books.id", name="subject_grade_records_gradebook_id_fkey", ondelete="CASCADE"),
        nullable=False,
    )
    subject_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("subjects.id", name="subject_grade_records_subject_id_fkey", ondelete="CASCADE"),
        nullable=False,
    )
    # Versioned containers, see gradebook.schemas.gradebook.GradeContainer
    term_grades: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    assessment_period_grades: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime, server_default=text("CURRENT_TIMESTAMP"), nullable=True
    )

    gradebook: Mapped["GradeBook"] = relationship("GradeBook", back_populates="subject_records")
