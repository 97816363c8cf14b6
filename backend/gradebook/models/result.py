import uuid
from datetime import datetime

from sqlalchemy import DateTime, Float, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from gradebook.core.db import Base


class TermResult(Base):
    __tablename__ = "term_results"
    __table_args__ = (
        UniqueConstraint("student_id", "program_term_id", name="term_results_student_term_key"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    student_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("students.id", name="term_results_student_id_fkey", ondelete="CASCADE"),
        nullable=False,
    )
    program_term_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("academic_terms.id", name="term_results_program_term_id_fkey", ondelete="CASCADE"),
        nullable=False,
    )
    gpa: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    total_credits: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    earned_credits: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
