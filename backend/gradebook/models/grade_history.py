import uuid
from datetime import datetime

from sqlalchemy import DateTime, Float, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from gradebook.core.db import Base


class GradeHistory(Base):
    """Append-only audit row for every grade-affecting write. Never updated or deleted."""

    __tablename__ = "grade_history"
    __table_args__ = (Index("idx_grade_history_student_subject", "student_id", "subject_id"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    student_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    subject_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    # Activity id for grade entry, term id for computed term grades.
    assessment_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    grade_value: Mapped[float] = mapped_column(Float, nullable=False)
    old_value: Mapped[float | None] = mapped_column(Float, nullable=True)
    modified_by: Mapped[str] = mapped_column(String(255), nullable=False)
    reason: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )
