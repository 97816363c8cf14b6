import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, UniqueConstraint, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from gradebook.core.db import Base


class Student(Base):
    """Student profile; `id` is the student id used throughout grading."""

    __tablename__ = "students"
    __table_args__ = (
        UniqueConstraint("user_id", name="students_user_id_key"),
        Index("idx_students_class", "class_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", name="students_user_id_fkey"), nullable=True
    )
    class_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("classes.id", name="students_class_id_fkey", ondelete="SET NULL"),
        nullable=True,
    )
    enrollment_date: Mapped[datetime | None] = mapped_column(
        DateTime, server_default=text("CURRENT_TIMESTAMP"), nullable=True
    )
