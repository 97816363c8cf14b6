import uuid
from datetime import datetime

from sqlalchemy import JSON, DateTime, Float, ForeignKey, String, Text, UniqueConstraint, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gradebook.core.db import Base


class Subject(Base):
    __tablename__ = "subjects"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    code: Mapped[str | None] = mapped_column(String(50), nullable=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    credits: Mapped[float | None] = mapped_column(Float, nullable=True)
    created_at: Mapped[datetime | None] = mapped_column(
        DateTime, server_default=text("CURRENT_TIMESTAMP"), nullable=True
    )

    subject_config: Mapped["SubjectAssessmentConfig | None"] = relationship(
        "SubjectAssessmentConfig",
        back_populates="subject",
        uselist=False,
        cascade="all, delete-orphan",
    )


class SubjectAssessmentConfig(Base):
    __tablename__ = "subject_assessment_configs"
    __table_args__ = (
        UniqueConstraint("subject_id", name="subject_assessment_configs_subject_id_key"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    subject_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey(
            "subjects.id", name="subject_assessment_configs_subject_id_fkey", ondelete="CASCADE"
        ),
        nullable=False,
    )
    # {"quiz": 1, "assignment": 2, "project": 3}
    weightage_distribution: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    # {"minPercentage": 50}
    passing_criteria: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime, server_default=text("CURRENT_TIMESTAMP"), nullable=True
    )

    subject: Mapped["Subject"] = relationship("Subject", back_populates="subject_config")
