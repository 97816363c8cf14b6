import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import JSON, DateTime, ForeignKey, Index, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gradebook.core.db import Base


class AssessmentSystemType(str, Enum):
    MARKING_SCHEME = "MARKING_SCHEME"
    RUBRIC = "RUBRIC"
    CGPA = "CGPA"
    HYBRID = "HYBRID"


class Program(Base):
    __tablename__ = "programs"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(String(50), default="ACTIVE", nullable=False)
    created_at: Mapped[datetime | None] = mapped_column(
        DateTime, server_default=text("CURRENT_TIMESTAMP"), nullable=True
    )

    assessment_systems: Mapped[list["AssessmentSystem"]] = relationship(
        "AssessmentSystem", back_populates="program", order_by="AssessmentSystem.created_at"
    )


class AssessmentSystem(Base):
    __tablename__ = "assessment_systems"
    __table_args__ = (Index("idx_assessment_systems_program", "program_id"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    program_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("programs.id", name="assessment_systems_program_id_fkey", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[str] = mapped_column(
        String(50), default=AssessmentSystemType.MARKING_SCHEME.value, nullable=False
    )
    status: Mapped[str] = mapped_column(String(50), default="ACTIVE", nullable=False)
    # {"bands": [{"minPercentage": 90, "gradePoints": 4.0, "letter": "A+"}, ...]}
    cgpa_config: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime | None] = mapped_column(
        DateTime, server_default=text("CURRENT_TIMESTAMP"), nullable=True
    )

    program: Mapped["Program"] = relationship("Program", back_populates="assessment_systems")
