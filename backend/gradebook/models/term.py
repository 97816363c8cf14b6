import uuid
from datetime import date, datetime

from sqlalchemy import Date, DateTime, Float, ForeignKey, Integer, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gradebook.core.db import Base


class TermStructure(Base):
    __tablename__ = "term_structures"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    program_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("programs.id", name="term_structures_program_id_fkey", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    status: Mapped[str] = mapped_column(String(50), default="ACTIVE", nullable=False)
    created_at: Mapped[datetime | None] = mapped_column(
        DateTime, server_default=text("CURRENT_TIMESTAMP"), nullable=True
    )

    academic_terms: Mapped[list["AcademicTerm"]] = relationship(
        "AcademicTerm",
        back_populates="term_structure",
        cascade="all, delete-orphan",
        order_by="AcademicTerm.order",
    )


class AcademicTerm(Base):
    __tablename__ = "academic_terms"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    term_structure_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey(
            "term_structures.id", name="academic_terms_term_structure_id_fkey", ondelete="CASCADE"
        ),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    term_structure: Mapped["TermStructure"] = relationship(
        "TermStructure", back_populates="academic_terms"
    )
    assessment_periods: Mapped[list["AssessmentPeriod"]] = relationship(
        "AssessmentPeriod",
        back_populates="term",
        cascade="all, delete-orphan",
        order_by="AssessmentPeriod.order",
    )


class AssessmentPeriod(Base):
    __tablename__ = "assessment_periods"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    term_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("academic_terms.id", name="assessment_periods_term_id_fkey", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    # Share of the term grade; periods of one term are expected to sum to 100.
    weight: Mapped[float | None] = mapped_column(Float, nullable=True)
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    term: Mapped["AcademicTerm"] = relationship("AcademicTerm", back_populates="assessment_periods")
