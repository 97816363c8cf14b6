import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, String, Table, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gradebook.core.db import Base
from gradebook.models.program import Program
from gradebook.models.subject import Subject

class_group_subjects = Table(
    "class_group_subjects",
    Base.metadata,
    Column(
        "class_group_id",
        Uuid,
        ForeignKey("class_groups.id", name="class_group_subjects_class_group_id_fkey", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "subject_id",
        Uuid,
        ForeignKey("subjects.id", name="class_group_subjects_subject_id_fkey", ondelete="CASCADE"),
        primary_key=True,
    ),
)


class ClassGroup(Base):
    __tablename__ = "class_groups"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    program_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("programs.id", name="class_groups_program_id_fkey", ondelete="RESTRICT"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime | None] = mapped_column(
        DateTime, server_default=text("CURRENT_TIMESTAMP"), nullable=True
    )

    program: Mapped["Program"] = relationship(Program)
    subjects: Mapped[list["Subject"]] = relationship(
        Subject, secondary=class_group_subjects, order_by=Subject.name
    )
    classes: Mapped[list["SchoolClass"]] = relationship("SchoolClass", back_populates="class_group")


class SchoolClass(Base):
    __tablename__ = "classes"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    class_group_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("class_groups.id", name="classes_class_group_id_fkey", ondelete="RESTRICT"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(String(50), default="ACTIVE", nullable=False)
    term_structure_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("term_structures.id", name="classes_term_structure_id_fkey"),
        nullable=True,
    )
    created_at: Mapped[datetime | None] = mapped_column(
        DateTime, server_default=text("CURRENT_TIMESTAMP"), nullable=True
    )

    class_group: Mapped["ClassGroup"] = relationship("ClassGroup", back_populates="classes")
