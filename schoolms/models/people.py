from datetime import date
from sqlalchemy import String, Date, Integer, Text, Boolean, Enum as SAEnum, ForeignKey, Table, Column, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from schoolms.core.db import Base
from schoolms.models.base import TimestampMixin
from schoolms.models.enums import StudentStatus, TeacherStatus


parent_student_association = Table(
    "parent_students",
    Base.metadata,
    Column("parent_id", ForeignKey("parents.id", ondelete="CASCADE"), primary_key=True),
    Column("student_id", ForeignKey("students.id", ondelete="CASCADE"), primary_key=True),
)


class Student(Base, TimestampMixin):
    __tablename__ = "students"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    registration_number: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)

    # Class is a reserved word in Python, the column keeps the original name
    class_name: Mapped[str] = mapped_column("class", String(20), nullable=False, index=True)
    section: Mapped[str | None] = mapped_column(String(10), nullable=True)
    roll_number: Mapped[int | None] = mapped_column(Integer, nullable=True)

    gender: Mapped[str | None] = mapped_column(String(20), nullable=True)
    date_of_birth: Mapped[date | None] = mapped_column(Date, nullable=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    photo_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    admission_year: Mapped[int | None] = mapped_column(Integer, nullable=True)

    guardian_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    guardian_phone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    guardian_email: Mapped[str | None] = mapped_column(String(255), nullable=True)

    status: Mapped[StudentStatus] = mapped_column(
        SAEnum(StudentStatus, native_enum=False, length=20), default=StudentStatus.ACTIVE, nullable=False, index=True
    )

    user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True, unique=True)

    user: Mapped["User"] = relationship("User")
    parents: Mapped[list["Parent"]] = relationship(
        "Parent", secondary=parent_student_association, back_populates="students"
    )


class Teacher(Base, TimestampMixin):
    __tablename__ = "teachers"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    employee_id: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    department: Mapped[str | None] = mapped_column(String(100), nullable=True)
    subject: Mapped[str | None] = mapped_column(String(100), nullable=True)
    qualification: Mapped[str | None] = mapped_column(String(255), nullable=True)
    joined_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    photo_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    status: Mapped[TeacherStatus] = mapped_column(
        SAEnum(TeacherStatus, native_enum=False, length=20), default=TeacherStatus.ACTIVE, nullable=False
    )

    user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True, unique=True)

    user: Mapped["User"] = relationship("User")


class TeacherAssignment(Base, TimestampMixin):
    """A class, optionally narrowed to one section and one subject, that a teacher takes for a year."""
    __tablename__ = "teacher_assignments"
    __table_args__ = (
        UniqueConstraint(
            "teacher_id", "class", "section", "subject_id", "academic_year", name="uq_teacher_assignments_scope"
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    class_name: Mapped[str] = mapped_column("class", String(20), nullable=False, index=True)
    section: Mapped[str | None] = mapped_column(String(10), nullable=True)
    academic_year: Mapped[str] = mapped_column(String(20), nullable=False)
    is_class_teacher: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    teacher_id: Mapped[int] = mapped_column(ForeignKey("teachers.id", ondelete="CASCADE"), nullable=False, index=True)
    # No subject: the teacher takes every subject of the class
    subject_id: Mapped[int | None] = mapped_column(ForeignKey("subjects.id", ondelete="CASCADE"), nullable=True)


class Parent(Base, TimestampMixin):
    __tablename__ = "parents"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    relationship_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    occupation: Mapped[str | None] = mapped_column(String(100), nullable=True)

    user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True, unique=True)

    user: Mapped["User"] = relationship("User")
    students: Mapped[list["Student"]] = relationship(
        "Student", secondary=parent_student_association, back_populates="parents"
    )
