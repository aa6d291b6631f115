from datetime import date
from decimal import Decimal
from sqlalchemy import String, Date, Integer, Numeric, Boolean, Text, Enum as SAEnum, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from schoolms.core.db import Base
from schoolms.models.base import TimestampMixin
from schoolms.models.enums import ExamType, ResultStatus


class Subject(Base, TimestampMixin):
    __tablename__ = "subjects"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    code: Mapped[str] = mapped_column(String(20), unique=True, nullable=False, index=True)
    full_marks: Mapped[int] = mapped_column(Integer, default=100, nullable=False)
    pass_marks: Mapped[int] = mapped_column(Integer, default=35, nullable=False)
    credit_hours: Mapped[Decimal | None] = mapped_column(Numeric(4, 2), nullable=True)
    display_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_optional: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class Exam(Base, TimestampMixin):
    __tablename__ = "exams"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    exam_type: Mapped[ExamType] = mapped_column(
        SAEnum(ExamType, native_enum=False, length=20), default=ExamType.TERMINAL, nullable=False
    )
    class_name: Mapped[str] = mapped_column("class", String(20), nullable=False, index=True)
    section: Mapped[str | None] = mapped_column(String(10), nullable=True)
    academic_year: Mapped[str] = mapped_column(String(20), nullable=False)
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    is_published: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    created_by_user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    marks: Mapped[list["ExamMark"]] = relationship("ExamMark", back_populates="exam", cascade="all, delete-orphan")
    results: Mapped[list["StudentResult"]] = relationship(
        "StudentResult", back_populates="exam", cascade="all, delete-orphan"
    )


class ExamMark(Base, TimestampMixin):
    __tablename__ = "exam_marks"
    __table_args__ = (UniqueConstraint("exam_id", "student_id", "subject_id", name="uq_exam_marks_exam_student_subject"),)

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    theory_marks: Mapped[Decimal | None] = mapped_column(Numeric(6, 2), nullable=True)
    practical_marks: Mapped[Decimal | None] = mapped_column(Numeric(6, 2), nullable=True)
    total_marks: Mapped[Decimal | None] = mapped_column(Numeric(6, 2), nullable=True)
    grade: Mapped[str | None] = mapped_column(String(5), nullable=True)
    grade_point: Mapped[Decimal | None] = mapped_column(Numeric(3, 1), nullable=True)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)

    exam_id: Mapped[int] = mapped_column(ForeignKey("exams.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id: Mapped[int] = mapped_column(ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    subject_id: Mapped[int] = mapped_column(ForeignKey("subjects.id", ondelete="CASCADE"), nullable=False)
    entered_by_user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    exam: Mapped["Exam"] = relationship("Exam", back_populates="marks")
    student: Mapped["Student"] = relationship("Student")
    subject: Mapped["Subject"] = relationship("Subject")


class StudentResult(Base, TimestampMixin):
    __tablename__ = "student_results"
    __table_args__ = (UniqueConstraint("exam_id", "student_id", name="uq_student_results_exam_student"),)

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    total_marks: Mapped[Decimal] = mapped_column(Numeric(8, 2), nullable=False)
    total_full_marks: Mapped[int] = mapped_column(Integer, nullable=False)
    percentage: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    gpa: Mapped[Decimal] = mapped_column(Numeric(3, 2), nullable=False)
    grade: Mapped[str] = mapped_column(String(5), nullable=False)
    rank: Mapped[int | None] = mapped_column(Integer, nullable=True)
    total_subjects: Mapped[int] = mapped_column(Integer, nullable=False)
    passed_subjects: Mapped[int] = mapped_column(Integer, nullable=False)
    result_status: Mapped[ResultStatus] = mapped_column(
        SAEnum(ResultStatus, native_enum=False, length=10), nullable=False
    )
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)

    exam_id: Mapped[int] = mapped_column(ForeignKey("exams.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id: Mapped[int] = mapped_column(ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)

    exam: Mapped["Exam"] = relationship("Exam", back_populates="results")
    student: Mapped["Student"] = relationship("Student")
