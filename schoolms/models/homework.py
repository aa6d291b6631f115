from datetime import date, datetime
from decimal import Decimal
from sqlalchemy import String, Date, DateTime, Integer, Numeric, Boolean, Text, Enum as SAEnum, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from schoolms.core.db import Base
from schoolms.models.base import TimestampMixin
from schoolms.models.enums import SubmissionStatus


class Homework(Base, TimestampMixin):
    __tablename__ = "homework"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    class_name: Mapped[str] = mapped_column("class", String(20), nullable=False, index=True)
    section: Mapped[str | None] = mapped_column(String(10), nullable=True)
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    max_marks: Mapped[int] = mapped_column(Integer, default=100, nullable=False)
    allow_late_submission: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_published: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    attachment_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    subject_id: Mapped[int] = mapped_column(ForeignKey("subjects.id", ondelete="CASCADE"), nullable=False)
    teacher_id: Mapped[int | None] = mapped_column(ForeignKey("teachers.id", ondelete="SET NULL"), nullable=True)

    subject: Mapped["Subject"] = relationship("Subject")
    submissions: Mapped[list["HomeworkSubmission"]] = relationship(
        "HomeworkSubmission", back_populates="homework", cascade="all, delete-orphan"
    )


class HomeworkSubmission(Base, TimestampMixin):
    __tablename__ = "homework_submissions"
    __table_args__ = (UniqueConstraint("homework_id", "student_id", name="uq_homework_submissions_homework_student"),)

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    submission_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    submission_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    submitted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    is_late: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    status: Mapped[SubmissionStatus] = mapped_column(
        SAEnum(SubmissionStatus, native_enum=False, length=20), default=SubmissionStatus.SUBMITTED, nullable=False
    )
    marks: Mapped[Decimal | None] = mapped_column(Numeric(6, 2), nullable=True)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)
    graded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    homework_id: Mapped[int] = mapped_column(ForeignKey("homework.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id: Mapped[int] = mapped_column(ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    graded_by_user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    homework: Mapped["Homework"] = relationship("Homework", back_populates="submissions")
    student: Mapped["Student"] = relationship("Student")
