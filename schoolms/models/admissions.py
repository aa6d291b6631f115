from datetime import date, datetime
from sqlalchemy import String, Text, Date, DateTime, Enum as SAEnum, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from schoolms.core.db import Base
from schoolms.models.base import TimestampMixin
from schoolms.models.enums import AdmissionStatus


class Admission(Base, TimestampMixin):
    """An application for a seat, submitted without an account."""
    __tablename__ = "admissions"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    application_number: Mapped[str] = mapped_column(String(30), unique=True, nullable=False, index=True)
    student_name: Mapped[str] = mapped_column(String(255), nullable=False)
    date_of_birth: Mapped[date] = mapped_column(Date, nullable=False)
    gender: Mapped[str] = mapped_column(String(20), nullable=False)
    applying_for_class: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    previous_school: Mapped[str | None] = mapped_column(String(255), nullable=True)

    guardian_name: Mapped[str] = mapped_column(String(255), nullable=False)
    guardian_phone: Mapped[str] = mapped_column(String(20), nullable=False)
    guardian_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    address: Mapped[str] = mapped_column(Text, nullable=False)
    documents_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    status: Mapped[AdmissionStatus] = mapped_column(
        SAEnum(AdmissionStatus, native_enum=False, length=20), default=AdmissionStatus.PENDING, nullable=False, index=True
    )
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    reviewed_by_user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
