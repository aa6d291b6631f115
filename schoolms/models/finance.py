from datetime import date, datetime
from decimal import Decimal
from sqlalchemy import String, Numeric, Date, DateTime, Integer, Boolean, Text, Enum as SAEnum, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from schoolms.core.db import Base
from schoolms.models.base import TimestampMixin, utcnow
from schoolms.models.enums import FeeType, FeeFrequency, PaymentStatus, PaymentMethod, VerificationStatus


class FeeStructure(Base, TimestampMixin):
    __tablename__ = "fee_structures"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    class_name: Mapped[str] = mapped_column("class", String(20), nullable=False, index=True)
    fee_type: Mapped[FeeType] = mapped_column(SAEnum(FeeType, native_enum=False, length=20), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    frequency: Mapped[FeeFrequency] = mapped_column(
        SAEnum(FeeFrequency, native_enum=False, length=20), default=FeeFrequency.MONTHLY, nullable=False
    )
    due_day: Mapped[int | None] = mapped_column(Integer, nullable=True)  # Day of month invoices fall due
    late_fee_percentage: Mapped[Decimal | None] = mapped_column(Numeric(5, 2), nullable=True)
    academic_year: Mapped[str] = mapped_column(String(20), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    created_by_user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)


class StudentFee(Base, TimestampMixin):
    """A fee invoice raised against one student from a fee structure."""
    __tablename__ = "student_fees"
    __table_args__ = (
        UniqueConstraint("student_id", "fee_structure_id", "month_year", name="uq_student_fees_student_structure_month"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    discount: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"), nullable=False)
    discount_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    late_fee: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"), nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    paid_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"), nullable=False)
    balance: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    status: Mapped[PaymentStatus] = mapped_column(
        SAEnum(PaymentStatus, native_enum=False, length=20), default=PaymentStatus.PENDING, nullable=False, index=True
    )
    due_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    month_year: Mapped[str | None] = mapped_column(String(7), nullable=True)  # "YYYY-MM" for monthly invoices
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)

    student_id: Mapped[int] = mapped_column(ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    fee_structure_id: Mapped[int] = mapped_column(ForeignKey("fee_structures.id", ondelete="CASCADE"), nullable=False)

    student: Mapped["Student"] = relationship("Student")
    fee_structure: Mapped["FeeStructure"] = relationship("FeeStructure")
    payments: Mapped[list["FeePayment"]] = relationship("FeePayment", back_populates="student_fee")


class FeePayment(Base):
    __tablename__ = "fee_payments"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    payment_method: Mapped[PaymentMethod] = mapped_column(
        SAEnum(PaymentMethod, native_enum=False, length=20), nullable=False
    )
    receipt_number: Mapped[str | None] = mapped_column(String(50), unique=True, nullable=True, index=True)
    transaction_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    paid_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    student_fee_id: Mapped[int] = mapped_column(ForeignKey("student_fees.id", ondelete="CASCADE"), nullable=False)
    student_id: Mapped[int] = mapped_column(ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    received_by_user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    student_fee: Mapped["StudentFee"] = relationship("StudentFee", back_populates="payments")
    student: Mapped["Student"] = relationship("Student")


class PaymentVerificationRequest(Base, TimestampMixin):
    """Proof of an online payment sent in from the portal, waiting for the accounts office."""
    __tablename__ = "payment_verification_requests"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    gateway: Mapped[PaymentMethod] = mapped_column(SAEnum(PaymentMethod, native_enum=False, length=20), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    transaction_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    screenshot_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[VerificationStatus] = mapped_column(
        SAEnum(VerificationStatus, native_enum=False, length=20),
        default=VerificationStatus.PENDING,
        nullable=False,
        index=True,
    )
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    student_fee_id: Mapped[int] = mapped_column(ForeignKey("student_fees.id", ondelete="CASCADE"), nullable=False)
    student_id: Mapped[int] = mapped_column(ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    submitted_by_user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    reviewed_by_user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    # Set once approved
    fee_payment_id: Mapped[int | None] = mapped_column(ForeignKey("fee_payments.id", ondelete="SET NULL"), nullable=True)


class SchoolExpense(Base, TimestampMixin):
    __tablename__ = "school_expenses"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    category: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    expense_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    paid_to: Mapped[str | None] = mapped_column(String(255), nullable=True)
    payment_method: Mapped[PaymentMethod | None] = mapped_column(
        SAEnum(PaymentMethod, native_enum=False, length=20), nullable=True
    )

    created_by_user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
