from datetime import date
from decimal import Decimal
from sqlalchemy import String, Date, Integer, Numeric, Boolean, Text, Enum as SAEnum, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from schoolms.core.db import Base
from schoolms.models.base import TimestampMixin
from schoolms.models.enums import BookIssueStatus, FineStatus, FineReason, MemberType, MembershipStatus


class Book(Base, TimestampMixin):
    __tablename__ = "books"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    author: Mapped[str] = mapped_column(String(255), nullable=False)
    isbn: Mapped[str | None] = mapped_column(String(20), unique=True, nullable=True)
    category: Mapped[str | None] = mapped_column(String(100), nullable=True)
    publisher: Mapped[str | None] = mapped_column(String(255), nullable=True)
    published_year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    shelf_location: Mapped[str | None] = mapped_column(String(50), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    total_copies: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    available_copies: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class BookIssue(Base, TimestampMixin):
    __tablename__ = "book_issues"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    issue_date: Mapped[date] = mapped_column(Date, nullable=False)
    due_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    return_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    status: Mapped[BookIssueStatus] = mapped_column(
        SAEnum(BookIssueStatus, native_enum=False, length=20), default=BookIssueStatus.ISSUED, nullable=False, index=True
    )
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)

    book_id: Mapped[int] = mapped_column(ForeignKey("books.id", ondelete="CASCADE"), nullable=False)
    student_id: Mapped[int] = mapped_column(ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    issued_by_user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    returned_to_user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    book: Mapped["Book"] = relationship("Book")
    student: Mapped["Student"] = relationship("Student")


class LibraryFine(Base, TimestampMixin):
    __tablename__ = "library_fines"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    fine_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    fine_reason: Mapped[FineReason] = mapped_column(SAEnum(FineReason, native_enum=False, length=20), nullable=False)
    days_overdue: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    paid_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"), nullable=False)
    paid_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    status: Mapped[FineStatus] = mapped_column(
        SAEnum(FineStatus, native_enum=False, length=20), default=FineStatus.PENDING, nullable=False, index=True
    )
    waive_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    book_issue_id: Mapped[int] = mapped_column(ForeignKey("book_issues.id", ondelete="CASCADE"), nullable=False)
    student_id: Mapped[int] = mapped_column(ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    waived_by_user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    book_issue: Mapped["BookIssue"] = relationship("BookIssue")
    student: Mapped["Student"] = relationship("Student")


class LibrarySettings(Base, TimestampMixin):
    __tablename__ = "library_settings"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    fine_per_day: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("5"), nullable=False)
    max_books_per_student: Mapped[int] = mapped_column(Integer, default=3, nullable=False)
    default_issue_days: Mapped[int] = mapped_column(Integer, default=14, nullable=False)
    lost_book_fine_multiplier: Mapped[Decimal] = mapped_column(Numeric(5, 2), default=Decimal("2"), nullable=False)


class LibraryMembership(Base, TimestampMixin):
    __tablename__ = "library_memberships"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    member_type: Mapped[MemberType] = mapped_column(SAEnum(MemberType, native_enum=False, length=20), nullable=False)
    member_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)  # students.id or teachers.id
    membership_number: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    membership_start: Mapped[date] = mapped_column(Date, nullable=False)
    membership_end: Mapped[date | None] = mapped_column(Date, nullable=True)
    max_books: Mapped[int | None] = mapped_column(Integer, nullable=True)  # Overrides the global limit when set
    status: Mapped[MembershipStatus] = mapped_column(
        SAEnum(MembershipStatus, native_enum=False, length=20), default=MembershipStatus.ACTIVE, nullable=False
    )
    is_blocked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    block_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
