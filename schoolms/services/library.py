"""
Library circulation: issuing and returning books, lost books, and fines.

Fine rules:
- a late return creates an overdue fine of days_overdue * fine_per_day
- a lost book creates a fine of the overdue part plus
  lost_book_fine_multiplier * fine_per_day * default_issue_days
"""
import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, and_
from schoolms.models.library import Book, BookIssue, LibraryFine, LibrarySettings, LibraryMembership
from schoolms.models.people import Student, Teacher
from schoolms.models.enums import (
    BookIssueStatus,
    FineStatus,
    FineReason,
    MemberType,
    MembershipStatus,
    StudentStatus,
)
from schoolms.schemas.library import BookIssueCreate, MembershipCreate
from schoolms.services.activity import record_activity
from schoolms.services.fees import to_money, ZERO
from schoolms.utils.school_time import school_today

logger = logging.getLogger(__name__)


def overdue_days(due_date: date, on_date: date) -> int:
    return max((on_date - due_date).days, 0)


def overdue_fine(days: int, fine_per_day) -> Decimal:
    return to_money(Decimal(days) * to_money(fine_per_day))


def lost_book_fine(days: int, library_settings: LibrarySettings) -> Decimal:
    replacement = (
        to_money(library_settings.lost_book_fine_multiplier)
        * to_money(library_settings.fine_per_day)
        * library_settings.default_issue_days
    )
    return overdue_fine(days, library_settings.fine_per_day) + to_money(replacement)


def apply_fine_payment(fine: LibraryFine, amount, on_date: date) -> LibraryFine:
    if fine.status != FineStatus.PENDING:
        raise ValueError(f"Fine is already {fine.status.value}")
    amount = to_money(amount)
    if amount <= 0:
        raise ValueError("Payment amount must be greater than zero")

    fine.paid_amount = to_money(fine.paid_amount) + amount
    if fine.paid_amount >= to_money(fine.fine_amount):
        fine.status = FineStatus.PAID
        fine.paid_date = on_date
    return fine


async def get_library_settings(db: AsyncSession) -> LibrarySettings:
    """Return the settings row, creating it with defaults on first use."""
    result = await db.execute(select(LibrarySettings).order_by(LibrarySettings.id).limit(1))
    library_settings = result.scalar_one_or_none()
    if library_settings:
        return library_settings

    library_settings = LibrarySettings(
        fine_per_day=Decimal("5"),
        max_books_per_student=3,
        default_issue_days=14,
        lost_book_fine_multiplier=Decimal("2"),
    )
    db.add(library_settings)
    await db.commit()
    await db.refresh(library_settings)
    logger.info("Library settings initialised with defaults")
    return library_settings


async def _get_issue(db: AsyncSession, issue_id: int) -> BookIssue:
    result = await db.execute(select(BookIssue).where(BookIssue.id == issue_id))
    issue = result.scalar_one_or_none()
    if not issue:
        raise ValueError(f"Book issue with ID {issue_id} not found")
    if issue.status != BookIssueStatus.ISSUED:
        raise ValueError(f"Book issue is already {issue.status.value}")
    return issue


async def _get_book(db: AsyncSession, book_id: int) -> Book:
    result = await db.execute(select(Book).where(Book.id == book_id))
    book = result.scalar_one_or_none()
    if not book:
        raise ValueError(f"Book with ID {book_id} not found")
    return book


async def _active_membership(db: AsyncSession, member_type: MemberType, member_id: int) -> Optional[LibraryMembership]:
    result = await db.execute(
        select(LibraryMembership).where(
            and_(
                LibraryMembership.member_type == member_type,
                LibraryMembership.member_id == member_id,
                LibraryMembership.status == MembershipStatus.ACTIVE,
            )
        )
    )
    return result.scalar_one_or_none()


async def open_issue_count(db: AsyncSession, student_id: int) -> int:
    result = await db.execute(
        select(func.count(BookIssue.id)).where(
            and_(BookIssue.student_id == student_id, BookIssue.status == BookIssueStatus.ISSUED)
        )
    )
    return result.scalar()


async def issue_book(db: AsyncSession, data: BookIssueCreate, user_id: int, today: Optional[date] = None) -> BookIssue:
    today = today or school_today()
    library_settings = await get_library_settings(db)

    book = await _get_book(db, data.book_id)
    if not book.is_active:
        raise ValueError("Book is not available for circulation")
    if book.available_copies <= 0:
        raise ValueError(f"No copies of '{book.title}' are available")

    student_result = await db.execute(select(Student).where(Student.id == data.student_id))
    student = student_result.scalar_one_or_none()
    if not student:
        raise ValueError(f"Student with ID {data.student_id} not found")
    if student.status != StudentStatus.ACTIVE:
        raise ValueError("Only active students can borrow books")

    limit = library_settings.max_books_per_student
    membership = await _active_membership(db, MemberType.STUDENT, student.id)
    if membership:
        if membership.is_blocked:
            raise ValueError(f"Library membership is blocked: {membership.block_reason or 'no reason given'}")
        if membership.max_books:
            limit = membership.max_books

    if await open_issue_count(db, student.id) >= limit:
        raise ValueError(f"Student already has the maximum of {limit} book(s) issued")

    issue = BookIssue(
        book_id=book.id,
        student_id=student.id,
        issue_date=today,
        due_date=today + timedelta(days=data.days or library_settings.default_issue_days),
        status=BookIssueStatus.ISSUED,
        remarks=data.remarks,
        issued_by_user_id=user_id,
    )
    book.available_copies -= 1
    db.add(issue)
    await db.flush()
    record_activity(db, user_id, "issue", "book_issue", issue.id, {"book_id": book.id, "student_id": student.id})
    await db.commit()
    await db.refresh(issue)

    logger.info(f"Book {book.id} issued to student {student.id}, due {issue.due_date}")
    return issue


async def return_book(
    db: AsyncSession, issue_id: int, user_id: int, today: Optional[date] = None
) -> tuple[BookIssue, Optional[LibraryFine]]:
    today = today or school_today()
    issue = await _get_issue(db, issue_id)
    book = await _get_book(db, issue.book_id)
    library_settings = await get_library_settings(db)

    issue.status = BookIssueStatus.RETURNED
    issue.return_date = today
    issue.returned_to_user_id = user_id
    book.available_copies = min(book.available_copies + 1, book.total_copies)

    fine = None
    days = overdue_days(issue.due_date, today)
    if days > 0:
        fine = LibraryFine(
            book_issue_id=issue.id,
            student_id=issue.student_id,
            fine_amount=overdue_fine(days, library_settings.fine_per_day),
            fine_reason=FineReason.OVERDUE,
            days_overdue=days,
            paid_amount=ZERO,
            status=FineStatus.PENDING,
        )
        db.add(fine)

    record_activity(db, user_id, "return", "book_issue", issue.id, {"days_overdue": days})
    await db.commit()
    await db.refresh(issue)
    if fine:
        await db.refresh(fine)
        logger.info(f"Overdue fine {fine.fine_amount} created for issue {issue.id} ({days} day(s) late)")

    logger.info(f"Book issue {issue.id} returned")
    return issue, fine


async def mark_book_lost(
    db: AsyncSession, issue_id: int, user_id: int, today: Optional[date] = None
) -> tuple[BookIssue, LibraryFine]:
    today = today or school_today()
    issue = await _get_issue(db, issue_id)
    book = await _get_book(db, issue.book_id)
    library_settings = await get_library_settings(db)

    issue.status = BookIssueStatus.LOST
    issue.returned_to_user_id = user_id
    # The copy is gone: it was already taken out of available copies at issue time
    book.total_copies = max(book.total_copies - 1, 0)
    book.available_copies = min(book.available_copies, book.total_copies)

    days = overdue_days(issue.due_date, today)
    fine = LibraryFine(
        book_issue_id=issue.id,
        student_id=issue.student_id,
        fine_amount=lost_book_fine(days, library_settings),
        fine_reason=FineReason.LOST,
        days_overdue=days,
        paid_amount=ZERO,
        status=FineStatus.PENDING,
    )
    db.add(fine)
    record_activity(db, user_id, "lost", "book_issue", issue.id, {"fine_amount": str(fine.fine_amount)})
    await db.commit()
    await db.refresh(issue)
    await db.refresh(fine)

    logger.info(f"Book issue {issue.id} marked lost, fine {fine.fine_amount}")
    return issue, fine


async def _get_fine(db: AsyncSession, fine_id: int) -> LibraryFine:
    result = await db.execute(select(LibraryFine).where(LibraryFine.id == fine_id))
    fine = result.scalar_one_or_none()
    if not fine:
        raise ValueError(f"Fine with ID {fine_id} not found")
    return fine


async def pay_fine(db: AsyncSession, fine_id: int, amount, user_id: int, today: Optional[date] = None) -> LibraryFine:
    fine = await _get_fine(db, fine_id)
    apply_fine_payment(fine, amount, today or school_today())
    record_activity(db, user_id, "payment", "library_fine", fine.id, {"amount": str(to_money(amount))})
    await db.commit()
    await db.refresh(fine)
    return fine


async def waive_fine(db: AsyncSession, fine_id: int, reason: str, user_id: int) -> LibraryFine:
    fine = await _get_fine(db, fine_id)
    if fine.status != FineStatus.PENDING:
        raise ValueError(f"Fine is already {fine.status.value}")

    fine.status = FineStatus.WAIVED
    fine.waive_reason = reason
    fine.waived_by_user_id = user_id
    record_activity(db, user_id, "waive", "library_fine", fine.id, {"reason": reason})
    await db.commit()
    await db.refresh(fine)

    logger.info(f"Fine {fine.id} waived by user {user_id}")
    return fine


async def create_membership(db: AsyncSession, data: MembershipCreate, user_id: int) -> LibraryMembership:
    member_model = Student if data.member_type == MemberType.STUDENT else Teacher
    member_result = await db.execute(select(member_model).where(member_model.id == data.member_id))
    if not member_result.scalar_one_or_none():
        raise ValueError(f"{data.member_type.value.capitalize()} with ID {data.member_id} not found")

    if await _active_membership(db, data.member_type, data.member_id):
        raise ValueError("Member already has an active library membership")

    start = data.membership_start or school_today()
    count_result = await db.execute(select(func.count(LibraryMembership.id)))
    prefix = "LIB-S" if data.member_type == MemberType.STUDENT else "LIB-T"

    membership = LibraryMembership(
        member_type=data.member_type,
        member_id=data.member_id,
        membership_number=f"{prefix}-{start.year}-{count_result.scalar() + 1:05d}",
        membership_start=start,
        membership_end=data.membership_end,
        max_books=data.max_books,
        status=MembershipStatus.ACTIVE,
        is_blocked=False,
    )
    db.add(membership)
    await db.flush()
    record_activity(db, user_id, "create", "library_membership", membership.id)
    await db.commit()
    await db.refresh(membership)
    return membership
