from datetime import date, timedelta
from decimal import Decimal
import pytest
from schoolms.models.enums import BookIssueStatus, FineReason, FineStatus, MemberType
from schoolms.schemas.library import BookIssueCreate, MembershipCreate
from schoolms.services.library import (
    create_membership,
    get_library_settings,
    issue_book,
    lost_book_fine,
    mark_book_lost,
    overdue_days,
    overdue_fine,
    pay_fine,
    return_book,
    waive_fine,
)
from factories import JUNE_1, make_book, make_student


def test_overdue_days_never_negative():
    assert overdue_days(date(2025, 6, 15), date(2025, 6, 10)) == 0
    assert overdue_days(date(2025, 6, 15), date(2025, 6, 15)) == 0
    assert overdue_days(date(2025, 6, 15), date(2025, 6, 18)) == 3


def test_overdue_fine():
    assert overdue_fine(4, Decimal("5")) == Decimal("20.00")
    assert overdue_fine(0, Decimal("5")) == Decimal("0.00")


async def test_settings_created_with_defaults(db):
    library_settings = await get_library_settings(db)
    assert library_settings.fine_per_day == Decimal("5")
    assert library_settings.max_books_per_student == 3
    assert library_settings.default_issue_days == 14
    assert lost_book_fine(0, library_settings) == Decimal("140.00")

    again = await get_library_settings(db)
    assert again.id == library_settings.id


async def test_issue_and_late_return_creates_fine(db, admin):
    book = await make_book(db)
    student = await make_student(db, "REG-001")

    issue = await issue_book(db, BookIssueCreate(book_id=book.id, student_id=student.id), admin.id, today=JUNE_1)
    assert issue.due_date == JUNE_1 + timedelta(days=14)
    await db.refresh(book)
    assert book.available_copies == 1

    issue, fine = await return_book(db, issue.id, admin.id, today=issue.due_date + timedelta(days=5))
    assert issue.status == BookIssueStatus.RETURNED
    assert fine is not None
    assert fine.fine_reason == FineReason.OVERDUE
    assert fine.days_overdue == 5
    assert fine.fine_amount == Decimal("25.00")
    await db.refresh(book)
    assert book.available_copies == 2


async def test_on_time_return_has_no_fine(db, admin):
    book = await make_book(db)
    student = await make_student(db, "REG-001")
    issue = await issue_book(db, BookIssueCreate(book_id=book.id, student_id=student.id, days=7), admin.id, today=JUNE_1)

    issue, fine = await return_book(db, issue.id, admin.id, today=JUNE_1 + timedelta(days=7))
    assert fine is None

    with pytest.raises(ValueError, match="already returned"):
        await return_book(db, issue.id, admin.id, today=JUNE_1 + timedelta(days=8))


async def test_no_copies_left(db, admin):
    book = await make_book(db, copies=1)
    first = await make_student(db, "REG-001")
    second = await make_student(db, "REG-002")

    await issue_book(db, BookIssueCreate(book_id=book.id, student_id=first.id), admin.id, today=JUNE_1)
    with pytest.raises(ValueError, match="No copies"):
        await issue_book(db, BookIssueCreate(book_id=book.id, student_id=second.id), admin.id, today=JUNE_1)


async def test_membership_limit_and_block(db, admin):
    book = await make_book(db, copies=5)
    student = await make_student(db, "REG-001")
    membership = await create_membership(
        db, MembershipCreate(member_type=MemberType.STUDENT, member_id=student.id, max_books=1), admin.id
    )
    assert membership.membership_number.startswith("LIB-S-")

    await issue_book(db, BookIssueCreate(book_id=book.id, student_id=student.id), admin.id, today=JUNE_1)
    with pytest.raises(ValueError, match="maximum of 1"):
        await issue_book(db, BookIssueCreate(book_id=book.id, student_id=student.id), admin.id, today=JUNE_1)

    membership.is_blocked = True
    membership.block_reason = "Unpaid fines"
    await db.commit()
    with pytest.raises(ValueError, match="blocked"):
        await issue_book(db, BookIssueCreate(book_id=book.id, student_id=student.id), admin.id, today=JUNE_1)

    with pytest.raises(ValueError, match="already has an active"):
        await create_membership(db, MembershipCreate(member_id=student.id), admin.id)


async def test_lost_book_reduces_stock_and_fines(db, admin):
    book = await make_book(db, copies=2)
    student = await make_student(db, "REG-001")
    issue = await issue_book(db, BookIssueCreate(book_id=book.id, student_id=student.id), admin.id, today=JUNE_1)

    issue, fine = await mark_book_lost(db, issue.id, admin.id, today=issue.due_date + timedelta(days=2))
    assert issue.status == BookIssueStatus.LOST
    assert fine.fine_reason == FineReason.LOST
    # 2 days overdue at 5/day plus 2 x 5 x 14 replacement charge
    assert fine.fine_amount == Decimal("150.00")

    await db.refresh(book)
    assert book.total_copies == 1
    assert book.available_copies == 1


async def test_fine_payment_and_waiver(db, admin):
    book = await make_book(db)
    student = await make_student(db, "REG-001")
    issue = await issue_book(db, BookIssueCreate(book_id=book.id, student_id=student.id), admin.id, today=JUNE_1)
    _, fine = await return_book(db, issue.id, admin.id, today=issue.due_date + timedelta(days=4))

    fine = await pay_fine(db, fine.id, 10, admin.id, today=date(2025, 7, 1))
    assert fine.status == FineStatus.PENDING
    fine = await pay_fine(db, fine.id, 10, admin.id, today=date(2025, 7, 2))
    assert fine.status == FineStatus.PAID
    assert fine.paid_date == date(2025, 7, 2)

    with pytest.raises(ValueError, match="already paid"):
        await waive_fine(db, fine.id, "Goodwill", admin.id)


async def test_waive_pending_fine(db, admin):
    book = await make_book(db)
    student = await make_student(db, "REG-001")
    issue = await issue_book(db, BookIssueCreate(book_id=book.id, student_id=student.id), admin.id, today=JUNE_1)
    _, fine = await return_book(db, issue.id, admin.id, today=issue.due_date + timedelta(days=1))

    fine = await waive_fine(db, fine.id, "Medical leave", admin.id)
    assert fine.status == FineStatus.WAIVED
    assert fine.waive_reason == "Medical leave"

    with pytest.raises(ValueError):
        await pay_fine(db, fine.id, 5, admin.id)
