"""
Dashboard aggregations.

Every figure is recomputed from the database on each call; nothing is cached.
Date ranges are interpreted as whole days in the school's timezone.
"""
from datetime import date, timedelta
from typing import Optional
from dateutil.relativedelta import relativedelta
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, and_
from schoolms.models.attendance import Attendance
from schoolms.models.admissions import Admission
from schoolms.models.finance import FeePayment, PaymentVerificationRequest, StudentFee, SchoolExpense
from schoolms.models.library import Book, BookIssue, LibraryFine, LibraryMembership
from schoolms.models.people import Student, Teacher
from schoolms.models.settings import CalendarEvent
from schoolms.models.enums import (
    AdmissionStatus,
    AttendanceStatus,
    BookIssueStatus,
    FineStatus,
    MembershipStatus,
    PaymentStatus,
    StudentStatus,
    TeacherStatus,
    VerificationStatus,
)
from schoolms.schemas.finance import FeePaymentRead
from schoolms.schemas.library import LibraryStats
from schoolms.schemas.report import (
    AccountantOverview,
    AdminDashboardSummary,
    CollectionBreakdownItem,
    CollectionReport,
    MonthlyTrendItem,
    PendingDueItem,
)
from schoolms.services.notices import active_notices
from schoolms.utils.school_time import day_bounds, school_today

UNPAID_STATUSES = [PaymentStatus.PENDING, PaymentStatus.PARTIAL, PaymentStatus.OVERDUE]


async def collection_between(db: AsyncSession, start: date, end: date) -> float:
    lower, upper = day_bounds(start, end)
    result = await db.execute(
        select(func.coalesce(func.sum(FeePayment.amount), 0)).where(
            and_(FeePayment.paid_at >= lower, FeePayment.paid_at < upper)
        )
    )
    return float(result.scalar())


async def expenses_between(db: AsyncSession, start: date, end: date) -> float:
    result = await db.execute(
        select(func.coalesce(func.sum(SchoolExpense.amount), 0)).where(
            and_(SchoolExpense.expense_date >= start, SchoolExpense.expense_date <= end)
        )
    )
    return float(result.scalar())


async def pending_dues_total(db: AsyncSession) -> float:
    result = await db.execute(
        select(func.coalesce(func.sum(StudentFee.balance), 0)).where(StudentFee.status.in_(UNPAID_STATUSES))
    )
    return float(result.scalar())


async def outstanding_fines_total(db: AsyncSession) -> float:
    result = await db.execute(
        select(func.coalesce(func.sum(LibraryFine.fine_amount - LibraryFine.paid_amount), 0)).where(
            LibraryFine.status == FineStatus.PENDING
        )
    )
    return float(result.scalar())


async def accountant_overview(db: AsyncSession, today: Optional[date] = None, recent: int = 10) -> AccountantOverview:
    today = today or school_today()

    recent_result = await db.execute(select(FeePayment).order_by(FeePayment.paid_at.desc()).limit(recent))

    return AccountantOverview(
        today_collection=await collection_between(db, today, today),
        month_collection=await collection_between(db, today.replace(day=1), today),
        year_collection=await collection_between(db, date(today.year, 1, 1), today),
        pending_dues=await pending_dues_total(db),
        outstanding_fines=await outstanding_fines_total(db),
        recent_payments=[FeePaymentRead.model_validate(p) for p in recent_result.scalars().all()],
    )


async def monthly_trend(db: AsyncSession, months: int = 6, today: Optional[date] = None) -> list[MonthlyTrendItem]:
    """Collection against expenses for the last `months` calendar months, oldest first."""
    today = today or school_today()
    first = today.replace(day=1) - relativedelta(months=months - 1)

    items = []
    for offset in range(months):
        start = first + relativedelta(months=offset)
        end = start + relativedelta(months=1) - timedelta(days=1)
        collection = await collection_between(db, start, end)
        expenses = await expenses_between(db, start, end)
        items.append(MonthlyTrendItem(
            month=start.strftime("%Y-%m"),
            label=start.strftime("%b"),
            collection=collection,
            expenses=expenses,
            net=round(collection - expenses, 2),
        ))
    return items


async def collection_report(db: AsyncSession, start: date, end: date) -> CollectionReport:
    lower, upper = day_bounds(start, end)
    result = await db.execute(
        select(
            FeePayment.payment_method,
            func.coalesce(func.sum(FeePayment.amount), 0),
            func.count(FeePayment.id),
        )
        .where(and_(FeePayment.paid_at >= lower, FeePayment.paid_at < upper))
        .group_by(FeePayment.payment_method)
    )
    breakdown = [
        CollectionBreakdownItem(payment_method=method.value, total_amount=float(total), payment_count=count)
        for method, total, count in result.all()
    ]
    breakdown.sort(key=lambda item: item.total_amount, reverse=True)
    return CollectionReport(
        from_date=start,
        to_date=end,
        total_collection=round(sum(item.total_amount for item in breakdown), 2),
        breakdown=breakdown,
    )


async def pending_dues_by_student(db: AsyncSession, class_name: Optional[str] = None) -> list[PendingDueItem]:
    query = (
        select(
            Student.id,
            Student.full_name,
            Student.registration_number,
            Student.class_name,
            func.count(StudentFee.id),
            func.sum(StudentFee.balance),
        )
        .join(StudentFee, StudentFee.student_id == Student.id)
        .where(and_(StudentFee.status.in_(UNPAID_STATUSES), StudentFee.balance > 0))
        .group_by(Student.id, Student.full_name, Student.registration_number, Student.class_name)
    )
    if class_name:
        query = query.where(Student.class_name == class_name)

    result = await db.execute(query)
    items = [
        PendingDueItem(
            student_id=student_id,
            student_name=name,
            registration_number=registration_number,
            class_name=student_class,
            invoice_count=count,
            total_balance=float(balance),
        )
        for student_id, name, registration_number, student_class, count, balance in result.all()
    ]
    items.sort(key=lambda item: item.total_balance, reverse=True)
    return items


async def _count(db: AsyncSession, column, *conditions) -> int:
    query = select(func.count(column))
    if conditions:
        query = query.where(and_(*conditions))
    result = await db.execute(query)
    return result.scalar()


async def admin_summary(db: AsyncSession, today: Optional[date] = None) -> AdminDashboardSummary:
    today = today or school_today()

    attendance_result = await db.execute(
        select(Attendance.status, func.count(Attendance.id))
        .where(Attendance.attendance_date == today)
        .group_by(Attendance.status)
    )
    by_status = dict(attendance_result.all())
    marked = sum(by_status.values())
    attendance_rate = (
        round(by_status.get(AttendanceStatus.PRESENT, 0) / marked * 100, 2) if marked else None
    )

    return AdminDashboardSummary(
        active_students=await _count(db, Student.id, Student.status == StudentStatus.ACTIVE),
        active_teachers=await _count(db, Teacher.id, Teacher.status == TeacherStatus.ACTIVE),
        today_attendance_rate=attendance_rate,
        pending_dues=await pending_dues_total(db),
        books_issued=await _count(db, BookIssue.id, BookIssue.status == BookIssueStatus.ISSUED),
        upcoming_events=await _count(db, CalendarEvent.id, CalendarEvent.event_date >= today),
        published_notices=len(await active_notices(db)),
        pending_admissions=await _count(db, Admission.id, Admission.status == AdmissionStatus.PENDING),
        pending_payment_requests=await _count(
            db, PaymentVerificationRequest.id, PaymentVerificationRequest.status == VerificationStatus.PENDING
        ),
    )


async def library_stats(db: AsyncSession, today: Optional[date] = None) -> LibraryStats:
    today = today or school_today()

    copies_result = await db.execute(
        select(
            func.count(Book.id),
            func.coalesce(func.sum(Book.total_copies), 0),
            func.coalesce(func.sum(Book.available_copies), 0),
        ).where(Book.is_active.is_(True))
    )
    titles, total_copies, available_copies = copies_result.one()

    return LibraryStats(
        total_titles=titles,
        total_copies=total_copies,
        available_copies=available_copies,
        issued_count=await _count(db, BookIssue.id, BookIssue.status == BookIssueStatus.ISSUED),
        overdue_count=await _count(
            db, BookIssue.id, BookIssue.status == BookIssueStatus.ISSUED, BookIssue.due_date < today
        ),
        pending_fines_amount=await outstanding_fines_total(db),
        active_members=await _count(
            db, LibraryMembership.id, LibraryMembership.status == MembershipStatus.ACTIVE
        ),
    )
