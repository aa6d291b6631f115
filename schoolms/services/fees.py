"""
Fee invoicing and payment recording.

Invoice arithmetic:
    total_amount = amount - discount + late_fee
    balance      = max(total_amount - paid_amount, 0)

An invoice becomes ``paid`` once its balance reaches zero and ``partial`` while
money is still owed after a payment. Overpayments are accepted and leave the
balance at zero.
"""
import logging
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, and_
from sqlalchemy.orm import selectinload
from schoolms.core.db import AsyncSessionLocal
from schoolms.models.finance import FeeStructure, StudentFee, FeePayment, PaymentVerificationRequest
from schoolms.models.people import Student
from schoolms.models.enums import FeeFrequency, PaymentStatus, StudentStatus, VerificationStatus
from schoolms.schemas.finance import (
    StudentFeeCreate,
    BulkInvoiceCreate,
    FeePaymentCreate,
    FeeJobSummary,
    PaymentRequestCreate,
)
from schoolms.services.activity import record_activity
from schoolms.models.base import utcnow
from schoolms.utils.school_time import school_date, school_today

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")
DEFAULT_DUE_DAY = 10
CLOSED_STATUSES = (PaymentStatus.CANCELLED, PaymentStatus.REFUNDED)

_CENT = Decimal("0.01")


def to_money(value) -> Decimal:
    if value is None:
        return ZERO
    return Decimal(str(value)).quantize(_CENT, rounding=ROUND_HALF_UP)


def invoice_total(amount, discount, late_fee) -> Decimal:
    total = to_money(amount) - to_money(discount) + to_money(late_fee)
    if total < 0:
        raise ValueError("Discount cannot exceed the fee amount")
    return total


def late_fee_for(amount, percentage) -> Decimal:
    if not percentage:
        return ZERO
    return to_money(to_money(amount) * Decimal(str(percentage)) / 100)


def recompute_balance(invoice: StudentFee) -> StudentFee:
    """Refresh total and balance after amount, discount or late fee changed."""
    invoice.total_amount = invoice_total(invoice.amount, invoice.discount, invoice.late_fee)
    paid = to_money(invoice.paid_amount)
    invoice.balance = max(invoice.total_amount - paid, ZERO)

    if invoice.status in CLOSED_STATUSES:
        return invoice
    if invoice.balance == 0:
        invoice.status = PaymentStatus.PAID
    elif paid > 0:
        invoice.status = PaymentStatus.PARTIAL
    elif invoice.status == PaymentStatus.PAID:
        invoice.status = PaymentStatus.PENDING
    return invoice


def apply_payment(invoice: StudentFee, amount) -> StudentFee:
    if invoice.status in CLOSED_STATUSES:
        raise ValueError(f"Cannot record a payment against a {invoice.status.value} invoice")

    amount = to_money(amount)
    if amount <= 0:
        raise ValueError("Payment amount must be greater than zero")

    invoice.paid_amount = to_money(invoice.paid_amount) + amount
    invoice.balance = max(to_money(invoice.total_amount) - invoice.paid_amount, ZERO)
    invoice.status = PaymentStatus.PAID if invoice.balance == 0 else PaymentStatus.PARTIAL
    return invoice


def due_date_for_month(month_year: str, due_day: Optional[int]) -> date:
    year, month = (int(part) for part in month_year.split("-"))
    return date(year, month, due_day or DEFAULT_DUE_DAY)


def _new_invoice(
    student_id: int,
    structure: FeeStructure,
    due_date: date,
    month_year: Optional[str],
    discount=ZERO,
    discount_reason: Optional[str] = None,
    remarks: Optional[str] = None,
) -> StudentFee:
    total = invoice_total(structure.amount, discount, ZERO)
    return StudentFee(
        student_id=student_id,
        fee_structure_id=structure.id,
        amount=to_money(structure.amount),
        discount=to_money(discount),
        discount_reason=discount_reason,
        late_fee=ZERO,
        total_amount=total,
        paid_amount=ZERO,
        balance=total,
        status=PaymentStatus.PAID if total == 0 else PaymentStatus.PENDING,
        due_date=due_date,
        month_year=month_year,
        remarks=remarks,
    )


async def _get_structure(db: AsyncSession, fee_structure_id: int) -> FeeStructure:
    result = await db.execute(select(FeeStructure).where(FeeStructure.id == fee_structure_id))
    structure = result.scalar_one_or_none()
    if not structure:
        raise ValueError(f"Fee structure with ID {fee_structure_id} not found")
    if not structure.is_active:
        raise ValueError("Fee structure is not active")
    return structure


async def _invoiced_student_ids(db: AsyncSession, fee_structure_id: int, month_year: Optional[str]) -> set[int]:
    month_condition = (
        StudentFee.month_year == month_year if month_year is not None else StudentFee.month_year.is_(None)
    )
    result = await db.execute(
        select(StudentFee.student_id).where(
            and_(StudentFee.fee_structure_id == fee_structure_id, month_condition)
        )
    )
    return set(result.scalars().all())


async def create_invoice(db: AsyncSession, data: StudentFeeCreate, user_id: int) -> StudentFee:
    student_result = await db.execute(select(Student).where(Student.id == data.student_id))
    if not student_result.scalar_one_or_none():
        raise ValueError(f"Student with ID {data.student_id} not found")

    structure = await _get_structure(db, data.fee_structure_id)

    if data.student_id in await _invoiced_student_ids(db, structure.id, data.month_year):
        raise ValueError("An invoice for this fee and period already exists for the student")

    invoice = _new_invoice(
        data.student_id,
        structure,
        data.due_date,
        data.month_year,
        discount=data.discount,
        discount_reason=data.discount_reason,
        remarks=data.remarks,
    )
    db.add(invoice)
    await db.flush()
    record_activity(db, user_id, "create", "student_fee", invoice.id, {"total_amount": str(invoice.total_amount)})
    await db.commit()
    await db.refresh(invoice)

    logger.info(f"Invoice {invoice.id} created for student {invoice.student_id}: {invoice.total_amount}")
    return invoice


async def create_bulk_invoices(db: AsyncSession, data: BulkInvoiceCreate, user_id: int) -> list[StudentFee]:
    """Invoice every active student of the structure's class who has no invoice for the period yet."""
    structure = await _get_structure(db, data.fee_structure_id)

    conditions = [Student.class_name == structure.class_name, Student.status == StudentStatus.ACTIVE]
    if data.section:
        conditions.append(Student.section == data.section)
    student_result = await db.execute(select(Student.id).where(and_(*conditions)))
    student_ids = student_result.scalars().all()

    already_invoiced = await _invoiced_student_ids(db, structure.id, data.month_year)
    invoices = [
        _new_invoice(student_id, structure, data.due_date, data.month_year)
        for student_id in student_ids
        if student_id not in already_invoiced
    ]
    db.add_all(invoices)
    record_activity(
        db, user_id, "bulk_create", "student_fee", None,
        {"fee_structure_id": structure.id, "month_year": data.month_year, "count": len(invoices)},
    )
    await db.commit()
    for invoice in invoices:
        await db.refresh(invoice)

    logger.info(f"Bulk invoicing for structure {structure.id}: {len(invoices)} invoice(s) created")
    return invoices


async def _next_receipt_number(db: AsyncSession, paid_at: datetime) -> str:
    """Receipts are numbered per school day: RCP-YYYYMMDD-NNNN."""
    prefix = f"RCP-{school_date(paid_at).strftime('%Y%m%d')}-"
    result = await db.execute(
        select(func.count(FeePayment.id)).where(FeePayment.receipt_number.like(f"{prefix}%"))
    )
    return f"{prefix}{result.scalar() + 1:04d}"


async def record_payment(db: AsyncSession, data: FeePaymentCreate, user_id: int) -> tuple[FeePayment, StudentFee]:
    result = await db.execute(select(StudentFee).where(StudentFee.id == data.student_fee_id))
    invoice = result.scalar_one_or_none()
    if not invoice:
        raise ValueError(f"Invoice with ID {data.student_fee_id} not found")

    apply_payment(invoice, data.amount)

    paid_at = data.paid_at or utcnow()
    payment = FeePayment(
        student_fee_id=invoice.id,
        student_id=invoice.student_id,
        amount=to_money(data.amount),
        payment_method=data.payment_method,
        receipt_number=await _next_receipt_number(db, paid_at),
        transaction_id=data.transaction_id,
        notes=data.notes,
        paid_at=paid_at,
        received_by_user_id=user_id,
    )
    db.add(payment)
    await db.flush()
    record_activity(
        db, user_id, "payment", "student_fee", invoice.id,
        {"amount": str(payment.amount), "receipt_number": payment.receipt_number},
    )
    await db.commit()
    await db.refresh(payment)
    await db.refresh(invoice)

    logger.info(
        f"Payment {payment.receipt_number} of {payment.amount} recorded for invoice {invoice.id}, "
        f"balance now {invoice.balance}"
    )
    return payment, invoice


async def submit_payment_request(
    db: AsyncSession, student: Student, data: PaymentRequestCreate, user_id: int
) -> PaymentVerificationRequest:
    """File proof of an online payment for staff to check before it counts against the invoice."""
    if not (data.transaction_id or data.screenshot_url):
        raise ValueError("Provide a transaction ID or a payment screenshot")

    result = await db.execute(
        select(StudentFee).where(and_(StudentFee.id == data.student_fee_id, StudentFee.student_id == student.id))
    )
    invoice = result.scalar_one_or_none()
    if not invoice:
        raise ValueError(f"Invoice with ID {data.student_fee_id} not found")
    if invoice.status in CLOSED_STATUSES or invoice.status == PaymentStatus.PAID:
        raise ValueError(f"Invoice is already {invoice.status.value}")

    request = PaymentVerificationRequest(
        student_fee_id=invoice.id,
        student_id=student.id,
        gateway=data.gateway,
        amount=to_money(data.amount),
        transaction_id=data.transaction_id,
        screenshot_url=data.screenshot_url,
        remarks=data.remarks,
        status=VerificationStatus.PENDING,
        submitted_by_user_id=user_id,
    )
    db.add(request)
    await db.flush()
    record_activity(
        db, user_id, "submit", "payment_request", request.id,
        {"student_fee_id": invoice.id, "amount": str(request.amount)},
    )
    await db.commit()
    await db.refresh(request)

    logger.info(f"Payment request {request.id} submitted for invoice {invoice.id}: {request.amount}")
    return request


def _ensure_pending(request: PaymentVerificationRequest):
    if request.status != VerificationStatus.PENDING:
        raise ValueError(f"Payment request is already {request.status.value}")


async def approve_payment_request(
    db: AsyncSession, request: PaymentVerificationRequest, user_id: int
) -> tuple[PaymentVerificationRequest, FeePayment, StudentFee]:
    """Accept the claim and record it as a regular payment with its own receipt."""
    _ensure_pending(request)
    request.status = VerificationStatus.APPROVED
    request.reviewed_by_user_id = user_id
    request.reviewed_at = utcnow()

    payment, invoice = await record_payment(
        db,
        FeePaymentCreate(
            student_fee_id=request.student_fee_id,
            amount=float(request.amount),
            payment_method=request.gateway,
            transaction_id=request.transaction_id,
            notes=f"Verified payment request #{request.id}",
        ),
        user_id,
    )

    request.fee_payment_id = payment.id
    record_activity(db, user_id, "approve", "payment_request", request.id, {"receipt_number": payment.receipt_number})
    await db.commit()
    await db.refresh(request)

    logger.info(f"Payment request {request.id} approved as {payment.receipt_number}")
    return request, payment, invoice


async def reject_payment_request(
    db: AsyncSession, request: PaymentVerificationRequest, reason: str, user_id: int
) -> PaymentVerificationRequest:
    _ensure_pending(request)
    if not reason.strip():
        raise ValueError("A rejection reason is required")

    request.status = VerificationStatus.REJECTED
    request.rejection_reason = reason.strip()
    request.reviewed_by_user_id = user_id
    request.reviewed_at = utcnow()
    record_activity(db, user_id, "reject", "payment_request", request.id, {"reason": request.rejection_reason})
    await db.commit()
    await db.refresh(request)

    logger.info(f"Payment request {request.id} rejected")
    return request


async def generate_monthly_invoices(db: AsyncSession, today: Optional[date] = None) -> int:
    """Raise this month's invoices for every active monthly structure. Safe to run repeatedly."""
    today = today or school_today()
    month_year = today.strftime("%Y-%m")

    structure_result = await db.execute(
        select(FeeStructure).where(
            and_(FeeStructure.is_active.is_(True), FeeStructure.frequency == FeeFrequency.MONTHLY)
        )
    )
    structures = structure_result.scalars().all()

    created = 0
    for structure in structures:
        student_result = await db.execute(
            select(Student.id).where(
                and_(Student.class_name == structure.class_name, Student.status == StudentStatus.ACTIVE)
            )
        )
        already_invoiced = await _invoiced_student_ids(db, structure.id, month_year)
        due_date = due_date_for_month(month_year, structure.due_day)
        for student_id in student_result.scalars().all():
            if student_id in already_invoiced:
                continue
            db.add(_new_invoice(student_id, structure, due_date, month_year))
            created += 1

    await db.commit()
    logger.info(f"Monthly invoices for {month_year}: {created} created")
    return created


async def mark_overdue_invoices(db: AsyncSession, today: Optional[date] = None) -> int:
    """Mark unpaid invoices past their due date as overdue, adding the late fee once."""
    today = today or school_today()
    result = await db.execute(
        select(StudentFee)
        .options(selectinload(StudentFee.fee_structure))
        .where(
            and_(
                StudentFee.status.in_([PaymentStatus.PENDING, PaymentStatus.PARTIAL]),
                StudentFee.due_date < today,
            )
        )
    )
    invoices = result.scalars().all()

    for invoice in invoices:
        if to_money(invoice.late_fee) == 0:
            invoice.late_fee = late_fee_for(invoice.amount, invoice.fee_structure.late_fee_percentage)
        invoice.total_amount = invoice_total(invoice.amount, invoice.discount, invoice.late_fee)
        invoice.balance = max(invoice.total_amount - to_money(invoice.paid_amount), ZERO)
        invoice.status = PaymentStatus.PAID if invoice.balance == 0 else PaymentStatus.OVERDUE

    await db.commit()
    logger.info(f"{len(invoices)} invoice(s) marked overdue")
    return len(invoices)


async def run_fee_jobs(db: AsyncSession, today: Optional[date] = None) -> FeeJobSummary:
    created = await generate_monthly_invoices(db, today)
    overdue = await mark_overdue_invoices(db, today)
    return FeeJobSummary(invoices_created=created, invoices_marked_overdue=overdue)


async def scheduled_fee_job():
    """Entry point for the daily scheduler run."""
    logger.info("Starting scheduled fee job...")
    try:
        async with AsyncSessionLocal() as db:
            summary = await run_fee_jobs(db)
        logger.info(
            f"Fee job completed: {summary.invoices_created} created, "
            f"{summary.invoices_marked_overdue} marked overdue"
        )
    except Exception as e:
        logger.error(f"Fee job failed: {e}", exc_info=True)
