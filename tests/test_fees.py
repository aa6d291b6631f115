from datetime import date, datetime, timezone
from decimal import Decimal
import pytest
from sqlalchemy import select
from schoolms.models.enums import PaymentMethod, PaymentStatus, StudentStatus
from schoolms.models.finance import StudentFee
from schoolms.schemas.finance import BulkInvoiceCreate, FeePaymentCreate, StudentFeeCreate
from schoolms.services.fees import (
    ZERO,
    apply_payment,
    create_bulk_invoices,
    create_invoice,
    due_date_for_month,
    generate_monthly_invoices,
    invoice_total,
    late_fee_for,
    mark_overdue_invoices,
    recompute_balance,
    record_payment,
)
from factories import make_student, make_structure


def _invoice(total="1000.00", paid="0.00", status=PaymentStatus.PENDING) -> StudentFee:
    total = Decimal(total)
    paid = Decimal(paid)
    return StudentFee(
        amount=total,
        discount=ZERO,
        late_fee=ZERO,
        total_amount=total,
        paid_amount=paid,
        balance=max(total - paid, ZERO),
        status=status,
        due_date=date(2025, 6, 10),
    )


def test_invoice_total():
    assert invoice_total("1000", "150", "50") == Decimal("900.00")
    with pytest.raises(ValueError):
        invoice_total("1000", "1000.01", "0")


def test_late_fee_percentage():
    assert late_fee_for("1000", Decimal("5")) == Decimal("50.00")
    assert late_fee_for("999.99", Decimal("2.5")) == Decimal("25.00")
    assert late_fee_for("1000", None) == ZERO


def test_partial_then_full_payment():
    invoice = _invoice()

    apply_payment(invoice, 400)
    assert invoice.balance == Decimal("600.00")
    assert invoice.status == PaymentStatus.PARTIAL

    apply_payment(invoice, 600)
    assert invoice.balance == ZERO
    assert invoice.status == PaymentStatus.PAID


def test_overpayment_floors_balance_at_zero():
    invoice = _invoice()
    apply_payment(invoice, 1200)
    assert invoice.paid_amount == Decimal("1200.00")
    assert invoice.balance == ZERO
    assert invoice.status == PaymentStatus.PAID


@pytest.mark.parametrize("status", [PaymentStatus.CANCELLED, PaymentStatus.REFUNDED])
def test_closed_invoices_reject_payments(status):
    with pytest.raises(ValueError):
        apply_payment(_invoice(status=status), 100)


def test_non_positive_payment_rejected():
    with pytest.raises(ValueError):
        apply_payment(_invoice(), 0)


def test_recompute_after_discount():
    invoice = _invoice(paid="500.00", status=PaymentStatus.PARTIAL)
    invoice.discount = Decimal("500")
    recompute_balance(invoice)
    assert invoice.balance == ZERO
    assert invoice.status == PaymentStatus.PAID

    invoice.discount = Decimal("200")
    recompute_balance(invoice)
    assert invoice.balance == Decimal("300.00")
    assert invoice.status == PaymentStatus.PARTIAL


def test_recompute_reopens_unpaid_invoice():
    invoice = _invoice(status=PaymentStatus.PAID)
    invoice.discount = ZERO
    recompute_balance(invoice)
    assert invoice.status == PaymentStatus.PENDING


def test_due_date_for_month():
    assert due_date_for_month("2025-06", None) == date(2025, 6, 10)
    assert due_date_for_month("2025-06", 5) == date(2025, 6, 5)


async def test_duplicate_invoice_for_period_rejected(db, admin):
    student = await make_student(db, "REG-001")
    structure = await make_structure(db)
    data = StudentFeeCreate(
        student_id=student.id, fee_structure_id=structure.id, due_date=date(2025, 6, 10), month_year="2025-06"
    )

    invoice = await create_invoice(db, data, admin.id)
    assert invoice.total_amount == Decimal("1000.00")
    assert invoice.status == PaymentStatus.PENDING

    with pytest.raises(ValueError, match="already exists"):
        await create_invoice(db, data, admin.id)


async def test_bulk_invoices_skip_inactive_and_already_invoiced(db, admin):
    first = await make_student(db, "REG-001")
    await make_student(db, "REG-002")
    await make_student(db, "REG-003", status=StudentStatus.INACTIVE)
    await make_student(db, "REG-004", class_name="9")
    structure = await make_structure(db)

    await create_invoice(
        db,
        StudentFeeCreate(student_id=first.id, fee_structure_id=structure.id, due_date=date(2025, 6, 10), month_year="2025-06"),
        admin.id,
    )
    created = await create_bulk_invoices(
        db, BulkInvoiceCreate(fee_structure_id=structure.id, due_date=date(2025, 6, 10), month_year="2025-06"), admin.id
    )
    assert len(created) == 1


async def test_payment_receipts_are_numbered_per_day(db, admin):
    student = await make_student(db, "REG-001")
    structure = await make_structure(db)
    invoice = await create_invoice(
        db,
        StudentFeeCreate(student_id=student.id, fee_structure_id=structure.id, due_date=date(2025, 6, 10)),
        admin.id,
    )
    paid_at = datetime(2025, 6, 1, 10, 0, tzinfo=timezone.utc)

    first, invoice = await record_payment(
        db, FeePaymentCreate(student_fee_id=invoice.id, amount=300, paid_at=paid_at), admin.id
    )
    second, invoice = await record_payment(
        db,
        FeePaymentCreate(student_fee_id=invoice.id, amount=700, payment_method=PaymentMethod.ESEWA, paid_at=paid_at),
        admin.id,
    )

    assert first.receipt_number == "RCP-20250601-0001"
    assert second.receipt_number == "RCP-20250601-0002"
    assert invoice.status == PaymentStatus.PAID
    assert invoice.balance == ZERO


async def test_monthly_generation_is_idempotent(db):
    await make_student(db, "REG-001")
    await make_student(db, "REG-002")
    await make_student(db, "REG-003", status=StudentStatus.INACTIVE)
    await make_structure(db, due_day=15)

    assert await generate_monthly_invoices(db, today=date(2025, 7, 1)) == 2
    assert await generate_monthly_invoices(db, today=date(2025, 7, 20)) == 0

    result = await db.execute(select(StudentFee))
    invoices = result.scalars().all()
    assert {i.month_year for i in invoices} == {"2025-07"}
    assert {i.due_date for i in invoices} == {date(2025, 7, 15)}


async def test_overdue_marking_applies_late_fee_once(db, admin):
    student = await make_student(db, "REG-001")
    structure = await make_structure(db, late_fee_percentage="10")
    invoice = await create_invoice(
        db,
        StudentFeeCreate(student_id=student.id, fee_structure_id=structure.id, due_date=date(2025, 5, 10)),
        admin.id,
    )

    assert await mark_overdue_invoices(db, today=date(2025, 5, 10)) == 0
    assert await mark_overdue_invoices(db, today=date(2025, 5, 11)) == 1
    assert await mark_overdue_invoices(db, today=date(2025, 5, 30)) == 0

    await db.refresh(invoice)
    assert invoice.status == PaymentStatus.OVERDUE
    assert invoice.late_fee == Decimal("100.00")
    assert invoice.total_amount == Decimal("1100.00")
    assert invoice.balance == Decimal("1100.00")
