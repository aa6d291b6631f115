from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse
from sqlalchemy import select, func
from schoolms.core.permissions import (
    PERM_FEES_VIEW,
    PERM_FEES_MANAGE,
    PERM_PAYMENTS_RECORD,
    PERM_REPORTS_FINANCE_VIEW,
)
from schoolms.models.finance import FeeStructure, StudentFee, FeePayment, PaymentVerificationRequest
from schoolms.models.enums import FeeType, PaymentStatus, PaymentMethod, VerificationStatus
from schoolms.schemas.finance import (
    FeeStructureRead,
    FeeStructureCreate,
    FeeStructureUpdate,
    StudentFeeRead,
    StudentFeeCreate,
    BulkInvoiceCreate,
    StudentFeeUpdate,
    FeePaymentRead,
    FeePaymentCreate,
    PaymentReceipt,
    PaymentRequestRead,
    PaymentRequestReject,
    FeeJobSummary,
)
from schoolms.schemas.common import DataResponse, PaginationMeta
from schoolms.deps import require_permission, CurrentUser, DbSession
from schoolms.services.activity import record_activity
from schoolms.services.fees import (
    create_invoice,
    create_bulk_invoices,
    record_payment,
    approve_payment_request,
    reject_payment_request,
    recompute_balance,
    run_fee_jobs,
    to_money,
)
from schoolms.services.reports import pending_dues_by_student
from schoolms.utils.school_time import day_bounds
from schoolms.utils.excel import XLSX_MEDIA_TYPE, pending_dues_workbook

router = APIRouter(prefix="/fees", tags=["Fees"])


# --- Fee structures ---

@router.get("/structures", response_model=DataResponse[list[FeeStructureRead]], dependencies=[Depends(require_permission(PERM_FEES_VIEW))])
async def get_fee_structures(
    db: DbSession,
    class_name: Optional[str] = None,
    academic_year: Optional[str] = None,
    fee_type: Optional[FeeType] = None,
    active_only: bool = False,
):
    conditions = []
    if class_name:
        conditions.append(FeeStructure.class_name == class_name)
    if academic_year:
        conditions.append(FeeStructure.academic_year == academic_year)
    if fee_type:
        conditions.append(FeeStructure.fee_type == fee_type)
    if active_only:
        conditions.append(FeeStructure.is_active.is_(True))

    result = await db.execute(
        select(FeeStructure).where(*conditions).order_by(FeeStructure.class_name, FeeStructure.fee_type)
    )
    return DataResponse(data=[FeeStructureRead.model_validate(s) for s in result.scalars().all()])


@router.post("/structures", response_model=DataResponse[FeeStructureRead], dependencies=[Depends(require_permission(PERM_FEES_MANAGE))])
async def create_fee_structure(data: FeeStructureCreate, user: CurrentUser, db: DbSession):
    structure = FeeStructure(**data.model_dump(), created_by_user_id=user.id)
    db.add(structure)
    await db.flush()
    record_activity(
        db, user.id, "create", "fee_structure", structure.id,
        {"class_name": structure.class_name, "fee_type": structure.fee_type.value},
    )
    await db.commit()
    await db.refresh(structure)
    return DataResponse(data=FeeStructureRead.model_validate(structure))


@router.patch("/structures/{structure_id}", response_model=DataResponse[FeeStructureRead], dependencies=[Depends(require_permission(PERM_FEES_MANAGE))])
async def update_fee_structure(structure_id: int, data: FeeStructureUpdate, user: CurrentUser, db: DbSession):
    result = await db.execute(select(FeeStructure).where(FeeStructure.id == structure_id))
    structure = result.scalar_one_or_none()
    if not structure:
        raise HTTPException(status_code=404, detail="Fee structure not found")

    changes = data.model_dump(exclude_unset=True)
    for field, value in changes.items():
        setattr(structure, field, value)

    record_activity(db, user.id, "update", "fee_structure", structure.id, {"fields": sorted(changes)})
    await db.commit()
    await db.refresh(structure)
    return DataResponse(data=FeeStructureRead.model_validate(structure))


@router.delete("/structures/{structure_id}", response_model=DataResponse[dict], dependencies=[Depends(require_permission(PERM_FEES_MANAGE))])
async def delete_fee_structure(structure_id: int, user: CurrentUser, db: DbSession):
    result = await db.execute(select(FeeStructure).where(FeeStructure.id == structure_id))
    structure = result.scalar_one_or_none()
    if not structure:
        raise HTTPException(status_code=404, detail="Fee structure not found")

    await db.delete(structure)
    record_activity(db, user.id, "delete", "fee_structure", structure_id)
    await db.commit()
    return DataResponse(data={"message": "Fee structure deleted successfully"})


# --- Invoices ---

@router.get("/invoices", response_model=DataResponse[list[StudentFeeRead]], dependencies=[Depends(require_permission(PERM_FEES_VIEW))])
async def get_invoices(
    db: DbSession,
    student_id: Optional[int] = None,
    fee_structure_id: Optional[int] = None,
    status: Optional[PaymentStatus] = None,
    month_year: Optional[str] = None,
    due_before: Optional[date] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
):
    conditions = []
    if student_id:
        conditions.append(StudentFee.student_id == student_id)
    if fee_structure_id:
        conditions.append(StudentFee.fee_structure_id == fee_structure_id)
    if status:
        conditions.append(StudentFee.status == status)
    if month_year:
        conditions.append(StudentFee.month_year == month_year)
    if due_before:
        conditions.append(StudentFee.due_date < due_before)

    result = await db.execute(
        select(StudentFee)
        .where(*conditions)
        .order_by(StudentFee.due_date.desc(), StudentFee.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    invoices = result.scalars().all()

    count_result = await db.execute(select(func.count(StudentFee.id)).where(*conditions))
    total = count_result.scalar()

    return DataResponse(
        data=[StudentFeeRead.model_validate(i) for i in invoices],
        meta=PaginationMeta.build(page, page_size, total),
    )


@router.post("/invoices", response_model=DataResponse[StudentFeeRead], dependencies=[Depends(require_permission(PERM_FEES_MANAGE))])
async def create_student_invoice(data: StudentFeeCreate, user: CurrentUser, db: DbSession):
    try:
        invoice = await create_invoice(db, data, user.id)
        return DataResponse(data=StudentFeeRead.model_validate(invoice))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/invoices/bulk", response_model=DataResponse[list[StudentFeeRead]], dependencies=[Depends(require_permission(PERM_FEES_MANAGE))])
async def create_class_invoices(data: BulkInvoiceCreate, user: CurrentUser, db: DbSession):
    try:
        invoices = await create_bulk_invoices(db, data, user.id)
        return DataResponse(data=[StudentFeeRead.model_validate(i) for i in invoices])
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/invoices/{invoice_id}", response_model=DataResponse[StudentFeeRead], dependencies=[Depends(require_permission(PERM_FEES_VIEW))])
async def get_invoice(invoice_id: int, db: DbSession):
    result = await db.execute(select(StudentFee).where(StudentFee.id == invoice_id))
    invoice = result.scalar_one_or_none()
    if not invoice:
        raise HTTPException(status_code=404, detail="Invoice not found")
    return DataResponse(data=StudentFeeRead.model_validate(invoice))


@router.patch("/invoices/{invoice_id}", response_model=DataResponse[StudentFeeRead], dependencies=[Depends(require_permission(PERM_FEES_MANAGE))])
async def update_invoice(invoice_id: int, data: StudentFeeUpdate, user: CurrentUser, db: DbSession):
    """Adjust discount, due date or status. Totals and balance are recomputed."""
    result = await db.execute(select(StudentFee).where(StudentFee.id == invoice_id))
    invoice = result.scalar_one_or_none()
    if not invoice:
        raise HTTPException(status_code=404, detail="Invoice not found")

    changes = data.model_dump(exclude_unset=True)
    if "discount" in changes:
        changes["discount"] = to_money(changes["discount"])
    for field, value in changes.items():
        setattr(invoice, field, value)

    try:
        recompute_balance(invoice)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    record_activity(db, user.id, "update", "student_fee", invoice.id, {"fields": sorted(changes)})
    await db.commit()
    await db.refresh(invoice)
    return DataResponse(data=StudentFeeRead.model_validate(invoice))


@router.delete("/invoices/{invoice_id}", response_model=DataResponse[dict], dependencies=[Depends(require_permission(PERM_FEES_MANAGE))])
async def delete_invoice(invoice_id: int, user: CurrentUser, db: DbSession):
    result = await db.execute(select(StudentFee).where(StudentFee.id == invoice_id))
    invoice = result.scalar_one_or_none()
    if not invoice:
        raise HTTPException(status_code=404, detail="Invoice not found")

    await db.delete(invoice)
    record_activity(db, user.id, "delete", "student_fee", invoice_id)
    await db.commit()
    return DataResponse(data={"message": "Invoice deleted successfully"})


# --- Payments ---

@router.get("/payments", response_model=DataResponse[list[FeePaymentRead]], dependencies=[Depends(require_permission(PERM_FEES_VIEW))])
async def get_payments(
    db: DbSession,
    student_id: Optional[int] = None,
    student_fee_id: Optional[int] = None,
    payment_method: Optional[PaymentMethod] = None,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
):
    conditions = []
    if student_id:
        conditions.append(FeePayment.student_id == student_id)
    if student_fee_id:
        conditions.append(FeePayment.student_fee_id == student_fee_id)
    if payment_method:
        conditions.append(FeePayment.payment_method == payment_method)
    if from_date:
        conditions.append(FeePayment.paid_at >= day_bounds(from_date, from_date)[0])
    if to_date:
        conditions.append(FeePayment.paid_at < day_bounds(to_date, to_date)[1])

    result = await db.execute(
        select(FeePayment)
        .where(*conditions)
        .order_by(FeePayment.paid_at.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    payments = result.scalars().all()

    count_result = await db.execute(select(func.count(FeePayment.id)).where(*conditions))
    total = count_result.scalar()

    return DataResponse(
        data=[FeePaymentRead.model_validate(p) for p in payments],
        meta=PaginationMeta.build(page, page_size, total),
    )


@router.post("/payments", response_model=DataResponse[PaymentReceipt], dependencies=[Depends(require_permission(PERM_PAYMENTS_RECORD))])
async def create_payment(data: FeePaymentCreate, user: CurrentUser, db: DbSession):
    try:
        payment, invoice = await record_payment(db, data, user.id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return DataResponse(data=PaymentReceipt(
        payment=FeePaymentRead.model_validate(payment),
        invoice=StudentFeeRead.model_validate(invoice),
    ))


@router.get("/payments/receipt/{receipt_number}", response_model=DataResponse[PaymentReceipt], dependencies=[Depends(require_permission(PERM_FEES_VIEW))])
async def get_receipt(receipt_number: str, db: DbSession):
    result = await db.execute(
        select(FeePayment, StudentFee)
        .join(StudentFee, FeePayment.student_fee_id == StudentFee.id)
        .where(FeePayment.receipt_number == receipt_number)
    )
    row = result.first()
    if not row:
        raise HTTPException(status_code=404, detail="Receipt not found")

    payment, invoice = row
    return DataResponse(data=PaymentReceipt(
        payment=FeePaymentRead.model_validate(payment),
        invoice=StudentFeeRead.model_validate(invoice),
    ))


# --- Payment verification ---

async def _get_request_or_404(db: DbSession, request_id: int) -> PaymentVerificationRequest:
    result = await db.execute(select(PaymentVerificationRequest).where(PaymentVerificationRequest.id == request_id))
    request = result.scalar_one_or_none()
    if not request:
        raise HTTPException(status_code=404, detail="Payment request not found")
    return request


@router.get("/payment-requests", response_model=DataResponse[list[PaymentRequestRead]], dependencies=[Depends(require_permission(PERM_FEES_VIEW))])
async def get_payment_requests(
    db: DbSession,
    status: Optional[VerificationStatus] = None,
    student_id: Optional[int] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
):
    conditions = []
    if status:
        conditions.append(PaymentVerificationRequest.status == status)
    if student_id:
        conditions.append(PaymentVerificationRequest.student_id == student_id)

    result = await db.execute(
        select(PaymentVerificationRequest)
        .where(*conditions)
        .order_by(PaymentVerificationRequest.created_at.desc(), PaymentVerificationRequest.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    requests = result.scalars().all()

    count_result = await db.execute(select(func.count(PaymentVerificationRequest.id)).where(*conditions))
    total = count_result.scalar()

    return DataResponse(
        data=[PaymentRequestRead.model_validate(r) for r in requests],
        meta=PaginationMeta.build(page, page_size, total),
    )


@router.post("/payment-requests/{request_id}/approve", response_model=DataResponse[PaymentReceipt], dependencies=[Depends(require_permission(PERM_PAYMENTS_RECORD))])
async def approve_request(request_id: int, user: CurrentUser, db: DbSession):
    request = await _get_request_or_404(db, request_id)
    try:
        _, payment, invoice = await approve_payment_request(db, request, user.id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return DataResponse(data=PaymentReceipt(
        payment=FeePaymentRead.model_validate(payment),
        invoice=StudentFeeRead.model_validate(invoice),
    ))


@router.post("/payment-requests/{request_id}/reject", response_model=DataResponse[PaymentRequestRead], dependencies=[Depends(require_permission(PERM_PAYMENTS_RECORD))])
async def reject_request(request_id: int, data: PaymentRequestReject, user: CurrentUser, db: DbSession):
    request = await _get_request_or_404(db, request_id)
    try:
        request = await reject_payment_request(db, request, data.reason, user.id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return DataResponse(data=PaymentRequestRead.model_validate(request))


# --- Dues & jobs ---

@router.get("/dues/export", dependencies=[Depends(require_permission(PERM_REPORTS_FINANCE_VIEW))])
async def export_pending_dues(db: DbSession, class_name: Optional[str] = None):
    items = await pending_dues_by_student(db, class_name)
    excel_file = pending_dues_workbook(items)
    filename = f"pending_dues_{class_name}.xlsx" if class_name else "pending_dues.xlsx"
    return StreamingResponse(
        excel_file,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@router.post("/jobs/run", response_model=DataResponse[FeeJobSummary], dependencies=[Depends(require_permission(PERM_FEES_MANAGE))])
async def run_fee_job_now(user: CurrentUser, db: DbSession, today: Optional[date] = None):
    """Run monthly invoicing and overdue marking immediately, as the daily job would."""
    summary = await run_fee_jobs(db, today)
    record_activity(db, user.id, "run_fee_jobs", "student_fee", None, summary.model_dump())
    await db.commit()
    return DataResponse(data=summary)
