from datetime import datetime, date
from typing import Optional
from pydantic import BaseModel, Field
from schoolms.models.enums import FeeType, FeeFrequency, PaymentStatus, PaymentMethod, VerificationStatus


class FeeStructureRead(BaseModel):
    id: int
    class_name: str
    fee_type: FeeType
    amount: float
    frequency: FeeFrequency
    due_day: Optional[int] = None
    late_fee_percentage: Optional[float] = None
    academic_year: str
    description: Optional[str] = None
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class FeeStructureCreate(BaseModel):
    class_name: str
    fee_type: FeeType
    amount: float = Field(..., gt=0)
    frequency: FeeFrequency = FeeFrequency.MONTHLY
    due_day: Optional[int] = Field(None, ge=1, le=28)
    late_fee_percentage: Optional[float] = Field(None, ge=0, le=100)
    academic_year: str
    description: Optional[str] = None
    is_active: bool = True


class FeeStructureUpdate(BaseModel):
    amount: Optional[float] = Field(None, gt=0)
    frequency: Optional[FeeFrequency] = None
    due_day: Optional[int] = Field(None, ge=1, le=28)
    late_fee_percentage: Optional[float] = Field(None, ge=0, le=100)
    description: Optional[str] = None
    is_active: Optional[bool] = None


class StudentFeeRead(BaseModel):
    id: int
    student_id: int
    fee_structure_id: int
    amount: float
    discount: float
    discount_reason: Optional[str] = None
    late_fee: float
    total_amount: float
    paid_amount: float
    balance: float
    status: PaymentStatus
    due_date: date
    month_year: Optional[str] = None
    remarks: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class StudentFeeCreate(BaseModel):
    student_id: int
    fee_structure_id: int
    due_date: date
    month_year: Optional[str] = Field(None, pattern=r"^\d{4}-(0[1-9]|1[0-2])$")
    discount: float = Field(0, ge=0)
    discount_reason: Optional[str] = None
    remarks: Optional[str] = None


class BulkInvoiceCreate(BaseModel):
    """Raise one invoice per active student of the fee structure's class"""
    fee_structure_id: int
    due_date: date
    month_year: Optional[str] = Field(None, pattern=r"^\d{4}-(0[1-9]|1[0-2])$")
    section: Optional[str] = None


class StudentFeeUpdate(BaseModel):
    discount: Optional[float] = Field(None, ge=0)
    discount_reason: Optional[str] = None
    due_date: Optional[date] = None
    status: Optional[PaymentStatus] = None
    remarks: Optional[str] = None


class FeePaymentRead(BaseModel):
    id: int
    student_fee_id: int
    student_id: int
    amount: float
    payment_method: PaymentMethod
    receipt_number: Optional[str] = None
    transaction_id: Optional[str] = None
    notes: Optional[str] = None
    paid_at: datetime
    received_by_user_id: Optional[int] = None

    class Config:
        from_attributes = True


class FeePaymentCreate(BaseModel):
    student_fee_id: int
    amount: float = Field(..., gt=0)
    payment_method: PaymentMethod = PaymentMethod.CASH
    transaction_id: Optional[str] = None
    notes: Optional[str] = None
    paid_at: Optional[datetime] = None


class PaymentReceipt(BaseModel):
    payment: FeePaymentRead
    invoice: StudentFeeRead


class PaymentRequestRead(BaseModel):
    id: int
    student_fee_id: int
    student_id: int
    gateway: PaymentMethod
    amount: float
    transaction_id: Optional[str] = None
    screenshot_url: Optional[str] = None
    remarks: Optional[str] = None
    status: VerificationStatus
    rejection_reason: Optional[str] = None
    submitted_by_user_id: Optional[int] = None
    reviewed_by_user_id: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    fee_payment_id: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True


class PaymentRequestCreate(BaseModel):
    """Either a transaction ID or a screenshot must back the claim"""
    student_fee_id: int
    gateway: PaymentMethod
    amount: float = Field(..., gt=0)
    transaction_id: Optional[str] = None
    screenshot_url: Optional[str] = None
    remarks: Optional[str] = None


class PaymentRequestReject(BaseModel):
    reason: str = Field(..., min_length=1)


class ExpenseRead(BaseModel):
    id: int
    category: str
    amount: float
    expense_date: date
    description: Optional[str] = None
    paid_to: Optional[str] = None
    payment_method: Optional[PaymentMethod] = None
    created_by_user_id: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True


class ExpenseCreate(BaseModel):
    category: str
    amount: float = Field(..., gt=0)
    expense_date: date
    description: Optional[str] = None
    paid_to: Optional[str] = None
    payment_method: Optional[PaymentMethod] = None


class ExpenseUpdate(BaseModel):
    category: Optional[str] = None
    amount: Optional[float] = Field(None, gt=0)
    expense_date: Optional[date] = None
    description: Optional[str] = None
    paid_to: Optional[str] = None
    payment_method: Optional[PaymentMethod] = None


class FeeJobSummary(BaseModel):
    invoices_created: int
    invoices_marked_overdue: int
