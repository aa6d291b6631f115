from datetime import date
from typing import Optional
from pydantic import BaseModel
from schoolms.schemas.finance import FeePaymentRead


class AccountantOverview(BaseModel):
    today_collection: float
    month_collection: float
    year_collection: float
    pending_dues: float
    outstanding_fines: float
    recent_payments: list[FeePaymentRead]


class MonthlyTrendItem(BaseModel):
    month: str  # "YYYY-MM"
    label: str  # "Jan"
    collection: float
    expenses: float
    net: float


class CollectionBreakdownItem(BaseModel):
    payment_method: str
    total_amount: float
    payment_count: int


class CollectionReport(BaseModel):
    from_date: date
    to_date: date
    total_collection: float
    breakdown: list[CollectionBreakdownItem]


class AdminDashboardSummary(BaseModel):
    active_students: int
    active_teachers: int
    today_attendance_rate: Optional[float] = None
    pending_dues: float
    books_issued: int
    upcoming_events: int
    published_notices: int
    pending_admissions: int
    pending_payment_requests: int


class PendingDueItem(BaseModel):
    student_id: int
    student_name: str
    registration_number: str
    class_name: str
    invoice_count: int
    total_balance: float
