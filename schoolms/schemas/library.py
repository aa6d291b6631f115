from datetime import datetime, date
from typing import Optional
from pydantic import BaseModel, Field
from schoolms.models.enums import BookIssueStatus, FineStatus, FineReason, MemberType, MembershipStatus


class BookRead(BaseModel):
    id: int
    title: str
    author: str
    isbn: Optional[str] = None
    category: Optional[str] = None
    publisher: Optional[str] = None
    published_year: Optional[int] = None
    shelf_location: Optional[str] = None
    description: Optional[str] = None
    total_copies: int
    available_copies: int
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class BookCreate(BaseModel):
    title: str
    author: str
    isbn: Optional[str] = None
    category: Optional[str] = None
    publisher: Optional[str] = None
    published_year: Optional[int] = None
    shelf_location: Optional[str] = None
    description: Optional[str] = None
    total_copies: int = Field(1, ge=1)


class BookUpdate(BaseModel):
    title: Optional[str] = None
    author: Optional[str] = None
    isbn: Optional[str] = None
    category: Optional[str] = None
    publisher: Optional[str] = None
    published_year: Optional[int] = None
    shelf_location: Optional[str] = None
    description: Optional[str] = None
    total_copies: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None


class BookIssueRead(BaseModel):
    id: int
    book_id: int
    student_id: int
    issue_date: date
    due_date: date
    return_date: Optional[date] = None
    status: BookIssueStatus
    remarks: Optional[str] = None
    issued_by_user_id: Optional[int] = None
    returned_to_user_id: Optional[int] = None

    class Config:
        from_attributes = True


class BookIssueDetail(BookIssueRead):
    book_title: str
    student_name: str
    registration_number: str
    overdue_days: int


class BookIssueCreate(BaseModel):
    book_id: int
    student_id: int
    days: Optional[int] = Field(None, ge=1, le=365)
    remarks: Optional[str] = None


class LibraryFineRead(BaseModel):
    id: int
    book_issue_id: int
    student_id: int
    fine_amount: float
    fine_reason: FineReason
    days_overdue: int
    paid_amount: float
    paid_date: Optional[date] = None
    status: FineStatus
    waive_reason: Optional[str] = None
    waived_by_user_id: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True


class ReturnResult(BaseModel):
    issue: BookIssueRead
    fine: Optional[LibraryFineRead] = None


class FinePayment(BaseModel):
    amount: float = Field(..., gt=0)


class FineWaive(BaseModel):
    reason: str = Field(..., min_length=1)


class LibrarySettingsRead(BaseModel):
    id: int
    fine_per_day: float
    max_books_per_student: int
    default_issue_days: int
    lost_book_fine_multiplier: float

    class Config:
        from_attributes = True


class LibrarySettingsUpdate(BaseModel):
    fine_per_day: Optional[float] = Field(None, ge=0)
    max_books_per_student: Optional[int] = Field(None, ge=1)
    default_issue_days: Optional[int] = Field(None, ge=1)
    lost_book_fine_multiplier: Optional[float] = Field(None, ge=0)


class MembershipRead(BaseModel):
    id: int
    member_type: MemberType
    member_id: int
    membership_number: str
    membership_start: date
    membership_end: Optional[date] = None
    max_books: Optional[int] = None
    status: MembershipStatus
    is_blocked: bool
    block_reason: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class MembershipCreate(BaseModel):
    member_type: MemberType = MemberType.STUDENT
    member_id: int
    membership_start: Optional[date] = None
    membership_end: Optional[date] = None
    max_books: Optional[int] = Field(None, ge=1)


class MembershipBlock(BaseModel):
    reason: str = Field(..., min_length=1)


class LibraryStats(BaseModel):
    total_titles: int
    total_copies: int
    available_copies: int
    issued_count: int
    overdue_count: int
    pending_fines_amount: float
    active_members: int
