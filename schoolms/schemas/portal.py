from pydantic import BaseModel
from schoolms.schemas.finance import StudentFeeRead, FeePaymentRead
from schoolms.schemas.library import BookIssueRead, LibraryFineRead


class PortalFees(BaseModel):
    invoices: list[StudentFeeRead]
    payments: list[FeePaymentRead]
    total_balance: float


class PortalLibrary(BaseModel):
    issues: list[BookIssueRead]
    fines: list[LibraryFineRead]
    outstanding_fines: float
