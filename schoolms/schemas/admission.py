from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field
from schoolms.models.enums import AdmissionStatus


class AdmissionRead(BaseModel):
    id: int
    application_number: str
    student_name: str
    date_of_birth: date
    gender: str
    applying_for_class: str
    previous_school: Optional[str] = None
    guardian_name: str
    guardian_phone: str
    guardian_email: Optional[str] = None
    address: str
    documents_url: Optional[str] = None
    notes: Optional[str] = None
    status: AdmissionStatus
    reviewed_at: Optional[datetime] = None
    reviewed_by_user_id: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True


class AdmissionApply(BaseModel):
    student_name: str = Field(..., min_length=1)
    date_of_birth: date
    gender: str
    applying_for_class: str
    previous_school: Optional[str] = None
    guardian_name: str = Field(..., min_length=1)
    guardian_phone: str = Field(..., min_length=1)
    guardian_email: Optional[EmailStr] = None
    address: str
    documents_url: Optional[str] = None


class AdmissionReview(BaseModel):
    status: AdmissionStatus
    notes: Optional[str] = None


class AdmissionStats(BaseModel):
    total: int
    pending: int
    approved: int
    rejected: int
