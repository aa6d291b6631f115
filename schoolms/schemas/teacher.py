from datetime import datetime, date
from typing import Optional
from pydantic import BaseModel, EmailStr
from schoolms.models.enums import TeacherStatus


class TeacherRead(BaseModel):
    id: int
    full_name: str
    employee_id: str
    email: Optional[str] = None
    phone: Optional[str] = None
    department: Optional[str] = None
    subject: Optional[str] = None
    qualification: Optional[str] = None
    joined_date: Optional[date] = None
    photo_url: Optional[str] = None
    status: TeacherStatus
    user_id: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True


class TeacherCreate(BaseModel):
    full_name: str
    employee_id: str
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    department: Optional[str] = None
    subject: Optional[str] = None
    qualification: Optional[str] = None
    joined_date: Optional[date] = None
    photo_url: Optional[str] = None
    status: TeacherStatus = TeacherStatus.ACTIVE
    user_id: Optional[int] = None


class TeacherUpdate(BaseModel):
    full_name: Optional[str] = None
    employee_id: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    department: Optional[str] = None
    subject: Optional[str] = None
    qualification: Optional[str] = None
    joined_date: Optional[date] = None
    photo_url: Optional[str] = None
    status: Optional[TeacherStatus] = None
    user_id: Optional[int] = None


class TeacherAssignmentRead(BaseModel):
    id: int
    teacher_id: int
    class_name: str
    section: Optional[str] = None
    subject_id: Optional[int] = None
    academic_year: str
    is_class_teacher: bool
    created_at: datetime

    class Config:
        from_attributes = True


class TeacherAssignmentCreate(BaseModel):
    class_name: str
    section: Optional[str] = None
    subject_id: Optional[int] = None
    academic_year: str
    is_class_teacher: bool = False
