from datetime import datetime, date
from typing import Optional
from pydantic import BaseModel, EmailStr
from schoolms.models.enums import StudentStatus


class StudentRead(BaseModel):
    id: int
    full_name: str
    registration_number: str
    class_name: str
    section: Optional[str] = None
    roll_number: Optional[int] = None
    gender: Optional[str] = None
    date_of_birth: Optional[date] = None
    address: Optional[str] = None
    photo_url: Optional[str] = None
    admission_year: Optional[int] = None
    guardian_name: Optional[str] = None
    guardian_phone: Optional[str] = None
    guardian_email: Optional[str] = None
    status: StudentStatus
    user_id: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True


class StudentCreate(BaseModel):
    full_name: str
    registration_number: str
    class_name: str
    section: Optional[str] = None
    roll_number: Optional[int] = None
    gender: Optional[str] = None
    date_of_birth: Optional[date] = None
    address: Optional[str] = None
    photo_url: Optional[str] = None
    admission_year: Optional[int] = None
    guardian_name: Optional[str] = None
    guardian_phone: Optional[str] = None
    guardian_email: Optional[EmailStr] = None
    status: StudentStatus = StudentStatus.ACTIVE
    user_id: Optional[int] = None


class StudentUpdate(BaseModel):
    full_name: Optional[str] = None
    registration_number: Optional[str] = None
    class_name: Optional[str] = None
    section: Optional[str] = None
    roll_number: Optional[int] = None
    gender: Optional[str] = None
    date_of_birth: Optional[date] = None
    address: Optional[str] = None
    photo_url: Optional[str] = None
    admission_year: Optional[int] = None
    guardian_name: Optional[str] = None
    guardian_phone: Optional[str] = None
    guardian_email: Optional[EmailStr] = None
    status: Optional[StudentStatus] = None
    user_id: Optional[int] = None


class ParentRead(BaseModel):
    id: int
    full_name: str
    phone: str
    email: Optional[str] = None
    relationship_type: Optional[str] = None
    occupation: Optional[str] = None
    user_id: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True


class ParentWithStudents(ParentRead):
    students: list[StudentRead] = []


class ParentCreate(BaseModel):
    full_name: str
    phone: str
    email: Optional[EmailStr] = None
    relationship_type: Optional[str] = None
    occupation: Optional[str] = None
    user_id: Optional[int] = None
    student_ids: list[int] = []


class ParentUpdate(BaseModel):
    full_name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    relationship_type: Optional[str] = None
    occupation: Optional[str] = None
    user_id: Optional[int] = None
