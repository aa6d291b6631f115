from datetime import datetime, date
from typing import Optional
from pydantic import BaseModel, Field
from schoolms.models.enums import SubmissionStatus


class HomeworkRead(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    class_name: str
    section: Optional[str] = None
    subject_id: int
    teacher_id: Optional[int] = None
    due_date: date
    max_marks: int
    allow_late_submission: bool
    is_published: bool
    attachment_url: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class HomeworkCreate(BaseModel):
    title: str
    description: Optional[str] = None
    class_name: str
    section: Optional[str] = None
    subject_id: int
    due_date: date
    max_marks: int = Field(100, gt=0)
    allow_late_submission: bool = False
    is_published: bool = True
    attachment_url: Optional[str] = None


class HomeworkUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    section: Optional[str] = None
    due_date: Optional[date] = None
    max_marks: Optional[int] = Field(None, gt=0)
    allow_late_submission: Optional[bool] = None
    is_published: Optional[bool] = None
    attachment_url: Optional[str] = None


class SubmissionRead(BaseModel):
    id: int
    homework_id: int
    student_id: int
    submission_text: Optional[str] = None
    submission_url: Optional[str] = None
    submitted_at: datetime
    is_late: bool
    status: SubmissionStatus
    marks: Optional[float] = None
    remarks: Optional[str] = None
    graded_at: Optional[datetime] = None
    graded_by_user_id: Optional[int] = None

    class Config:
        from_attributes = True


class SubmissionCreate(BaseModel):
    submission_text: Optional[str] = None
    submission_url: Optional[str] = None


class SubmissionGrade(BaseModel):
    marks: float = Field(..., ge=0)
    remarks: Optional[str] = None


class HomeworkWithSubmission(HomeworkRead):
    submission: Optional[SubmissionRead] = None
