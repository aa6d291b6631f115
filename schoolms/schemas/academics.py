from datetime import datetime, date
from typing import Optional
from pydantic import BaseModel, Field
from schoolms.models.enums import ExamType, ResultStatus


class SubjectRead(BaseModel):
    id: int
    name: str
    code: str
    full_marks: int
    pass_marks: int
    credit_hours: Optional[float] = None
    display_order: int
    is_optional: bool
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class SubjectCreate(BaseModel):
    name: str
    code: str
    full_marks: int = Field(100, gt=0)
    pass_marks: int = Field(35, ge=0)
    credit_hours: Optional[float] = Field(None, gt=0)
    display_order: int = 0
    is_optional: bool = False
    is_active: bool = True


class SubjectUpdate(BaseModel):
    name: Optional[str] = None
    code: Optional[str] = None
    full_marks: Optional[int] = Field(None, gt=0)
    pass_marks: Optional[int] = Field(None, ge=0)
    credit_hours: Optional[float] = Field(None, gt=0)
    display_order: Optional[int] = None
    is_optional: Optional[bool] = None
    is_active: Optional[bool] = None


class ExamRead(BaseModel):
    id: int
    title: str
    exam_type: ExamType
    class_name: str
    section: Optional[str] = None
    academic_year: str
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_published: bool
    created_by_user_id: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True


class ExamCreate(BaseModel):
    title: str
    exam_type: ExamType = ExamType.TERMINAL
    class_name: str
    section: Optional[str] = None
    academic_year: str
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class ExamUpdate(BaseModel):
    title: Optional[str] = None
    exam_type: Optional[ExamType] = None
    class_name: Optional[str] = None
    section: Optional[str] = None
    academic_year: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class ExamMarkRead(BaseModel):
    id: int
    exam_id: int
    student_id: int
    subject_id: int
    theory_marks: Optional[float] = None
    practical_marks: Optional[float] = None
    total_marks: Optional[float] = None
    grade: Optional[str] = None
    grade_point: Optional[float] = None
    remarks: Optional[str] = None
    entered_by_user_id: Optional[int] = None
    updated_at: datetime

    class Config:
        from_attributes = True


class MarkEntry(BaseModel):
    student_id: int
    theory_marks: Optional[float] = None
    practical_marks: Optional[float] = None
    remarks: Optional[str] = None


class BulkMarksEntry(BaseModel):
    """Marks for every listed student in one subject of an exam"""
    subject_id: int
    marks: list[MarkEntry]


class GradeBand(BaseModel):
    grade: str
    min_percentage: int
    max_percentage: int
    grade_point: float


class SubjectResult(BaseModel):
    subject_name: str
    marks: float
    full_marks: int
    grade: str
    grade_point: float


class StudentResultRead(BaseModel):
    id: int
    exam_id: int
    student_id: int
    student_name: Optional[str] = None
    roll_number: Optional[int] = None
    total_marks: float
    total_full_marks: int
    percentage: float
    gpa: float
    grade: str
    rank: Optional[int] = None
    total_subjects: int
    passed_subjects: int
    result_status: ResultStatus
    remarks: Optional[str] = None

    class Config:
        from_attributes = True


class StudentResultDetail(StudentResultRead):
    exam_title: str
    subjects: list[SubjectResult] = []


class ExamAnalytics(BaseModel):
    exam_id: int
    total_students: int
    average_gpa: float
    pass_count: int
    fail_count: int
    grade_distribution: dict[str, int]
    top_performer: Optional[StudentResultRead] = None
