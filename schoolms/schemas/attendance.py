from datetime import datetime, date, time
from typing import Optional
from pydantic import BaseModel
from schoolms.models.enums import AttendanceStatus


class AttendanceRead(BaseModel):
    id: int
    student_id: int
    attendance_date: date
    status: AttendanceStatus
    check_in_time: Optional[time] = None
    check_out_time: Optional[time] = None
    remarks: Optional[str] = None
    notification_sent: bool
    marked_by_user_id: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True


class AttendanceEntry(BaseModel):
    student_id: int
    status: AttendanceStatus
    check_in_time: Optional[time] = None
    check_out_time: Optional[time] = None
    remarks: Optional[str] = None


class BulkAttendanceCreate(BaseModel):
    """Mark attendance for several students of a class on one date"""
    attendance_date: date
    entries: list[AttendanceEntry]
    notify_guardians: bool = True


class BulkAttendanceResult(BaseModel):
    created: int
    updated: int
    notifications_sent: int


class AttendanceStats(BaseModel):
    """Attendance statistics for a student over a period"""
    total_days: int
    present_days: int
    absent_days: int
    late_days: int
    excused_days: int
    attendance_percentage: int
    rating: str


class StudentAttendanceSummary(AttendanceStats):
    student_id: int
    student_name: str
    roll_number: Optional[int] = None


class ClassAttendanceSummary(BaseModel):
    class_name: str
    section: Optional[str] = None
    from_date: date
    to_date: date
    total_students: int
    average_percentage: float
    perfect_attendance: int
    low_attendance: int
    status_totals: dict[str, int]
    students: list[StudentAttendanceSummary]
