from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse
from sqlalchemy import select, func
from schoolms.core.permissions import (
    PERM_ATTENDANCE_VIEW,
    PERM_ATTENDANCE_MARK,
    PERM_REPORTS_ATTENDANCE_VIEW,
)
from schoolms.models.attendance import Attendance
from schoolms.models.people import Student
from schoolms.models.enums import AttendanceStatus
from schoolms.schemas.attendance import (
    AttendanceRead,
    BulkAttendanceCreate,
    BulkAttendanceResult,
    AttendanceStats,
    ClassAttendanceSummary,
)
from schoolms.schemas.common import DataResponse, PaginationMeta
from schoolms.deps import require_permission, ensure_assigned_students, CurrentUser, DbSession
from schoolms.services.attendance import (
    mark_bulk_attendance,
    student_attendance_stats,
    class_attendance_summary,
)
from schoolms.utils.school_time import school_today
from schoolms.utils.excel import XLSX_MEDIA_TYPE, attendance_summary_workbook

router = APIRouter(prefix="/attendance", tags=["Attendance"])


def _period(from_date: Optional[date], to_date: Optional[date]) -> tuple[date, date]:
    """Default to the current month up to today."""
    to_date = to_date or school_today()
    from_date = from_date or to_date.replace(day=1)
    if from_date > to_date:
        raise HTTPException(status_code=400, detail="from_date cannot be after to_date")
    return from_date, to_date


@router.post("/bulk", response_model=DataResponse[BulkAttendanceResult], dependencies=[Depends(require_permission(PERM_ATTENDANCE_MARK))])
async def mark_attendance(data: BulkAttendanceCreate, user: CurrentUser, db: DbSession):
    if not data.entries:
        raise HTTPException(status_code=400, detail="No attendance entries provided")
    await ensure_assigned_students(db, user, [entry.student_id for entry in data.entries])
    try:
        return DataResponse(data=await mark_bulk_attendance(db, data, user.id))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("", response_model=DataResponse[list[AttendanceRead]], dependencies=[Depends(require_permission(PERM_ATTENDANCE_VIEW))])
async def get_attendance(
    db: DbSession,
    attendance_date: Optional[date] = None,
    student_id: Optional[int] = None,
    class_name: Optional[str] = None,
    section: Optional[str] = None,
    status: Optional[AttendanceStatus] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
):
    conditions = []
    if attendance_date:
        conditions.append(Attendance.attendance_date == attendance_date)
    if student_id:
        conditions.append(Attendance.student_id == student_id)
    if status:
        conditions.append(Attendance.status == status)
    if class_name:
        conditions.append(Student.class_name == class_name)
    if section:
        conditions.append(Student.section == section)

    result = await db.execute(
        select(Attendance)
        .join(Student, Attendance.student_id == Student.id)
        .where(*conditions)
        .order_by(Attendance.attendance_date.desc(), Student.roll_number)
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    records = result.scalars().all()

    count_result = await db.execute(
        select(func.count(Attendance.id)).join(Student, Attendance.student_id == Student.id).where(*conditions)
    )
    total = count_result.scalar()

    return DataResponse(
        data=[AttendanceRead.model_validate(a) for a in records],
        meta=PaginationMeta.build(page, page_size, total),
    )


@router.get("/students/{student_id}/stats", response_model=DataResponse[AttendanceStats], dependencies=[Depends(require_permission(PERM_ATTENDANCE_VIEW))])
async def get_student_stats(
    student_id: int,
    db: DbSession,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
):
    result = await db.execute(select(Student.id).where(Student.id == student_id))
    if not result.scalar_one_or_none():
        raise HTTPException(status_code=404, detail="Student not found")

    start, end = _period(from_date, to_date)
    return DataResponse(data=await student_attendance_stats(db, student_id, start, end))


@router.get("/classes/{class_name}/summary", response_model=DataResponse[ClassAttendanceSummary], dependencies=[Depends(require_permission(PERM_REPORTS_ATTENDANCE_VIEW))])
async def get_class_summary(
    class_name: str,
    db: DbSession,
    section: Optional[str] = None,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
):
    start, end = _period(from_date, to_date)
    return DataResponse(data=await class_attendance_summary(db, class_name, start, end, section))


@router.get("/classes/{class_name}/summary/export", dependencies=[Depends(require_permission(PERM_REPORTS_ATTENDANCE_VIEW))])
async def export_class_summary(
    class_name: str,
    db: DbSession,
    section: Optional[str] = None,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
):
    start, end = _period(from_date, to_date)
    summary = await class_attendance_summary(db, class_name, start, end, section)
    excel_file = attendance_summary_workbook(summary)

    filename = f"attendance_{class_name}{'_' + section if section else ''}_{start}_{end}.xlsx"
    return StreamingResponse(
        excel_file,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
