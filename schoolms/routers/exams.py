from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from sqlalchemy import select, func, and_
from schoolms.core.permissions import (
    PERM_ACADEMICS_VIEW,
    PERM_ACADEMICS_MANAGE,
    PERM_MARKS_ENTER,
    PERM_RESULTS_CALCULATE,
)
from schoolms.models.academics import Exam, ExamMark
from schoolms.models.people import Student
from schoolms.models.enums import ExamType
from schoolms.schemas.academics import (
    ExamRead,
    ExamCreate,
    ExamUpdate,
    ExamMarkRead,
    BulkMarksEntry,
    GradeBand,
    StudentResultRead,
    StudentResultDetail,
    ExamAnalytics,
)
from schoolms.schemas.common import DataResponse, PaginationMeta
from schoolms.deps import require_permission, ensure_assigned_students, CurrentUser, DbSession
from schoolms.services.activity import record_activity
from schoolms.services.grading import NEB_GRADE_BANDS
from schoolms.services.exams import (
    save_marks,
    calculate_results,
    list_results,
    build_analytics,
    result_detail,
)
from schoolms.utils.grade_sheet_pdf import generate_grade_sheet

router = APIRouter(prefix="/exams", tags=["Exams"])


async def _get_exam_or_404(db: DbSession, exam_id: int) -> Exam:
    result = await db.execute(select(Exam).where(Exam.id == exam_id))
    exam = result.scalar_one_or_none()
    if not exam:
        raise HTTPException(status_code=404, detail="Exam not found")
    return exam


async def _get_student_or_404(db: DbSession, student_id: int) -> Student:
    result = await db.execute(select(Student).where(Student.id == student_id))
    student = result.scalar_one_or_none()
    if not student:
        raise HTTPException(status_code=404, detail="Student not found")
    return student


@router.get("/grading-scale", response_model=DataResponse[list[GradeBand]])
async def get_grading_scale():
    """NEB percentage bands with their letter grade and grade point"""
    bands = []
    upper = 100
    for minimum, grade, grade_point in NEB_GRADE_BANDS:
        bands.append(GradeBand(grade=grade, min_percentage=minimum, max_percentage=upper, grade_point=float(grade_point)))
        upper = minimum - 1
    return DataResponse(data=bands)


@router.get("", response_model=DataResponse[list[ExamRead]], dependencies=[Depends(require_permission(PERM_ACADEMICS_VIEW))])
async def get_exams(
    db: DbSession,
    class_name: Optional[str] = None,
    academic_year: Optional[str] = None,
    exam_type: Optional[ExamType] = None,
    is_published: Optional[bool] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
):
    conditions = []
    if class_name:
        conditions.append(Exam.class_name == class_name)
    if academic_year:
        conditions.append(Exam.academic_year == academic_year)
    if exam_type:
        conditions.append(Exam.exam_type == exam_type)
    if is_published is not None:
        conditions.append(Exam.is_published.is_(is_published))

    result = await db.execute(
        select(Exam)
        .where(*conditions)
        .order_by(Exam.start_date.desc(), Exam.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    exams = result.scalars().all()

    count_result = await db.execute(select(func.count(Exam.id)).where(*conditions))
    total = count_result.scalar()

    return DataResponse(
        data=[ExamRead.model_validate(e) for e in exams],
        meta=PaginationMeta.build(page, page_size, total),
    )


@router.post("", response_model=DataResponse[ExamRead], dependencies=[Depends(require_permission(PERM_ACADEMICS_MANAGE))])
async def create_exam(data: ExamCreate, user: CurrentUser, db: DbSession):
    if data.start_date and data.end_date and data.end_date < data.start_date:
        raise HTTPException(status_code=400, detail="End date cannot be before start date")

    exam = Exam(**data.model_dump(), created_by_user_id=user.id, is_published=False)
    db.add(exam)
    await db.flush()
    record_activity(db, user.id, "create", "exam", exam.id, {"title": exam.title})
    await db.commit()
    await db.refresh(exam)

    return DataResponse(data=ExamRead.model_validate(exam))


@router.get("/{exam_id}", response_model=DataResponse[ExamRead], dependencies=[Depends(require_permission(PERM_ACADEMICS_VIEW))])
async def get_exam(exam_id: int, db: DbSession):
    return DataResponse(data=ExamRead.model_validate(await _get_exam_or_404(db, exam_id)))


@router.patch("/{exam_id}", response_model=DataResponse[ExamRead], dependencies=[Depends(require_permission(PERM_ACADEMICS_MANAGE))])
async def update_exam(exam_id: int, data: ExamUpdate, user: CurrentUser, db: DbSession):
    exam = await _get_exam_or_404(db, exam_id)

    changes = data.model_dump(exclude_unset=True)
    for field, value in changes.items():
        setattr(exam, field, value)
    if exam.start_date and exam.end_date and exam.end_date < exam.start_date:
        raise HTTPException(status_code=400, detail="End date cannot be before start date")

    record_activity(db, user.id, "update", "exam", exam.id, {"fields": sorted(changes)})
    await db.commit()
    await db.refresh(exam)
    return DataResponse(data=ExamRead.model_validate(exam))


@router.delete("/{exam_id}", response_model=DataResponse[dict], dependencies=[Depends(require_permission(PERM_ACADEMICS_MANAGE))])
async def delete_exam(exam_id: int, user: CurrentUser, db: DbSession):
    exam = await _get_exam_or_404(db, exam_id)
    await db.delete(exam)
    record_activity(db, user.id, "delete", "exam", exam_id)
    await db.commit()
    return DataResponse(data={"message": "Exam deleted successfully"})


@router.post("/{exam_id}/publish", response_model=DataResponse[ExamRead], dependencies=[Depends(require_permission(PERM_RESULTS_CALCULATE))])
async def publish_exam(exam_id: int, user: CurrentUser, db: DbSession, publish: bool = True):
    """Publish (or with publish=false, withdraw) results to students and parents"""
    exam = await _get_exam_or_404(db, exam_id)
    exam.is_published = publish
    record_activity(db, user.id, "publish" if publish else "unpublish", "exam", exam.id)
    await db.commit()
    await db.refresh(exam)
    return DataResponse(data=ExamRead.model_validate(exam))


@router.get("/{exam_id}/marks", response_model=DataResponse[list[ExamMarkRead]], dependencies=[Depends(require_permission(PERM_ACADEMICS_VIEW))])
async def get_exam_marks(exam_id: int, db: DbSession, subject_id: Optional[int] = None, student_id: Optional[int] = None):
    await _get_exam_or_404(db, exam_id)

    conditions = [ExamMark.exam_id == exam_id]
    if subject_id:
        conditions.append(ExamMark.subject_id == subject_id)
    if student_id:
        conditions.append(ExamMark.student_id == student_id)

    result = await db.execute(select(ExamMark).where(and_(*conditions)).order_by(ExamMark.student_id))
    return DataResponse(data=[ExamMarkRead.model_validate(m) for m in result.scalars().all()])


@router.post("/{exam_id}/marks", response_model=DataResponse[list[ExamMarkRead]], dependencies=[Depends(require_permission(PERM_MARKS_ENTER))])
async def enter_marks(exam_id: int, data: BulkMarksEntry, user: CurrentUser, db: DbSession):
    await _get_exam_or_404(db, exam_id)
    await ensure_assigned_students(db, user, [entry.student_id for entry in data.marks], data.subject_id)
    try:
        marks = await save_marks(db, exam_id, data, user.id)
        return DataResponse(data=[ExamMarkRead.model_validate(m) for m in marks])
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/{exam_id}/results/calculate", response_model=DataResponse[list[StudentResultRead]], dependencies=[Depends(require_permission(PERM_RESULTS_CALCULATE))])
async def calculate_exam_results(exam_id: int, user: CurrentUser, db: DbSession):
    await _get_exam_or_404(db, exam_id)
    try:
        results = await calculate_results(db, exam_id, user.id)
        return DataResponse(data=results)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/{exam_id}/results", response_model=DataResponse[list[StudentResultRead]], dependencies=[Depends(require_permission(PERM_ACADEMICS_VIEW))])
async def get_exam_results(exam_id: int, db: DbSession):
    await _get_exam_or_404(db, exam_id)
    return DataResponse(data=await list_results(db, exam_id))


@router.get("/{exam_id}/analytics", response_model=DataResponse[ExamAnalytics], dependencies=[Depends(require_permission(PERM_ACADEMICS_VIEW))])
async def get_exam_analytics(exam_id: int, db: DbSession):
    await _get_exam_or_404(db, exam_id)
    return DataResponse(data=build_analytics(exam_id, await list_results(db, exam_id)))


@router.get("/{exam_id}/results/{student_id}", response_model=DataResponse[StudentResultDetail], dependencies=[Depends(require_permission(PERM_ACADEMICS_VIEW))])
async def get_student_result(exam_id: int, student_id: int, db: DbSession):
    exam = await _get_exam_or_404(db, exam_id)
    student = await _get_student_or_404(db, student_id)
    try:
        return DataResponse(data=await result_detail(db, exam, student))
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/{exam_id}/results/{student_id}/grade-sheet", dependencies=[Depends(require_permission(PERM_ACADEMICS_VIEW))])
async def download_grade_sheet(exam_id: int, student_id: int, db: DbSession):
    exam = await _get_exam_or_404(db, exam_id)
    student = await _get_student_or_404(db, student_id)
    try:
        detail = await result_detail(db, exam, student)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))

    pdf = generate_grade_sheet(detail, student.class_name, student.section, student.registration_number)
    filename = f"grade_sheet_{student.registration_number}_{exam.id}.pdf"
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
