from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, func
from schoolms.core.permissions import PERM_HOMEWORK_VIEW, PERM_HOMEWORK_MANAGE
from schoolms.models.academics import Subject
from schoolms.models.homework import Homework, HomeworkSubmission
from schoolms.models.people import Teacher
from schoolms.models.enums import SubmissionStatus
from schoolms.schemas.homework import (
    HomeworkRead,
    HomeworkCreate,
    HomeworkUpdate,
    SubmissionRead,
    SubmissionGrade,
)
from schoolms.schemas.common import DataResponse, PaginationMeta
from schoolms.deps import require_permission, ensure_assigned, CurrentUser, DbSession
from schoolms.services.activity import record_activity
from schoolms.services.homework import grade_submission

router = APIRouter(prefix="/homework", tags=["Homework"])


async def _get_homework_or_404(db: DbSession, homework_id: int) -> Homework:
    result = await db.execute(select(Homework).where(Homework.id == homework_id))
    homework = result.scalar_one_or_none()
    if not homework:
        raise HTTPException(status_code=404, detail="Homework not found")
    return homework


@router.get("", response_model=DataResponse[list[HomeworkRead]], dependencies=[Depends(require_permission(PERM_HOMEWORK_VIEW))])
async def get_homework_list(
    db: DbSession,
    class_name: Optional[str] = None,
    section: Optional[str] = None,
    subject_id: Optional[int] = None,
    teacher_id: Optional[int] = None,
    due_from: Optional[date] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
):
    conditions = []
    if class_name:
        conditions.append(Homework.class_name == class_name)
    if section:
        conditions.append(Homework.section == section)
    if subject_id:
        conditions.append(Homework.subject_id == subject_id)
    if teacher_id:
        conditions.append(Homework.teacher_id == teacher_id)
    if due_from:
        conditions.append(Homework.due_date >= due_from)

    result = await db.execute(
        select(Homework)
        .where(*conditions)
        .order_by(Homework.due_date.desc(), Homework.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    items = result.scalars().all()

    count_result = await db.execute(select(func.count(Homework.id)).where(*conditions))
    total = count_result.scalar()

    return DataResponse(
        data=[HomeworkRead.model_validate(h) for h in items],
        meta=PaginationMeta.build(page, page_size, total),
    )


@router.post("", response_model=DataResponse[HomeworkRead], dependencies=[Depends(require_permission(PERM_HOMEWORK_MANAGE))])
async def create_homework(data: HomeworkCreate, user: CurrentUser, db: DbSession):
    subject_result = await db.execute(select(Subject.id).where(Subject.id == data.subject_id))
    if not subject_result.scalar_one_or_none():
        raise HTTPException(status_code=400, detail=f"Subject with ID {data.subject_id} not found")

    await ensure_assigned(db, user, data.class_name, data.section, data.subject_id)

    # Assignments created by a teacher account are attributed to that teacher
    teacher_result = await db.execute(select(Teacher.id).where(Teacher.user_id == user.id))
    homework = Homework(**data.model_dump(), teacher_id=teacher_result.scalar_one_or_none())
    db.add(homework)
    await db.flush()
    record_activity(db, user.id, "create", "homework", homework.id, {"title": homework.title})
    await db.commit()
    await db.refresh(homework)
    return DataResponse(data=HomeworkRead.model_validate(homework))


@router.get("/{homework_id}", response_model=DataResponse[HomeworkRead], dependencies=[Depends(require_permission(PERM_HOMEWORK_VIEW))])
async def get_homework(homework_id: int, db: DbSession):
    return DataResponse(data=HomeworkRead.model_validate(await _get_homework_or_404(db, homework_id)))


@router.patch("/{homework_id}", response_model=DataResponse[HomeworkRead], dependencies=[Depends(require_permission(PERM_HOMEWORK_MANAGE))])
async def update_homework(homework_id: int, data: HomeworkUpdate, user: CurrentUser, db: DbSession):
    homework = await _get_homework_or_404(db, homework_id)

    changes = data.model_dump(exclude_unset=True)
    if "max_marks" in changes:
        graded_result = await db.execute(
            select(func.max(HomeworkSubmission.marks)).where(HomeworkSubmission.homework_id == homework.id)
        )
        highest = graded_result.scalar()
        if highest is not None and highest > changes["max_marks"]:
            raise HTTPException(status_code=400, detail=f"Max marks cannot be below an awarded mark of {highest}")

    for field, value in changes.items():
        setattr(homework, field, value)

    record_activity(db, user.id, "update", "homework", homework.id, {"fields": sorted(changes)})
    await db.commit()
    await db.refresh(homework)
    return DataResponse(data=HomeworkRead.model_validate(homework))


@router.delete("/{homework_id}", response_model=DataResponse[dict], dependencies=[Depends(require_permission(PERM_HOMEWORK_MANAGE))])
async def delete_homework(homework_id: int, user: CurrentUser, db: DbSession):
    homework = await _get_homework_or_404(db, homework_id)
    await db.delete(homework)
    record_activity(db, user.id, "delete", "homework", homework_id)
    await db.commit()
    return DataResponse(data={"message": "Homework deleted successfully"})


@router.get("/{homework_id}/submissions", response_model=DataResponse[list[SubmissionRead]], dependencies=[Depends(require_permission(PERM_HOMEWORK_VIEW))])
async def get_submissions(homework_id: int, db: DbSession, status: Optional[SubmissionStatus] = None):
    await _get_homework_or_404(db, homework_id)

    conditions = [HomeworkSubmission.homework_id == homework_id]
    if status:
        conditions.append(HomeworkSubmission.status == status)

    result = await db.execute(
        select(HomeworkSubmission).where(*conditions).order_by(HomeworkSubmission.submitted_at)
    )
    return DataResponse(data=[SubmissionRead.model_validate(s) for s in result.scalars().all()])


@router.post("/submissions/{submission_id}/grade", response_model=DataResponse[SubmissionRead], dependencies=[Depends(require_permission(PERM_HOMEWORK_MANAGE))])
async def grade_homework_submission(submission_id: int, data: SubmissionGrade, user: CurrentUser, db: DbSession):
    try:
        submission = await grade_submission(db, submission_id, data, user.id)
        return DataResponse(data=SubmissionRead.model_validate(submission))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
