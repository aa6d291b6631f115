from typing import Optional
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select, func
from schoolms.core.permissions import PERM_ACADEMICS_VIEW, PERM_ACADEMICS_MANAGE
from schoolms.models.academics import ExamMark, Subject
from schoolms.schemas.academics import SubjectRead, SubjectCreate, SubjectUpdate
from schoolms.schemas.common import DataResponse
from schoolms.deps import require_permission, CurrentUser, DbSession
from schoolms.services.activity import record_activity
from schoolms.services.grading import grade_for_marks

router = APIRouter(prefix="/subjects", tags=["Subjects"])


async def _ensure_unique_code(db: DbSession, code: str, exclude_id: Optional[int] = None):
    query = select(Subject.id).where(Subject.code == code)
    if exclude_id is not None:
        query = query.where(Subject.id != exclude_id)
    existing = await db.execute(query)
    if existing.scalar_one_or_none():
        raise HTTPException(status_code=400, detail=f"Subject code '{code}' is already in use")


def _check_pass_marks(full_marks: int, pass_marks: int):
    if pass_marks > full_marks:
        raise HTTPException(status_code=400, detail="Pass marks cannot exceed full marks")


async def _regrade_marks(db: DbSession, subject: Subject, full_marks: int):
    """Stored marks must still fit under the new full marks; their grades follow the new scale."""
    highest = await db.execute(select(func.max(ExamMark.total_marks)).where(ExamMark.subject_id == subject.id))
    top = highest.scalar_one_or_none()
    if top is not None and top > full_marks:
        raise HTTPException(
            status_code=400,
            detail=f"Full marks cannot be lower than the highest entered total ({top:g})",
        )

    marks = await db.execute(select(ExamMark).where(ExamMark.subject_id == subject.id))
    for mark in marks.scalars().all():
        graded = grade_for_marks(mark.total_marks or 0, full_marks)
        mark.grade = graded.grade
        mark.grade_point = graded.grade_point


@router.get("", response_model=DataResponse[list[SubjectRead]], dependencies=[Depends(require_permission(PERM_ACADEMICS_VIEW))])
async def get_subjects(db: DbSession, active_only: bool = False):
    query = select(Subject).order_by(Subject.display_order, Subject.name)
    if active_only:
        query = query.where(Subject.is_active.is_(True))
    result = await db.execute(query)
    return DataResponse(data=[SubjectRead.model_validate(s) for s in result.scalars().all()])


@router.post("", response_model=DataResponse[SubjectRead], dependencies=[Depends(require_permission(PERM_ACADEMICS_MANAGE))])
async def create_subject(data: SubjectCreate, user: CurrentUser, db: DbSession):
    await _ensure_unique_code(db, data.code)
    _check_pass_marks(data.full_marks, data.pass_marks)

    subject = Subject(**data.model_dump())
    db.add(subject)
    await db.flush()
    record_activity(db, user.id, "create", "subject", subject.id, {"code": subject.code})
    await db.commit()
    await db.refresh(subject)

    return DataResponse(data=SubjectRead.model_validate(subject))


@router.patch("/{subject_id}", response_model=DataResponse[SubjectRead], dependencies=[Depends(require_permission(PERM_ACADEMICS_MANAGE))])
async def update_subject(subject_id: int, data: SubjectUpdate, user: CurrentUser, db: DbSession):
    result = await db.execute(select(Subject).where(Subject.id == subject_id))
    subject = result.scalar_one_or_none()
    if not subject:
        raise HTTPException(status_code=404, detail="Subject not found")

    changes = data.model_dump(exclude_unset=True)
    if changes.get("code"):
        await _ensure_unique_code(db, changes["code"], exclude_id=subject.id)
    _check_pass_marks(changes.get("full_marks", subject.full_marks), changes.get("pass_marks", subject.pass_marks))
    if "full_marks" in changes and changes["full_marks"] != subject.full_marks:
        await _regrade_marks(db, subject, changes["full_marks"])

    for field, value in changes.items():
        setattr(subject, field, value)

    record_activity(db, user.id, "update", "subject", subject.id, {"fields": sorted(changes)})
    await db.commit()
    await db.refresh(subject)
    return DataResponse(data=SubjectRead.model_validate(subject))


@router.delete("/{subject_id}", response_model=DataResponse[dict], dependencies=[Depends(require_permission(PERM_ACADEMICS_MANAGE))])
async def delete_subject(subject_id: int, user: CurrentUser, db: DbSession):
    result = await db.execute(select(Subject).where(Subject.id == subject_id))
    subject = result.scalar_one_or_none()
    if not subject:
        raise HTTPException(status_code=404, detail="Subject not found")

    await db.delete(subject)
    record_activity(db, user.id, "delete", "subject", subject_id)
    await db.commit()
    return DataResponse(data={"message": "Subject deleted successfully"})
