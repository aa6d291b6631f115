from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, func, or_
from sqlalchemy.orm import selectinload
from schoolms.core.permissions import PERM_PARENTS_MANAGE
from schoolms.models.people import Parent, Student
from schoolms.schemas.student import ParentRead, ParentWithStudents, ParentCreate, ParentUpdate
from schoolms.schemas.common import DataResponse, PaginationMeta
from schoolms.deps import require_permission, CurrentUser, DbSession
from schoolms.services.activity import record_activity

router = APIRouter(prefix="/parents", tags=["Parents"])


async def _parent_with_students(db: DbSession, parent_id: int) -> Optional[Parent]:
    result = await db.execute(select(Parent).options(selectinload(Parent.students)).where(Parent.id == parent_id))
    return result.scalar_one_or_none()


async def _load_students(db: DbSession, student_ids: list[int]) -> list[Student]:
    if not student_ids:
        return []
    result = await db.execute(select(Student).where(Student.id.in_(student_ids)))
    students = list(result.scalars().all())
    if len(students) != len(set(student_ids)):
        raise HTTPException(status_code=400, detail="One or more student IDs are invalid")
    return students


@router.get("", response_model=DataResponse[list[ParentWithStudents]], dependencies=[Depends(require_permission(PERM_PARENTS_MANAGE))])
async def get_parents(
    db: DbSession,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
):
    conditions = []
    if search:
        pattern = f"%{search}%"
        conditions.append(or_(Parent.full_name.ilike(pattern), Parent.phone.ilike(pattern), Parent.email.ilike(pattern)))

    result = await db.execute(
        select(Parent)
        .options(selectinload(Parent.students))
        .where(*conditions)
        .order_by(Parent.full_name)
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    parents = result.scalars().all()

    count_result = await db.execute(select(func.count(Parent.id)).where(*conditions))
    total = count_result.scalar()

    return DataResponse(
        data=[ParentWithStudents.model_validate(p) for p in parents],
        meta=PaginationMeta.build(page, page_size, total),
    )


@router.get("/{parent_id}", response_model=DataResponse[ParentWithStudents], dependencies=[Depends(require_permission(PERM_PARENTS_MANAGE))])
async def get_parent(parent_id: int, db: DbSession):
    parent = await _parent_with_students(db, parent_id)
    if not parent:
        raise HTTPException(status_code=404, detail="Parent not found")
    return DataResponse(data=ParentWithStudents.model_validate(parent))


@router.post("", response_model=DataResponse[ParentWithStudents], dependencies=[Depends(require_permission(PERM_PARENTS_MANAGE))])
async def create_parent(data: ParentCreate, user: CurrentUser, db: DbSession):
    parent = Parent(**data.model_dump(exclude={"student_ids"}))
    parent.students = await _load_students(db, data.student_ids)
    db.add(parent)
    await db.flush()
    record_activity(db, user.id, "create", "parent", parent.id, {"student_ids": data.student_ids})
    await db.commit()

    return DataResponse(data=ParentWithStudents.model_validate(await _parent_with_students(db, parent.id)))


@router.patch("/{parent_id}", response_model=DataResponse[ParentRead], dependencies=[Depends(require_permission(PERM_PARENTS_MANAGE))])
async def update_parent(parent_id: int, data: ParentUpdate, db: DbSession):
    result = await db.execute(select(Parent).where(Parent.id == parent_id))
    parent = result.scalar_one_or_none()
    if not parent:
        raise HTTPException(status_code=404, detail="Parent not found")

    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(parent, field, value)

    await db.commit()
    await db.refresh(parent)
    return DataResponse(data=ParentRead.model_validate(parent))


@router.post("/{parent_id}/students/{student_id}", response_model=DataResponse[ParentWithStudents], dependencies=[Depends(require_permission(PERM_PARENTS_MANAGE))])
async def link_student(parent_id: int, student_id: int, user: CurrentUser, db: DbSession):
    parent = await _parent_with_students(db, parent_id)
    if not parent:
        raise HTTPException(status_code=404, detail="Parent not found")

    student_result = await db.execute(select(Student).where(Student.id == student_id))
    student = student_result.scalar_one_or_none()
    if not student:
        raise HTTPException(status_code=404, detail="Student not found")

    if all(s.id != student_id for s in parent.students):
        parent.students.append(student)
        record_activity(db, user.id, "link_student", "parent", parent.id, {"student_id": student_id})
        await db.commit()

    return DataResponse(data=ParentWithStudents.model_validate(await _parent_with_students(db, parent_id)))


@router.delete("/{parent_id}/students/{student_id}", response_model=DataResponse[ParentWithStudents], dependencies=[Depends(require_permission(PERM_PARENTS_MANAGE))])
async def unlink_student(parent_id: int, student_id: int, user: CurrentUser, db: DbSession):
    parent = await _parent_with_students(db, parent_id)
    if not parent:
        raise HTTPException(status_code=404, detail="Parent not found")

    remaining = [s for s in parent.students if s.id != student_id]
    if len(remaining) == len(parent.students):
        raise HTTPException(status_code=404, detail="Student is not linked to this parent")

    parent.students = remaining
    record_activity(db, user.id, "unlink_student", "parent", parent.id, {"student_id": student_id})
    await db.commit()

    return DataResponse(data=ParentWithStudents.model_validate(await _parent_with_students(db, parent_id)))


@router.delete("/{parent_id}", response_model=DataResponse[dict], dependencies=[Depends(require_permission(PERM_PARENTS_MANAGE))])
async def delete_parent(parent_id: int, user: CurrentUser, db: DbSession):
    result = await db.execute(select(Parent).where(Parent.id == parent_id))
    parent = result.scalar_one_or_none()
    if not parent:
        raise HTTPException(status_code=404, detail="Parent not found")

    await db.delete(parent)
    record_activity(db, user.id, "delete", "parent", parent_id)
    await db.commit()
    return DataResponse(data={"message": "Parent deleted successfully"})
