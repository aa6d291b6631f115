from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, func, or_, delete
from schoolms.core.permissions import PERM_TEACHERS_VIEW, PERM_TEACHERS_EDIT
from schoolms.models.academics import Subject
from schoolms.models.people import Teacher, TeacherAssignment
from schoolms.models.enums import TeacherStatus
from schoolms.schemas.teacher import (
    TeacherRead,
    TeacherCreate,
    TeacherUpdate,
    TeacherAssignmentRead,
    TeacherAssignmentCreate,
)
from schoolms.schemas.student import StudentRead
from schoolms.schemas.common import DataResponse, PaginationMeta
from schoolms.deps import require_permission, CurrentUser, DbSession, TeacherAccount
from schoolms.services.activity import record_activity
from schoolms.services.assignments import assignments_for, students_for

router = APIRouter(prefix="/teachers", tags=["Teachers"])


async def _ensure_unique_employee_id(db: DbSession, employee_id: str, exclude_id: Optional[int] = None):
    query = select(Teacher.id).where(Teacher.employee_id == employee_id)
    if exclude_id is not None:
        query = query.where(Teacher.id != exclude_id)
    existing = await db.execute(query)
    if existing.scalar_one_or_none():
        raise HTTPException(status_code=400, detail=f"Employee ID '{employee_id}' is already in use")


async def _get_teacher_or_404(db: DbSession, teacher_id: int) -> Teacher:
    result = await db.execute(select(Teacher).where(Teacher.id == teacher_id))
    teacher = result.scalar_one_or_none()
    if not teacher:
        raise HTTPException(status_code=404, detail="Teacher not found")
    return teacher


@router.get("", response_model=DataResponse[list[TeacherRead]], dependencies=[Depends(require_permission(PERM_TEACHERS_VIEW))])
async def get_teachers(
    db: DbSession,
    search: Optional[str] = None,
    department: Optional[str] = None,
    status: Optional[TeacherStatus] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
):
    conditions = []
    if search:
        pattern = f"%{search}%"
        conditions.append(
            or_(Teacher.full_name.ilike(pattern), Teacher.employee_id.ilike(pattern), Teacher.subject.ilike(pattern))
        )
    if department:
        conditions.append(Teacher.department == department)
    if status:
        conditions.append(Teacher.status == status)

    result = await db.execute(
        select(Teacher).where(*conditions).order_by(Teacher.full_name).offset((page - 1) * page_size).limit(page_size)
    )
    teachers = result.scalars().all()

    count_result = await db.execute(select(func.count(Teacher.id)).where(*conditions))
    total = count_result.scalar()

    return DataResponse(
        data=[TeacherRead.model_validate(t) for t in teachers],
        meta=PaginationMeta.build(page, page_size, total),
    )


# --- Own classes ---

@router.get("/me/assignments", response_model=DataResponse[list[TeacherAssignmentRead]])
async def get_my_assignments(teacher: TeacherAccount, db: DbSession):
    assignments = await assignments_for(db, teacher.id)
    return DataResponse(data=[TeacherAssignmentRead.model_validate(a) for a in assignments])


@router.get("/me/students", response_model=DataResponse[list[StudentRead]])
async def get_my_students(teacher: TeacherAccount, db: DbSession):
    """Active students of the classes and sections assigned to the signed-in teacher"""
    students = await students_for(db, await assignments_for(db, teacher.id))
    return DataResponse(data=[StudentRead.model_validate(s) for s in students])


@router.get("/{teacher_id}", response_model=DataResponse[TeacherRead], dependencies=[Depends(require_permission(PERM_TEACHERS_VIEW))])
async def get_teacher(teacher_id: int, db: DbSession):
    teacher = await _get_teacher_or_404(db, teacher_id)
    return DataResponse(data=TeacherRead.model_validate(teacher))


@router.post("", response_model=DataResponse[TeacherRead], dependencies=[Depends(require_permission(PERM_TEACHERS_EDIT))])
async def create_teacher(data: TeacherCreate, user: CurrentUser, db: DbSession):
    await _ensure_unique_employee_id(db, data.employee_id)

    teacher = Teacher(**data.model_dump())
    db.add(teacher)
    await db.flush()
    record_activity(db, user.id, "create", "teacher", teacher.id, {"employee_id": teacher.employee_id})
    await db.commit()
    await db.refresh(teacher)

    return DataResponse(data=TeacherRead.model_validate(teacher))


@router.patch("/{teacher_id}", response_model=DataResponse[TeacherRead], dependencies=[Depends(require_permission(PERM_TEACHERS_EDIT))])
async def update_teacher(teacher_id: int, data: TeacherUpdate, user: CurrentUser, db: DbSession):
    teacher = await _get_teacher_or_404(db, teacher_id)

    changes = data.model_dump(exclude_unset=True)
    if changes.get("employee_id"):
        await _ensure_unique_employee_id(db, changes["employee_id"], exclude_id=teacher.id)
    for field, value in changes.items():
        setattr(teacher, field, value)

    record_activity(db, user.id, "update", "teacher", teacher.id, {"fields": sorted(changes)})
    await db.commit()
    await db.refresh(teacher)

    return DataResponse(data=TeacherRead.model_validate(teacher))


@router.delete("/{teacher_id}", response_model=DataResponse[dict], dependencies=[Depends(require_permission(PERM_TEACHERS_EDIT))])
async def delete_teacher(teacher_id: int, user: CurrentUser, db: DbSession):
    teacher = await _get_teacher_or_404(db, teacher_id)

    await db.execute(delete(TeacherAssignment).where(TeacherAssignment.teacher_id == teacher.id))
    await db.delete(teacher)
    record_activity(db, user.id, "delete", "teacher", teacher_id)
    await db.commit()

    return DataResponse(data={"message": "Teacher deleted successfully"})


# --- Assignments ---

@router.get("/{teacher_id}/assignments", response_model=DataResponse[list[TeacherAssignmentRead]], dependencies=[Depends(require_permission(PERM_TEACHERS_VIEW))])
async def get_assignments(teacher_id: int, db: DbSession):
    teacher = await _get_teacher_or_404(db, teacher_id)
    assignments = await assignments_for(db, teacher.id)
    return DataResponse(data=[TeacherAssignmentRead.model_validate(a) for a in assignments])


@router.post("/{teacher_id}/assignments", response_model=DataResponse[TeacherAssignmentRead], dependencies=[Depends(require_permission(PERM_TEACHERS_EDIT))])
async def create_assignment(teacher_id: int, data: TeacherAssignmentCreate, user: CurrentUser, db: DbSession):
    teacher = await _get_teacher_or_404(db, teacher_id)

    if data.subject_id is not None:
        subject_result = await db.execute(select(Subject.id).where(Subject.id == data.subject_id))
        if not subject_result.scalar_one_or_none():
            raise HTTPException(status_code=400, detail=f"Subject with ID {data.subject_id} not found")

    # Compared in Python: NULL section or subject never collides in a unique index
    for existing in await assignments_for(db, teacher.id):
        if (existing.class_name, existing.section, existing.subject_id, existing.academic_year) == (
            data.class_name, data.section, data.subject_id, data.academic_year
        ):
            raise HTTPException(status_code=400, detail="This assignment already exists for the teacher")

    assignment = TeacherAssignment(**data.model_dump(), teacher_id=teacher.id)
    db.add(assignment)
    await db.flush()
    record_activity(
        db, user.id, "assign", "teacher", teacher.id,
        {"class": assignment.class_name, "section": assignment.section, "subject_id": assignment.subject_id},
    )
    await db.commit()
    await db.refresh(assignment)
    return DataResponse(data=TeacherAssignmentRead.model_validate(assignment))


@router.delete("/{teacher_id}/assignments/{assignment_id}", response_model=DataResponse[dict], dependencies=[Depends(require_permission(PERM_TEACHERS_EDIT))])
async def delete_assignment(teacher_id: int, assignment_id: int, user: CurrentUser, db: DbSession):
    result = await db.execute(
        select(TeacherAssignment).where(
            TeacherAssignment.id == assignment_id, TeacherAssignment.teacher_id == teacher_id
        )
    )
    assignment = result.scalar_one_or_none()
    if not assignment:
        raise HTTPException(status_code=404, detail="Assignment not found")

    await db.delete(assignment)
    record_activity(db, user.id, "unassign", "teacher", teacher_id, {"assignment_id": assignment_id})
    await db.commit()
    return DataResponse(data={"message": "Assignment removed successfully"})
