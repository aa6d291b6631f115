from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, func, or_
from schoolms.core.permissions import PERM_STUDENTS_VIEW, PERM_STUDENTS_EDIT
from schoolms.models.people import Student
from schoolms.models.enums import StudentStatus
from schoolms.schemas.student import StudentRead, StudentCreate, StudentUpdate
from schoolms.schemas.common import DataResponse, PaginationMeta
from schoolms.deps import require_permission, CurrentUser, DbSession
from schoolms.services.activity import record_activity

router = APIRouter(prefix="/students", tags=["Students"])


async def _ensure_unique_registration(db: DbSession, registration_number: str, exclude_id: Optional[int] = None):
    query = select(Student.id).where(Student.registration_number == registration_number)
    if exclude_id is not None:
        query = query.where(Student.id != exclude_id)
    existing = await db.execute(query)
    if existing.scalar_one_or_none():
        raise HTTPException(
            status_code=400, detail=f"Registration number '{registration_number}' is already in use"
        )


@router.get("", response_model=DataResponse[list[StudentRead]], dependencies=[Depends(require_permission(PERM_STUDENTS_VIEW))])
async def get_students(
    db: DbSession,
    search: Optional[str] = Query(None, description="Search by name, registration number or guardian phone"),
    class_name: Optional[str] = None,
    section: Optional[str] = None,
    status: Optional[StudentStatus] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
):
    conditions = []
    if search:
        pattern = f"%{search}%"
        conditions.append(
            or_(
                Student.full_name.ilike(pattern),
                Student.registration_number.ilike(pattern),
                Student.guardian_phone.ilike(pattern),
            )
        )
    if class_name:
        conditions.append(Student.class_name == class_name)
    if section:
        conditions.append(Student.section == section)
    if status:
        conditions.append(Student.status == status)

    query = (
        select(Student)
        .where(*conditions)
        .order_by(Student.class_name, Student.section, Student.roll_number, Student.full_name)
    )
    result = await db.execute(query.offset((page - 1) * page_size).limit(page_size))
    students = result.scalars().all()

    count_result = await db.execute(select(func.count(Student.id)).where(*conditions))
    total = count_result.scalar()

    return DataResponse(
        data=[StudentRead.model_validate(s) for s in students],
        meta=PaginationMeta.build(page, page_size, total),
    )


@router.get("/{student_id}", response_model=DataResponse[StudentRead], dependencies=[Depends(require_permission(PERM_STUDENTS_VIEW))])
async def get_student(student_id: int, db: DbSession):
    result = await db.execute(select(Student).where(Student.id == student_id))
    student = result.scalar_one_or_none()

    if not student:
        raise HTTPException(status_code=404, detail="Student not found")

    return DataResponse(data=StudentRead.model_validate(student))


@router.post("", response_model=DataResponse[StudentRead], dependencies=[Depends(require_permission(PERM_STUDENTS_EDIT))])
async def create_student(data: StudentCreate, user: CurrentUser, db: DbSession):
    await _ensure_unique_registration(db, data.registration_number)

    student = Student(**data.model_dump())
    db.add(student)
    await db.flush()
    record_activity(db, user.id, "create", "student", student.id, {"registration_number": student.registration_number})
    await db.commit()
    await db.refresh(student)

    return DataResponse(data=StudentRead.model_validate(student))


@router.patch("/{student_id}", response_model=DataResponse[StudentRead], dependencies=[Depends(require_permission(PERM_STUDENTS_EDIT))])
async def update_student(student_id: int, data: StudentUpdate, user: CurrentUser, db: DbSession):
    result = await db.execute(select(Student).where(Student.id == student_id))
    student = result.scalar_one_or_none()

    if not student:
        raise HTTPException(status_code=404, detail="Student not found")

    changes = data.model_dump(exclude_unset=True)
    if changes.get("registration_number"):
        await _ensure_unique_registration(db, changes["registration_number"], exclude_id=student.id)

    for field, value in changes.items():
        setattr(student, field, value)

    record_activity(db, user.id, "update", "student", student.id, {"fields": sorted(changes)})
    await db.commit()
    await db.refresh(student)

    return DataResponse(data=StudentRead.model_validate(student))


@router.delete("/{student_id}", response_model=DataResponse[dict], dependencies=[Depends(require_permission(PERM_STUDENTS_EDIT))])
async def delete_student(student_id: int, user: CurrentUser, db: DbSession):
    result = await db.execute(select(Student).where(Student.id == student_id))
    student = result.scalar_one_or_none()

    if not student:
        raise HTTPException(status_code=404, detail="Student not found")

    await db.delete(student)
    record_activity(db, user.id, "delete", "student", student_id, {"registration_number": student.registration_number})
    await db.commit()

    return DataResponse(data={"message": "Student deleted successfully"})
