from typing import Annotated, Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.orm import selectinload
from schoolms.core.db import get_db
from schoolms.core.security import decode_access_token
from schoolms.models.auth import User, Role
from schoolms.models.people import Student, Parent, Teacher
from schoolms.models.enums import UserStatus
from schoolms.services.assignments import assignment_covers, assignments_for, teacher_for_user

security = HTTPBearer()

DbSession = Annotated[AsyncSession, Depends(get_db)]


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    db: DbSession,
) -> User:
    """Resolve the bearer access token to an active user with roles and permissions loaded."""
    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise _unauthorized("Invalid token or token expired")

    try:
        user_id = int(payload.get("sub"))
    except (ValueError, TypeError):
        raise _unauthorized("Invalid user ID in token")

    result = await db.execute(
        select(User)
        .options(selectinload(User.roles).selectinload(Role.permissions))
        .where(User.id == user_id)
    )
    user = result.scalar_one_or_none()
    if user is None:
        raise _unauthorized("User not found")

    if user.status != UserStatus.ACTIVE:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is not active",
        )

    return user


CurrentUser = Annotated[User, Depends(get_current_user)]


def user_permission_codes(user: User) -> set[str]:
    return {perm.code for role in user.roles for perm in role.permissions}


def require_permission(permission_code: str):
    async def permission_checker(user: CurrentUser) -> User:
        if user.is_super_admin:
            return user

        if permission_code not in user_permission_codes(user):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Permission denied: {permission_code}",
            )

        return user

    return permission_checker


async def get_linked_students(user: CurrentUser, db: DbSession) -> list[Student]:
    """The student tied to the account plus, for a parent account, every linked child."""
    own_result = await db.execute(select(Student).where(Student.user_id == user.id))
    students = list(own_result.scalars().all())

    parent_result = await db.execute(
        select(Parent).options(selectinload(Parent.students)).where(Parent.user_id == user.id)
    )
    parent = parent_result.scalar_one_or_none()
    if parent:
        own_ids = {s.id for s in students}
        students.extend(s for s in parent.students if s.id not in own_ids)
    return students


LinkedStudents = Annotated[list[Student], Depends(get_linked_students)]


async def get_student_account(user: CurrentUser, db: DbSession) -> Student:
    result = await db.execute(select(Student).where(Student.user_id == user.id))
    student = result.scalar_one_or_none()
    if not student:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only students can submit homework")
    return student


StudentAccount = Annotated[Student, Depends(get_student_account)]


async def get_teacher_account(user: CurrentUser, db: DbSession) -> Teacher:
    teacher = await teacher_for_user(db, user.id)
    if not teacher:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="No teacher profile is linked to this account")
    return teacher


TeacherAccount = Annotated[Teacher, Depends(get_teacher_account)]


async def ensure_assigned(
    db: AsyncSession,
    user: User,
    class_name: str,
    section: Optional[str] = None,
    subject_id: Optional[int] = None,
):
    """Teachers may only work with the classes they are assigned to; other staff are not restricted."""
    if user.is_super_admin:
        return
    teacher = await teacher_for_user(db, user.id)
    if teacher is None:
        return

    assignments = await assignments_for(db, teacher.id)
    if not any(assignment_covers(a, class_name, section, subject_id) for a in assignments):
        where = f"class {class_name}" + (f" section {section}" if section else "")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=f"You are not assigned to {where}")


async def ensure_assigned_students(db: AsyncSession, user: User, student_ids: list[int], subject_id: Optional[int] = None):
    """Check the teacher covers the class and section of every listed student."""
    if user.is_super_admin or not student_ids:
        return
    result = await db.execute(
        select(Student.class_name, Student.section).where(Student.id.in_(student_ids)).distinct()
    )
    for class_name, section in result.all():
        await ensure_assigned(db, user, class_name, section, subject_id)
