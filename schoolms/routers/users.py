from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, func, or_
from sqlalchemy.orm import selectinload
from schoolms.core.security import hash_password
from schoolms.core.permissions import PERM_USERS_MANAGE
from schoolms.models.auth import User, Role
from schoolms.models.enums import UserStatus
from schoolms.schemas.auth import UserRead, UserCreate, UserUpdate, UserRolesUpdate, UserWithRoles
from schoolms.schemas.common import DataResponse, PaginationMeta
from schoolms.deps import require_permission, CurrentUser, DbSession
from schoolms.services.activity import record_activity

router = APIRouter(prefix="/users", tags=["Users"])


async def _load_roles(db: DbSession, role_ids: list[int]) -> list[Role]:
    if not role_ids:
        return []
    roles_result = await db.execute(select(Role).where(Role.id.in_(role_ids)))
    roles = list(roles_result.scalars().all())
    if len(roles) != len(set(role_ids)):
        raise HTTPException(status_code=400, detail="One or more role IDs are invalid")
    return roles


async def _user_with_roles(db: DbSession, user_id: int) -> Optional[User]:
    result = await db.execute(select(User).options(selectinload(User.roles)).where(User.id == user_id))
    return result.scalar_one_or_none()


@router.get("", response_model=DataResponse[list[UserWithRoles]], dependencies=[Depends(require_permission(PERM_USERS_MANAGE))])
async def get_users(
    db: DbSession,
    search: Optional[str] = Query(None, description="Search by name, phone or email"),
    status: Optional[UserStatus] = None,
    role_id: Optional[int] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
):
    conditions = []
    if search:
        pattern = f"%{search}%"
        conditions.append(or_(User.full_name.ilike(pattern), User.phone.ilike(pattern), User.email.ilike(pattern)))
    if status:
        conditions.append(User.status == status)
    if role_id:
        conditions.append(User.roles.any(Role.id == role_id))

    query = select(User).options(selectinload(User.roles)).where(*conditions).order_by(User.full_name)
    result = await db.execute(query.offset((page - 1) * page_size).limit(page_size))
    users = result.scalars().all()

    count_result = await db.execute(select(func.count(User.id)).where(*conditions))
    total = count_result.scalar()

    return DataResponse(
        data=[UserWithRoles.model_validate(u) for u in users],
        meta=PaginationMeta.build(page, page_size, total),
    )


@router.post("", response_model=DataResponse[UserWithRoles], dependencies=[Depends(require_permission(PERM_USERS_MANAGE))])
async def create_user(data: UserCreate, current_user: CurrentUser, db: DbSession):
    existing_phone = await db.execute(select(User).where(User.phone == data.phone))
    if existing_phone.scalar_one_or_none():
        raise HTTPException(status_code=400, detail="Phone already registered")

    if data.email:
        existing_email = await db.execute(select(User).where(User.email == data.email))
        if existing_email.scalar_one_or_none():
            raise HTTPException(status_code=400, detail="This email is already registered")

    user = User(
        phone=data.phone,
        email=data.email,
        full_name=data.full_name,
        hashed_password=hash_password(data.password),
        is_super_admin=data.is_super_admin,
        status=data.status,
    )
    user.roles = await _load_roles(db, data.role_ids)
    db.add(user)
    await db.flush()
    record_activity(db, current_user.id, "create", "user", user.id, {"role_ids": data.role_ids})
    await db.commit()

    return DataResponse(data=UserWithRoles.model_validate(await _user_with_roles(db, user.id)))


@router.get("/{user_id}", response_model=DataResponse[UserWithRoles], dependencies=[Depends(require_permission(PERM_USERS_MANAGE))])
async def get_user(user_id: int, db: DbSession):
    user = await _user_with_roles(db, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return DataResponse(data=UserWithRoles.model_validate(user))


@router.patch("/{user_id}", response_model=DataResponse[UserRead], dependencies=[Depends(require_permission(PERM_USERS_MANAGE))])
async def update_user(user_id: int, data: UserUpdate, db: DbSession):
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    if data.phone:
        existing_phone = await db.execute(select(User).where(User.phone == data.phone, User.id != user_id))
        if existing_phone.scalar_one_or_none():
            raise HTTPException(status_code=400, detail="Phone already registered")
        user.phone = data.phone

    if data.email:
        existing_email = await db.execute(select(User).where(User.email == data.email, User.id != user_id))
        if existing_email.scalar_one_or_none():
            raise HTTPException(status_code=400, detail="This email is already registered")
        user.email = data.email

    if data.full_name:
        user.full_name = data.full_name
    if data.password:
        user.hashed_password = hash_password(data.password)
    if data.status:
        user.status = data.status

    await db.commit()
    await db.refresh(user)

    return DataResponse(data=UserRead.model_validate(user))


@router.patch("/{user_id}/roles", response_model=DataResponse[UserWithRoles], dependencies=[Depends(require_permission(PERM_USERS_MANAGE))])
async def update_user_roles(user_id: int, data: UserRolesUpdate, current_user: CurrentUser, db: DbSession):
    user = await _user_with_roles(db, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    user.roles = await _load_roles(db, data.role_ids)
    record_activity(db, current_user.id, "assign_roles", "user", user.id, {"role_ids": data.role_ids})
    await db.commit()

    return DataResponse(data=UserWithRoles.model_validate(await _user_with_roles(db, user_id)))


@router.delete("/{user_id}", response_model=DataResponse[dict], dependencies=[Depends(require_permission(PERM_USERS_MANAGE))])
async def delete_user(user_id: int, current_user: CurrentUser, db: DbSession):
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    if user.is_super_admin:
        raise HTTPException(status_code=400, detail="Cannot delete super admin user")
    if user.id == current_user.id:
        raise HTTPException(status_code=400, detail="Cannot delete your own account")

    await db.delete(user)
    record_activity(db, current_user.id, "delete", "user", user_id)
    await db.commit()

    return DataResponse(data={"message": "User deleted successfully"})
