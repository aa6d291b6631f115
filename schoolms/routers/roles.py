from typing import Optional
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.orm import selectinload
from schoolms.core.permissions import PERM_ROLES_MANAGE
from schoolms.models.auth import Role, Permission
from schoolms.schemas.auth import RoleCreate, RoleUpdate, RoleWithPermissions, PermissionRead
from schoolms.schemas.common import DataResponse
from schoolms.deps import require_permission, CurrentUser, DbSession
from schoolms.services.activity import record_activity

router = APIRouter(prefix="/roles", tags=["Roles"])


async def _role_with_permissions(db: DbSession, role_id: int) -> Role | None:
    result = await db.execute(select(Role).options(selectinload(Role.permissions)).where(Role.id == role_id))
    return result.scalar_one_or_none()


async def _load_permissions(db: DbSession, permission_ids: list[int]) -> list[Permission]:
    perms_result = await db.execute(select(Permission).where(Permission.id.in_(permission_ids)))
    permissions = list(perms_result.scalars().all())
    if len(permissions) != len(set(permission_ids)):
        raise HTTPException(status_code=400, detail="One or more permission IDs are invalid")
    return permissions


async def _ensure_unique_name(db: DbSession, name: str, exclude_id: int | None = None):
    query = select(Role.id).where(Role.name == name)
    if exclude_id is not None:
        query = query.where(Role.id != exclude_id)
    existing = await db.execute(query)
    if existing.scalar_one_or_none():
        raise HTTPException(status_code=400, detail=f"Role '{name}' already exists")


@router.get("", response_model=DataResponse[list[RoleWithPermissions]], dependencies=[Depends(require_permission(PERM_ROLES_MANAGE))])
async def get_roles(db: DbSession):
    result = await db.execute(select(Role).options(selectinload(Role.permissions)).order_by(Role.id))
    roles = result.scalars().all()
    return DataResponse(data=[RoleWithPermissions.model_validate(r) for r in roles])


@router.get("/permissions", response_model=DataResponse[list[PermissionRead]], dependencies=[Depends(require_permission(PERM_ROLES_MANAGE))])
async def get_permissions(db: DbSession, module: Optional[str] = None):
    query = select(Permission).order_by(Permission.module, Permission.code)
    if module:
        query = query.where(Permission.module == module)
    result = await db.execute(query)
    permissions = result.scalars().all()
    return DataResponse(data=[PermissionRead.model_validate(p) for p in permissions])


@router.post("", response_model=DataResponse[RoleWithPermissions], dependencies=[Depends(require_permission(PERM_ROLES_MANAGE))])
async def create_role(data: RoleCreate, user: CurrentUser, db: DbSession):
    await _ensure_unique_name(db, data.name)

    role = Role(name=data.name, description=data.description)
    role.permissions = await _load_permissions(db, data.permission_ids) if data.permission_ids else []
    db.add(role)
    await db.flush()
    record_activity(db, user.id, "create", "role", role.id, {"permission_ids": data.permission_ids})
    await db.commit()

    return DataResponse(data=RoleWithPermissions.model_validate(await _role_with_permissions(db, role.id)))


@router.patch("/{role_id}", response_model=DataResponse[RoleWithPermissions], dependencies=[Depends(require_permission(PERM_ROLES_MANAGE))])
async def update_role(role_id: int, data: RoleUpdate, user: CurrentUser, db: DbSession):
    role = await _role_with_permissions(db, role_id)
    if not role:
        raise HTTPException(status_code=404, detail="Role not found")

    if data.name is not None and data.name != role.name:
        if role.is_system:
            raise HTTPException(status_code=400, detail=f"Default role '{role.name}' cannot be renamed")
        await _ensure_unique_name(db, data.name, exclude_id=role.id)
        role.name = data.name
    if data.description is not None:
        role.description = data.description
    if data.permission_ids is not None:
        role.permissions = await _load_permissions(db, data.permission_ids)

    record_activity(db, user.id, "update", "role", role.id)
    await db.commit()

    return DataResponse(data=RoleWithPermissions.model_validate(await _role_with_permissions(db, role_id)))


@router.delete("/{role_id}", response_model=DataResponse[dict], dependencies=[Depends(require_permission(PERM_ROLES_MANAGE))])
async def delete_role(role_id: int, user: CurrentUser, db: DbSession):
    result = await db.execute(select(Role).where(Role.id == role_id))
    role = result.scalar_one_or_none()

    if not role:
        raise HTTPException(status_code=404, detail="Role not found")
    if role.is_system:
        raise HTTPException(status_code=400, detail=f"Default role '{role.name}' cannot be deleted")

    await db.delete(role)
    record_activity(db, user.id, "delete", "role", role_id)
    await db.commit()

    return DataResponse(data={"message": "Role deleted successfully"})
