from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from schoolms.core.permissions import PERM_SETTINGS_SYSTEM_VIEW, PERM_SETTINGS_SYSTEM_EDIT
from schoolms.models.settings import SystemSettings
from schoolms.schemas.settings import SystemSettingsRead, SystemSettingsUpdate
from schoolms.schemas.common import DataResponse
from schoolms.deps import require_permission, CurrentUser, DbSession
from schoolms.services.activity import record_activity

router = APIRouter(prefix="/settings", tags=["Settings"])


@router.get("/system", response_model=DataResponse[list[SystemSettingsRead]], dependencies=[Depends(require_permission(PERM_SETTINGS_SYSTEM_VIEW))])
async def get_system_settings(db: DbSession):
    result = await db.execute(select(SystemSettings).order_by(SystemSettings.key))
    settings = result.scalars().all()
    return DataResponse(data=[SystemSettingsRead.model_validate(s) for s in settings])


@router.get("/system/{key}", response_model=DataResponse[SystemSettingsRead], dependencies=[Depends(require_permission(PERM_SETTINGS_SYSTEM_VIEW))])
async def get_system_setting(key: str, db: DbSession):
    result = await db.execute(select(SystemSettings).where(SystemSettings.key == key))
    setting = result.scalar_one_or_none()
    if not setting:
        raise HTTPException(status_code=404, detail=f"Setting '{key}' not found")
    return DataResponse(data=SystemSettingsRead.model_validate(setting))


@router.patch("/system", response_model=DataResponse[list[SystemSettingsRead]], dependencies=[Depends(require_permission(PERM_SETTINGS_SYSTEM_EDIT))])
async def update_system_settings(data: SystemSettingsUpdate, user: CurrentUser, db: DbSession):
    result = await db.execute(select(SystemSettings).where(SystemSettings.key.in_(list(data.values))))
    existing = {s.key: s for s in result.scalars().all()}

    for key, value in data.values.items():
        setting = existing.get(key)
        if setting:
            setting.value = value
        else:
            db.add(SystemSettings(key=key, value=value))

    record_activity(db, user.id, "update", "system_settings", None, {"keys": sorted(data.values)})
    await db.commit()

    result = await db.execute(select(SystemSettings).order_by(SystemSettings.key))
    return DataResponse(data=[SystemSettingsRead.model_validate(s) for s in result.scalars().all()])
