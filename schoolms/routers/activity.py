from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select, func
from schoolms.core.permissions import PERM_ACTIVITY_VIEW
from schoolms.models.settings import ActivityLog
from schoolms.schemas.settings import ActivityLogRead
from schoolms.schemas.common import DataResponse, PaginationMeta
from schoolms.deps import require_permission, DbSession
from schoolms.utils.school_time import day_bounds

router = APIRouter(prefix="/activity", tags=["Activity"])


@router.get("", response_model=DataResponse[list[ActivityLogRead]], dependencies=[Depends(require_permission(PERM_ACTIVITY_VIEW))])
async def get_activity_logs(
    db: DbSession,
    user_id: Optional[int] = None,
    entity_type: Optional[str] = None,
    entity_id: Optional[str] = None,
    action: Optional[str] = None,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
):
    conditions = []
    if user_id:
        conditions.append(ActivityLog.user_id == user_id)
    if entity_type:
        conditions.append(ActivityLog.entity_type == entity_type)
    if entity_id:
        conditions.append(ActivityLog.entity_id == entity_id)
    if action:
        conditions.append(ActivityLog.action == action)
    if from_date:
        conditions.append(ActivityLog.created_at >= day_bounds(from_date, from_date)[0])
    if to_date:
        conditions.append(ActivityLog.created_at < day_bounds(to_date, to_date)[1])

    result = await db.execute(
        select(ActivityLog)
        .where(*conditions)
        .order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    logs = result.scalars().all()

    count_result = await db.execute(select(func.count(ActivityLog.id)).where(*conditions))
    total = count_result.scalar()

    return DataResponse(
        data=[ActivityLogRead.model_validate(log) for log in logs],
        meta=PaginationMeta.build(page, page_size, total),
    )
