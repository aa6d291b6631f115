"""
Notice board.

Staff draft notices and decide when they go live; anyone, signed in or not,
can read what is published and not yet expired.
"""
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, func, or_
from schoolms.core.permissions import PERM_NOTICES_MANAGE
from schoolms.models.notices import Notice
from schoolms.schemas.notice import NoticeRead, NoticeCreate, NoticeUpdate
from schoolms.schemas.common import DataResponse, PaginationMeta
from schoolms.deps import require_permission, CurrentUser, DbSession
from schoolms.services.activity import record_activity
from schoolms.services.notices import active_notices

router = APIRouter(prefix="/notices", tags=["Notices"])


async def _get_notice_or_404(db: DbSession, notice_id: int) -> Notice:
    result = await db.execute(select(Notice).where(Notice.id == notice_id))
    notice = result.scalar_one_or_none()
    if not notice:
        raise HTTPException(status_code=404, detail="Notice not found")
    return notice


@router.get("/published", response_model=DataResponse[list[NoticeRead]])
async def get_published_notices(db: DbSession, category: Optional[str] = None):
    notices = await active_notices(db, category)
    return DataResponse(data=[NoticeRead.model_validate(n) for n in notices])


@router.get("", response_model=DataResponse[list[NoticeRead]], dependencies=[Depends(require_permission(PERM_NOTICES_MANAGE))])
async def get_notices(
    db: DbSession,
    search: Optional[str] = None,
    category: Optional[str] = None,
    is_published: Optional[bool] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
):
    conditions = []
    if search:
        pattern = f"%{search}%"
        conditions.append(or_(Notice.title.ilike(pattern), Notice.content.ilike(pattern)))
    if category:
        conditions.append(Notice.category == category)
    if is_published is not None:
        conditions.append(Notice.is_published.is_(is_published))

    result = await db.execute(
        select(Notice)
        .where(*conditions)
        .order_by(Notice.is_pinned.desc(), Notice.created_at.desc(), Notice.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    notices = result.scalars().all()

    count_result = await db.execute(select(func.count(Notice.id)).where(*conditions))
    total = count_result.scalar()

    return DataResponse(
        data=[NoticeRead.model_validate(n) for n in notices],
        meta=PaginationMeta.build(page, page_size, total),
    )


@router.get("/{notice_id}", response_model=DataResponse[NoticeRead], dependencies=[Depends(require_permission(PERM_NOTICES_MANAGE))])
async def get_notice(notice_id: int, db: DbSession):
    return DataResponse(data=NoticeRead.model_validate(await _get_notice_or_404(db, notice_id)))


@router.post("", response_model=DataResponse[NoticeRead], dependencies=[Depends(require_permission(PERM_NOTICES_MANAGE))])
async def create_notice(data: NoticeCreate, user: CurrentUser, db: DbSession):
    notice = Notice(**data.model_dump(), created_by_user_id=user.id)
    db.add(notice)
    await db.flush()
    record_activity(db, user.id, "create", "notice", notice.id, {"title": notice.title})
    await db.commit()
    await db.refresh(notice)
    return DataResponse(data=NoticeRead.model_validate(notice))


@router.patch("/{notice_id}", response_model=DataResponse[NoticeRead], dependencies=[Depends(require_permission(PERM_NOTICES_MANAGE))])
async def update_notice(notice_id: int, data: NoticeUpdate, user: CurrentUser, db: DbSession):
    notice = await _get_notice_or_404(db, notice_id)

    changes = data.model_dump(exclude_unset=True)
    for field, value in changes.items():
        setattr(notice, field, value)

    record_activity(db, user.id, "update", "notice", notice.id, {"fields": sorted(changes)})
    await db.commit()
    await db.refresh(notice)
    return DataResponse(data=NoticeRead.model_validate(notice))


@router.post("/{notice_id}/publish", response_model=DataResponse[NoticeRead], dependencies=[Depends(require_permission(PERM_NOTICES_MANAGE))])
async def toggle_publish(notice_id: int, user: CurrentUser, db: DbSession):
    notice = await _get_notice_or_404(db, notice_id)
    notice.is_published = not notice.is_published
    record_activity(db, user.id, "publish" if notice.is_published else "unpublish", "notice", notice.id)
    await db.commit()
    await db.refresh(notice)
    return DataResponse(data=NoticeRead.model_validate(notice))


@router.post("/{notice_id}/pin", response_model=DataResponse[NoticeRead], dependencies=[Depends(require_permission(PERM_NOTICES_MANAGE))])
async def toggle_pin(notice_id: int, user: CurrentUser, db: DbSession):
    notice = await _get_notice_or_404(db, notice_id)
    notice.is_pinned = not notice.is_pinned
    record_activity(db, user.id, "pin" if notice.is_pinned else "unpin", "notice", notice.id)
    await db.commit()
    await db.refresh(notice)
    return DataResponse(data=NoticeRead.model_validate(notice))


@router.delete("/{notice_id}", response_model=DataResponse[dict], dependencies=[Depends(require_permission(PERM_NOTICES_MANAGE))])
async def delete_notice(notice_id: int, user: CurrentUser, db: DbSession):
    notice = await _get_notice_or_404(db, notice_id)
    await db.delete(notice)
    record_activity(db, user.id, "delete", "notice", notice_id)
    await db.commit()
    return DataResponse(data={"message": "Notice deleted successfully"})
