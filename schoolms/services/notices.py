from datetime import datetime
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_
from schoolms.models.notices import Notice
from schoolms.models.base import utcnow


async def active_notices(
    db: AsyncSession, category: Optional[str] = None, now: Optional[datetime] = None
) -> list[Notice]:
    """Published notices that have not expired, pinned ones first, newest first within each group."""
    now = now or utcnow()
    query = select(Notice).where(
        Notice.is_published.is_(True),
        or_(Notice.expire_at.is_(None), Notice.expire_at > now),
    )
    if category:
        query = query.where(Notice.category == category)

    result = await db.execute(
        query.order_by(Notice.is_pinned.desc(), Notice.created_at.desc(), Notice.id.desc())
    )
    return list(result.scalars().all())
