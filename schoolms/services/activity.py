from typing import Any, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from schoolms.models.settings import ActivityLog


def record_activity(
    db: AsyncSession,
    user_id: Optional[int],
    action: str,
    entity_type: str,
    entity_id: Any = None,
    details: Optional[dict] = None,
    ip_address: Optional[str] = None,
) -> ActivityLog:
    """Stage an activity log row; it is persisted with the caller's commit."""
    log = ActivityLog(
        user_id=user_id,
        action=action,
        entity_type=entity_type,
        entity_id=str(entity_id) if entity_id is not None else None,
        details=details,
        ip_address=ip_address,
    )
    db.add(log)
    return log
